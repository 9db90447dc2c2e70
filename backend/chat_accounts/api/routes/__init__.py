"""Route modules for the account API."""
from . import accounts, auth, users

__all__ = ["accounts", "auth", "users"]
