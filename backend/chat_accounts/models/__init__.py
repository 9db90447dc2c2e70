"""SQLAlchemy models exposed for metadata creation and imports."""
from .account import Account
from .user import User, UserProfile, UserSettings

__all__ = ["Account", "User", "UserProfile", "UserSettings"]
