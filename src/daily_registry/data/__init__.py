from .api_client import ApiClient
from .database import Database

__all__ = ["ApiClient", "Database"]
