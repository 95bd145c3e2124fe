from oauth_registry.models.user import User
from oauth_registry.models.oauth_client import OAuthClient

__all__ = [
    "User",
    "OAuthClient",
]
