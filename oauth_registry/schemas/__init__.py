from oauth_registry.schemas.oauth_client import (
    ClientCreateForm,
    ClientForm,
    ClientUpdateForm,
    LogoUpdateOption,
    OAuthClientPublic,
    OAuthClientResponse,
)

__all__ = [
    "ClientCreateForm",
    "ClientForm",
    "ClientUpdateForm",
    "LogoUpdateOption",
    "OAuthClientPublic",
    "OAuthClientResponse",
]
