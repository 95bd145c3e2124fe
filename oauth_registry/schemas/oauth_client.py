"""
OAuth Client Schemas

Pydantic schemas for client responses and the raw multipart forms the client
endpoints accept. Form fields are kept optional here; required-field and
format checks happen in :mod:`oauth_registry.services.client_service` so that
they surface as 400 problem responses.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

from oauth_registry.scopes import describe_scope


class LogoUpdateOption(str, Enum):
    """What a full update does to the client's logo."""

    UPDATE = "update"
    DELETE = "delete"
    NO_CHANGE = "no-change"


class OAuthClientPublic(BaseModel):
    """Client fields safe to show in listings (no secret)."""

    client_id: str
    client_name: str
    client_uri: str
    logo_uri: str

    class Config:
        from_attributes = True


class OAuthClientResponse(OAuthClientPublic):
    """Full client representation, returned only to the owner."""

    client_secret: str
    redirect_uris: List[str] = Field(default_factory=list)
    scope: str = ""
    owner_id: int
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def scope_labels(self) -> List[str]:
        """What the scope grants, one readable line per token."""
        return describe_scope(self.scope)


class ClientForm(BaseModel):
    """Raw client fields as submitted."""

    client_name: Optional[str] = None
    client_uri: Optional[str] = None
    redirect_uris: List[str] = Field(default_factory=list)


class ClientCreateForm(ClientForm):
    """Raw fields of a new registration."""

    scope: Optional[str] = None


class ClientUpdateForm(ClientForm):
    """Raw fields of a full update."""

    logo_update_option: Optional[str] = None
