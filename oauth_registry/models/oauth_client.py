"""
OAuth Client Model

Third-party application registrations owned by a single user.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, validates
from oauth_registry.database import Base
from oauth_registry.scopes import is_valid_scope


class OAuthClient(Base):
    """
    Registered OAuth client.

    Only the owner may read or mutate a client. ``logo_uri`` always points
    at a stored logo or at the default logo, and ``scope`` is kept in
    canonical form (see :func:`oauth_registry.scopes.canonicalize_scope`).
    """

    __tablename__ = "oauth_clients"

    id = Column(Integer, primary_key=True, index=True)

    # Client credentials
    client_id = Column(String(64), unique=True, nullable=False, index=True)
    client_secret = Column(String(255), nullable=False)

    # Owner tracking
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Display metadata
    client_name = Column(String(255), nullable=False)
    client_uri = Column(String(2048), nullable=False)
    logo_uri = Column(String(2048), nullable=False)

    # Ordered list of redirect URIs
    redirect_uris = Column(JSON, nullable=False, default=list)

    # Space-separated canonical scope tokens
    scope = Column(String(2048), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="oauth_clients")

    @validates("scope")
    def _check_scope(self, key, value):
        if not is_valid_scope(value or ""):
            raise ValueError(f"scope {value!r} contains unreserved tokens")
        return value

    def __repr__(self):
        return f"<OAuthClient {self.client_name} ({self.client_id})>"
