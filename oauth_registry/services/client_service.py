"""
OAuth Client Service

Coordinates validation, persistence, logo storage and secret rotation for
client registrations. Every check runs before the first write; callers pass
clients that already went through :func:`authorize_client`.
"""

import logging
import secrets
from typing import Any, Awaitable, Callable, List, Optional

from fastapi import UploadFile
from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from oauth_registry.exceptions import (
    InvalidFieldFormatError,
    MalformedPatchError,
    MissingFieldError,
    UnsupportedOperationError,
)
from oauth_registry.models.oauth_client import OAuthClient
from oauth_registry.models.user import User
from oauth_registry.schemas.oauth_client import (
    ClientCreateForm,
    ClientUpdateForm,
    LogoUpdateOption,
)
from oauth_registry.scopes import InvalidScopeError, canonicalize_scope
from oauth_registry.services.client_store import ClientRepository
from oauth_registry.services.logo_storage import InvalidLogoError, LogoChange, LogoStorage
from oauth_registry.services.scope_patch import (
    MalformedPatch,
    UnsupportedPatchOperation,
    apply_scope_patch,
)

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(AnyHttpUrl)


def generate_client_id() -> str:
    """Generate a unique client ID."""
    return f"client_{secrets.token_hex(16)}"


def generate_client_secret() -> str:
    """Generate a secure client secret."""
    return secrets.token_urlsafe(32)


def _require(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise MissingFieldError(field)
    return value.strip()


def _validate_uri(value: str, field: str) -> str:
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise InvalidFieldFormatError(field, f"{field} must be an absolute http(s) URI")
    return value


def _validate_redirect_uris(uris: List[str]) -> List[str]:
    return [
        _validate_uri(uri.strip(), f"redirect_uri{position}")
        for position, uri in enumerate(uris, start=1)
    ]


def _has_file(upload: Optional[UploadFile]) -> bool:
    return upload is not None and bool(upload.filename)


class ClientService:
    """Client CRUD on behalf of an authenticated owner."""

    def __init__(self, store: ClientRepository, logos: LogoStorage):
        self.store = store
        self.logos = logos

    async def list_clients(self, user: User) -> List[OAuthClient]:
        return await self.store.list_by_owner(user.id)

    async def create_client(
        self, user: User, form: ClientCreateForm, logo: Optional[UploadFile] = None
    ) -> OAuthClient:
        """Register a new client owned by ``user``."""
        client_name = _require(form.client_name, "client_name")
        client_uri = _validate_uri(_require(form.client_uri, "client_uri"), "client_uri")
        redirect_uris = _validate_redirect_uris(form.redirect_uris) or [client_uri]
        scope = self._canonical_scope(form.scope or "", "scope")
        upload = logo if _has_file(logo) else None
        if upload is not None:
            self._validate_logo(upload)

        change = await self._begin_logo_change(self.logos.default_uri, upload=upload)
        client = OAuthClient(
            client_id=generate_client_id(),
            client_secret=generate_client_secret(),
            owner_id=user.id,
            client_name=client_name,
            client_uri=client_uri,
            redirect_uris=redirect_uris,
            scope=scope,
        )
        client = await self._persist(client, change, self.store.add)

        logger.info(f"OAuth client created: {client.client_name} ({client.client_id}) by user {user.id}")
        return client

    async def update_client(
        self, client: OAuthClient, form: ClientUpdateForm, logo: Optional[UploadFile] = None
    ) -> OAuthClient:
        """Replace a client's display fields and apply the requested logo option."""
        client_name = _require(form.client_name, "client_name")
        client_uri = _validate_uri(_require(form.client_uri, "client_uri"), "client_uri")
        raw_option = _require(form.logo_update_option, "logo_update_option")
        try:
            option = LogoUpdateOption(raw_option)
        except ValueError:
            allowed = ", ".join(o.value for o in LogoUpdateOption)
            raise InvalidFieldFormatError(
                "logo_update_option", f"logo_update_option must be one of: {allowed}"
            )
        redirect_uris = _validate_redirect_uris(form.redirect_uris)

        upload = None
        if option is LogoUpdateOption.UPDATE:
            if not _has_file(logo):
                raise MissingFieldError("logo")
            upload = logo
            self._validate_logo(upload)

        change = await self._begin_logo_change(
            client.logo_uri,
            upload=upload,
            reset=option is LogoUpdateOption.DELETE,
        )
        client.client_name = client_name
        client.client_uri = client_uri
        if redirect_uris:
            client.redirect_uris = redirect_uris
        client = await self._persist(client, change, self.store.save)

        logger.info(
            f"OAuth client updated: {client.client_id} (logo: {option.value})",
            extra={"client_id": client.client_id, "owner_id": client.owner_id},
        )
        return client

    async def delete_client(self, client: OAuthClient) -> None:
        """Hard-delete a client, then its stored logo."""
        client_id, logo_uri = client.client_id, client.logo_uri
        await self.store.delete(client)
        self.logos.delete(logo_uri)
        logger.info(f"OAuth client deleted: {client_id}")

    async def rotate_secret(self, client: OAuthClient) -> OAuthClient:
        """Issue a new secret; nothing else about the client changes."""
        old_secret = client.client_secret
        new_secret = generate_client_secret()
        while new_secret == old_secret:
            new_secret = generate_client_secret()
        client.client_secret = new_secret
        client = await self.store.save(client)
        logger.info(f"OAuth client secret rotated: {client.client_id}")
        return client

    async def patch_scope(self, client: OAuthClient, document: Any) -> OAuthClient:
        """Apply a scope patch document and persist the canonical result."""
        try:
            new_scope = apply_scope_patch(client.scope or "", document)
        except MalformedPatch as e:
            raise MalformedPatchError(str(e))
        except UnsupportedPatchOperation as e:
            raise UnsupportedOperationError(str(e))
        except InvalidScopeError as e:
            raise InvalidFieldFormatError("value", str(e))

        client.scope = new_scope
        client = await self.store.save(client)
        logger.info(
            f"OAuth client scope replaced: {client.client_id}",
            extra={"client_id": client.client_id, "scope": new_scope},
        )
        return client

    def _canonical_scope(self, scope: str, field: str) -> str:
        try:
            return canonicalize_scope(scope)
        except InvalidScopeError as e:
            raise InvalidFieldFormatError(field, str(e))

    def _validate_logo(self, upload: UploadFile) -> None:
        try:
            self.logos.validate(upload)
        except InvalidLogoError as e:
            raise InvalidFieldFormatError("logo", str(e))

    async def _begin_logo_change(
        self, old_uri: str, upload: Optional[UploadFile] = None, reset: bool = False
    ) -> LogoChange:
        try:
            return await self.logos.begin_change(old_uri, upload=upload, reset=reset)
        except InvalidLogoError as e:
            raise InvalidFieldFormatError("logo", str(e))

    async def _persist(
        self,
        client: OAuthClient,
        change: LogoChange,
        write: Callable[[OAuthClient], Awaitable[OAuthClient]],
    ) -> OAuthClient:
        """Write the record, then settle the logo: new file first, old file last."""
        client.logo_uri = change.logo_uri
        try:
            client = await write(client)
        except Exception:
            change.rollback()
            raise
        change.commit()
        return client
