"""
OAuth Client Endpoints

Owner-scoped management of client registrations. Every route that takes a
client id resolves it through ``OwnedClient``, so a client belonging to
another user answers exactly like a missing one (404).
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, Request, Response, UploadFile, status

from oauth_registry.api.deps import Clients, CurrentUser, OwnedClient
from oauth_registry.exceptions import MalformedPatchError, ProblemDetail
from oauth_registry.schemas.oauth_client import (
    ClientCreateForm,
    ClientUpdateForm,
    OAuthClientPublic,
    OAuthClientResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["OAuth Clients"])

PATCH_MEDIA_TYPES = ("application/json-patch+json", "application/json")

_problem_responses = {
    400: {"model": ProblemDetail, "description": "Missing or malformed field"},
    401: {"model": ProblemDetail, "description": "Not authenticated"},
    404: {"model": ProblemDetail, "description": "Client not found"},
}


def _collect_redirect_uris(*values: Optional[str]) -> List[str]:
    """Ordered, non-blank redirect_uriN form values."""
    return [value for value in values if value is not None and value.strip()]


@router.get(
    "",
    response_model=List[OAuthClientPublic],
    summary="List Clients",
    description="List the caller's clients. Secrets are not included.",
)
async def list_clients(current_user: CurrentUser, clients: Clients):
    """List all clients owned by the caller."""
    return await clients.list_clients(current_user)


@router.get(
    "/{client_id}",
    response_model=OAuthClientResponse,
    responses={404: _problem_responses[404]},
    summary="Get Client",
)
async def get_client(client: OwnedClient):
    """Get the full representation of one of the caller's clients."""
    return client


@router.post(
    "",
    response_model=OAuthClientResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: _problem_responses[400]},
    summary="Create Client",
    description="""
    Register a new client from a multipart form.

    **Required:** `client_name`, `client_uri`.
    **Optional:** `redirect_uri1`..`redirect_uri3`, `scope`, `logo` (image file).
    Without a logo the client gets the default logo.
    """,
)
async def create_client(
    current_user: CurrentUser,
    clients: Clients,
    client_name: Optional[str] = Form(None),
    client_uri: Optional[str] = Form(None),
    redirect_uri1: Optional[str] = Form(None),
    redirect_uri2: Optional[str] = Form(None),
    redirect_uri3: Optional[str] = Form(None),
    scope: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
):
    """Create a client owned by the caller."""
    form = ClientCreateForm(
        client_name=client_name,
        client_uri=client_uri,
        redirect_uris=_collect_redirect_uris(redirect_uri1, redirect_uri2, redirect_uri3),
        scope=scope,
    )
    return await clients.create_client(current_user, form, logo)


@router.put(
    "/{client_id}",
    response_model=OAuthClientResponse,
    responses={400: _problem_responses[400], 404: _problem_responses[404]},
    summary="Update Client",
    description="""
    Replace a client's display fields from a multipart form.

    **Required:** `client_name`, `client_uri`, `logo_update_option`
    (`update` | `delete` | `no-change`).
    **Optional:** `redirect_uri1`..`redirect_uri3`, `logo` (required for `update`).
    """,
)
async def update_client(
    client: OwnedClient,
    clients: Clients,
    client_name: Optional[str] = Form(None),
    client_uri: Optional[str] = Form(None),
    logo_update_option: Optional[str] = Form(None),
    redirect_uri1: Optional[str] = Form(None),
    redirect_uri2: Optional[str] = Form(None),
    redirect_uri3: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
):
    """Update one of the caller's clients."""
    form = ClientUpdateForm(
        client_name=client_name,
        client_uri=client_uri,
        logo_update_option=logo_update_option,
        redirect_uris=_collect_redirect_uris(redirect_uri1, redirect_uri2, redirect_uri3),
    )
    return await clients.update_client(client, form, logo)


@router.delete(
    "/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: _problem_responses[404]},
    summary="Delete Client",
)
async def delete_client(client: OwnedClient, clients: Clients):
    """Hard-delete one of the caller's clients and its logo."""
    await clients.delete_client(client)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{client_id}/secret",
    response_model=OAuthClientResponse,
    responses={404: _problem_responses[404]},
    summary="Rotate Client Secret",
)
async def rotate_client_secret(client: OwnedClient, clients: Clients):
    """Issue a new client secret; every other field stays the same."""
    return await clients.rotate_secret(client)


@router.patch(
    "/{client_id}/scope",
    response_model=OAuthClientResponse,
    responses={400: _problem_responses[400], 404: _problem_responses[404]},
    summary="Patch Client Scope",
    description="""
    Replace the client's scope with a one-operation patch document:

    `[{"op": "replace", "path": "/", "value": "user:username.read.write"}]`

    Send as `application/json-patch+json` (or `application/json`).
    """,
)
async def patch_client_scope(request: Request, client: OwnedClient, clients: Clients):
    """Apply a scope patch document to one of the caller's clients."""
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type and media_type not in PATCH_MEDIA_TYPES:
        raise MalformedPatchError(
            f"patch document must be sent as {' or '.join(PATCH_MEDIA_TYPES)}"
        )
    try:
        document = await request.json()
    except ValueError:
        raise MalformedPatchError("patch document must be valid JSON")
    return await clients.patch_scope(client, document)
