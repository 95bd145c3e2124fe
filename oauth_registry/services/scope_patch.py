"""
Scope Patch Engine

Applies a JSON-Patch-like document to a client's scope string. The only
supported document is a single whole-value replacement::

    [{"op": "replace", "path": "/", "value": "user:username.read user:pfp.read"}]

Replacement overwrites the stored scope; it never unions with it.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict

from pydantic import BaseModel, ConfigDict, StrictStr, TypeAdapter, ValidationError

from oauth_registry.scopes import canonicalize_scope

logger = logging.getLogger(__name__)

ROOT_PATH = "/"


class PatchError(ValueError):
    """Base class for patch document errors."""


class MalformedPatch(PatchError):
    """The document or one of its operations has the wrong shape."""


class UnsupportedPatchOperation(PatchError):
    """The operation is well-formed but not implemented."""


class PatchOp(str, Enum):
    """RFC 6902 operation names."""

    ADD = "add"
    REMOVE = "remove"
    REPLACE = "replace"
    MOVE = "move"
    COPY = "copy"
    TEST = "test"


class PatchOperation(BaseModel):
    """One entry of a patch document. All three members are required."""

    model_config = ConfigDict(extra="ignore")

    op: StrictStr
    path: StrictStr
    value: StrictStr


_document_adapter = TypeAdapter(list[PatchOperation])


def _replace(current_scope: str, operation: PatchOperation) -> str:
    if operation.path != ROOT_PATH:
        raise UnsupportedPatchOperation(
            f"replace is only supported on path '{ROOT_PATH}', got '{operation.path}'"
        )
    return canonicalize_scope(operation.value)


OPERATION_HANDLERS: Dict[PatchOp, Callable[[str, PatchOperation], str]] = {
    PatchOp.REPLACE: _replace,
}


def parse_patch_document(document: Any) -> PatchOperation:
    """Validate the document shape and return its single operation."""
    if not isinstance(document, list):
        raise MalformedPatch("patch document must be a JSON array")
    if len(document) != 1:
        raise MalformedPatch("patch document must contain exactly one operation")
    try:
        (operation,) = _document_adapter.validate_python(document)
    except ValidationError as e:
        missing = sorted({str(err["loc"][-1]) for err in e.errors() if err["loc"]})
        raise MalformedPatch(f"invalid patch operation: {', '.join(missing) or 'bad shape'}")
    return operation


def apply_scope_patch(current_scope: str, document: Any) -> str:
    """
    Apply a patch document to a scope string.

    Returns:
        The canonical scope after the patch.

    Raises:
        MalformedPatch: Document or operation has the wrong shape.
        UnsupportedPatchOperation: Operation other than whole-scope replace.
        InvalidScopeError: Replacement value is outside the scope grammar.
    """
    operation = parse_patch_document(document)

    try:
        op = PatchOp(operation.op)
    except ValueError:
        raise UnsupportedPatchOperation(f"unknown patch operation '{operation.op}'")

    handler = OPERATION_HANDLERS.get(op)
    if handler is None:
        raise UnsupportedPatchOperation(f"patch operation '{op.value}' is not supported")

    new_scope = handler(current_scope, operation)
    logger.debug("Scope patch %s: %r -> %r", op.value, current_scope, new_scope)
    return new_scope
