"""
OAuth Scope Grammar

Reserved scopes have the form ``resource:field.permission[.permission...]``,
for example ``user:username.read.write``. Resources, fields and permissions
come from closed vocabularies; adding a field is a change to
:data:`RESERVED_FIELDS` only.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List


class InvalidScopeError(ValueError):
    """A scope token does not match the reserved grammar."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"Invalid scope '{token}': {reason}")


class ScopeResource(str, Enum):
    """Resources a client may request access to."""

    USER = "user"


class ScopePermission(str, Enum):
    """Permissions grantable on a resource field."""

    READ = "read"
    WRITE = "write"


RESERVED_FIELDS: Dict[ScopeResource, FrozenSet[str]] = {
    ScopeResource.USER: frozenset({"username", "pfp"}),
}

SCOPE_LABELS = {
    (ScopeResource.USER, "username"): "the user's username",
    (ScopeResource.USER, "pfp"): "the user's profile picture",
}

RESOURCE_SEPARATOR = ":"
SEGMENT_SEPARATOR = "."


@dataclass(frozen=True)
class ScopeToken:
    """A parsed scope token."""

    resource: ScopeResource
    field: str
    permissions: FrozenSet[ScopePermission]

    @property
    def key(self) -> tuple:
        return (self.resource.value, self.field)

    def __str__(self) -> str:
        perms = sorted(p.value for p in self.permissions)
        return (
            f"{self.resource.value}{RESOURCE_SEPARATOR}{self.field}"
            f"{SEGMENT_SEPARATOR}{SEGMENT_SEPARATOR.join(perms)}"
        )


def parse_token(token: str) -> ScopeToken:
    """
    Parse and validate a single scope token.

    Raises:
        InvalidScopeError: If the token is outside the reserved grammar.
    """
    parts = token.split(RESOURCE_SEPARATOR)
    if len(parts) != 2:
        raise InvalidScopeError(token, "expected exactly one ':' separator")
    resource_name, remainder = parts

    try:
        resource = ScopeResource(resource_name)
    except ValueError:
        raise InvalidScopeError(token, f"unknown resource '{resource_name}'")

    field, *permission_names = remainder.split(SEGMENT_SEPARATOR)
    if field not in RESERVED_FIELDS[resource]:
        raise InvalidScopeError(token, f"field '{field}' is not reserved for '{resource.value}'")
    if not permission_names:
        raise InvalidScopeError(token, "at least one permission is required")

    permissions = set()
    for name in permission_names:
        try:
            permissions.add(ScopePermission(name))
        except ValueError:
            raise InvalidScopeError(token, f"unknown permission '{name}'")

    return ScopeToken(resource=resource, field=field, permissions=frozenset(permissions))


def parse_scope(scope: str) -> List[ScopeToken]:
    """Parse a whitespace-separated scope string, failing on the first bad token."""
    return [parse_token(token) for token in scope.split()]


def canonicalize_scope(scope: str) -> str:
    """
    Return the canonical form of a scope string.

    Tokens naming the same resource field have their permissions merged;
    permissions and tokens are sorted and joined by single spaces.
    """
    merged: Dict[tuple, ScopeToken] = {}
    for token in parse_scope(scope):
        existing = merged.get(token.key)
        if existing is not None:
            token = ScopeToken(
                resource=token.resource,
                field=token.field,
                permissions=existing.permissions | token.permissions,
            )
        merged[token.key] = token
    return " ".join(str(merged[key]) for key in sorted(merged))


def is_valid_scope(scope: str) -> bool:
    """Check whether every token of a scope string is reserved."""
    try:
        parse_scope(scope)
    except InvalidScopeError:
        return False
    return True


def describe_scope(scope: str) -> List[str]:
    """Human-readable labels for a scope string, one per canonical token."""
    labels = []
    for token in parse_scope(canonicalize_scope(scope)):
        perms = " and ".join(sorted(p.value for p in token.permissions))
        subject = SCOPE_LABELS.get((token.resource, token.field), str(token))
        labels.append(f"{perms.capitalize()} {subject}")
    return labels
