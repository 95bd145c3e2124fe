"""Tests for the reserved scope grammar."""
import pytest

from oauth_registry.scopes import (
    InvalidScopeError,
    ScopePermission,
    ScopeResource,
    canonicalize_scope,
    describe_scope,
    is_valid_scope,
    parse_scope,
    parse_token,
)


class TestParseToken:
    """Single-token parsing."""

    def test_parses_resource_field_and_permissions(self):
        token = parse_token("user:username.read.write")
        assert token.resource is ScopeResource.USER
        assert token.field == "username"
        assert token.permissions == frozenset({ScopePermission.READ, ScopePermission.WRITE})

    def test_str_is_canonical(self):
        assert str(parse_token("user:pfp.write.read")) == "user:pfp.read.write"

    @pytest.mark.parametrize(
        "token",
        [
            "user;username.read.write",
            "user:username:read",
            "username.read",
            "group:username.read",
            "user:age.read.write",
            "user:username",
            "user:username.admin",
            "user:username.read.",
            "",
        ],
    )
    def test_rejects_tokens_outside_grammar(self, token):
        with pytest.raises(InvalidScopeError) as exc_info:
            parse_token(token)
        assert exc_info.value.token == token

    def test_unreserved_field_reason(self):
        with pytest.raises(InvalidScopeError) as exc_info:
            parse_token("user:age.read")
        assert "age" in exc_info.value.reason


class TestScopeStrings:
    """Whole scope strings."""

    def test_empty_scope_is_valid(self):
        assert parse_scope("") == []
        assert is_valid_scope("")
        assert canonicalize_scope("   ") == ""

    def test_one_bad_token_invalidates_scope(self):
        assert not is_valid_scope("user:username.read user:age.read")

    def test_canonical_form_sorts_tokens_and_permissions(self):
        assert canonicalize_scope("user:username.write.read  user:pfp.read") == (
            "user:pfp.read user:username.read.write"
        )

    def test_same_field_permissions_are_merged(self):
        assert canonicalize_scope("user:username.read user:username.write") == (
            "user:username.read.write"
        )

    def test_duplicate_permissions_collapse(self):
        assert canonicalize_scope("user:pfp.read.read") == "user:pfp.read"

    def test_canonicalize_is_idempotent(self):
        once = canonicalize_scope("user:username.write user:pfp.read user:username.read")
        assert canonicalize_scope(once) == once

    def test_canonicalize_raises_on_invalid(self):
        with pytest.raises(InvalidScopeError):
            canonicalize_scope("user:pfp.read user;username.read")


class TestDescribeScope:
    def test_labels_follow_canonical_order(self):
        assert describe_scope("user:username.write.read user:pfp.read") == [
            "Read the user's profile picture",
            "Read and write the user's username",
        ]

    def test_empty_scope_has_no_labels(self):
        assert describe_scope("") == []
