"""Tests for scope patch documents."""
import pytest

from oauth_registry.scopes import InvalidScopeError
from oauth_registry.services.scope_patch import (
    OPERATION_HANDLERS,
    MalformedPatch,
    PatchError,
    PatchOp,
    UnsupportedPatchOperation,
    apply_scope_patch,
    parse_patch_document,
)


def replace(value, path="/"):
    return [{"op": "replace", "path": path, "value": value}]


class TestApplyScopePatch:
    """Whole-scope replacement."""

    def test_replace_overwrites_current_scope(self):
        assert apply_scope_patch("user:pfp.read", replace("user:username.read.write")) == (
            "user:username.read.write"
        )

    def test_replace_returns_canonical_scope(self):
        result = apply_scope_patch("", replace("user:username.write.read user:pfp.read"))
        assert result == "user:pfp.read user:username.read.write"

    def test_replace_with_empty_value_clears_scope(self):
        assert apply_scope_patch("user:pfp.read", replace("")) == ""

    def test_extra_members_are_ignored(self):
        document = [{"op": "replace", "path": "/", "value": "user:pfp.read", "from": "/x"}]
        assert apply_scope_patch("", document) == "user:pfp.read"

    def test_invalid_value_raises_scope_error(self):
        with pytest.raises(InvalidScopeError):
            apply_scope_patch("", replace("user;username.read.write"))

    def test_unreserved_value_raises_scope_error(self):
        with pytest.raises(InvalidScopeError):
            apply_scope_patch("", replace("user:age.read.write"))


class TestMalformedDocuments:
    @pytest.mark.parametrize(
        "document",
        [
            [{"op": "replace", "value": "user:username.read"}],
            [{"path": "/", "value": "user:username.read"}],
            [{"op": "replace", "path": "/"}],
            [{"op": "replace", "path": "/", "value": 5}],
            [{"op": "replace", "path": "/", "value": None}],
            ["replace"],
        ],
    )
    def test_bad_operation_shape(self, document):
        with pytest.raises(MalformedPatch):
            apply_scope_patch("", document)

    @pytest.mark.parametrize(
        "document",
        [
            {"op": "replace", "path": "/", "value": "user:pfp.read"},
            "replace",
            None,
            [],
            replace("user:pfp.read") + replace("user:username.read"),
        ],
    )
    def test_document_must_be_single_entry_array(self, document):
        with pytest.raises(MalformedPatch):
            parse_patch_document(document)

    def test_missing_member_is_named(self):
        with pytest.raises(MalformedPatch) as exc_info:
            parse_patch_document([{"op": "replace", "path": "/"}])
        assert "value" in str(exc_info.value)


class TestUnsupportedOperations:
    @pytest.mark.parametrize("op", ["add", "remove", "move", "copy", "test"])
    def test_known_but_unimplemented(self, op):
        with pytest.raises(UnsupportedPatchOperation):
            apply_scope_patch("", [{"op": op, "path": "/", "value": "user:pfp.read"}])

    def test_unknown_op(self):
        with pytest.raises(UnsupportedPatchOperation):
            apply_scope_patch("", [{"op": "merge", "path": "/", "value": "user:pfp.read"}])

    def test_replace_below_root(self):
        with pytest.raises(UnsupportedPatchOperation):
            apply_scope_patch("", replace("user:pfp.read", path="/0"))

    def test_only_replace_has_a_handler(self):
        assert set(OPERATION_HANDLERS) == {PatchOp.REPLACE}

    def test_errors_share_a_base(self):
        assert issubclass(MalformedPatch, PatchError)
        assert issubclass(UnsupportedPatchOperation, PatchError)
