"""Unit tests for bearer-token authentication."""

from unittest.mock import MagicMock

import pytest

from chatrooms.core.auth import Identity, optional_identity, parse_bearer, require_admin, require_identity
from chatrooms.core.errors import AuthenticationAppError, AuthorizationAppError
from chatrooms.services.token_service import TokenVerifier


class TestParseBearer:
    def test_extracts_token(self) -> None:
        assert parse_bearer("Bearer abc123") == "abc123"

    @pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer ", "bearer abc"])
    def test_rejects_other_forms(self, header) -> None:
        assert parse_bearer(header) is None


class TestOptionalIdentity:
    def test_valid_token_yields_identity(self, store, issue_token) -> None:
        issue_token("alice", "tok")

        identity = optional_identity(TokenVerifier(store), authorization="Bearer tok", x_username="Alice")

        assert identity == Identity(username="alice", token="tok")

    def test_wrong_token_yields_none(self, store, issue_token) -> None:
        issue_token("alice", "tok")

        assert optional_identity(TokenVerifier(store), authorization="Bearer other", x_username="alice") is None

    def test_missing_headers_skip_store(self) -> None:
        tokens = MagicMock()

        assert optional_identity(tokens, authorization=None, x_username="alice") is None
        tokens.verify.assert_not_called()


class TestRequireIdentity:
    def test_missing_credentials(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc:
            require_identity(None, authorization=None, x_username=None)
        assert exc.value.code == "missing_credentials"

    def test_invalid_token(self) -> None:
        with pytest.raises(AuthenticationAppError) as exc:
            require_identity(None, authorization="Bearer nope", x_username="alice")
        assert exc.value.code == "invalid_token"

    def test_passes_identity_through(self) -> None:
        identity = Identity(username="alice", token="tok")
        assert require_identity(identity, authorization="Bearer tok", x_username="alice") is identity


class TestRequireAdmin:
    def test_admin_passes(self) -> None:
        identity = Identity(username="ryo", token="tok")
        assert require_admin(identity) is identity

    def test_non_admin_is_forbidden(self) -> None:
        with pytest.raises(AuthorizationAppError):
            require_admin(Identity(username="alice", token="tok"))
