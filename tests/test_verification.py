"""
Tests for the verification decision logic, without the HTTP layer
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from bungie_client import BungieAPIError, BungieIdentity
from verification import (
    CallbackParams,
    Outcome,
    Verification,
    compare_identity,
    handle_callback,
    validate_callback,
    verify_callback,
)


class TestValidateCallback:

    def test_valid_params(self):
        result = validate_callback({"code": "abc", "state": "Unitye%231234"})

        assert result == CallbackParams(code="abc", nickname="Unitye#1234")

    def test_error_takes_precedence(self):
        result = validate_callback({"error": "server_error", "code": "abc", "state": "x"})

        assert result == Verification(Outcome.PROVIDER_ERROR, message="server_error")

    def test_error_description_preferred(self):
        result = validate_callback({"error": "access_denied", "error_description": "Denied"})

        assert result.outcome is Outcome.PROVIDER_ERROR
        assert result.message == "Denied"

    @pytest.mark.parametrize("args", [{}, {"state": "x"}, {"code": "", "state": "x"}])
    def test_missing_code(self, args):
        assert validate_callback(args).outcome is Outcome.MISSING_CODE

    @pytest.mark.parametrize("args", [{"code": "abc"}, {"code": "abc", "state": ""}])
    def test_missing_state(self, args):
        assert validate_callback(args).outcome is Outcome.MISSING_STATE

    def test_malformed_escape_left_as_is(self):
        result = validate_callback({"code": "abc", "state": "100%"})

        assert result.nickname == "100%"


class TestCompareIdentity:

    def test_case_insensitive_match(self):
        result = compare_identity("Unitye#1234", "unitye#1234")

        assert result.outcome is Outcome.SUCCESS
        assert result.verified
        assert result.identity == "Unitye#1234"
        assert result.nickname == "unitye#1234"

    def test_mismatch_carries_both_values(self):
        result = compare_identity("Unitye#1234", "someoneelse#9999")

        assert result == Verification(
            Outcome.MISMATCH, nickname="someoneelse#9999", identity="Unitye#1234"
        )
        assert not result.verified

    def test_no_trimming(self):
        assert compare_identity("Unitye#1234", " Unitye#1234").outcome is Outcome.MISMATCH

    def test_discriminator_required_when_claimed(self):
        assert compare_identity("Unitye", "Unitye#1234").outcome is Outcome.MISMATCH

    def test_missing_identity(self):
        result = compare_identity(None, "Unitye#1234")

        assert result.outcome is Outcome.MISSING_IDENTITY


class TestBungieIdentity:

    def test_composite(self):
        assert BungieIdentity("Unitye", 1234).composite == "Unitye#1234"

    def test_bare_name_without_code(self):
        assert BungieIdentity("Unitye").composite == "Unitye"

    def test_no_name(self):
        assert BungieIdentity(None, 1234).composite is None
        assert BungieIdentity("", 1234).composite is None


def make_provider(identity=BungieIdentity("Unitye", 1234)):
    provider = MagicMock()
    provider.exchange_code = AsyncMock(return_value="access-token")
    provider.fetch_identity = AsyncMock(return_value=identity)
    return provider


class TestVerifyCallback:

    def test_success_updates_store(self):
        provider = make_provider()
        store = MagicMock(mark_verified=AsyncMock())

        result = asyncio.run(verify_callback(CallbackParams("abc", "unitye#1234"), provider, store))

        assert result.outcome is Outcome.SUCCESS
        store.mark_verified.assert_awaited_once_with("unitye#1234", "Unitye#1234")

    def test_success_without_store(self):
        result = asyncio.run(verify_callback(CallbackParams("abc", "Unitye#1234"), make_provider()))

        assert result.outcome is Outcome.SUCCESS

    def test_store_exception_is_swallowed(self):
        store = MagicMock(mark_verified=AsyncMock(side_effect=RuntimeError("down")))

        result = asyncio.run(
            verify_callback(CallbackParams("abc", "Unitye#1234"), make_provider(), store)
        )

        assert result.outcome is Outcome.SUCCESS

    def test_mismatch_skips_store(self):
        store = MagicMock(mark_verified=AsyncMock())

        result = asyncio.run(
            verify_callback(CallbackParams("abc", "someoneelse#9999"), make_provider(), store)
        )

        assert result.outcome is Outcome.MISMATCH
        store.mark_verified.assert_not_awaited()

    def test_missing_identity_skips_store(self):
        store = MagicMock(mark_verified=AsyncMock())
        provider = make_provider(BungieIdentity(None))

        result = asyncio.run(verify_callback(CallbackParams("abc", "Unitye#1234"), provider, store))

        assert result.outcome is Outcome.MISSING_IDENTITY
        store.mark_verified.assert_not_awaited()

    def test_provider_error_becomes_unexpected(self):
        provider = make_provider()
        provider.exchange_code.side_effect = BungieAPIError("Token exchange failed", status=401)

        result = asyncio.run(verify_callback(CallbackParams("abc", "Unitye#1234"), provider))

        assert result.outcome is Outcome.UNEXPECTED_ERROR
        assert result.message == "Authentication failed. Please try again."
        provider.fetch_identity.assert_not_awaited()

    def test_any_exception_becomes_unexpected(self):
        provider = make_provider()
        provider.fetch_identity.side_effect = ValueError("bad json")

        result = asyncio.run(verify_callback(CallbackParams("abc", "Unitye#1234"), provider))

        assert result.outcome is Outcome.UNEXPECTED_ERROR
        assert result.message == "An unexpected error occurred during verification."


def test_handle_callback_short_circuits_invalid_requests():
    provider = make_provider()

    result = asyncio.run(handle_callback({"state": "Unitye#1234"}, provider))

    assert result.outcome is Outcome.MISSING_CODE
    provider.exchange_code.assert_not_awaited()
