"""
Verification pipeline for the Bungie OAuth callback.

The outcome of a callback is computed here, independently of Flask and of
how it is rendered. The two remote collaborators are passed in:

- ``provider`` exposes ``exchange_code(code)`` and ``fetch_identity(token)``
  (see ``bungie_client.BungieClient``)
- ``store`` exposes ``mark_verified(nickname, identity)`` or is ``None``
  (see ``record_store.RecordStore``)
"""

import enum
import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Union
from urllib.parse import unquote

from bungie_client import GENERIC_ERROR_MESSAGE, BungieAPIError

logger = logging.getLogger(__name__)


class Outcome(enum.Enum):
    SUCCESS = "success"
    MISMATCH = "mismatch"
    MISSING_CODE = "missing_code"
    MISSING_STATE = "missing_state"
    PROVIDER_ERROR = "provider_error"
    MISSING_IDENTITY = "missing_identity"
    UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class CallbackParams:
    code: str
    nickname: str


@dataclass(frozen=True)
class Verification:
    outcome: Outcome
    nickname: Optional[str] = None
    identity: Optional[str] = None
    message: Optional[str] = None

    @property
    def verified(self) -> bool:
        return self.outcome is Outcome.SUCCESS


def validate_callback(args: Mapping[str, str]) -> Union[CallbackParams, Verification]:
    """Check the callback query parameters.

    Returns the parameters to continue with, or a terminal Verification when
    the request cannot proceed.
    """
    error = args.get("error")
    if error:
        return Verification(
            Outcome.PROVIDER_ERROR, message=args.get("error_description") or error
        )

    code = args.get("code")
    if not code:
        return Verification(Outcome.MISSING_CODE)

    state = args.get("state")
    if not state:
        return Verification(Outcome.MISSING_STATE)

    return CallbackParams(code=code, nickname=unquote(state))


def compare_identity(identity: Optional[str], nickname: str) -> Verification:
    if identity is None:
        return Verification(Outcome.MISSING_IDENTITY, nickname=nickname)

    if str(identity).lower() == str(nickname).lower():
        return Verification(Outcome.SUCCESS, nickname=nickname, identity=str(identity))

    return Verification(Outcome.MISMATCH, nickname=nickname, identity=str(identity))


async def verify_callback(params: CallbackParams, provider, store=None) -> Verification:
    logger.info(f"Received nickname from state parameter: {params.nickname}")

    try:
        access_token = await provider.exchange_code(params.code)
        identity = await provider.fetch_identity(access_token)
    except BungieAPIError as e:
        logger.error(f"Bungie API error during verification: {e} (status={e.status})")
        return Verification(
            Outcome.UNEXPECTED_ERROR, nickname=params.nickname, message=e.user_message
        )
    except Exception:
        logger.exception("Error during verification")
        return Verification(
            Outcome.UNEXPECTED_ERROR, nickname=params.nickname, message=GENERIC_ERROR_MESSAGE
        )

    logger.info(f"Bungie identity: {identity.composite}")
    result = compare_identity(identity.composite, params.nickname)

    if result.outcome is Outcome.SUCCESS:
        logger.info(f"Nickname {params.nickname!r} verified")
        if store is None:
            logger.warning("Record store not configured, skipping update")
        else:
            try:
                await store.mark_verified(params.nickname, result.identity)
            except Exception:
                logger.exception("Record store update failed")
    elif result.outcome is Outcome.MISMATCH:
        logger.info(f"Verification failed: {result.identity!r} does not match {params.nickname!r}")
    else:
        logger.warning("Verification failed: Bungie returned no display name")

    return result


async def handle_callback(args: Mapping[str, str], provider, store=None) -> Verification:
    checked = validate_callback(args)
    if isinstance(checked, Verification):
        return checked
    return await verify_callback(checked, provider, store)
