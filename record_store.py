import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import aiohttp

logger = logging.getLogger(__name__)

NICKNAME_FIELD = "nickname"
VERIFIED_FIELD = "verified"
IDENTITY_FIELD = "bungieUsername"


@dataclass(frozen=True)
class StoreWriteResult:
    updated: bool
    record_id: Optional[str] = None
    error: Optional[str] = None


def nickname_formula(nickname: str) -> str:
    """Airtable formula matching the nickname field exactly (case-sensitive)."""
    escaped = nickname.replace("\\", "\\\\").replace("'", "\\'")
    return f"{{{NICKNAME_FIELD}}} = '{escaped}'"


class RecordStore:
    """Thin Airtable REST client for the verification table."""

    def __init__(
        self,
        api_key: str,
        base_id: str,
        table_name: str,
        base_url: str = "https://api.airtable.com",
        timeout: float = 10.0,
    ):
        self.api_key = api_key
        self.table_url = f"{base_url.rstrip('/')}/v0/{base_id}/{quote(table_name, safe='')}"
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    @classmethod
    def from_settings(cls, settings) -> Optional["RecordStore"]:
        if not settings.record_store_enabled:
            return None
        return cls(
            api_key=settings.airtable_api_key,
            base_id=settings.airtable_base_id,
            table_name=settings.airtable_table_name,
            base_url=settings.airtable_base_url,
            timeout=settings.http_timeout,
        )

    @property
    def _headers(self):
        return {"Authorization": f"Bearer {self.api_key}"}

    async def find_by_nickname(self, session: aiohttp.ClientSession, nickname: str):
        params = {"filterByFormula": nickname_formula(nickname), "maxRecords": "1"}
        async with session.get(self.table_url, params=params, headers=self._headers) as response:
            response.raise_for_status()
            data = await response.json()
        records = data.get("records") or []
        return records[0] if records else None

    async def update(self, session: aiohttp.ClientSession, record_id: str, fields: dict):
        async with session.patch(
            f"{self.table_url}/{record_id}", json={"fields": fields}, headers=self._headers
        ) as response:
            response.raise_for_status()
            return await response.json()

    async def mark_verified(self, nickname: str, identity: str) -> StoreWriteResult:
        """Best-effort: never raises, failures are logged and reported in the result."""
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                record = await self.find_by_nickname(session, nickname)
                if record is None:
                    logger.warning(f"Could not find matching record for nickname {nickname!r}")
                    return StoreWriteResult(updated=False)

                await self.update(
                    session,
                    record["id"],
                    {VERIFIED_FIELD: True, IDENTITY_FIELD: identity},
                )
        except Exception as e:
            logger.exception(f"Error updating record store for nickname {nickname!r}")
            return StoreWriteResult(updated=False, error=str(e))

        logger.info(f"Record {record['id']} marked verified as {identity!r}")
        return StoreWriteResult(updated=True, record_id=record["id"])
