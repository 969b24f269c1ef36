"""
DNS leak test via the bash.ws leak-test service
"""

import asyncio
from dataclasses import replace
from typing import Iterable, Optional

import httpx

from .errors import SessionUnavailable, VerdictUnavailable
from .flags import country_display
from .models import LeakRecord


API_HOST = "bash.ws"
FANOUT_COUNT = 10
DEFAULT_TIMEOUT = 5.0


def enrich(records: Iterable[LeakRecord]) -> list[LeakRecord]:
    """Derive country_display ('<name> <flag>') for every record, in order"""
    return [
        replace(record, country_display=country_display(
            record.country_name, record.country
        ))
        for record in records
    ]


class LeakProbe:
    """
    DNS leak test client.

    Three strictly ordered phases:
    1. GET https://<host>/id returns a session id
    2. GET https://<i>.<id>.<host> for i in 0..9, so the service sees
       which resolvers look the names up (responses are ignored)
    3. GET https://<host>/dnsleak/test/<id>?json returns the verdict
    """

    def __init__(self, remote_host: str = API_HOST,
                 timeout: float = DEFAULT_TIMEOUT,
                 fanout: int = FANOUT_COUNT,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.remote_host = remote_host
        self.timeout = timeout
        self.fanout = fanout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _get_session_id(self, client: httpx.AsyncClient) -> str:
        try:
            response = await client.get(f"https://{self.remote_host}/id")
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SessionUnavailable(self.remote_host, str(e)) from e

        session_id = response.text.strip()
        if not session_id:
            raise SessionUnavailable(self.remote_host, "empty session id")
        return session_id

    async def _probe_one(self, client: httpx.AsyncClient, index: int,
                         session_id: str):
        await client.get(f"https://{index}.{session_id}.{self.remote_host}")

    async def _fan_out(self, client: httpx.AsyncClient, session_id: str):
        # Outcomes are irrelevant, the lookups themselves are the signal
        tasks = [
            self._probe_one(client, i, session_id)
            for i in range(self.fanout)
        ]
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _get_verdict(self, client: httpx.AsyncClient,
                           session_id: str) -> list[LeakRecord]:
        url = f"https://{self.remote_host}/dnsleak/test/{session_id}?json"
        try:
            response = await client.get(url)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            raise VerdictUnavailable(self.remote_host, str(e)) from e
        except ValueError as e:
            raise VerdictUnavailable(self.remote_host, f"invalid JSON: {e}") from e

        if not isinstance(data, list):
            raise VerdictUnavailable(
                self.remote_host, f"expected JSON array, got {type(data).__name__}"
            )

        try:
            return [LeakRecord.from_wire(item) for item in data]
        except KeyError as e:
            raise VerdictUnavailable(self.remote_host, f"missing field {e}") from e
        except TypeError as e:
            raise VerdictUnavailable(self.remote_host, str(e)) from e

    async def run(self) -> list[LeakRecord]:
        """
        Run the leak test.

        Returns:
            Enriched leak records in service order

        Raises:
            SessionUnavailable: phase 1 failed
            VerdictUnavailable: phase 3 failed
        """
        async with self._client() as client:
            session_id = await self._get_session_id(client)
            await self._fan_out(client, session_id)
            records = await self._get_verdict(client, session_id)

        return enrich(records)


def run_leak_probe(remote_host: str = API_HOST, **kwargs) -> list[LeakRecord]:
    """Synchronously run the DNS leak test against remote_host"""
    return asyncio.run(LeakProbe(remote_host, **kwargs).run())
