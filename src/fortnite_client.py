import asyncio
import random

from aiohttp import ClientError, ClientResponseError

import config
from errors import StatsFetchError, StatsFetchTimeout


class FortniteClient:
    """Reads a player's lifetime per-mode stats from fortniteapi.io."""

    def __init__(self, session, auth=None, url=None, timeout=None, max_retries: int = 5):
        self.session = session
        self.auth = auth if auth is not None else config.FORT_AUTH
        self.url = url or config.FORT_API_URL
        self.timeout = timeout if timeout is not None else config.FORT_API_TIMEOUT
        self.max_retries = max_retries

    async def _request(self, account_id: str):
        headers = {"Authorization": self.auth} if self.auth else {}
        retries = 0
        while True:
            try:
                async with self.session.get(self.url, params={"account": account_id}, headers=headers) as response:
                    response.raise_for_status()
                    return await response.json(content_type=None)
            except ClientResponseError as e:
                if e.status == 429 and retries < self.max_retries:
                    wait_time = (2 ** retries) + random.uniform(0.5, 2.0)
                    print(f"⚠️ 429 Too Many Requests fetching stats for {account_id}. Sleeping {wait_time:.2f}s...")
                    await asyncio.sleep(wait_time)
                    retries += 1
                    continue
                raise StatsFetchError(f"stats request for {account_id} failed with HTTP {e.status}") from e
            except ClientError as e:
                raise StatsFetchError(f"stats request for {account_id} failed: {e}") from e

    async def get_global_stats(self, account_id: str):
        """Return the ``global_stats`` object (mode name -> raw payload) or None.

        The whole request, retries included, is abandoned once ``timeout``
        seconds pass; a provider that slow is not going to answer.
        """
        try:
            body = await asyncio.wait_for(self._request(account_id), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise StatsFetchTimeout(
                f"{self.timeout:g} second timeout hit when retrieving stats for {account_id}"
            ) from None

        if not isinstance(body, dict):
            return None
        global_stats = body.get("global_stats")
        return global_stats if isinstance(global_stats, dict) else None

