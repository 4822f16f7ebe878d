"""
Client for the external title scraping service.

    GET {base_url}/scrape/{code}  ->  {"titles": ["Lion Skull", ...]}

The HTTP call is blocking (requests) and runs in a worker thread so the
caller's event loop stays free. There is no retry; a failed lookup is
reported and the operator rescans.
"""

import asyncio
import logging
from typing import List, Optional
from urllib.parse import quote

import requests
from asgiref.sync import sync_to_async

from .exceptions import LookupFailedError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class TitleLookupClient:
    """
    Args:
        base_url: Root URL of the scraping service
        timeout: Seconds allowed for the whole lookup
        session: Optional requests.Session (connection reuse, testing)
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def url_for(self, code: str) -> str:
        return f"{self.base_url}/scrape/{quote(code, safe='')}"

    def _fetch(self, code: str) -> List[str]:
        url = self.url_for(code)
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            raise LookupFailedError(f"Title lookup for {code} failed: {e}")
        except ValueError:
            raise LookupFailedError(f"Title lookup for {code} returned invalid JSON")

        titles = payload.get('titles') if isinstance(payload, dict) else None
        if not isinstance(titles, list) or not titles:
            raise LookupFailedError(f"Title lookup for {code} returned no titles")
        return titles

    async def fetch_titles(self, code: str) -> List[str]:
        """
        Returns:
            Non-empty list of titles as returned by the service

        Raises:
            LookupFailedError: On any transport, status or payload problem
        """
        try:
            return await asyncio.wait_for(
                sync_to_async(self._fetch, thread_sensitive=False)(code),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            raise LookupFailedError(f"Title lookup for {code} timed out after {self.timeout}s")
