"""Clients for the title store the picking core reads from and writes to."""

from __future__ import annotations

from typing import Any, Optional, Protocol

import httpx

from server.logging_config import get_logger

from .errors import IngestError, PersistenceError

logger = get_logger(__name__)

TITLES_PATH = "/api/titles"
UPDATE_STATUS_PATH = "/api/updateStatus"


class TitleStore(Protocol):
    """The two operations the picking core needs from storage."""

    async def fetch_titles(self) -> Any:
        """Return the raw title list. Raises IngestError."""
        ...

    async def update_status(self, barcode: str, status: int) -> None:
        """Persist status (0 or 1) for one barcode. Raises PersistenceError."""
        ...


class HttpTitleStore:
    """Title store backed by the Picklist HTTP service.

    Owns its ``httpx.AsyncClient`` unless one is passed in. Use as an async
    context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)

    async def __aenter__(self) -> "HttpTitleStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_titles(self) -> Any:
        try:
            resp = await self._client.get(TITLES_PATH)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise IngestError(f"Title service answered {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise IngestError(f"Title service unreachable: {exc}") from exc

        try:
            return resp.json()
        except ValueError as exc:
            raise IngestError("Title service returned invalid JSON") from exc

    async def update_status(self, barcode: str, status: int) -> None:
        payload = {"barcode": barcode, "status": status}
        try:
            resp = await self._client.post(UPDATE_STATUS_PATH, json=payload)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PersistenceError(
                barcode, status, f"title service answered {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise PersistenceError(barcode, status, f"title service unreachable: {exc}") from exc
        logger.debug(f"Saved status {status} for {barcode}")
