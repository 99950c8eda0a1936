"""openHAB REST API item service."""

from __future__ import annotations

from urllib.parse import quote

import aiohttp

from alexa_gate.config import OpenHABConfig
from alexa_gate.models import ItemState
from alexa_gate.services.base import ItemService


class OpenHABError(Exception):
    """Raised when an openHAB API call fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OpenHABService(ItemService):
    """Item service backed by the openHAB REST API."""

    def __init__(self, config: OpenHABConfig) -> None:
        self._config = config
        self._base_url = config.url.rstrip("/")
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        """Return the existing session or create a new one."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.timeout),
            )
        return self._session

    def _headers(self, token: str | None, **extra: str) -> dict[str, str]:
        # The directive scope token wins over the configured one
        token = token or self._config.token
        headers = dict(extra)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _item_url(self, name: str) -> str:
        return f"{self._base_url}/rest/items/{quote(name, safe='')}"

    async def get_item(self, token: str | None, name: str) -> ItemState:
        """Return the item state via GET /rest/items/{name}."""
        session = self._get_session()
        headers = self._headers(token, Accept="application/json")
        try:
            async with session.get(self._item_url(name), headers=headers) as resp:
                await self._check_response(resp, item_name=name)
                return ItemState.from_dict(await resp.json())
        except OpenHABError:
            raise
        except aiohttp.ClientError as exc:
            raise OpenHABError(f"Service unreachable: openhab ({exc})") from exc

    async def post_item_command(self, token: str | None, name: str, command: str) -> None:
        """Send a command via POST /rest/items/{name} with a plain text body."""
        session = self._get_session()
        headers = self._headers(token, **{"Content-Type": "text/plain"})
        try:
            async with session.post(
                self._item_url(name), data=str(command), headers=headers
            ) as resp:
                await self._check_response(resp, item_name=name)
        except OpenHABError:
            raise
        except aiohttp.ClientError as exc:
            raise OpenHABError(f"Service unreachable: openhab ({exc})") from exc

    async def _check_response(
        self, resp: aiohttp.ClientResponse, *, item_name: str | None = None
    ) -> None:
        """Raise OpenHABError for non-2xx responses."""
        if 200 <= resp.status < 300:
            return
        if resp.status == 401:
            raise OpenHABError("Service authentication failed (openHAB token expired?)", 401)
        if resp.status == 404:
            detail = f": {item_name}" if item_name else ""
            raise OpenHABError(f"Item not found{detail}", 404)
        text = await resp.text()
        raise OpenHABError(f"openHAB API error {resp.status}: {text}", resp.status)

    async def health_check(self) -> bool:
        """Check if openHAB is reachable via GET /rest/ with a 5-second timeout."""
        try:
            session = self._get_session()
            async with session.get(
                f"{self._base_url}/rest/",
                headers=self._headers(None),
                timeout=aiohttp.ClientTimeout(total=5),
            ) as resp:
                return resp.status == 200
        except Exception:
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
