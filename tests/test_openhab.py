"""Tests for alexa_gate.services.openhab — openHAB REST API client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from alexa_gate.config import OpenHABConfig
from alexa_gate.models import ItemState
from alexa_gate.services.openhab import OpenHABError, OpenHABService


def _make_config(url: str = "http://openhab.local:8080", token: str | None = "config-token"):
    return OpenHABConfig(url=url, token=token, timeout=7)


def _mock_response(*, status: int = 200, json_data: dict | list | None = None, text: str = ""):
    """Create a mock aiohttp response as an async context manager."""
    resp = AsyncMock()
    resp.status = status
    resp.json = AsyncMock(return_value=json_data if json_data is not None else {})
    resp.text = AsyncMock(return_value=text)
    # Make it usable as async context manager
    cm = AsyncMock()
    cm.__aenter__ = AsyncMock(return_value=resp)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


def _mock_session() -> MagicMock:
    """Create a MagicMock aiohttp session that won't be replaced by _get_session."""
    session = MagicMock()
    session.closed = False
    return session


ITEM_JSON = {
    "name": "Temperature",
    "state": "21.333",
    "type": "Number:Temperature",
    "stateDescription": {"pattern": "%.1f °C"},
}


class TestGetItem:
    async def test_sends_get_to_item_url(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(json_data=ITEM_JSON))
        svc._session = session

        result = await svc.get_item("user-token", "Temperature")

        session.get.assert_called_once()
        assert session.get.call_args[0][0] == "http://openhab.local:8080/rest/items/Temperature"
        assert result == ItemState(
            name="Temperature", state="21.333", type="Number:Temperature", pattern="%.1f °C"
        )

    async def test_strips_trailing_slash_from_url(self):
        svc = OpenHABService(_make_config(url="http://openhab.local:8080/"))
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(json_data=ITEM_JSON))
        svc._session = session

        await svc.get_item(None, "Temperature")

        call_url = session.get.call_args[0][0]
        assert call_url == "http://openhab.local:8080/rest/items/Temperature"

    async def test_quotes_item_name(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(json_data=ITEM_JSON))
        svc._session = session

        await svc.get_item(None, "a/b")

        assert session.get.call_args[0][0].endswith("/rest/items/a%2Fb")

    async def test_item_without_state_description(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(
            return_value=_mock_response(
                json_data={"name": "Light", "state": "ON", "type": "Switch"}
            )
        )
        svc._session = session

        result = await svc.get_item(None, "Light")

        assert result.pattern is None
        assert result.state == "ON"


class TestPostItemCommand:
    async def test_sends_plain_text_command(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.post = MagicMock(return_value=_mock_response())
        svc._session = session

        await svc.post_item_command("user-token", "Light", "ON")

        session.post.assert_called_once()
        call_args = session.post.call_args
        assert call_args[0][0] == "http://openhab.local:8080/rest/items/Light"
        assert call_args[1]["data"] == "ON"
        assert call_args[1]["headers"]["Content-Type"] == "text/plain"

    async def test_numeric_command_sent_as_string(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.post = MagicMock(return_value=_mock_response())
        svc._session = session

        await svc.post_item_command(None, "Dimmer", 42)

        assert session.post.call_args[1]["data"] == "42"


class TestBearerToken:
    async def test_directive_token_wins(self):
        svc = OpenHABService(_make_config(token="config-token"))
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(json_data=ITEM_JSON))
        svc._session = session

        await svc.get_item("user-token", "Temperature")

        headers = session.get.call_args[1]["headers"]
        assert headers["Authorization"] == "Bearer user-token"

    async def test_falls_back_to_config_token(self):
        svc = OpenHABService(_make_config(token="config-token"))
        session = _mock_session()
        session.post = MagicMock(return_value=_mock_response())
        svc._session = session

        await svc.post_item_command(None, "Light", "ON")

        headers = session.post.call_args[1]["headers"]
        assert headers["Authorization"] == "Bearer config-token"

    async def test_no_token_no_header(self):
        svc = OpenHABService(_make_config(token=None))
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(json_data=ITEM_JSON))
        svc._session = session

        await svc.get_item(None, "Temperature")

        assert "Authorization" not in session.get.call_args[1]["headers"]


class TestHealthCheck:
    async def test_returns_true_on_200(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(status=200, json_data={}))
        svc._session = session

        result = await svc.health_check()
        assert result is True

        call_url = session.get.call_args[0][0]
        assert call_url == "http://openhab.local:8080/rest/"

    async def test_returns_false_on_non_200(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(status=503))
        svc._session = session

        result = await svc.health_check()
        assert result is False

    async def test_returns_false_on_connection_error(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(
            side_effect=aiohttp.ClientConnectorError(
                connection_key=MagicMock(),
                os_error=OSError("Connection refused"),
            )
        )
        svc._session = session

        result = await svc.health_check()
        assert result is False

    async def test_uses_5_second_timeout(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(status=200))
        svc._session = session

        await svc.health_check()

        timeout = session.get.call_args[1]["timeout"]
        assert timeout.total == 5


class TestErrorHandling:
    async def test_401_raises_authentication_error(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(return_value=_mock_response(status=401, text="Unauthorized"))
        svc._session = session

        with pytest.raises(OpenHABError, match=r"(?i)authentication") as exc_info:
            await svc.get_item(None, "Light")
        assert exc_info.value.status_code == 401

    async def test_404_raises_not_found_with_status(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.post = MagicMock(return_value=_mock_response(status=404, text="Not Found"))
        svc._session = session

        with pytest.raises(OpenHABError, match=r"(?i)not found: Missing") as exc_info:
            await svc.post_item_command(None, "Missing", "ON")
        assert exc_info.value.status_code == 404

    async def test_other_http_error_raises_with_status(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.post = MagicMock(
            return_value=_mock_response(status=500, text="Internal Server Error")
        )
        svc._session = session

        with pytest.raises(OpenHABError, match="500") as exc_info:
            await svc.post_item_command(None, "Light", "ON")
        assert exc_info.value.status_code == 500

    async def test_connection_error_raises_unreachable(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.get = MagicMock(
            side_effect=aiohttp.ClientConnectorError(
                connection_key=MagicMock(),
                os_error=OSError("Connection refused"),
            )
        )
        svc._session = session

        with pytest.raises(OpenHABError, match=r"(?i)unreachable") as exc_info:
            await svc.get_item(None, "Light")
        assert exc_info.value.status_code is None

    async def test_generic_aiohttp_error_on_post_raises_unreachable(self):
        svc = OpenHABService(_make_config())
        session = _mock_session()
        session.post = MagicMock(side_effect=aiohttp.ClientError("some error"))
        svc._session = session

        with pytest.raises(OpenHABError, match=r"(?i)unreachable"):
            await svc.post_item_command(None, "Light", "ON")


class TestSessionLifecycle:
    async def test_session_uses_configured_timeout(self):
        svc = OpenHABService(_make_config())
        session = svc._get_session()
        assert session.timeout.total == 7
        await session.close()

    async def test_close_closes_session(self):
        svc = OpenHABService(_make_config())
        session = svc._get_session()
        assert not session.closed

        await svc.close()
        assert svc._session is None

    async def test_close_is_idempotent(self):
        svc = OpenHABService(_make_config())
        await svc.close()
        await svc.close()

    async def test_get_session_creates_new_if_closed(self):
        svc = OpenHABService(_make_config())
        session1 = svc._get_session()
        await session1.close()

        session2 = svc._get_session()
        assert session2 is not session1
        assert not session2.closed
        await session2.close()

    async def test_get_session_reuses_existing(self):
        svc = OpenHABService(_make_config())
        session1 = svc._get_session()
        session2 = svc._get_session()
        assert session1 is session2
        await session1.close()
