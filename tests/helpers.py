import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from aiohttp import web
from aiohttp.test_utils import TestServer

from redfish_powermon import constants

# nothing listens on port 1, so connections are refused immediately
UNREACHABLE_ADDRESS = "127.0.0.1:1"


@dataclass
class ControllerLog:
    logins: list[dict[str, Any]] = field(default_factory=list)
    login_content_types: list[str] = field(default_factory=list)
    sensor_tokens: list[Optional[str]] = field(default_factory=list)


def build_controller_app(
    *,
    token: str = "token-1",
    sensors: Optional[list[Any]] = None,
    login_body: Optional[str] = None,
    sensors_body: Optional[str] = None,
    sensors_status: int = 200,
) -> tuple[web.Application, ControllerLog]:
    """Fake Redfish controller exposing the login and sensor endpoints."""

    log = ControllerLog()

    async def login_handler(request: web.Request) -> web.StreamResponse:
        log.logins.append(await request.json())
        log.login_content_types.append(request.headers.get("Content-Type", ""))
        if login_body is not None:
            return web.Response(text=login_body, content_type="application/json")
        return web.json_response({"Oem": {"Public": {"X-Auth-Token": token}}})

    async def sensors_handler(request: web.Request) -> web.StreamResponse:
        log.sensor_tokens.append(request.headers.get(constants.AUTH_TOKEN_HEADER))
        if sensors_body is not None:
            return web.Response(text=sensors_body, status=sensors_status)
        return web.json_response({"Sensors": sensors or []}, status=sensors_status)

    app = web.Application()
    app.router.add_post(constants.SESSIONS_PATH, login_handler)
    app.router.add_get(constants.THRESHOLD_SENSORS_PATH, sensors_handler)
    return app, log


def server_address(server: TestServer) -> str:
    return f"{server.host}:{server.port}"


class FakeTerminal:
    """Terminal double recording draws and replaying scripted keypresses."""

    def __init__(
        self,
        keys: Optional[list[Optional[str]]] = None,
        *,
        on_read: Optional[Callable[[float], Awaitable[Optional[str]]]] = None,
        on_update: Optional[Callable[[Any], None]] = None,
    ) -> None:
        self.keys = list(keys or [])
        self.on_read = on_read
        self.on_update = on_update
        self.enters = 0
        self.exits = 0
        self.updates: list[Any] = []
        self.timeouts: list[float] = []

    def __enter__(self) -> "FakeTerminal":
        self.enters += 1
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.exits += 1

    def update(self, renderable: Any) -> None:
        if self.on_update is not None:
            self.on_update(renderable)
        self.updates.append(renderable)

    async def read_key(self, timeout: float) -> Optional[str]:
        self.timeouts.append(timeout)
        if self.on_read is not None:
            return await self.on_read(timeout)
        await asyncio.sleep(0)
        if self.keys:
            return self.keys.pop(0)
        return "q"
