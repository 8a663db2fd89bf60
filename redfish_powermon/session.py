"""Redfish session acquisition.

Each controller is logged into exactly once at startup. The resulting
``X-Auth-Token`` values are never renewed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Sequence

import aiohttp

from . import constants

LOGGER = logging.getLogger(__name__)


class SessionAcquisitionError(RuntimeError):
    """Raised when a controller cannot be reached during login."""

    def __init__(self, address: str, message: str) -> None:
        super().__init__(f"{address}: {message}")
        self.address = address


def create_client_session(
    *,
    verify_tls: bool = False,
    request_timeout: float = constants.DEFAULT_REQUEST_TIMEOUT_SECONDS,
) -> aiohttp.ClientSession:
    """Build the HTTP session shared by login and polling.

    Management controllers almost always present self-signed certificates,
    so validation is off unless ``verify_tls`` is set.
    """

    connector = aiohttp.TCPConnector(ssl=verify_tls)
    timeout = aiohttp.ClientTimeout(total=request_timeout)
    return aiohttp.ClientSession(connector=connector, timeout=timeout)


def build_url(scheme: str, address: str, path: str) -> str:
    return f"{scheme}://{address}{path}"


def extract_token(payload: Any) -> str:
    """Return ``Oem.Public.X-Auth-Token`` from a login response, or ``""``."""

    if not isinstance(payload, dict):
        return ""
    oem = payload.get("Oem")
    public = oem.get("Public") if isinstance(oem, dict) else None
    token = public.get(constants.AUTH_TOKEN_HEADER) if isinstance(public, dict) else None
    return token if isinstance(token, str) else ""


async def login(
    session: aiohttp.ClientSession,
    address: str,
    *,
    username: str = constants.DEFAULT_USERNAME,
    password: str = constants.DEFAULT_PASSWORD,
    scheme: str = constants.DEFAULT_SCHEME,
) -> str:
    """Log into one controller and return its auth token.

    Raises:
        SessionAcquisitionError: If the request could not be sent or the
            response body could not be received.
    """

    url = build_url(scheme, address, constants.SESSIONS_PATH)
    body = {"UserName": username, "Password": password}

    LOGGER.debug("Requesting session token from %s", url)

    try:
        async with session.post(
            url,
            json=body,
            headers={"Content-Type": "application/json"},
        ) as response:
            body_bytes = await response.read()
    except asyncio.TimeoutError as exc:
        raise SessionAcquisitionError(address, "login request timed out") from exc
    except aiohttp.ClientError as exc:
        raise SessionAcquisitionError(address, f"login request failed: {exc}") from exc

    try:
        payload = json.loads(body_bytes)
    except (ValueError, RecursionError):
        LOGGER.warning("Login response from %s is not valid JSON", address)
        return ""

    token = extract_token(payload)
    if not token:
        LOGGER.warning("Login response from %s carried no auth token", address)
    else:
        LOGGER.debug("Session token for %s: %s", address, mask_token(token))
    return token


async def acquire_tokens(
    session: aiohttp.ClientSession,
    addresses: Sequence[str],
    *,
    username: str = constants.DEFAULT_USERNAME,
    password: str = constants.DEFAULT_PASSWORD,
    scheme: str = constants.DEFAULT_SCHEME,
) -> list[str]:
    """Log into every controller in order.

    The returned list is parallel to ``addresses``: a failed login still
    occupies its slot with an empty token.
    """

    tokens: list[str] = []
    for address in addresses:
        token = await login(
            session, address, username=username, password=password, scheme=scheme
        )
        tokens.append(token)

    acquired = sum(1 for token in tokens if token)
    LOGGER.info("Acquired %d of %d controller session tokens", acquired, len(tokens))
    return tokens


def mask_token(token: Optional[str]) -> str:
    if not token:
        return "<none>"
    return f"{token[:4]}..." if len(token) > 4 else "****"
