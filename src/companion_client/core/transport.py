"""
HTTP transport for the Companion Client.

The transport issues requests against the backend, attaches the bearer
credential from the session store, unwraps the backend's response envelope
and normalizes every failure into a ``TransportError``. It never retries and
never mutates the session.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import aiohttp

from companion_client import USER_AGENT
from .errors import TransportError, TransportErrorKind
from .session import SessionStore

logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "Request failed"
NETWORK_ERROR_MESSAGE = "Network request failed"


def unwrap_envelope(body: Any) -> Any:
    """
    Extract the payload from a backend envelope.

    The backend wraps payloads as ``{code, success, status, data}`` but does
    not always do so. Dicts carrying a ``data`` key yield that value; any
    other body is returned unchanged.
    """
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _envelope_field(body: Any, name: str) -> Any:
    if isinstance(body, dict):
        return body.get(name)
    return None


class Transport:
    """Async HTTP transport bound to one backend base URL."""

    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        timeout: float = 15.0,
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session_store = session_store
        self.timeout = timeout
        self._http_session = http_session
        self._owns_session = http_session is None

    def _get_http_session(self) -> aiohttp.ClientSession:
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(
                headers={"User-Agent": USER_AGENT},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._http_session

    async def close(self) -> None:
        """Close the underlying HTTP session if this transport created it."""
        if self._owns_session and self._http_session and not self._http_session.closed:
            await self._http_session.close()
        self._http_session = None

    def _build_headers(self, requires_auth: bool, json_body: bool = True) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if requires_auth:
            credential = self.session_store.credential
            if credential:
                headers["Authorization"] = f"Bearer {credential}"
        return headers

    async def send(
        self,
        method: str,
        path: str,
        body: Any = None,
        requires_auth: bool = True,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a JSON request and return the unwrapped payload.

        Args:
            method: HTTP method
            path: Path appended to the base URL
            body: JSON-serializable request body
            requires_auth: Attach the current credential when one is held
            params: Query string parameters

        Returns:
            The envelope's ``data`` or the raw body

        Raises:
            TransportError: On a non-2xx status or a network failure
        """
        kwargs: Dict[str, Any] = {"headers": self._build_headers(requires_auth)}
        if body is not None:
            kwargs["data"] = json.dumps(body, ensure_ascii=False)
        if params:
            kwargs["params"] = params
        return await self._request(method.upper(), path, **kwargs)

    async def get(self, path: str, requires_auth: bool = True, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.send("GET", path, requires_auth=requires_auth, params=params)

    async def post(self, path: str, body: Any = None, requires_auth: bool = True) -> Any:
        return await self.send("POST", path, body=body, requires_auth=requires_auth)

    async def delete(self, path: str, requires_auth: bool = True) -> Any:
        return await self.send("DELETE", path, requires_auth=requires_auth)

    async def upload(
        self,
        path: str,
        file_path: Path,
        field_name: str = "file",
        form: Optional[Dict[str, str]] = None,
        requires_auth: bool = True,
    ) -> Any:
        """
        Upload a file as multipart form data.

        Follows the same credential, envelope and error rules as ``send``.
        """
        file_path = Path(file_path)
        data = aiohttp.FormData()
        for name, value in (form or {}).items():
            data.add_field(name, value)

        with open(file_path, "rb") as f:
            data.add_field(field_name, f, filename=file_path.name)
            return await self._request(
                "POST",
                path,
                headers=self._build_headers(requires_auth, json_body=False),
                data=data,
            )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        session = self._get_http_session()
        logger.debug(f"{method} {url}")

        try:
            async with session.request(
                method,
                url,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                **kwargs,
            ) as response:
                status = response.status
                raw = await response.text(errors="replace")
        except asyncio.TimeoutError as e:
            logger.warning(f"{method} {path} timed out after {self.timeout}s")
            raise TransportError(
                f"Request timed out after {self.timeout} seconds",
                kind=TransportErrorKind.NETWORK,
                details={"timeout_seconds": self.timeout},
                original_error=e,
            ) from e
        except aiohttp.ClientError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise TransportError(
                str(e) or NETWORK_ERROR_MESSAGE,
                kind=TransportErrorKind.NETWORK,
                original_error=e,
            ) from e

        body = self._parse_body(raw)

        if 200 <= status < 300:
            return unwrap_envelope(body)

        code = _envelope_field(body, "code")
        message = _envelope_field(body, "message") or FALLBACK_ERROR_MESSAGE
        logger.debug(f"{method} {path} returned {status} (code={code})")
        raise TransportError(
            str(message),
            kind=TransportErrorKind.HTTP_STATUS,
            status=status,
            code=code if isinstance(code, int) and not isinstance(code, bool) else None,
            body=body,
        )

    @staticmethod
    def _parse_body(raw: str) -> Any:
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            return raw
