"""JSON-over-HTTP transport shared by the backend and identity-provider adapters."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pykappa._constants import USER_AGENT
from pykappa._redact import redact_for_log
from pykappa.exceptions import KappaTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        form: aiohttp.FormData | None = None,
        bearer: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class HttpTransport:
    """Send JSON or multipart requests and decode JSON replies.

    Every non-2xx status raises :class:`KappaTransportError` carrying the
    status code and, when the body is JSON, the decoded body.
    """

    def __init__(self, base_url: str, http_session: aiohttp.ClientSession) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_session

    def _url(self, endpoint: str) -> str:
        if not endpoint:
            return f"{self._base_url}/"
        return f"{self._base_url}{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        form: aiohttp.FormData | None = None,
        bearer: str | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """Perform one HTTP request and return the decoded JSON body.

        An empty 2xx body decodes to ``None``.
        """
        request_headers: dict[str, str] = {"user-agent": USER_AGENT}
        if headers:
            request_headers.update(headers)
        if bearer:
            request_headers["authorization"] = f"Bearer {bearer}"

        data: Any = None
        if form is not None:
            data = form
        elif json_body is not None:
            request_headers.setdefault("content-type", "application/json")
            data = json.dumps(json_body, separators=(",", ":"))

        url = self._url(endpoint)
        _logger.debug("%s %s body=%s", method, url, redact_for_log(json_body))

        try:
            async with self._http.request(method, url, data=data, headers=request_headers) as resp:
                status = resp.status
                text = await resp.text()
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise KappaTransportError(
                f"Request to {endpoint} failed: {exc!r}",
                endpoint=endpoint,
            ) from exc

        body: Any = None
        decode_error: json.JSONDecodeError | None = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                decode_error = exc

        if not 200 <= status < 300:
            raise KappaTransportError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
                body=body,
            )

        if decode_error is not None:
            raise KappaTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from decode_error

        _logger.debug("%s %s -> %d %s", method, url, status, redact_for_log(body))
        return body
