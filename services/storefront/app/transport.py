from __future__ import annotations

import json
import os
import urllib.error
import urllib.request
from typing import Any, Protocol

from services.storefront.app.errors import TransportError


class Transport(Protocol):
    def request_json(
        self, method: str, path: str, body: dict[str, Any] | None = None
    ) -> tuple[int, Any]:
        """Send one request and return (status code, decoded JSON body or None)."""
        ...


class UrllibTransport:
    """JSON over HTTP against the VelociGo API.

    No timeout is applied unless one is configured: a submission resolves whenever the API
    answers.
    """

    def __init__(self, base_url: str, *, timeout_s: float | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s

    @classmethod
    def from_env(cls) -> "UrllibTransport":
        timeout = os.getenv("VELOCIGO_API_TIMEOUT_S", "").strip()
        return cls(
            os.getenv("VELOCIGO_API_BASE_URL", "http://localhost:8000"),
            timeout_s=float(timeout) if timeout else None,
        )

    def request_json(
        self, method: str, path: str, body: dict[str, Any] | None = None
    ) -> tuple[int, Any]:
        req = urllib.request.Request(f"{self._base_url}{path}", method=method)
        req.add_header("Accept", "application/json")
        data = None
        if body is not None:
            req.add_header("Content-Type", "application/json")
            data = json.dumps(body).encode("utf-8")

        kwargs: dict[str, Any] = {"data": data}
        if self._timeout_s is not None:
            kwargs["timeout"] = self._timeout_s

        try:
            with urllib.request.urlopen(req, **kwargs) as resp:
                return resp.status, _decode(resp.read())
        except urllib.error.HTTPError as e:
            return e.code, _decode(e.read())
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(f"No se pudo contactar al servidor: {e}") from e


def _decode(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except ValueError:
        return None
