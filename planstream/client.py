from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote, urljoin

import requests

from planstream.errors import NotFoundError, ParseError, TransportError

_ID_PATTERN = re.compile(r"[A-Za-z0-9._-]+")
JSONAPI_MEDIA_TYPE = "application/vnd.api+json"


def valid_string_id(value: Optional[str]) -> bool:
    return bool(value) and _ID_PATTERN.fullmatch(value) is not None


def escape_id(value: str) -> str:
    return quote(value, safe="")


@dataclass
class Client:
    base_url: str
    token: Optional[str] = None
    timeout: float = 30.0
    session: Optional[requests.Session] = None

    def _headers(self, accept: str = JSONAPI_MEDIA_TYPE) -> Dict[str, str]:
        headers = {
            "Accept": accept,
            "User-Agent": "planstream",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _http(self):
        return self.session or requests

    def _raise_for_status(self, resp: requests.Response) -> None:
        if resp.ok:
            return
        try:
            body_text = json.dumps(resp.json(), ensure_ascii=True)
        except ValueError:
            body_text = resp.text.strip()
        if len(body_text) > 4000:
            body_text = body_text[:4000] + "...(truncated)"
        message = (
            f"{resp.status_code} {resp.reason} for url: {resp.url}"
            f"\nResponse body: {body_text}"
        )
        if resp.status_code == 404:
            raise NotFoundError(message, status_code=404)
        raise TransportError(message, status_code=resp.status_code)

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None, accept: str = JSONAPI_MEDIA_TYPE):
        try:
            resp = self._http().get(
                url,
                headers=self._headers(accept),
                params=params,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc
        self._raise_for_status(resp)
        return resp

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path)

    def do_request(self, method: str, path: str, raw: bool = False) -> Any:
        if method.upper() != "GET":
            raise TransportError(f"Unsupported method {method}")
        resp = self._get(self.url_for(path))
        if raw:
            return resp.content
        try:
            payload = resp.json()
        except ValueError as exc:
            raise ParseError(f"Malformed JSON response from {resp.url}: {exc}") from exc
        if not isinstance(payload, dict):
            raise ParseError(f"Unexpected response shape from {resp.url}: {payload!r}")
        return payload

    def fetch_range(self, url: str, offset: int, limit: int) -> bytes:
        resp = self._get(
            url,
            params={"limit": limit, "offset": offset},
            accept="text/plain",
        )
        return resp.content
