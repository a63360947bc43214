from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

import requests

from .envelope import decode_response
from .errors import TransportError


CF_API_BASE = "https://api.cloudflare.com/client/v4"

# (field_name, (file_name, content, content_type))
MultipartFile = Tuple[str, Tuple[str, bytes, str]]


def _auth_headers(token: str, *, json_body: bool) -> Dict[str, str]:
    headers = {"Authorization": f"Bearer {token}"}
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


class CloudflareApi:
    """Thin REST transport for the Cloudflare v4 API.

    Every call is a single attempt. The HTTP status is not interpreted; the
    response envelope decides success, and the decoded ``result`` is returned
    as-is for the caller to interpret.
    """

    def __init__(
        self,
        *,
        base_url: str = CF_API_BASE,
        timeout: float = 60,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = str(base_url or CF_API_BASE).rstrip("/")
        self.timeout = timeout
        self._session = session if session is not None else requests.Session()

    def _url(self, path: str) -> str:
        return self.base_url + "/" + path.lstrip("/")

    def get(self, path: str, token: str) -> Any:
        try:
            resp = self._session.get(
                self._url(path),
                headers=_auth_headers(token, json_body=True),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"GET {path}: {e}")
        return decode_response(resp.content)

    def post_json(self, path: str, token: str, payload: Dict[str, Any]) -> Any:
        try:
            resp = self._session.post(
                self._url(path),
                headers=_auth_headers(token, json_body=True),
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"POST {path}: {e}")
        return decode_response(resp.content)

    def post_multipart(self, path: str, token: str, files: List[MultipartFile]) -> Any:
        # requests builds the multipart body and sets the boundary content type.
        try:
            resp = self._session.post(
                self._url(path),
                headers=_auth_headers(token, json_body=False),
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"POST {path}: {e}")
        return decode_response(resp.content)
