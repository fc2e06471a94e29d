from __future__ import annotations

from typing import Any, Dict, Optional

import requests


class GistClient:
    """GitHub gist used as a single-file document store.

    Gists have no conditional write, so concurrent writers race and the last
    one wins.
    """

    _DEFAULT_BASE_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"

    def __init__(
        self,
        token: str,
        gist_id: str,
        session: Optional[Any] = None,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
    ) -> None:
        if not gist_id:
            raise ValueError("gist_id is required")

        self.token = token
        self.gist_id = gist_id
        self.base_url = (base_url or self._DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {
            "authorization": f"Bearer {self.token}",
            "accept": "application/vnd.github+json",
            "x-github-api-version": self._API_VERSION,
        }

    @property
    def gist_url(self) -> str:
        return f"{self.base_url}/gists/{self.gist_id}"

    @staticmethod
    def _decode(response: Any) -> Dict[str, Any]:
        try:
            payload = response.json()
        except ValueError as exc:
            raise ValueError(f"invalid JSON response from gist API: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError("gist API response must be an object")
        return payload

    def get(self) -> Optional[Dict[str, Any]]:
        """Fetch the gist, or None when it does not exist."""
        response = self.session.get(self.gist_url, headers=self._headers(), timeout=self.timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return self._decode(response)

    def update(self, data: Dict[str, Any]) -> Dict[str, Any]:
        response = self.session.patch(
            self.gist_url,
            headers=self._headers(),
            json=data,
            timeout=self.timeout,
        )
        response.raise_for_status()
        return self._decode(response)

    def get_content(self, file_name: str) -> str:
        gist = self.get()
        if not gist:
            return ""
        files = gist.get("files") or {}
        entry = files.get(file_name)
        if not isinstance(entry, dict):
            return ""
        return entry.get("content") or ""

    def update_content(self, file_name: str, content: str) -> Dict[str, Any]:
        return self.update({"files": {file_name: {"content": content}}})
