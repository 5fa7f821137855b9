from urllib.parse import urljoin

import requests


class ServiceHttpClient:
    """
    Simple HTTP client for talking to the hosted identity backend.

    Always sends the public API key as the `apikey` header. The Authorization
    header carries the API key too, unless a caller's access token is given.
    """

    def __init__(self, base_url: str, api_key: str, timeout: int = 10):
        if not base_url.endswith("/"):
            base_url += "/"
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self, token: str = None, extra: dict = None) -> dict:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {token or self.api_key}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    def request(self, method: str, path: str, token: str = None, headers: dict = None, **kwargs):
        # Use per-call timeout if provided, otherwise default
        timeout = kwargs.pop("timeout", self.timeout)

        return requests.request(
            method,
            self.url_for(path),
            headers=self._headers(token, headers),
            timeout=timeout,
            **kwargs,
        )

    def get(self, path: str, **kwargs):
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json=None, **kwargs):
        return self.request("POST", path, json=json, **kwargs)
