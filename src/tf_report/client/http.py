"""Low-level HTTP client wrapper for the GitHub REST API."""

from __future__ import annotations

import importlib.metadata
import logging
from typing import Any

import requests

from tf_report.client.errors import GitHubRequestError, GitHubResponseError
from tf_report.vendor.github.endpoints import API_VERSION, DEFAULT_API_URL, MEDIA_TYPE

logger = logging.getLogger(__name__)

try:
    _VERSION: str = importlib.metadata.version("terraform-pr-report")
except importlib.metadata.PackageNotFoundError:
    _VERSION = "0.0.0"

_USER_AGENT: str = f"terraform-pr-report/{_VERSION}"


def _normalise_base_url(url: str) -> str:
    """Ensure the URL has a scheme and no trailing slash."""
    url = url.rstrip("/")
    if not url.startswith(("http://", "https://")):
        url = "https://" + url
    return url


class GitHubHTTP:
    """Low-level HTTP wrapper around :class:`requests.Session`.

    Handles the token header, GitHub media type and API version headers,
    a default ``User-Agent``, the per-request timeout, and maps
    transport/HTTP errors to :mod:`.errors` types.

    Args:
        token: GitHub token sent as a bearer credential.
        base_url: API base URL (default ``https://api.github.com``).
        timeout_s: Request timeout in seconds (default 30).
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        timeout_s: float = 30.0,
    ) -> None:
        self.base_url: str = _normalise_base_url(base_url)
        self.timeout_s: float = timeout_s
        self._session: requests.Session = requests.Session()
        self._session.headers.update(
            {
                "User-Agent": _USER_AGENT,
                "Accept": MEDIA_TYPE,
                "X-GitHub-Api-Version": API_VERSION,
                "Authorization": f"Bearer {token}",
            }
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(
        self,
        path_or_url: str,
        params: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Send an HTTP GET and return the response.

        Args:
            path_or_url: Path relative to :attr:`base_url`, or an absolute
                URL (as found in ``Link`` pagination headers).
            params: Optional query-string parameters.

        Raises:
            GitHubRequestError: On any transport-level failure.
            GitHubResponseError: On a non-2xx HTTP status code.
        """
        return self._request("GET", path_or_url, params=params)

    def post_json(
        self,
        path: str,
        payload: dict[str, Any],
    ) -> requests.Response:
        """Send an HTTP POST with a JSON *payload* to *path*.

        Raises:
            GitHubRequestError: On any transport-level failure.
            GitHubResponseError: On a non-2xx HTTP status code.
        """
        return self._request("POST", path, json=payload)

    def delete(self, path: str) -> requests.Response:
        """Send an HTTP DELETE to *path*.

        Raises:
            GitHubRequestError: On any transport-level failure.
            GitHubResponseError: On a non-2xx HTTP status code.
        """
        return self._request("DELETE", path)

    def close(self) -> None:
        """Close the underlying :class:`requests.Session`."""
        self._session.close()

    def __enter__(self) -> GitHubHTTP:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _url(self, path_or_url: str) -> str:
        if path_or_url.startswith(("http://", "https://")):
            return path_or_url
        return self.base_url + path_or_url

    def _request(self, method: str, path_or_url: str, **kwargs: Any) -> requests.Response:
        url = self._url(path_or_url)
        logger.debug("%s %s", method, url)
        try:
            resp = self._session.request(method, url, timeout=self.timeout_s, **kwargs)
        except requests.exceptions.RequestException as exc:
            raise GitHubRequestError(url, exc) from exc
        self._raise_for_status(resp)
        return resp

    @staticmethod
    def _raise_for_status(resp: requests.Response) -> None:
        if resp.ok:
            return
        message = ""
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            message = str(data.get("message", ""))
        raise GitHubResponseError(resp.status_code, resp.url, message)
