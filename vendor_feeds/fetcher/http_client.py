"""HTTP client wrapper with timeout configuration."""

from typing import Any, Dict, Optional

import httpx


class FeedHTTPClient:
    """
    Synchronous client shared by feed pagination and image downloads.

    Open it with `with`; one pooled httpx.Client lives for the duration of the
    block. Tests swap `_client` for a MockTransport client or a FastAPI
    TestClient.
    """

    def __init__(
        self,
        connect_timeout: float = 10.0,
        read_timeout: float = 120.0,
        write_timeout: float = 10.0,
        pool_timeout: float = 10.0,
        verify_ssl: bool = True
    ):
        """
        Initialize HTTP client.

        Args:
            connect_timeout: Connection timeout in seconds
            read_timeout: Read timeout in seconds
            write_timeout: Write timeout in seconds
            pool_timeout: Pool timeout in seconds
            verify_ssl: Verify TLS certificates
        """
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout
        self.pool_timeout = pool_timeout
        self.verify_ssl = verify_ssl
        self._client: Optional[httpx.Client] = None

    def __enter__(self):
        """Enter context manager."""
        timeout = httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout
        )
        self._client = httpx.Client(timeout=timeout, verify=self.verify_ssl, follow_redirects=True)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager."""
        if self._client:
            self._client.close()
            self._client = None

    def _require_client(self) -> httpx.Client:
        if not self._client:
            raise RuntimeError("Client not initialized. Use 'with' context manager.")
        return self._client

    def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        json: Optional[Any] = None,
    ) -> httpx.Response:
        """
        Perform a request.

        Args:
            method: HTTP method
            url: URL to request
            params: Query parameters
            headers: Request headers
            json: JSON body

        Returns:
            HTTP response
        """
        return self._require_client().request(method, url, params=params, headers=headers, json=json)

    def download(self, url: str) -> bytes:
        """
        Download a binary resource.

        Raises:
            httpx.HTTPError: On transport failure or a non-2xx status
        """
        response = self._require_client().get(url)
        response.raise_for_status()
        return response.content
