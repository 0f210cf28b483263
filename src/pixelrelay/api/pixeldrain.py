"""Pixeldrain API wrapper.

Endpoints used:

* ``HEAD {base}/file/{id}`` -- name and size of a file, without the body.
* ``GET  {base}/file/{id}`` -- file content.
* ``GET  {base}/list/{id}`` -- JSON folder listing ``{"files": [...]}``.
"""

from __future__ import annotations

from typing import Any

import httpx

from .transport import AsyncHttpTransport


class PixeldrainAPI:
    """Asynchronous wrapper for the Pixeldrain file and list endpoints.

    Parameters
    ----------
    transport:
        A configured :class:`AsyncHttpTransport`.
    base_url:
        API root, e.g. ``"https://pixeldrain.com/api"``.
    """

    def __init__(self, transport: AsyncHttpTransport, base_url: str) -> None:
        self._transport = transport
        self._base_url = base_url.rstrip("/")

    def file_url(self, file_id: str) -> str:
        """Direct download URL of a file."""
        return f"{self._base_url}/file/{file_id}"

    def list_url(self, folder_id: str) -> str:
        return f"{self._base_url}/list/{folder_id}"

    async def head_file(self, file_id: str) -> httpx.Response:
        """Issue a metadata-only ``HEAD`` request for *file_id*.

        Non-``2xx`` answers are returned rather than raised; the resolver
        decides what a failed HEAD request means.
        """
        return await self._transport.request(
            "HEAD", self.file_url(file_id), allow_error=True,
        )

    async def get_listing(self, folder_id: str) -> Any:
        """Fetch and decode the JSON listing of *folder_id*.

        Raises
        ------
        RelayHTTPError
            On a non-``2xx`` answer.
        RelayNetworkError
            On transport failure.
        ValueError
            If the body is not valid JSON.
        """
        response = await self._transport.request("GET", self.list_url(folder_id))
        return response.json()
