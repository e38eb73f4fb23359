"""
File Store Client

HTTP client for the chat server's file store: listing uploaded files,
uploading a file on behalf of a user, and downloading a stored file.

Endpoints:
    GET  /uploaded-files        -> JSON array of file names
    GET  /download?file=<name>  -> file bytes
    POST /upload                -> multipart form (file, username),
                                   plaintext acknowledgement
"""

import logging
from pathlib import Path
from typing import List, Optional

import httpx

from .render import file_link

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class FileStoreError(ValueError):
    """Raised when the file store answers with an unexpected body."""


class FileStoreClient:
    """Client for the file store endpoints."""

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """
        Initialize the file store client.

        Args:
            base_url: Base HTTP(S) URL of the chat server
            transport: Optional transport (for dependency injection/testing)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url, transport=transport, timeout=timeout
        )

    async def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()

    async def list_files(self) -> List[str]:
        """
        Fetch the names of all uploaded files.

        Returns:
            File names in server order

        Raises:
            httpx.HTTPError: If the request fails
            FileStoreError: If the body is not a JSON array (or null)
        """
        response = await self._client.get("/uploaded-files")
        response.raise_for_status()
        try:
            files = response.json()
        except ValueError as e:
            raise FileStoreError(f"Listing is not JSON: {e}") from e

        if files is None:
            files = []
        if not isinstance(files, list):
            raise FileStoreError(
                f"Listing is not an array: {type(files).__name__}"
            )
        logger.debug("Fetched %d uploaded files", len(files))
        return [str(name) for name in files]

    async def upload(self, path: Path, username: str) -> str:
        """
        Upload a file as username.

        The server announces the upload to every client with a
        ``file_upload`` event.

        Args:
            path: Local file to upload
            username: Display name of the uploader

        Returns:
            The server's plaintext acknowledgement

        Raises:
            OSError: If the file cannot be read
            httpx.HTTPError: If the request fails
        """
        path = Path(path)
        logger.info("Uploading %s as %s", path.name, username)
        with path.open("rb") as handle:
            response = await self._client.post(
                "/upload",
                files={"file": (path.name, handle)},
                data={"username": username},
            )
        response.raise_for_status()
        return response.text

    async def download(self, file_name: str, dest_dir: Path) -> Path:
        """
        Download a stored file into dest_dir.

        Args:
            file_name: Name of the stored file
            dest_dir: Directory to write into (created if missing)

        Returns:
            Path of the written file

        Raises:
            httpx.HTTPError: If the request fails
        """
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        # Server-supplied names must not escape dest_dir
        target = dest_dir / Path(file_name).name

        async with self._client.stream("GET", file_link(file_name)) as response:
            response.raise_for_status()
            with target.open("wb") as handle:
                async for chunk in response.aiter_bytes():
                    handle.write(chunk)

        logger.info("Downloaded %s to %s", file_name, target)
        return target
