"""
IPFS blob store using a node's HTTP RPC API (Kubo).

Blobs are added with ``/api/v0/add`` and read back with ``/api/v0/cat``.
The content hash is the CID the node returns, so it is deterministic
for a fixed node configuration (CID version, chunker, raw leaves).
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from ..exceptions import BlobNotFoundError, StorageConnectionError, StorageIOError
from .base import BlobStore

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://127.0.0.1:5001"


class IpfsHttpBlobStore(BlobStore):
    """Blob store backed by an IPFS node.

    Example:
        >>> async with IpfsHttpBlobStore("http://127.0.0.1:5001") as blobs:
        ...     cid = await blobs.put(b"hello")
        ...     assert await blobs.get(cid) == b"hello"
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        cid_version: int = 1,
        pin: bool = True,
        timeout_seconds: float = 30.0,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            api_url: Base URL of the node's RPC API
            cid_version: CID version passed to ``add``
            pin: Pin added blobs so the node's GC keeps them
            timeout_seconds: Total timeout per request
            session: Optional shared aiohttp session (not closed by ``close()``)
        """
        self.api_url = api_url.rstrip("/")
        self.cid_version = cid_version
        self.pin = pin
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def _post(
        self, endpoint: str, params: dict[str, Any], data: aiohttp.FormData | None = None
    ) -> aiohttp.ClientResponse:
        url = f"{self.api_url}/api/v0/{endpoint}"
        try:
            return await self._get_session().post(url, params=params, data=data)
        except aiohttp.ClientConnectionError as e:
            raise StorageConnectionError(self.api_url, e) from e

    async def put(self, data: bytes) -> str:
        form = aiohttp.FormData()
        form.add_field("file", data, filename="blob", content_type="application/octet-stream")
        params = {
            "cid-version": str(self.cid_version),
            "pin": "true" if self.pin else "false",
            "quieter": "true",
        }
        response = await self._post("add", params, form)
        async with response:
            if response.status != 200:
                text = await response.text()
                raise StorageIOError(
                    "ipfs_add", self.api_url, RuntimeError(text), status=response.status
                )
            body = await response.json(content_type=None)

        cid = body["Hash"]
        logger.debug("Added blob %s (%d bytes)", cid, len(data))
        return cid

    async def get(self, blob_hash: str) -> bytes:
        response = await self._post("cat", {"arg": blob_hash, "offline": "true"})
        async with response:
            if response.status == 200:
                return await response.read()
            text = await response.text()
            status = response.status

        if "not found" in text.lower():
            raise BlobNotFoundError(blob_hash)
        raise StorageIOError("ipfs_cat", blob_hash, RuntimeError(text), status=status)

    async def exists(self, blob_hash: str) -> bool:
        response = await self._post("block/stat", {"arg": blob_hash, "offline": "true"})
        async with response:
            return response.status == 200

    async def close(self) -> None:
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
