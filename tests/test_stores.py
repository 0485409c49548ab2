"""Tests for blob and pointer store implementations."""

from __future__ import annotations

import asyncio
import hashlib
import json

import aiofiles.os
import pytest
from aiohttp import test_utils, web

from topic_chain_storage.blobs import IpfsHttpBlobStore, LocalBlobStore, MemoryBlobStore
from topic_chain_storage.exceptions import (
    BlobNotFoundError,
    PointerNotFoundError,
    StorageIOError,
    ValidationError,
)
from topic_chain_storage.pointer import LocalPointerStore, MemoryPointerStore
from topic_chain_storage.resilience import RetryConfig, call_with_timeout, retry_with_backoff


class TestMemoryBlobStore:
    """Tests for MemoryBlobStore."""

    @pytest.mark.asyncio
    async def test_put_get(self):
        store = MemoryBlobStore()

        blob_hash = await store.put(b"hello")

        assert blob_hash == hashlib.sha256(b"hello").hexdigest()
        assert await store.get(blob_hash) == b"hello"
        assert await store.exists(blob_hash)

    @pytest.mark.asyncio
    async def test_missing(self):
        store = MemoryBlobStore()

        with pytest.raises(BlobNotFoundError):
            await store.get("0" * 64)
        assert not await store.exists("0" * 64)

    @pytest.mark.asyncio
    async def test_put_count_includes_repeats(self):
        store = MemoryBlobStore()
        await store.put(b"x")
        await store.put(b"x")

        assert store.put_count == 2
        assert len(store) == 1


class TestLocalBlobStore:
    """Tests for LocalBlobStore."""

    @pytest.mark.asyncio
    async def test_put_get(self, tmp_path):
        store = LocalBlobStore(tmp_path / "blobs")

        blob_hash = await store.put(b"payload")

        assert (tmp_path / "blobs" / blob_hash[:2] / blob_hash).exists()
        assert await store.get(blob_hash) == b"payload"
        assert await store.exists(blob_hash)

    @pytest.mark.asyncio
    async def test_persists_across_instances(self, tmp_path):
        blob_hash = await LocalBlobStore(tmp_path).put(b"durable")

        assert await LocalBlobStore(tmp_path).get(blob_hash) == b"durable"

    @pytest.mark.asyncio
    async def test_timed_out_put_leaves_no_temp_file(self, tmp_path, monkeypatch):
        async def stuck_replace(src, dst):
            await asyncio.sleep(10)

        monkeypatch.setattr(aiofiles.os, "replace", stuck_replace)
        store = LocalBlobStore(tmp_path)

        with pytest.raises(TimeoutError):
            await call_with_timeout(store.put, b"slow disk", timeout=0.05)

        assert list(tmp_path.rglob(".tmp_*")) == []
        assert not await store.exists(hashlib.sha256(b"slow disk").hexdigest())

    @pytest.mark.asyncio
    async def test_failed_put_leaves_no_temp_file(self, tmp_path, monkeypatch):
        async def failing_replace(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr(aiofiles.os, "replace", failing_replace)

        with pytest.raises(StorageIOError):
            await LocalBlobStore(tmp_path).put(b"x")

        assert list(tmp_path.rglob(".tmp_*")) == []

    @pytest.mark.asyncio
    async def test_put_is_idempotent(self, tmp_path):
        store = LocalBlobStore(tmp_path)

        assert await store.put(b"same") == await store.put(b"same")

    @pytest.mark.asyncio
    async def test_missing(self, tmp_path):
        store = LocalBlobStore(tmp_path)

        with pytest.raises(BlobNotFoundError):
            await store.get("a" * 64)

    @pytest.mark.asyncio
    async def test_corrupted_blob_detected(self, tmp_path):
        store = LocalBlobStore(tmp_path)
        blob_hash = await store.put(b"original")
        (tmp_path / blob_hash[:2] / blob_hash).write_bytes(b"tampered")

        with pytest.raises(StorageIOError):
            await store.get(blob_hash)

    @pytest.mark.asyncio
    async def test_invalid_hash_rejected(self, tmp_path):
        store = LocalBlobStore(tmp_path)

        with pytest.raises(ValidationError):
            await store.get("../../etc/passwd")


def _fake_ipfs_app(busy_adds: int = 0) -> web.Application:
    """Minimal stand-in for the Kubo RPC endpoints used by the store.

    The first ``busy_adds`` add requests are answered with 503.
    """
    blobs: dict[str, bytes] = {}
    busy = [busy_adds]

    async def add(request: web.Request) -> web.Response:
        if busy[0] > 0:
            busy[0] -= 1
            return web.Response(status=503, text="node busy")
        reader = await request.multipart()
        part = await reader.next()
        data = await part.read()
        cid = "bafk" + hashlib.sha256(data).hexdigest()[:20]
        blobs[cid] = bytes(data)
        return web.json_response({"Name": "blob", "Hash": cid, "Size": str(len(data))})

    async def cat(request: web.Request) -> web.Response:
        cid = request.query["arg"]
        if cid not in blobs:
            return web.Response(
                status=500,
                text=json.dumps({"Message": "block was not found locally (offline)"}),
            )
        return web.Response(body=blobs[cid])

    async def block_stat(request: web.Request) -> web.Response:
        cid = request.query["arg"]
        if cid not in blobs:
            return web.Response(status=500, text="not found")
        return web.json_response({"Key": cid, "Size": len(blobs[cid])})

    app = web.Application()
    app.router.add_post("/api/v0/add", add)
    app.router.add_post("/api/v0/cat", cat)
    app.router.add_post("/api/v0/block/stat", block_stat)
    return app


class TestIpfsHttpBlobStore:
    """Tests for IpfsHttpBlobStore against a fake node."""

    @pytest.fixture
    async def ipfs_url(self):
        server = test_utils.TestServer(_fake_ipfs_app())
        await server.start_server()
        yield str(server.make_url(""))
        await server.close()

    @pytest.mark.asyncio
    async def test_put_get(self, ipfs_url):
        async with IpfsHttpBlobStore(ipfs_url) as store:
            cid = await store.put(b"chunk bytes")

            assert cid.startswith("bafk")
            assert await store.get(cid) == b"chunk bytes"
            assert await store.exists(cid)

    @pytest.mark.asyncio
    async def test_same_bytes_same_cid(self, ipfs_url):
        async with IpfsHttpBlobStore(ipfs_url) as store:
            assert await store.put(b"x") == await store.put(b"x")

    @pytest.mark.asyncio
    async def test_missing(self, ipfs_url):
        async with IpfsHttpBlobStore(ipfs_url) as store:
            with pytest.raises(BlobNotFoundError):
                await store.get("bafkmissing")
            assert not await store.exists("bafkmissing")

    @pytest.mark.asyncio
    async def test_server_error_carries_status(self):
        server = test_utils.TestServer(_fake_ipfs_app(busy_adds=1))
        await server.start_server()
        try:
            async with IpfsHttpBlobStore(str(server.make_url(""))) as store:
                with pytest.raises(StorageIOError) as exc_info:
                    await store.put(b"x")
        finally:
            await server.close()

        assert exc_info.value.status == 503
        assert exc_info.value.details["status"] == 503

    @pytest.mark.asyncio
    async def test_busy_node_is_retried(self):
        server = test_utils.TestServer(_fake_ipfs_app(busy_adds=2))
        await server.start_server()
        try:
            async with IpfsHttpBlobStore(str(server.make_url(""))) as store:
                cid = await retry_with_backoff(
                    store.put, b"x", config=RetryConfig(max_retries=2, backoff_base=0.0)
                )
                assert await store.get(cid) == b"x"
        finally:
            await server.close()


class TestMemoryPointerStore:
    """Tests for MemoryPointerStore."""

    @pytest.mark.asyncio
    async def test_unset_raises(self):
        with pytest.raises(PointerNotFoundError):
            await MemoryPointerStore().read("root")

    @pytest.mark.asyncio
    async def test_last_write_wins(self):
        store = MemoryPointerStore()
        await store.write("root", "h1")
        await store.write("root", "h2")

        assert await store.read("root") == "h2"
        assert store.history == [("root", "h1"), ("root", "h2")]


class TestLocalPointerStore:
    """Tests for LocalPointerStore."""

    @pytest.mark.asyncio
    async def test_unset_raises(self, tmp_path):
        with pytest.raises(PointerNotFoundError):
            await LocalPointerStore(tmp_path / "pointers.json").read("root")

    @pytest.mark.asyncio
    async def test_write_read_and_persist(self, tmp_path):
        path = tmp_path / "state" / "pointers.json"
        store = LocalPointerStore(path)
        await store.write("root:a", "h1")
        await store.write("root:b", "h2")
        await store.write("root:a", "h3")

        reopened = LocalPointerStore(path)

        assert await reopened.read("root:a") == "h3"
        assert await reopened.read("root:b") == "h2"
        assert not list(path.parent.glob(".tmp_*"))
