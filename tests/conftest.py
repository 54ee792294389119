"""Shared fixtures: an in-memory transfer client and a Ferry wired to it."""
import asyncio
import threading
import time
from typing import Callable, Dict, List, Optional

import pytest

from ftpferry.app.ferry import Ferry
from ftpferry.shared.models import RemoteEntry, SiteConfig


class FakeTransferClient:
    """TransferClient that records calls and fails on demand."""

    def __init__(self, site_config: SiteConfig):
        self.site_config = site_config
        self.calls: List[tuple] = []
        self.connect_error: Optional[BaseException] = None
        self.close_error: Optional[BaseException] = None
        self.errors: Dict[str, BaseException] = {}
        self.entries: Dict[str, List[RemoteEntry]] = {}
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0
        # Seconds each operation blocks in a worker thread, like a real wire call
        self.wire_delay = 0.0
        self.wire_active = 0
        self.max_wire_active = 0
        self._wire_lock = threading.Lock()

    async def _call(self, name: str, *args):
        self.calls.append((name, *args))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            # Yield twice so overlapping callers would be visible
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            if self.wire_delay:
                await asyncio.to_thread(self._wire)
            if name in self.errors:
                raise self.errors[name]
        finally:
            self.in_flight -= 1

    def _wire(self) -> None:
        with self._wire_lock:
            self.wire_active += 1
            self.max_wire_active = max(self.max_wire_active, self.wire_active)
        time.sleep(self.wire_delay)
        with self._wire_lock:
            self.wire_active -= 1

    async def connect(self) -> None:
        self.calls.append(("connect",))
        await asyncio.sleep(0)
        if self.connect_error is not None:
            raise self.connect_error

    async def upload(self, local_file: str, remote_path: str) -> None:
        await self._call("upload", local_file, remote_path)

    async def download(self, local_file: str, remote_path: str) -> None:
        await self._call("download", local_file, remote_path)

    async def list_dir(self, remote_path: str) -> List[RemoteEntry]:
        await self._call("list_dir", remote_path)
        return list(self.entries.get(remote_path, []))

    async def delete(self, local_file: str, remote_path: str) -> None:
        await self._call("delete", local_file, remote_path)

    async def rename(self, old_name: str, new_name: str, remote_path: str) -> None:
        await self._call("rename", old_name, new_name, remote_path)

    async def close(self) -> None:
        self.calls.append(("close",))
        self.closed = True
        if self.close_error is not None:
            raise self.close_error

    @property
    def operation_calls(self) -> List[tuple]:
        return [call for call in self.calls if call[0] not in ("connect", "close")]


class FakeClientFactory:
    """Client factory handing out FakeTransferClients."""

    def __init__(self):
        self.clients: List[FakeTransferClient] = []
        self.configure: Optional[Callable[[FakeTransferClient], None]] = None

    def __call__(self, site_config: SiteConfig) -> FakeTransferClient:
        client = FakeTransferClient(site_config)
        if self.configure is not None:
            self.configure(client)
        self.clients.append(client)
        return client

    @property
    def last(self) -> FakeTransferClient:
        return self.clients[-1]


@pytest.fixture
def factory() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def ferry(factory) -> Ferry:
    return Ferry(client_factory=factory)


@pytest.fixture
def site() -> SiteConfig:
    return SiteConfig(host="ftp.example.com", username="user", password="secret")
