"""Caller-facing facade over the session, executor and event hub."""
import logging
from pathlib import Path
from typing import List, Optional, Union

from ftpferry.core.events import AsyncioSchedulerBridge, EventHub, Listener, SchedulerBridge
from ftpferry.core.executor import CommandExecutor
from ftpferry.core.session import ClientFactory, SessionManager
from ftpferry.engines.base import create_transfer_client
from ftpferry.shared.logging_ import setup_logger
from ftpferry.shared.models import DOWNLOADED, UPLOADED, Connection


class Ferry:
    """
    One remote file-transfer session with completion events.

    Example:
        async with Ferry() as ferry:
            ferry.on_uploaded(lambda payload: print(payload.as_dict()))
            await ferry.connect("ftp.example.com", "user", "secret")
            await ferry.upload("file.txt", "/path/to/upload")

    Operations must be awaited; calls issued concurrently are run one at a
    time in the order they were issued.
    """

    def __init__(
        self,
        client_factory: ClientFactory = create_transfer_client,
        bridge: Optional[SchedulerBridge] = None,
        protocol: str = "ftp",
        timeout: float = 15.0,
        passive: bool = True,
        local_root: str = ".",
        logger: Optional[logging.Logger] = None,
        log_level: Optional[int] = None,
        log_file: Optional[Union[str, Path]] = None
    ):
        if logger is None and (log_level is not None or log_file):
            logger = setup_logger(
                level=logging.INFO if log_level is None else log_level,
                log_file=log_file,
            )
        self.logger = logger or logging.getLogger(__name__)
        self.bridge = bridge or AsyncioSchedulerBridge(logger=self.logger)
        self.session = SessionManager(
            client_factory,
            protocol=protocol,
            timeout=timeout,
            passive=passive,
            local_root=local_root,
            logger=self.logger,
        )
        self.hub = EventHub(self.bridge, logger=self.logger)
        self.executor = CommandExecutor(self.session, self.hub, logger=self.logger)

    # Connection

    async def connect(
        self,
        host: str,
        user: str,
        secret: str,
        *,
        port: Optional[int] = None,
        protocol: Optional[str] = None,
        replace: bool = False
    ) -> Connection:
        return await self.session.connect(
            host, user, secret, port=port, protocol=protocol, replace=replace
        )

    async def disconnect(self) -> None:
        await self.session.disconnect()

    def is_connected(self) -> bool:
        return self.session.is_connected()

    # Operations

    async def upload(self, file: str, path: str) -> None:
        await self.executor.upload(file, path)

    async def download(self, file: str, path: str) -> None:
        await self.executor.download(file, path)

    async def list(self, path: str) -> List[str]:
        return await self.executor.list(path)

    async def delete_file(self, file: str, path: str) -> None:
        await self.executor.delete_file(file, path)

    async def rename(self, old_name: str, new_name: str, path: str) -> None:
        await self.executor.rename(old_name, new_name, path)

    # Events

    def on_uploaded(self, listener: Listener) -> str:
        """Run ``listener(payload)`` after every successful upload. Returns its ID."""
        return self.hub.register(UPLOADED, listener)

    def on_downloaded(self, listener: Listener) -> str:
        """Run ``listener(payload)`` after every successful download. Returns its ID."""
        return self.hub.register(DOWNLOADED, listener)

    def unregister(self, kind: str, listener_id: str) -> bool:
        return self.hub.unregister(kind, listener_id)

    async def __aenter__(self) -> "Ferry":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.is_connected():
            await self.disconnect()
        if isinstance(self.bridge, AsyncioSchedulerBridge):
            await self.bridge.drain()
