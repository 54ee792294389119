"""Session manager owning the single remote connection."""
import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from ftpferry.core.connection_state import CONNECTED, DISCONNECTED, assert_transition
from ftpferry.engines.base import TransferClient, create_transfer_client
from ftpferry.shared.errors import (
    AlreadyConnectedError,
    ConnectError,
    NotConnectedError,
    ValidationError,
)
from ftpferry.shared.logging_ import log_operation_event
from ftpferry.shared.models import Connection, SiteConfig

ClientFactory = Callable[[SiteConfig], TransferClient]


class SessionManager:
    """
    Owns at most one Connection and the slot that serializes access to it.

    The executor never holds the client directly; it borrows the active
    connection through ``borrow()`` for the duration of one operation.
    ``connect`` and ``disconnect`` take the same slot, so connection changes
    never interleave with an operation in flight.

    State transitions:
    - disconnected -> connected (connect succeeded)
    - connected -> disconnected (disconnect, or connection lost)
    """

    def __init__(
        self,
        client_factory: ClientFactory = create_transfer_client,
        protocol: str = "ftp",
        timeout: float = 15.0,
        passive: bool = True,
        local_root: str = ".",
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize session manager.

        Args:
            client_factory: Builds a TransferClient for a SiteConfig
            protocol: Default protocol for connect() ("ftp" or "sftp")
            timeout: Network timeout handed to the client, in seconds
            passive: FTP passive mode
            local_root: Directory relative local file names resolve against
            logger: Optional logger instance
        """
        self.client_factory = client_factory
        self.protocol = protocol
        self.timeout = timeout
        self.passive = passive
        self.local_root = local_root
        self.logger = logger or logging.getLogger(__name__)

        self._connection: Optional[Connection] = None
        self._slot = asyncio.Lock()

    @property
    def connection(self) -> Optional[Connection]:
        """The active connection, if any."""
        return self._connection

    def is_connected(self) -> bool:
        """True iff a connection exists and its status is connected."""
        return self._connection is not None and self._connection.is_connected

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
        """
        Connect and log in to ``host``.

        Raises:
            ValidationError: If the connection parameters are invalid
            AlreadyConnectedError: If connected and ``replace`` is False
            ConnectError: If the handshake fails
        """
        try:
            site_config = SiteConfig(
                host=host,
                username=user,
                password=secret,
                protocol=protocol or self.protocol,
                port=port,
                timeout=self.timeout,
                passive=self.passive,
                local_root=self.local_root,
            )
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return await self.connect_site(site_config, replace=replace)

    async def connect_site(self, site_config: SiteConfig, replace: bool = False) -> Connection:
        """Connect using a fully built SiteConfig. See connect()."""
        async with self._slot:
            if self._connection is not None:
                if not replace:
                    raise AlreadyConnectedError(self._connection.host)
                await self._teardown("replaced by new connection")

            client = self.client_factory(site_config)
            log_operation_event(
                self.logger, "connect", "started",
                host=site_config.host, port=site_config.port, user=site_config.username,
            )
            try:
                await client.connect()
            except ConnectError as e:
                self._log_connect_failure(site_config, e)
                await self._close_client(client)
                raise
            except Exception as e:
                error = ConnectError(f"Connection to {site_config.host} failed: {e}", e)
                self._log_connect_failure(site_config, error)
                await self._close_client(client)
                raise error from e

            connection = Connection(
                host=site_config.host,
                username=site_config.username,
                client=client,
                port=site_config.port,
            )
            assert_transition(connection.status, CONNECTED)
            connection.status = CONNECTED
            connection.connected_at = time.time()
            self._connection = connection

            log_operation_event(
                self.logger, "connect", "done",
                host=site_config.host, port=site_config.port, user=site_config.username,
            )
            return connection

    async def disconnect(self) -> None:
        """
        Close the active connection.

        The connection is cleared even if closing the transport fails.

        Raises:
            NotConnectedError: If there is no active connection
        """
        async with self._slot:
            if self._connection is None:
                self.logger.warning("Disconnect requested while not connected")
                raise NotConnectedError()
            await self._teardown("disconnect requested")

    @asynccontextmanager
    async def borrow(self) -> AsyncIterator[Connection]:
        """
        Hold the operation slot and lend out the active connection.

        Raises:
            NotConnectedError: If there is no active connection once the
                slot is acquired
        """
        async with self._slot:
            if not self.is_connected():
                raise NotConnectedError()
            yield self._connection

    async def drop(self, reason: str) -> None:
        """Discard the active connection. Caller must hold the slot via borrow()."""
        if self._connection is not None:
            await self._teardown(reason)

    async def _teardown(self, reason: str) -> None:
        connection, self._connection = self._connection, None
        assert_transition(connection.status, DISCONNECTED)
        connection.status = DISCONNECTED
        await self._close_client(connection.client)
        log_operation_event(
            self.logger, "disconnect", "done",
            host=connection.host, port=connection.port, message=reason,
        )

    def _log_connect_failure(self, site_config: SiteConfig, error: ConnectError) -> None:
        log_operation_event(
            self.logger, "connect", "failed",
            host=site_config.host, port=site_config.port,
            error_code=error.code, message=error.message,
        )

    async def _close_client(self, client: TransferClient) -> None:
        # Best-effort: a failed close never keeps the connection alive
        try:
            await client.close()
        except Exception as e:
            self.logger.warning(f"Error while closing transport: {e}")
