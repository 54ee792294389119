"""Command executor running one operation at a time on the active connection."""
import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, TypeVar

from ftpferry.core.events import EventHub
from ftpferry.core.session import SessionManager
from ftpferry.shared.errors import FtpFerryError, TransferError
from ftpferry.shared.logging_ import log_operation_event
from ftpferry.shared.models import (
    DOWNLOADED,
    UPLOADED,
    Connection,
    EventPayload,
    Operation,
)
from ftpferry.shared.paths import normalize_remote_path, require_name

T = TypeVar("T")


class CommandExecutor:
    """
    Issues operations against the connection borrowed from a SessionManager.

    Each operation holds the session slot from the connected check until
    its outcome is known, so concurrent callers run in the order they
    asked. Successful uploads and downloads are published on the EventHub
    before the operation returns.
    """

    def __init__(
        self,
        session: SessionManager,
        hub: EventHub,
        logger: Optional[logging.Logger] = None
    ):
        self.session = session
        self.hub = hub
        self.logger = logger or logging.getLogger(__name__)

    async def upload(self, file: str, path: str) -> None:
        """Upload local ``file`` into remote directory ``path`` and fire ``uploaded``."""
        operation = Operation("upload", require_name(path, "path"), require_name(file, "file"))
        await self._execute(
            operation,
            lambda conn: conn.client.upload(operation.file, operation.path),
            event_kind=UPLOADED,
        )

    async def download(self, file: str, path: str) -> None:
        """Download ``path/file`` to local ``file`` and fire ``downloaded``."""
        operation = Operation("download", require_name(path, "path"), require_name(file, "file"))
        await self._execute(
            operation,
            lambda conn: conn.client.download(operation.file, operation.path),
            event_kind=DOWNLOADED,
        )

    async def list(self, path: str) -> List[str]:
        """Entry names of remote directory ``path``, in server order."""
        operation = Operation("list", require_name(path, "path"))

        async def _names(conn: Connection) -> List[str]:
            entries = await conn.client.list_dir(normalize_remote_path(operation.path))
            return [entry.name for entry in entries]

        return await self._execute(operation, _names)

    async def delete_file(self, file: str, path: str) -> None:
        operation = Operation("delete", require_name(path, "path"), require_name(file, "file"))
        await self._execute(
            operation,
            lambda conn: conn.client.delete(operation.file, operation.path),
        )

    async def rename(self, old_name: str, new_name: str, path: str) -> None:
        operation = Operation(
            "rename",
            require_name(path, "path"),
            require_name(old_name, "old name"),
            require_name(new_name, "new name"),
        )
        await self._execute(
            operation,
            lambda conn: conn.client.rename(operation.file, operation.new_name, operation.path),
        )

    async def _execute(
        self,
        operation: Operation,
        call: Callable[[Connection], Awaitable[T]],
        event_kind: Optional[str] = None,
    ) -> T:
        async with self.session.borrow() as conn:
            log_operation_event(
                self.logger, operation.kind, "started",
                host=conn.host, file=operation.file, path=operation.path,
            )
            wire_call = asyncio.ensure_future(call(conn))
            try:
                result = await asyncio.shield(wire_call)
            except asyncio.CancelledError:
                await self._abandon(operation, conn, wire_call)
                raise
            except TransferError as e:
                await self._fail(operation, conn, e)
                raise
            except FtpFerryError:
                raise
            except Exception as e:
                error = TransferError(f"{operation} failed: {e}", e)
                await self._fail(operation, conn, error)
                raise error from e

            if event_kind is not None:
                self.hub.publish(
                    event_kind,
                    EventPayload(event_kind, operation.file, operation.path),
                )
            log_operation_event(
                self.logger, operation.kind, "done",
                host=conn.host, file=operation.file, path=operation.path,
            )
            return result

    async def _abandon(self, operation: Operation, conn: Connection, wire_call: asyncio.Future) -> None:
        """
        Settle a cancelled operation before the slot is released.

        A blocking client call keeps running in its worker thread after the
        caller is cancelled. It is waited out so no second call reaches the
        same connection, and the connection is then dropped because the
        caller never learns how the call ended.
        """
        await asyncio.wait({wire_call})
        if not wire_call.cancelled() and wire_call.exception() is not None:
            self.logger.debug(f"Cancelled {operation} ended with: {wire_call.exception()}")
        log_operation_event(
            self.logger, operation.kind, "cancelled",
            host=conn.host, file=operation.file, path=operation.path,
        )
        await self.session.drop(f"{operation.kind} cancelled while in flight")

    async def _fail(self, operation: Operation, conn: Connection, error: TransferError) -> None:
        log_operation_event(
            self.logger, operation.kind, "failed",
            host=conn.host, file=operation.file, path=operation.path,
            error_code=error.code, message=error.message,
        )
        if error.connection_lost:
            await self.session.drop(f"connection lost during {operation.kind}")
