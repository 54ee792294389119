"""FTPFerry: one remote file-transfer session with completion events."""
from ftpferry.app.ferry import Ferry
from ftpferry.core.events import AsyncioSchedulerBridge, EventHub
from ftpferry.core.executor import CommandExecutor
from ftpferry.core.session import SessionManager
from ftpferry.shared.errors import (
    AlreadyConnectedError,
    ConnectError,
    FtpFerryError,
    NotConnectedError,
    TransferError,
)
from ftpferry.shared.models import DOWNLOADED, UPLOADED, EventPayload, SiteConfig

__version__ = "0.1.0"

__all__ = [
    "AlreadyConnectedError",
    "AsyncioSchedulerBridge",
    "CommandExecutor",
    "ConnectError",
    "DOWNLOADED",
    "EventHub",
    "EventPayload",
    "Ferry",
    "FtpFerryError",
    "NotConnectedError",
    "SessionManager",
    "SiteConfig",
    "TransferError",
    "UPLOADED",
]
