"""Data models for FTPFerry."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

DEFAULT_PORTS = {"ftp": 21, "sftp": 22}

# Event kinds
UPLOADED = "uploaded"
DOWNLOADED = "downloaded"
EVENT_KINDS = (UPLOADED, DOWNLOADED)

# Operation kinds
OPERATION_KINDS = ("upload", "download", "delete", "rename", "list")


@dataclass
class SiteConfig:
    """Configuration for a remote server connection."""

    host: str
    username: str
    password: Optional[str] = None  # runtime only, never logged
    protocol: str = "ftp"  # "ftp" or "sftp"
    port: Optional[int] = None  # defaults to the protocol's well-known port
    timeout: float = 15.0
    passive: bool = True  # FTP passive mode
    local_root: str = "."  # relative local file names resolve against this

    def __post_init__(self):
        """Validate configuration."""
        if not self.host:
            raise ValueError("host must not be empty")
        if self.protocol not in DEFAULT_PORTS:
            raise ValueError(f"Invalid protocol: {self.protocol}")
        if self.port is None:
            self.port = DEFAULT_PORTS[self.protocol]
        if self.port <= 0 or self.port > 65535:
            raise ValueError(f"Invalid port: {self.port}")
        if self.timeout <= 0:
            raise ValueError(f"Invalid timeout: {self.timeout}")

    def __repr__(self) -> str:
        return (
            f"SiteConfig(host={self.host!r}, port={self.port}, "
            f"username={self.username!r}, protocol={self.protocol!r})"
        )


@dataclass
class Connection:
    """The single live session owned by SessionManager."""

    host: str
    username: str
    client: Any  # TransferClient
    port: Optional[int] = None
    status: str = "disconnected"  # "disconnected" | "connected"
    connected_at: Optional[float] = None

    @property
    def is_connected(self) -> bool:
        return self.status == "connected"


@dataclass(frozen=True)
class Operation:
    """A one-shot request against the active connection."""

    kind: str
    path: str
    file: Optional[str] = None
    new_name: Optional[str] = None

    def __post_init__(self):
        if self.kind not in OPERATION_KINDS:
            raise ValueError(f"Invalid operation kind: {self.kind}")

    def __str__(self) -> str:
        if self.kind == "rename":
            return f"rename {self.file} -> {self.new_name} in {self.path}"
        if self.kind == "list":
            return f"list {self.path}"
        return f"{self.kind} {self.file} @ {self.path}"


@dataclass(frozen=True)
class EventPayload:
    """Data handed to a listener when an event kind fires."""

    kind: str
    file: str
    path: str

    def as_dict(self) -> Dict[str, str]:
        return {"file": self.file, "path": self.path}


@dataclass
class RemoteEntry:
    """Represents a file or directory on the remote server."""

    name: str
    path: str
    is_dir: bool = False
    size: int = 0
    mtime: Optional[float] = None  # Unix timestamp

    @property
    def mtime_datetime(self) -> Optional[datetime]:
        """Get modification time as datetime."""
        if self.mtime is None:
            return None
        return datetime.fromtimestamp(self.mtime)

    def __str__(self) -> str:
        type_str = "DIR" if self.is_dir else "FILE"
        return f"{type_str} {self.name} ({self.size} bytes)"
