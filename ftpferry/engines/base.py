"""
Transfer client protocol.

Defines the interface that both FtpTransferClient and SftpTransferClient
implement, so the session layer works with either transport.
"""
from typing import List, Protocol, runtime_checkable

from ftpferry.shared.models import RemoteEntry, SiteConfig


@runtime_checkable
class TransferClient(Protocol):
    """Protocol for the wire-level collaborator of a session.

    Every method is one logical request/response unit: it completes or
    raises. Connection failures raise ConnectError, everything afterwards
    raises TransferError.
    """

    site_config: SiteConfig

    async def connect(self) -> None:
        """Perform the connection and authentication handshake."""
        ...

    async def upload(self, local_file: str, remote_path: str) -> None:
        """Upload ``local_file`` into the remote directory ``remote_path``."""
        ...

    async def download(self, local_file: str, remote_path: str) -> None:
        """Download ``remote_path/local_file`` to the local file."""
        ...

    async def list_dir(self, remote_path: str) -> List[RemoteEntry]:
        """List a remote directory in server order."""
        ...

    async def delete(self, local_file: str, remote_path: str) -> None:
        """Delete ``remote_path/local_file``."""
        ...

    async def rename(self, old_name: str, new_name: str, remote_path: str) -> None:
        """Rename an entry inside ``remote_path``."""
        ...

    async def close(self) -> None:
        """Close the transport. Best-effort."""
        ...


def create_transfer_client(site_config: SiteConfig) -> TransferClient:
    """Build the transfer client matching ``site_config.protocol``."""
    if site_config.protocol == "sftp":
        from ftpferry.engines.sftp_engine import SftpTransferClient
        return SftpTransferClient(site_config)

    from ftpferry.engines.ftp_engine import FtpTransferClient
    return FtpTransferClient(site_config)
