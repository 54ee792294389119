"""SFTP transfer client using Paramiko."""
import asyncio
import logging
from typing import List, NoReturn, Optional

import paramiko
from paramiko import SFTPClient, SSHClient

from ftpferry.shared.errors import (
    AuthenticationError,
    ConnectError,
    ConnectionLostError,
    PathNotFoundError,
    PermissionDeniedError,
    TransferError,
)
from ftpferry.shared.models import RemoteEntry, SiteConfig
from ftpferry.shared.paths import (
    ensure_in_local_root,
    get_remote_basename,
    join_remote_path,
    normalize_remote_path,
    replace_on_success,
    resolve_local_path,
)


def _raise_transfer_error(exc: Exception, action: str, target: str) -> NoReturn:
    """Translate a paramiko/OS exception into the TransferError family."""
    if isinstance(exc, FileNotFoundError):
        raise PathNotFoundError(f"Path not found: {target}", exc) from exc
    if isinstance(exc, PermissionError):
        raise PermissionDeniedError(f"Permission denied: {target}", exc) from exc
    if isinstance(exc, (paramiko.SSHException, EOFError, ConnectionError, TimeoutError)):
        raise ConnectionLostError(f"Connection lost during {action}: {exc}", exc) from exc
    raise TransferError(f"Failed to {action} {target}: {exc}", exc) from exc


class SftpTransferClient:
    """
    SFTP client for file management and transfer operations.

    Each instance maintains its own SSH/SFTP connection. The blocking
    Paramiko calls run on a worker thread so every public coroutine is a
    single suspension point for the caller's event loop.
    """

    def __init__(self, site_config: SiteConfig, logger: Optional[logging.Logger] = None):
        """
        Initialize SFTP client.

        Args:
            site_config: Site configuration
            logger: Optional logger instance
        """
        self.site_config = site_config
        self.logger = logger or logging.getLogger(__name__)
        self.ssh_client: Optional[SSHClient] = None
        self.sftp_client: Optional[SFTPClient] = None
        self._connected = False

    # -- async protocol ---------------------------------------------------

    async def connect(self) -> None:
        await asyncio.to_thread(self._connect)

    async def upload(self, local_file: str, remote_path: str) -> None:
        await asyncio.to_thread(self._upload, local_file, remote_path)

    async def download(self, local_file: str, remote_path: str) -> None:
        await asyncio.to_thread(self._download, local_file, remote_path)

    async def list_dir(self, remote_path: str) -> List[RemoteEntry]:
        return await asyncio.to_thread(self._list_dir, remote_path)

    async def delete(self, local_file: str, remote_path: str) -> None:
        await asyncio.to_thread(self._delete, local_file, remote_path)

    async def rename(self, old_name: str, new_name: str, remote_path: str) -> None:
        await asyncio.to_thread(self._rename, old_name, new_name, remote_path)

    async def close(self) -> None:
        await asyncio.to_thread(self._close)

    def is_connected(self) -> bool:
        """Check if connected."""
        return self._connected and self.ssh_client is not None

    # -- blocking implementation ------------------------------------------

    def _connect(self) -> None:
        """
        Establish SSH and SFTP connections.

        Raises:
            AuthenticationError: If authentication fails
            ConnectError: If the connection or SFTP subsystem fails
        """
        try:
            self.ssh_client = paramiko.SSHClient()
            self.ssh_client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

            self.ssh_client.connect(
                hostname=self.site_config.host,
                port=self.site_config.port,
                username=self.site_config.username,
                password=self.site_config.password,
                timeout=self.site_config.timeout,
                allow_agent=False,
                look_for_keys=False,
            )
            self.sftp_client = self.ssh_client.open_sftp()
            self._connected = True

            self.logger.info(
                f"Connected to {self.site_config.host}:{self.site_config.port}"
            )

        except paramiko.AuthenticationException as e:
            self._close()
            raise AuthenticationError(f"Authentication failed: {e}", e) from e
        except paramiko.SSHException as e:
            self._close()
            raise ConnectError(f"SSH error: {e}", e) from e
        except Exception as e:
            self._close()
            raise ConnectError(f"Connection failed: {e}", e) from e

    def _close(self) -> None:
        """Close SSH and SFTP connections."""
        if self.sftp_client:
            self.sftp_client.close()
            self.sftp_client = None
        if self.ssh_client:
            self.ssh_client.close()
            self.ssh_client = None
        if self._connected:
            self.logger.info("Disconnected from server")
        self._connected = False

    def _require_sftp(self) -> SFTPClient:
        if not self.is_connected() or self.sftp_client is None:
            raise ConnectionLostError("SFTP session is not open")
        return self.sftp_client

    def _list_dir(self, remote_path: str) -> List[RemoteEntry]:
        """
        List directory contents in the order the server returns them.

        Raises:
            PathNotFoundError: If path doesn't exist
            PermissionDeniedError: If permission denied
        """
        sftp = self._require_sftp()
        normalized_path = normalize_remote_path(remote_path)

        try:
            return [
                RemoteEntry(
                    name=attr.filename,
                    path=join_remote_path(normalized_path, attr.filename),
                    is_dir=attr.st_mode is not None and (attr.st_mode & 0o170000) == 0o040000,
                    size=attr.st_size or 0,
                    mtime=attr.st_mtime,
                )
                for attr in sftp.listdir_attr(normalized_path)
            ]
        except Exception as e:
            _raise_transfer_error(e, "list", normalized_path)

    def _upload(self, local_file: str, remote_path: str) -> None:
        """Upload a local file into a remote directory."""
        sftp = self._require_sftp()
        local = resolve_local_path(self.site_config.local_root, local_file)
        target = join_remote_path(remote_path, get_remote_basename(local_file))

        try:
            sftp.put(str(local), target)
            self.logger.info(f"Uploaded {local} -> {target}")
        except Exception as e:
            _raise_transfer_error(e, "upload", target)

    def _download(self, local_file: str, remote_path: str) -> None:
        """Download ``remote_path/local_file`` below the local root."""
        sftp = self._require_sftp()
        source = join_remote_path(remote_path, local_file)
        local = ensure_in_local_root(
            resolve_local_path(self.site_config.local_root, local_file),
            self.site_config.local_root,
        )

        try:
            # Ensure local directory exists
            local.parent.mkdir(parents=True, exist_ok=True)
            with replace_on_success(local) as fp:
                sftp.getfo(source, fp)
            self.logger.info(f"Downloaded {source} -> {local}")
        except Exception as e:
            _raise_transfer_error(e, "download", source)

    def _delete(self, local_file: str, remote_path: str) -> None:
        """Remove a remote file."""
        sftp = self._require_sftp()
        target = join_remote_path(remote_path, local_file)

        try:
            sftp.remove(target)
            self.logger.info(f"Removed file: {target}")
        except Exception as e:
            _raise_transfer_error(e, "delete", target)

    def _rename(self, old_name: str, new_name: str, remote_path: str) -> None:
        """Rename a remote file inside ``remote_path``."""
        sftp = self._require_sftp()
        old_path = join_remote_path(remote_path, old_name)
        new_path = join_remote_path(remote_path, new_name)

        try:
            sftp.rename(old_path, new_path)
            self.logger.info(f"Renamed {old_path} -> {new_path}")
        except Exception as e:
            _raise_transfer_error(e, "rename", old_path)
