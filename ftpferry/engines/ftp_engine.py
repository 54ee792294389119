"""FTP transfer client built on ftplib."""
import asyncio
import ftplib
import logging
from typing import List, NoReturn, Optional

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

# Reply codes that mean "you may not do that"
_PERMISSION_CODES = ("530", "532", "553")


def _reply_code(exc: BaseException) -> str:
    return str(exc)[:3]


def _raise_transfer_error(exc: Exception, action: str, target: str) -> NoReturn:
    """Translate an ftplib/OS exception into the TransferError family."""
    if isinstance(exc, FileNotFoundError):
        raise PathNotFoundError(f"Local file not found: {exc.filename}", exc) from exc
    if isinstance(exc, PermissionError):
        raise PermissionDeniedError(f"Local permission denied: {exc.filename}", exc) from exc
    if isinstance(exc, ftplib.error_perm):
        code = _reply_code(exc)
        if code == "550":
            raise PathNotFoundError(f"Path not found: {target} ({exc})", exc) from exc
        if code in _PERMISSION_CODES:
            raise PermissionDeniedError(f"Permission denied: {target} ({exc})", exc) from exc
    if isinstance(exc, ftplib.error_temp) and _reply_code(exc) == "421":
        raise ConnectionLostError(f"Server closed the connection during {action}: {exc}", exc) from exc
    if isinstance(exc, (EOFError, ConnectionError, TimeoutError)):
        raise ConnectionLostError(f"Connection lost during {action}: {exc}", exc) from exc
    raise TransferError(f"Failed to {action} {target}: {exc}", exc) from exc


class FtpTransferClient:
    """
    FTP client for file management and transfer operations.

    Wraps a single ``ftplib.FTP`` control connection. Blocking calls run on
    a worker thread so each coroutine is one suspension point.
    """

    def __init__(self, site_config: SiteConfig, logger: Optional[logging.Logger] = None):
        self.site_config = site_config
        self.logger = logger or logging.getLogger(__name__)
        self.ftp: Optional[ftplib.FTP] = None

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
        return self.ftp is not None

    # -- blocking implementation ------------------------------------------

    def _new_ftp(self) -> ftplib.FTP:
        return ftplib.FTP(timeout=self.site_config.timeout)

    def _connect(self) -> None:
        """
        Open the control connection and log in.

        Raises:
            AuthenticationError: If the server rejects the credentials
            ConnectError: For any other handshake failure
        """
        ftp = self._new_ftp()
        try:
            ftp.connect(self.site_config.host, self.site_config.port)
            ftp.login(user=self.site_config.username, passwd=self.site_config.password or "")
            ftp.set_pasv(self.site_config.passive)
        except ftplib.error_perm as e:
            ftp.close()
            if _reply_code(e) == "530":
                raise AuthenticationError(f"Authentication failed: {e}", e) from e
            raise ConnectError(f"Login rejected: {e}", e) from e
        except (ftplib.Error, EOFError, OSError) as e:
            ftp.close()
            raise ConnectError(f"Connection failed: {e}", e) from e

        self.ftp = ftp
        self.logger.info(
            f"Connected to {self.site_config.host}:{self.site_config.port}"
        )

    def _close(self) -> None:
        """Send QUIT, falling back to dropping the socket."""
        ftp, self.ftp = self.ftp, None
        if ftp is None:
            return
        try:
            ftp.quit()
        except (ftplib.Error, EOFError, OSError) as e:
            self.logger.debug(f"QUIT failed ({e}); closing socket")
            ftp.close()
        self.logger.info("Disconnected from server")

    def _require_ftp(self) -> ftplib.FTP:
        if self.ftp is None:
            raise ConnectionLostError("FTP control connection is not open")
        return self.ftp

    def _list_dir(self, remote_path: str) -> List[RemoteEntry]:
        """List a directory, preferring MLSD and falling back to NLST."""
        ftp = self._require_ftp()
        normalized_path = normalize_remote_path(remote_path)

        try:
            try:
                return self._list_mlsd(ftp, normalized_path)
            except ftplib.error_perm as e:
                if _reply_code(e) not in ("500", "501", "502", "504"):
                    raise
                self.logger.debug(f"MLSD unsupported ({e}); falling back to NLST")
            return self._list_nlst(ftp, normalized_path)
        except Exception as e:
            _raise_transfer_error(e, "list", normalized_path)

    def _list_mlsd(self, ftp: ftplib.FTP, path: str) -> List[RemoteEntry]:
        entries = []
        for name, facts in ftp.mlsd(path, facts=["type", "size"]):
            kind = facts.get("type", "file")
            if kind in ("cdir", "pdir"):
                continue
            entries.append(RemoteEntry(
                name=name,
                path=join_remote_path(path, name),
                is_dir=kind == "dir",
                size=int(facts.get("size", 0) or 0),
            ))
        return entries

    def _list_nlst(self, ftp: ftplib.FTP, path: str) -> List[RemoteEntry]:
        try:
            names = ftp.nlst(path)
        except (ftplib.error_perm, ftplib.error_temp) as e:
            # Some servers answer an empty directory with 550/450
            if "no files" in str(e).lower():
                return []
            raise
        entries = []
        for raw in names:
            name = get_remote_basename(raw)
            if name in (".", ".."):
                continue
            entries.append(RemoteEntry(name=name, path=join_remote_path(path, name)))
        return entries

    def _upload(self, local_file: str, remote_path: str) -> None:
        """Upload a local file into a remote directory."""
        ftp = self._require_ftp()
        local = resolve_local_path(self.site_config.local_root, local_file)
        target = join_remote_path(remote_path, get_remote_basename(local_file))

        try:
            with open(local, "rb") as fp:
                ftp.storbinary(f"STOR {target}", fp)
            self.logger.info(f"Uploaded {local} -> {target}")
        except Exception as e:
            _raise_transfer_error(e, "upload", target)

    def _download(self, local_file: str, remote_path: str) -> None:
        """Download ``remote_path/local_file`` below the local root."""
        ftp = self._require_ftp()
        source = join_remote_path(remote_path, local_file)
        local = ensure_in_local_root(
            resolve_local_path(self.site_config.local_root, local_file),
            self.site_config.local_root,
        )

        try:
            local.parent.mkdir(parents=True, exist_ok=True)
            with replace_on_success(local) as fp:
                ftp.retrbinary(f"RETR {source}", fp.write)
            self.logger.info(f"Downloaded {source} -> {local}")
        except Exception as e:
            _raise_transfer_error(e, "download", source)

    def _delete(self, local_file: str, remote_path: str) -> None:
        ftp = self._require_ftp()
        target = join_remote_path(remote_path, local_file)

        try:
            ftp.delete(target)
            self.logger.info(f"Removed file: {target}")
        except Exception as e:
            _raise_transfer_error(e, "delete", target)

    def _rename(self, old_name: str, new_name: str, remote_path: str) -> None:
        ftp = self._require_ftp()
        old_path = join_remote_path(remote_path, old_name)
        new_path = join_remote_path(remote_path, new_name)

        try:
            ftp.rename(old_path, new_path)
            self.logger.info(f"Renamed {old_path} -> {new_path}")
        except Exception as e:
            _raise_transfer_error(e, "rename", old_path)
