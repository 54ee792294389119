"""Remote and local path helpers for FTPFerry."""
import os
import posixpath
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from .errors import ValidationError


def normalize_remote_path(path: str) -> str:
    """
    Normalize a remote path by:
    - Converting to POSIX format
    - Resolving . and .. components
    - Removing duplicate slashes
    - Ensuring absolute path

    Args:
        path: Remote path to normalize

    Returns:
        Normalized absolute path
    """
    # Use posixpath since remote is always POSIX
    normalized = posixpath.normpath(path.replace("\\", "/") or "/")

    # normpath keeps a leading "//"
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")

    # Ensure absolute path
    if not normalized.startswith('/'):
        normalized = '/' + normalized

    return normalized


def join_remote_path(*parts: str) -> str:
    """
    Join remote path components using POSIX conventions.

    Args:
        *parts: Path components to join

    Returns:
        Joined, normalized path
    """
    return normalize_remote_path(posixpath.join(*parts))


def get_remote_basename(path: str) -> str:
    """Get the basename (filename) of a remote path."""
    return posixpath.basename(path.replace("\\", "/").rstrip("/"))


def require_name(value: Optional[str], what: str) -> str:
    """Reject empty names before they reach the network."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{what} must not be empty")
    return str(value)


def resolve_local_path(local_root: str, file: str) -> Path:
    """Resolve a local file name against the configured local root."""
    local = Path(file)
    if local.is_absolute():
        return local
    return Path(local_root) / local


def ensure_in_local_root(path: Path, local_root: str) -> Path:
    """
    Verify that a local path stays inside ``local_root``.

    Both sides are resolved first, so ``..`` components and symlinks
    cannot climb out of the root.

    Args:
        path: Local path to check
        local_root: Directory downloads are confined to

    Returns:
        The resolved path

    Raises:
        ValidationError: If path is outside the local root
    """
    resolved_root = Path(local_root).resolve()
    resolved = Path(path).resolve()

    if resolved == resolved_root or not resolved.is_relative_to(resolved_root):
        raise ValidationError(
            f"Local path '{path}' is outside local root '{local_root}'. "
            f"Resolved: '{resolved}' vs root '{resolved_root}'"
        )
    return resolved


@contextmanager
def replace_on_success(target: Path) -> Iterator[BinaryIO]:
    """
    Write into a temporary file beside ``target``.

    The temporary file replaces ``target`` only when the block finishes
    without an exception; otherwise it is removed and an existing
    ``target`` is left as it was.
    """
    fd, tmp_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".part"
    )
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as fp:
            yield fp
        if target.exists():
            os.chmod(tmp, target.stat().st_mode & 0o7777)
        os.replace(tmp, target)
    finally:
        # Already gone after a successful replace
        tmp.unlink(missing_ok=True)
