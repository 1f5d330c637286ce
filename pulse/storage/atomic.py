import logging
import os
import tempfile
from pathlib import Path

from pulse.storage.errors import StorageIOError

logger = logging.getLogger(__name__)


def atomic_write(path: Path | str, data: bytes | str, mode: int | None = None) -> Path:
    """
    Write a file so readers see either the old content or the complete new one.

    The content is staged in a temp file in the target directory and then
    moved into place with ``os.replace``.

    Args:
        path: Target file path
        data: Full file content (str is encoded as UTF-8)
        mode: Optional permission bits applied before the file becomes visible

    Returns:
        The target path

    Raises:
        StorageIOError: If staging or the final rename fails
    """
    path = Path(path)
    if isinstance(data, str):
        data = data.encode("utf-8")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageIOError(f"Failed to create directory {path.parent}: {e}") from e

    try:
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise StorageIOError(f"Failed to stage {path}: {e}") from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise StorageIOError(f"Failed to write {path}: {e}") from e
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise

    logger.debug(f"Wrote {len(data)} bytes to {path}")
    return path
