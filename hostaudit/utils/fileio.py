"""
Atomic file writes.

Text is written to a temporary file in the destination directory, flushed to
disk and renamed over the target, so readers only ever observe the old or the
new content.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_text(path: str | Path, text: str, mode: int = 0o644) -> Path:
    """
    Atomically replace ``path`` with ``text``.

    Args:
        path: Destination file.
        text: Full file content.
        mode: Permission bits applied before the rename.

    Returns:
        The destination path.

    Raises:
        OSError: If the directory is not writable or the rename fails.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise

    logger.debug("Wrote %d bytes to %s", len(text), target)
    return target
