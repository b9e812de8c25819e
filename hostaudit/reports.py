"""
Report file output.

Every run writes a fresh report under a fixed name. When an archive directory
is configured, the previous report is moved there first with a timestamp in
its name, so past runs stay available.
"""

import logging
import shutil
from datetime import datetime
from pathlib import Path

from hostaudit.exceptions import ReportWriteError
from hostaudit.utils.fileio import atomic_write_text

logger = logging.getLogger(__name__)

ARCHIVE_STAMP = "%Y%m%d-%H%M%S"


def archive_previous(path: Path, archive_dir: str | Path) -> Path | None:
    """Move an existing report into ``archive_dir``; return its new path."""
    if not path.exists():
        return None

    archive = Path(archive_dir)
    archive.mkdir(parents=True, exist_ok=True)

    stamp = datetime.fromtimestamp(path.stat().st_mtime).strftime(ARCHIVE_STAMP)
    destination = archive / f"{path.stem}-{stamp}{path.suffix}"
    counter = 1
    while destination.exists():
        destination = archive / f"{path.stem}-{stamp}-{counter}{path.suffix}"
        counter += 1

    shutil.move(str(path), str(destination))
    logger.debug("Archived %s to %s", path, destination)
    return destination


def write_report(
    path: str | Path,
    text: str,
    archive_dir: str | Path | None = None,
    mode: int = 0o644,
) -> Path:
    """
    Replace the report at ``path`` with ``text``.

    Raises:
        ReportWriteError: If the report or its archive copy cannot be written.
    """
    target = Path(path)
    try:
        if archive_dir:
            archive_previous(target, archive_dir)
        atomic_write_text(target, text, mode=mode)
    except OSError as e:
        raise ReportWriteError(f"Cannot write report {target}: {e}") from e
    return target
