"""
Progress display for long-running audit work.

The work runs on a single worker thread while the calling thread renders a
spinner; the caller always joins the worker before continuing. Ctrl-C
cancels the work cooperatively through a CancelToken.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, TypeVar

from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from hostaudit.branding import console, ha_print
from hostaudit.exceptions import OperationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

POLL_INTERVAL = 0.1


class CancelToken:
    """Cooperative cancellation flag shared with worker code."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelled("Operation cancelled")


def _wait_done(future: Future, timeout: float) -> bool:
    done, _ = wait([future], timeout=timeout)
    return bool(done)


def _drive_spinner(future: Future, description: str, delay: float) -> None:
    # Quick work finishes before the spinner would appear.
    if delay > 0 and _wait_done(future, delay):
        return

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold cyan]{task.description}[/bold cyan]"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        while not _wait_done(future, POLL_INTERVAL):
            pass


def run_with_progress(
    func: Callable[..., T],
    description: str,
    *args: Any,
    delay: float = 0.0,
    **kwargs: Any,
) -> T:
    """
    Run ``func`` on a worker thread while showing a spinner.

    ``func`` must accept a ``cancel`` keyword argument receiving the
    CancelToken; it should check the token between units of work.

    Args:
        func: The work to run.
        description: Spinner label.
        delay: Seconds to wait before showing the spinner.

    Returns:
        Whatever ``func`` returns.

    Raises:
        OperationCancelled: If the operator pressed Ctrl-C.
        Exception: Any exception raised by ``func`` is re-raised here.
    """
    token = CancelToken()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="hostaudit-task") as pool:
        future = pool.submit(func, *args, cancel=token, **kwargs)
        try:
            _drive_spinner(future, description, delay)
        except KeyboardInterrupt:
            token.cancel()
            ha_print("Interrupted, waiting for the running task to stop...", "warning")
            wait([future])
            logger.info("%s cancelled by operator", description)
            raise OperationCancelled(f"{description} cancelled") from None

    return future.result()
