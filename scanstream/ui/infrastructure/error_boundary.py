from __future__ import annotations

import logging
import sys
import threading

from scanstream.ui.infrastructure.signals import ScanSignals

logger = logging.getLogger(__name__)


def install_error_boundary(signals: ScanSignals | None) -> None:
    """Route unhandled exceptions to the log and the status bar.

    Covers the GUI thread as well as the stream reader and scan loop threads.
    The status bar is reached through a Qt signal, so the hook may run on any
    thread.
    """

    def _report(exc_type, exc, tb, where: str) -> None:  # type: ignore[no-untyped-def]
        logger.error("Unhandled exception in %s", where, exc_info=(exc_type, exc, tb))
        if signals is not None:
            signals.diagnostic.emit("error", f"Unexpected error in {where}: {exc}")

    def _main_hook(exc_type, exc, tb) -> None:  # type: ignore[no-untyped-def]
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc, tb)
            return
        _report(exc_type, exc, tb, "main thread")

    def _thread_hook(args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        name = args.thread.name if args.thread is not None else "unknown thread"
        _report(args.exc_type, args.exc_value, args.exc_traceback, name)

    sys.excepthook = _main_hook
    threading.excepthook = _thread_hook
