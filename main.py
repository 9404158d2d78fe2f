"""
Entry point for the scan stream desktop client.

Run: python main.py
Configure with SCANSTREAM_URL / SCANSTREAM_COOKIES (see scanstream/config.py).
"""
from __future__ import annotations

import sys

from scanstream.application import Container
from scanstream.config import StreamSettings
from scanstream.core.observability.logging_config import setup_logging
from scanstream.ui.infrastructure import (
    ScanSignals,
    create_application,
    install_error_boundary,
    run_application,
)
from scanstream.ui.shell.main_window import MainWindow


def main() -> None:
    setup_logging()
    app = create_application()

    container = Container(StreamSettings.from_env())
    signals = ScanSignals()
    # Bridge must be bound before the loop starts, or the first batches never redraw.
    signals.bind(container.event_bus)

    window = MainWindow(container, signals)
    window.show()
    install_error_boundary(signals)

    app.aboutToQuit.connect(container.shutdown)
    container.event_loop.start()
    run_application(app)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        sys.exit(0)
