# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import os
import signal
import sys
import threading

from werkzeug.serving import make_server

from paygate.app import container_of, create_app
from paygate.shared.config import ConfigError, load_config
from paygate.shared.logging import logger


def _force_exit() -> None:
    logger.error("Forcing shutdown: in-flight requests did not drain in time")
    os._exit(1)


def serve(host: str, port: int, *, shutdown_timeout: float) -> None:
    app = create_app()
    server = make_server(host, port, app, threaded=True)
    # Non-daemon handler threads are joined by server_close(), so in-flight requests drain.
    server.daemon_threads = False
    stopping = threading.Event()

    def _shutdown(signum, _frame) -> None:
        if stopping.is_set():
            return
        stopping.set()
        logger.info(f"Received {signal.Signals(signum).name}, shutting down server gracefully")
        watchdog = threading.Timer(shutdown_timeout, _force_exit)
        watchdog.daemon = True
        watchdog.start()
        # shutdown() blocks until serve_forever returns, so it cannot run on the serving thread.
        threading.Thread(target=server.shutdown, daemon=True).start()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    logger.info(f"Server is running on {host}:{port}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
        container_of(app).database.dispose()
        logger.info("Server stopped")


def main() -> None:
    try:
        config = load_config()
    except ConfigError as exc:
        logger.error(f"Failed to start server: {exc}")
        sys.exit(1)
    serve(config.server.host, config.server.port, shutdown_timeout=config.server.shutdown_timeout)


if __name__ == "__main__":
    main()
