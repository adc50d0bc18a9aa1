"""
Desktop entry point.

Serves the Django application from a background thread and opens it in a
native window (pywebview).  The database lives in the per-OS application
data directory resolved by :mod:`clinic.paths`.
"""
from __future__ import annotations

import logging
import os
import threading

from clinic.paths import app_data_path

logger = logging.getLogger(__name__)

HOST = "127.0.0.1"
PORT = int(os.getenv("PORT", "3000"))
WINDOW_TITLE = "Ebers"
MIN_SIZE = (1024, 768)


def prepare_environment() -> None:
    """Mark the process as the desktop build and make sure the data dir exists."""
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clinic.settings")
    os.environ["CLINIC_DESKTOP"] = "1"
    app_data_path().mkdir(parents=True, exist_ok=True)


def run_server(host: str = HOST, port: int = PORT) -> None:
    from django.core.servers.basehttp import WSGIServer, run
    from clinic.wsgi import application

    run(host, port, application, threading=True, server_cls=WSGIServer)


def main() -> None:
    prepare_environment()

    import django
    from django.core.management import call_command

    django.setup()
    # Tables for the core app are created from the models directly.
    call_command("migrate", run_syncdb=True, interactive=False, verbosity=0)
    logger.info("database ready at %s", app_data_path())

    t = threading.Thread(target=run_server, daemon=True)
    t.start()

    import webview

    webview.create_window(WINDOW_TITLE, f"http://{HOST}:{PORT}", min_size=MIN_SIZE)
    webview.start()


if __name__ == "__main__":
    main()
