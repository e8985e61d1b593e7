#!/usr/bin/env python3
"""
TakeCut - trim and cut a recorded take, export MP4 or GIF.

Entry point for the application.

Usage:
    takecut [media_or_project_path] [--debug]
"""

import sys
import logging
from pathlib import Path

from PySide6.QtWidgets import QApplication

from takecut import __version__, __app_name__
from takecut.core.settings import Settings
from takecut.ui.editor_window import EditorWindow


def setup_logging(debug: bool = False):
    """Logging konfigürasyonu."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Reduce noise from external libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("static_ffmpeg").setLevel(logging.WARNING)


def main():
    """Ana uygulama giriş noktası."""
    debug = "--debug" in sys.argv
    args = [arg for arg in sys.argv[1:] if not arg.startswith("--")]

    setup_logging(debug)

    logger = logging.getLogger(__name__)
    logger.info(f"Starting {__app_name__} v{__version__}")

    app = QApplication(sys.argv)
    app.setApplicationName(__app_name__)
    app.setApplicationDisplayName(__app_name__)
    app.setApplicationVersion(__version__)
    app.setOrganizationName(__app_name__)
    app.setDesktopFileName("takecut")

    font = app.font()
    font.setPointSize(11)
    app.setFont(font)

    window = EditorWindow(Settings.load())
    window.show()

    if not window.check_ffmpeg():
        sys.exit(1)

    # Komut satırından dosya açma (.takecut proje ya da medya)
    if args:
        path = Path(args[0])
        if not path.exists():
            logger.warning(f"File not found: {path}")
        elif path.suffix == ".takecut":
            window.load_project(path)
        else:
            window.load_media(path)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
