import argparse
import logging
import sys

from dotenv import load_dotenv
from PySide6.QtWidgets import QApplication

from .controllers.app_controller import AppController
from .main_window import MainWindow
from .models.config import export_config_from_env, grid_config_from_env, ui_config_from_env
from .models.state import AppState


def main(argv=None):
    load_dotenv()

    parser = argparse.ArgumentParser(description="Split an image or animated GIF into grid stickers.")
    parser.add_argument("image", nargs="?", help="Image or GIF to open at startup")
    args, qt_args = parser.parse_known_args(argv if argv is not None else sys.argv[1:])

    ui = ui_config_from_env()
    logging.basicConfig(
        level=getattr(logging, ui.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    state = AppState(grid=grid_config_from_env())
    export = export_config_from_env()

    app = QApplication([sys.argv[0], *qt_args])

    app.setStyleSheet("""
        QListWidget { font-size: 12px; padding: 6px; }
        QListWidget::item { padding: 4px; }
    """)

    controller = AppController(state, export_cfg=export)
    window = MainWindow(controller, ui=ui, export=export)
    window.show()

    if args.image:
        window.open_path(args.image)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
