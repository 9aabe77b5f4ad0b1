from __future__ import annotations
import logging
import sys

from PySide6.QtWidgets import QApplication

from ledger_core.config import LEDGER_JSON, load_settings
from ledger_core.services.ledger_service import LedgerService
from ledger_ui.main_window import MainWindow


def main() -> int:
    settings = load_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info("Ledger data file: %s", LEDGER_JSON)

    app = QApplication(sys.argv)
    win = MainWindow(LedgerService(LEDGER_JSON, settings=settings))
    win.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
