# subburn/app.py
import logging
import sys

from PySide6.QtGui import QFont
from PySide6.QtWidgets import QApplication

from .main_window import MainWindow

def main() -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    app.setApplicationName("SubBurn")
    app.setFont(QFont("Calibri", 11))
    w = MainWindow(); w.show()
    return app.exec()
