"""Log viewer dialog.

This module provides:
    - LogView: read-only text view of the in-memory log tank
    - LogDialog: dialog with level filter, refresh and clear actions
"""
import logging
from typing import Optional

from PySide6 import QtCore, QtWidgets, QtGui

from . import log
from ..ui import ui

LEVELS = [
    ('Debug', logging.DEBUG),
    ('Info', logging.INFO),
    ('Warning', logging.WARNING),
    ('Error', logging.ERROR),
    ('Critical', logging.CRITICAL),
]

dialog = None


def show(parent: Optional[QtWidgets.QWidget] = None) -> None:
    global dialog

    if dialog is None:
        dialog = LogDialog(parent=parent)

    dialog.init_data()
    dialog.show()
    dialog.raise_()


class LogView(QtWidgets.QPlainTextEdit):
    """A read-only view of log messages."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setReadOnly(True)
        self.setLineWrapMode(QtWidgets.QPlainTextEdit.NoWrap)
        self.setFont(QtGui.QFontDatabase.systemFont(QtGui.QFontDatabase.FixedFont))
        self.setMaximumBlockCount(10000)

    def set_messages(self, messages: list) -> None:
        self.setPlainText('\n'.join(messages))
        self.moveCursor(QtGui.QTextCursor.End)
        self.ensureCursorVisible()


class LogDialog(QtWidgets.QDialog):
    """Dialog for browsing the application logs."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setWindowTitle('Logs')

        self.level_combo = None
        self.view = None
        self.refresh_button = None
        self.clear_button = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(0.5)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(2.0))

        toolbar = QtWidgets.QWidget(parent=self)
        QtWidgets.QHBoxLayout(toolbar)
        toolbar.layout().setContentsMargins(0, 0, 0, 0)

        self.level_combo = QtWidgets.QComboBox(parent=toolbar)
        for name, level in LEVELS:
            self.level_combo.addItem(name, userData=level)
        self.level_combo.setToolTip('Show messages of this level and above')
        toolbar.layout().addWidget(self.level_combo, 0)

        toolbar.layout().addStretch(1)

        self.refresh_button = QtWidgets.QPushButton('Refresh', parent=toolbar)
        toolbar.layout().addWidget(self.refresh_button, 0)

        self.clear_button = QtWidgets.QPushButton('Clear Logs', parent=toolbar)
        toolbar.layout().addWidget(self.clear_button, 0)

        self.layout().addWidget(toolbar)

        self.view = LogView(parent=self)
        self.layout().addWidget(self.view, 1)

    def _connect_signals(self) -> None:
        self.level_combo.currentIndexChanged.connect(self.init_data)
        self.refresh_button.clicked.connect(self.init_data)
        self.clear_button.clicked.connect(self.clear_logs)

    def level(self) -> int:
        return self.level_combo.currentData() or logging.DEBUG

    @QtCore.Slot()
    def init_data(self) -> None:
        handler = log.get_tank_handler()
        if handler is None:
            logging.warning('TankHandler not found; no logs to show.')
            self.view.set_messages([])
            return
        self.view.set_messages(handler.get_logs(self.level()))

    @QtCore.Slot()
    def clear_logs(self) -> None:
        handler = log.get_tank_handler()
        if handler is not None:
            handler.clear_logs()
        self.view.set_messages([])

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.2),
            ui.Size.DefaultHeight(0.8)
        )
