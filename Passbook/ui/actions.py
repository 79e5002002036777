"""Application-wide Qt signals and utility slots for Passbook.

This module provides:
    - open_server slot: opens the configured server url in the browser.
    - Signals: custom Qt signals for configuration changes, session lifecycle,
      data loading, UI actions (showLogs, toasts), and errors.
"""
import logging

from PySide6 import QtCore


@QtCore.Slot()
def open_server() -> None:
    """
    Opens the configured server in the default browser.
    """
    from PySide6 import QtGui
    from ..settings import lib

    url: str = lib.settings.get_server_url()
    logging.debug(f'Opening server: {url}')
    QtGui.QDesktopServices.openUrl(QtCore.QUrl(url))


class Signals(QtCore.QObject):
    """Centralized Qt signals for application config, session, data and UI events."""
    initializationRequested = QtCore.Signal()

    configSectionChanged = QtCore.Signal(str)
    metadataChanged = QtCore.Signal(str, object)

    sessionStarted = QtCore.Signal()
    sessionExpired = QtCore.Signal()
    sessionEnded = QtCore.Signal()

    requestStarted = QtCore.Signal(str, str)  # Method, endpoint
    requestFinished = QtCore.Signal(str, str, int)  # Method, endpoint, status code

    openServer = QtCore.Signal()

    showLogs = QtCore.Signal()
    showToast = QtCore.Signal(str, str)  # Message, kind

    error = QtCore.Signal(str)

    def __init__(self):
        super().__init__()
        self._connect_signals()

    def _connect_signals(self):
        self.openServer.connect(open_server)

        @QtCore.Slot(str, object)
        def metadata_changed(key: str, value: object) -> None:
            if key != 'theme':
                return

            try:
                from . import ui
                ui.apply_theme()
            except Exception as ex:
                logging.debug(f'Error applying theme: {ex}')

        self.metadataChanged.connect(metadata_changed)


signals = Signals()
