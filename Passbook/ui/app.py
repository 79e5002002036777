"""QApplication of Passbook.

This module provides:
    - set_application_properties: Qt attributes that must be set before the application exists
    - set_model_id: taskbar grouping of the passbook and dashboard windows on Windows
    - Application: QApplication that applies the theme and opens the window of the configured variant
"""
import ctypes
import importlib
import logging
import sys
from typing import Optional, Sequence

from PySide6 import QtCore, QtWidgets, QtGui

WINDOW_MODULES = {
    'pin': 'main',
    'family': 'family',
}


def set_application_properties() -> None:
    """Keep fractional high-dpi scale factors unrounded."""
    QtWidgets.QApplication.setHighDpiScaleFactorRoundingPolicy(
        QtCore.Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )


def set_model_id(variant: str) -> None:
    """Give each variant its own AppUserModelID so Windows groups and labels their windows apart."""
    if QtCore.QSysInfo().productType() not in ('windows', 'winrt'):
        return

    hresult = ctypes.windll.shell32.SetCurrentProcessExplicitAppUserModelID(f'Passbook.{variant}')
    if hresult != 0:
        raise RuntimeError(f'SetCurrentProcessExplicitAppUserModelID failed with code {hresult}')


class Application(QtWidgets.QApplication):
    """The Passbook application.

    The ``server.variant`` setting decides which window :meth:`show_window` opens:
    the PIN-protected passbook or the family dashboard.
    """

    def __init__(self, argv: Optional[Sequence[str]] = None) -> None:
        set_application_properties()
        super().__init__(list(sys.argv if argv is None else argv))

        from .. import __version__
        from ..settings import lib

        self.setApplicationName(lib.app_name)
        self.setApplicationVersion(__version__)
        self.setQuitOnLastWindowClosed(True)

        self.variant: str = lib.settings.get_server_option('variant')
        set_model_id(self.variant)

        icon_path = lib.settings.template_dir / 'icon.png'
        if icon_path.exists():
            self.setWindowIcon(QtGui.QIcon(icon_path.as_posix()))

        from . import ui
        ui.apply_theme()

        self.aboutToQuit.connect(self.about_to_quit)
        logging.info(f'{lib.app_name} {__version__} started ({self.variant} variant)')

    def show_window(self) -> None:
        """Show the main window of the configured variant."""
        module = importlib.import_module(f'.{WINDOW_MODULES[self.variant]}', package=__package__)
        module.show()

    @QtCore.Slot()
    def about_to_quit(self) -> None:
        logging.info('Passbook is shutting down')
