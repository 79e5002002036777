"""UI styling utilities and shared widgets for Passbook.

This module provides:
    - Theme: supported UI themes (light, dark)
    - Size: standardized size constants and scaling logic
    - Color: standardized color palette for widgets and themes
    - init_stylesheet(), apply_theme(): stylesheet expansion and application
    - Toast: transient notification label
    - StatusBar: status bar showing requests in flight and session events
    - add_row(): form row helper
"""
import enum
import logging
import math
import os
import re
from typing import Optional

from PySide6 import QtWidgets, QtGui, QtCore

TOAST_TIMEOUT: int = 3000
STATUS_TIMEOUT: int = 5000

STATUS_BUSY_MESSAGE = 'Loading...'
STATUS_SESSION_MESSAGE = 'Signed in'
STATUS_UNREACHABLE_MESSAGE = 'Server unreachable'

TOAST_OBJECT_NAMES = {
    'info': 'Toast',
    'success': 'ToastSuccess',
    'error': 'ToastError',
}


class Theme(enum.StrEnum):
    Light = 'light'
    Dark = 'dark'


@enum.unique
class Size(enum.Enum):
    """Enumeration of size values used for UI scaling."""
    SmallText = 11.0
    MediumText = 13.0
    LargeText = 16.0
    Indicator = 4.0
    Separator = 1.0
    Margin = 18.0
    RowHeight = 34.0
    DefaultWidth = 720.0
    DefaultHeight = 560.0

    def __new__(cls, value):
        obj = object.__new__(cls)
        obj._value_ = float(value)
        return obj

    def __eq__(self, other):
        if isinstance(other, (float, int)):
            return self._value_ == float(other)
        return super().__eq__(other)

    def __hash__(self):
        return hash(self.name)

    def __call__(self, multiplier=1.0, apply_scale=True):
        """
        Returns the scaled size value.

        Args:
            multiplier (float): A multiplier to apply to the size.
            apply_scale (bool): If True, applies UI scaling factors.

        Returns:
            int: The scaled size.
        """
        if apply_scale:
            return round(self.value * float(multiplier))
        return round(self._value_ * float(multiplier))

    @property
    def value(self):
        """float: The scaled size value."""
        return self.size(self._value_)

    @classmethod
    def size(cls, value, ui_scale_factor=1.0, dpi=72.0):
        """Scale a value by DPI and UI scale factor."""
        return math.ceil(float(value) * (float(dpi) / 72.0)) * float(ui_scale_factor)


@enum.unique
class Color(enum.Enum):
    """Enumeration of colours used across the UI."""

    Opaque = {
        Theme.Light.value: (250, 250, 250, 30),
        Theme.Dark.value: (0, 0, 0, 30),
    }
    Transparent = {
        Theme.Light.value: (0, 0, 0, 0),
        Theme.Dark.value: (0, 0, 0, 0),
    }
    VeryDarkBackground = {
        Theme.Light.value: (246, 247, 249),
        Theme.Dark.value: (24, 26, 30),
    }
    DarkBackground = {
        Theme.Light.value: (228, 231, 236),
        Theme.Dark.value: (36, 39, 45),
    }
    Background = {
        Theme.Light.value: (200, 205, 212),
        Theme.Dark.value: (56, 60, 68),
    }
    LightBackground = {
        Theme.Light.value: (180, 186, 195),
        Theme.Dark.value: (76, 81, 91),
    }
    DisabledText = {
        Theme.Light.value: (130, 135, 142),
        Theme.Dark.value: (120, 125, 133),
    }
    SecondaryText = {
        Theme.Light.value: (80, 85, 92),
        Theme.Dark.value: (170, 175, 182),
    }
    Text = {
        Theme.Light.value: (30, 32, 36),
        Theme.Dark.value: (225, 227, 230),
    }
    SelectedText = {
        Theme.Light.value: (0, 0, 0),
        Theme.Dark.value: (255, 255, 255),
    }
    Blue = {
        Theme.Light.value: (40, 100, 190),
        Theme.Dark.value: (76, 139, 245),
    }
    LightBlue = {
        Theme.Light.value: (60, 120, 210),
        Theme.Dark.value: (106, 160, 250),
    }
    Red = {
        Theme.Light.value: (190, 60, 60),
        Theme.Dark.value: (239, 83, 80),
    }
    Green = {
        Theme.Light.value: (40, 150, 90),
        Theme.Dark.value: (76, 200, 120),
    }

    @classmethod
    def _get_theme(cls):
        from ..settings import lib
        theme = lib.settings['theme']
        if theme not in [f.value for f in Theme]:
            theme = Theme.Dark.value
        return theme

    def __new__(cls, v):
        if not isinstance(v, dict):
            raise ValueError(f'Invalid color value: {v}. Must be a dictionary, got {type(v)}: {v}')
        obj = object.__new__(cls)
        obj._value_ = v
        return obj

    def __call__(self, qss=False):
        """
        Returns a QColor or CSS rgba string.

        Args:
            qss (bool): If True, returns a CSS rgba string suitable for QSS.

        Returns:
            QColor or str: A QColor instance if qss=False, otherwise a CSS rgba string.
        """
        theme = self._get_theme()
        if theme not in self._value_:
            theme = Theme.Dark.value

        color = QtGui.QColor(*self._value_[theme])
        if not qss:
            return color

        return self.rgb(color)

    @staticmethod
    def rgb(color):
        """Returns the CSS rgba string for a QColor."""
        rgb = [str(f) for f in color.getRgb()]
        return f'rgba({",".join(rgb)})'


def init_stylesheet() -> str:
    """Loads and expands the style sheet used by the app.

    The template is stored in ``config/stylesheet.qss``. Colors are written as
    ``<Name>`` and sizes as ``<Name@multiplier>``, e.g. ``<Margin@0.5>``.

    Returns:
        str: The style sheet.

    Raises:
        FileNotFoundError: If the template is missing.
        KeyError: If the template uses an unknown token.
    """
    from ..settings import lib
    if not lib.settings.stylesheet_path.is_file():
        raise FileNotFoundError(f'Style sheet file not found: {lib.settings.stylesheet_path}')

    with open(lib.settings.stylesheet_path, 'r', encoding='utf-8') as f:
        qss = f.read()

    kwargs = {}

    for color in Color:
        kwargs[color.name] = Color.rgb(color())

    for size in Size:
        for i in [float(f) / 10.0 for f in range(1, 101)]:
            kwargs[f'{size.name}@{i:.1f}'] = round(size() * i)

    for match in re.finditer(r'<(.*?)>', qss):
        key = match.group(1)
        if key not in kwargs:
            raise KeyError(f'Stylesheet token "{key}" is not defined')
        qss = qss.replace(f'<{key}>', str(kwargs[key]))

    if re.search(r'<(.*?)>', qss):
        raise RuntimeError('Not all tokens were replaced!')

    return qss


def apply_theme() -> None:
    """Set the style sheet for the entire app.

    This function should be called after the QApplication is created.
    """
    app = QtWidgets.QApplication.instance()
    if not isinstance(app, QtWidgets.QApplication):
        raise RuntimeError('apply_theme() must be called after a QApplication is initiated.')

    if os.environ.get('PASSBOOK_DISABLE_STYLESHEET', '').lower() in ['1', 'true', 'yes']:
        logging.warning('Stylesheet disabled by environment variable.')
        return

    qss = init_stylesheet()
    app.setStyleSheet(qss)

    for widget in app.topLevelWidgets():
        widget.setStyleSheet(qss)


def add_row(label: Optional[str], widget: QtWidgets.QWidget, parent: QtWidgets.QWidget) -> QtWidgets.QWidget:
    """Add a labelled row to the layout of ``parent``."""
    row = QtWidgets.QWidget(parent=parent)
    QtWidgets.QHBoxLayout(row)
    row.layout().setContentsMargins(0, 0, 0, 0)
    row.layout().setSpacing(Size.Indicator(2.0))

    if label:
        label_widget = QtWidgets.QLabel(label, parent=row)
        label_widget.setObjectName('SecondaryLabel')
        label_widget.setFixedWidth(Size.DefaultWidth(0.18))
        row.layout().addWidget(label_widget, 0)

    widget.setParent(row)
    row.layout().addWidget(widget, 1)
    parent.layout().addWidget(row, 0)
    return row


class Toast(QtWidgets.QLabel):
    """Transient notification shown over the bottom of its parent window.

    The look of the toast depends on its kind, one of ``'info'``,
    ``'success'`` or ``'error'``.
    """

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName(TOAST_OBJECT_NAMES['info'])
        self.setAlignment(QtCore.Qt.AlignCenter)
        self.setWordWrap(True)
        self.setAttribute(QtCore.Qt.WA_TransparentForMouseEvents, True)
        self.hide()

        self.timer = QtCore.QTimer(self)
        self.timer.setSingleShot(True)
        self.timer.setInterval(TOAST_TIMEOUT)
        self.timer.timeout.connect(self.hide)

    @QtCore.Slot(str, str)
    def show_message(self, message: str, kind: str = 'info') -> None:
        name = TOAST_OBJECT_NAMES.get(kind, TOAST_OBJECT_NAMES['info'])
        if self.objectName() != name:
            self.setObjectName(name)
            # Re-polish to pick up the rules of the new object name
            self.style().unpolish(self)
            self.style().polish(self)

        self.setText(message)
        self.adjustSize()
        self.reposition()
        self.show()
        self.raise_()
        self.timer.start()

    def reposition(self) -> None:
        parent = self.parentWidget()
        if not parent:
            return
        width = min(max(self.sizeHint().width(), Size.DefaultWidth(0.3)), parent.width() - Size.Margin(2.0))
        self.setFixedWidth(max(width, 1))
        self.adjustSize()
        x = (parent.width() - self.width()) // 2
        y = parent.height() - self.height() - Size.Margin(1.5)
        self.move(x, y)


class StatusBar(QtWidgets.QStatusBar):
    """Status bar that follows the requests sent to the server and the busy state of an executor."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self._connect_signals()

    def _connect_signals(self) -> None:
        from .actions import signals

        signals.requestStarted.connect(self.request_started)
        signals.requestFinished.connect(self.request_finished)
        signals.sessionStarted.connect(self.session_started)

    @QtCore.Slot(str, str)
    def request_started(self, method: str, endpoint: str) -> None:
        self.showMessage(f'{method} {endpoint}...')

    @QtCore.Slot(str, str, int)
    def request_finished(self, method: str, endpoint: str, status_code: int) -> None:
        # Status code 0 means no response arrived
        if not status_code:
            self.showMessage(STATUS_UNREACHABLE_MESSAGE, STATUS_TIMEOUT)
            return
        self.clearMessage()

    @QtCore.Slot()
    def session_started(self) -> None:
        logging.info('Session started')
        self.showMessage(STATUS_SESSION_MESSAGE, STATUS_TIMEOUT)

    @QtCore.Slot(bool)
    def set_busy(self, busy: bool) -> None:
        if busy:
            self.showMessage(STATUS_BUSY_MESSAGE)
        elif self.currentMessage().endswith('...'):
            self.clearMessage()
