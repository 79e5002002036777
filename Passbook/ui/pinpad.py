"""PIN entry widgets of the setup and login screens.

This module defines:
    - PinDisplay: dots standing in for the entered digits
    - Keypad: the numeric keypad
    - PinScreen: the screen combining both, driven by an :class:`~Passbook.core.auth.AuthController`
"""
from typing import Optional

from PySide6 import QtCore, QtWidgets, QtGui

from . import ui
from ..core import auth

FILLED_DOT: str = '●'
EMPTY_DOT: str = '○'

KEYPAD_LAYOUT = [
    ['1', '2', '3'],
    ['4', '5', '6'],
    ['7', '8', '9'],
    ['clear', '0', 'back'],
]

KEY_LABELS = {
    'clear': 'C',
    'back': '⌫',
}


class PinDisplay(QtWidgets.QLabel):
    """Shows one filled dot per entered digit."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('PinDisplay')
        self.setAlignment(QtCore.Qt.AlignCenter)
        self.setMinimumHeight(ui.Size.RowHeight(1.5))
        self.set_count(0)

    def set_count(self, count: int) -> None:
        # Show at least the minimum PIN length worth of slots
        slots = max(auth.MIN_PIN_LENGTH, count)
        self.setText(' '.join([FILLED_DOT] * count + [EMPTY_DOT] * (slots - count)))


class Keypad(QtWidgets.QWidget):
    """Numeric keypad with clear and backspace keys.

    Signals:
        keyPressed (str): Emitted with the digit or the command of the pressed key.
    """
    keyPressed = QtCore.Signal(str)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.buttons = {}
        self._create_ui()

    def _create_ui(self) -> None:
        QtWidgets.QGridLayout(self)
        self.layout().setSpacing(ui.Size.Indicator(3.0))
        self.layout().setContentsMargins(0, 0, 0, 0)

        for row, keys in enumerate(KEYPAD_LAYOUT):
            for column, key in enumerate(keys):
                button = QtWidgets.QPushButton(KEY_LABELS.get(key, key), parent=self)
                button.setObjectName('KeypadButton')
                button.setFocusPolicy(QtCore.Qt.NoFocus)
                button.clicked.connect(lambda checked=False, k=key: self.keyPressed.emit(k))
                self.layout().addWidget(button, row, column)
                self.buttons[key] = button

    def set_keys_enabled(self, enabled: bool) -> None:
        for button in self.buttons.values():
            button.setEnabled(enabled)


class PinScreen(QtWidgets.QWidget):
    """PIN setup or login screen.

    The screen only renders the state of the controller. Key presses, typed
    digits included, are forwarded to :meth:`AuthController.press`.
    """

    def __init__(self, controller: auth.AuthController, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.controller = controller

        self.title_label = None
        self.message_label = None
        self.display = None
        self.error_label = None
        self.keypad = None
        self.submit_button = None

        self.setFocusPolicy(QtCore.Qt.StrongFocus)

        self._create_ui()
        self._connect_signals()
        self.update_state()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(2.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(3.0))
        self.layout().setAlignment(QtCore.Qt.AlignCenter)

        from ..settings import lib
        self.title_label = QtWidgets.QLabel(lib.settings['name'] or lib.app_name, parent=self)
        self.title_label.setObjectName('TitleLabel')
        self.title_label.setAlignment(QtCore.Qt.AlignCenter)
        self.layout().addWidget(self.title_label)

        self.message_label = QtWidgets.QLabel(parent=self)
        self.message_label.setObjectName('SecondaryLabel')
        self.message_label.setAlignment(QtCore.Qt.AlignCenter)
        self.layout().addWidget(self.message_label)

        self.display = PinDisplay(parent=self)
        self.layout().addWidget(self.display)

        self.error_label = QtWidgets.QLabel(parent=self)
        self.error_label.setObjectName('ErrorLabel')
        self.error_label.setAlignment(QtCore.Qt.AlignCenter)
        self.error_label.setWordWrap(True)
        self.layout().addWidget(self.error_label)

        self.keypad = Keypad(parent=self)
        self.layout().addWidget(self.keypad, 0, QtCore.Qt.AlignCenter)

        self.submit_button = QtWidgets.QPushButton('Continue', parent=self)
        self.submit_button.setObjectName('PrimaryButton')
        self.layout().addWidget(self.submit_button)

    def _connect_signals(self) -> None:
        self.keypad.keyPressed.connect(self.controller.press)
        self.submit_button.clicked.connect(lambda: self.controller.press('submit'))
        self.controller.changed.connect(self.update_state)

        from .actions import signals

        @QtCore.Slot(str, object)
        def metadata_changed(key: str, value: object) -> None:
            if key == 'name':
                from ..settings import lib
                self.title_label.setText(value or lib.app_name)

        signals.metadataChanged.connect(metadata_changed)

    @QtCore.Slot()
    def update_state(self) -> None:
        c = self.controller

        self.message_label.setText(c.message)
        self.display.set_count(c.digits_entered)
        self.error_label.setText(c.error)
        self.error_label.setVisible(bool(c.error))
        self.keypad.set_keys_enabled(not c.loading)

        if c.screen == 'setup':
            self.submit_button.setText('Create PIN' if c.confirm_mode else 'Continue')
        else:
            self.submit_button.setText('Unlock')
        self.submit_button.setEnabled(not c.loading and c.digits_entered >= auth.MIN_PIN_LENGTH)

    def keyPressEvent(self, event: QtGui.QKeyEvent) -> None:
        key = event.key()
        text = event.text()
        if text and text in auth.DIGITS:
            self.controller.press(text)
        elif key == QtCore.Qt.Key_Backspace:
            self.controller.press('back')
        elif key == QtCore.Qt.Key_Escape:
            self.controller.press('clear')
        elif key in (QtCore.Qt.Key_Return, QtCore.Qt.Key_Enter):
            self.controller.press('submit')
        else:
            super().keyPressEvent(event)

    def showEvent(self, event: QtGui.QShowEvent) -> None:
        super().showEvent(event)
        self.setFocus(QtCore.Qt.OtherFocusReason)
