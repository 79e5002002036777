"""PIN keypad controller.

:class:`AuthController` buffers keypad input for the two PIN screens:

- **setup**: the PIN is entered, then confirmed. On success the new PIN is
  used to log in right away.
- **auth**: the PIN is entered and verified against the server.

Keys are the digits ``'0'`` to ``'9'`` and the commands ``'clear'``, ``'back'``
and ``'submit'``. Input is ignored while a request is running.
"""

import logging
from typing import Any, Dict, Optional

from PySide6 import QtCore

from . import worker
from .api import ApiClient
from ..settings import locale

MIN_PIN_LENGTH: int = 4
MAX_PIN_LENGTH: int = 6

DIGITS = frozenset('0123456789')
COMMANDS = frozenset(('clear', 'back', 'submit'))

SETUP_MESSAGE: str = 'Create your PIN (4-6 digits)'
CONFIRM_MESSAGE: str = 'Confirm your PIN'
AUTH_MESSAGE: str = 'Enter your PIN'
LOGGING_IN_MESSAGE: str = 'Logging in...'
VERIFYING_MESSAGE: str = 'Verifying'

MISMATCH_ERROR: str = 'PINs do not match. Try again.'
INVALID_PIN_ERROR: str = 'Invalid PIN'


def rejection_message(result: Dict[str, Any]) -> str:
    """Returns the text shown for a rejected PIN.

    A lockout takes precedence over the remaining attempts, which take
    precedence over the server's own error.
    """
    if result.get('locked_until'):
        return f'Account locked until {locale.format_lock_time(result["locked_until"])}'
    if result.get('attempts_remaining') is not None:
        return f'Invalid PIN. {result["attempts_remaining"]} attempts remaining.'
    return result.get('error') or INVALID_PIN_ERROR


class AuthController(QtCore.QObject):
    """Keypad state machine of the setup and login screens.

    Signals:
        changed (): Emitted whenever the buffer, message, error or loading state changes.
        pinRejected (str): Emitted with the screen name when a PIN was refused.
        authenticated (): Emitted after a successful login.
    """
    changed = QtCore.Signal()
    pinRejected = QtCore.Signal(str)
    authenticated = QtCore.Signal()

    def __init__(
            self,
            client: ApiClient,
            executor: Optional[worker.Executor] = None,
            auto_submit: Optional[bool] = None,
            parent: Optional[QtCore.QObject] = None
    ) -> None:
        super().__init__(parent=parent)
        self.client = client
        self.executor = executor or worker.run_direct
        self._auto_submit = auto_submit

        self.screen: str = 'auth'
        self.pin: str = ''
        self.confirm_pin: str = ''
        self.confirm_mode: bool = False
        self.loading: bool = False
        self.message: str = AUTH_MESSAGE
        self.error: str = ''

    @property
    def auto_submit(self) -> bool:
        if self._auto_submit is not None:
            return self._auto_submit
        from ..settings import lib
        return bool(lib.settings['auto_submit_pin'])

    @property
    def digits_entered(self) -> int:
        """Number of digits in the buffer currently being typed."""
        return len(self.confirm_pin if self.confirm_mode else self.pin)

    def _set_loading(self, loading: bool) -> None:
        self.loading = loading
        if loading:
            self.message = VERIFYING_MESSAGE
        self.changed.emit()

    def show_setup(self) -> None:
        self.reset()
        self.screen = 'setup'
        self.message = SETUP_MESSAGE
        self.changed.emit()

    def show_auth(self, message: str = AUTH_MESSAGE) -> None:
        self.reset()
        self.screen = 'auth'
        self.message = message
        self.changed.emit()

    def reset(self) -> None:
        self.pin = ''
        self.confirm_pin = ''
        self.confirm_mode = False
        self.loading = False
        self.error = ''

    def press(self, key: str) -> None:
        """Forward a key press to the handler of the current screen."""
        if self.screen == 'setup':
            self.handle_setup_input(key)
        else:
            self.handle_auth_input(key)

    def _check_key(self, key: str) -> None:
        if key not in DIGITS and key not in COMMANDS:
            raise ValueError(f'Invalid key: {key}')

    # Setup

    def handle_setup_input(self, key: str) -> None:
        self._check_key(key)
        if self.loading:
            return

        self.error = ''

        if key == 'clear':
            self.pin = ''
            self.confirm_pin = ''
            self.confirm_mode = False
            self.message = SETUP_MESSAGE
        elif key == 'back':
            if self.confirm_mode:
                if self.confirm_pin:
                    self.confirm_pin = self.confirm_pin[:-1]
                else:
                    # Back to the first entry
                    self.confirm_mode = False
                    self.message = SETUP_MESSAGE
            else:
                self.pin = self.pin[:-1]
        elif key == 'submit':
            if self.confirm_mode:
                if len(self.confirm_pin) >= MIN_PIN_LENGTH:
                    self.submit_setup()
                    return
            elif len(self.pin) >= MIN_PIN_LENGTH:
                self.confirm_mode = True
                self.message = CONFIRM_MESSAGE
        elif self.confirm_mode:
            if len(self.confirm_pin) < MAX_PIN_LENGTH:
                self.confirm_pin += key
        elif len(self.pin) < MAX_PIN_LENGTH:
            self.pin += key

        self.changed.emit()

    def _restart_setup(self, error: str) -> None:
        self.pin = ''
        self.confirm_pin = ''
        self.confirm_mode = False
        self.loading = False
        self.message = SETUP_MESSAGE
        self.error = error
        self.pinRejected.emit('setup')
        self.changed.emit()

    def submit_setup(self) -> None:
        """Save the new PIN on the server and log in with it."""
        if self.loading:
            return

        self.error = ''
        if self.pin != self.confirm_pin:
            self._restart_setup(MISMATCH_ERROR)
            return

        pin = self.pin
        self._set_loading(True)

        def on_result(_: Any) -> None:
            from ..ui.actions import signals

            logging.info('PIN created.')
            signals.showToast.emit('PIN created successfully!', 'success')

            self.reset()
            self.screen = 'auth'
            self.message = LOGGING_IN_MESSAGE
            self.changed.emit()

            self._verify(pin, after_setup=True)

        def on_error(ex: Exception) -> None:
            self._restart_setup(worker.error_message(ex))

        self.executor(lambda: self.client.setup_pin(pin), on_result, on_error)

    # Login

    def handle_auth_input(self, key: str) -> None:
        self._check_key(key)
        if self.loading:
            return

        self.error = ''

        if key == 'clear':
            self.pin = ''
        elif key == 'back':
            self.pin = self.pin[:-1]
        elif key == 'submit':
            if len(self.pin) >= MIN_PIN_LENGTH:
                self.submit_auth()
                return
        elif len(self.pin) < MAX_PIN_LENGTH:
            self.pin += key
            if len(self.pin) == MAX_PIN_LENGTH and self.auto_submit:
                self.changed.emit()
                self.submit_auth()
                return

        self.changed.emit()

    def submit_auth(self) -> None:
        """Verify the entered PIN."""
        if self.loading:
            return
        self.error = ''
        self._verify(self.pin)

    def _verify(self, pin: str, after_setup: bool = False) -> None:
        self.loading = True
        self.message = LOGGING_IN_MESSAGE if after_setup else VERIFYING_MESSAGE
        self.changed.emit()

        def on_result(result: Dict[str, Any]) -> None:
            self.loading = False
            self.message = AUTH_MESSAGE
            self.pin = ''

            if result.get('success'):
                from ..ui.actions import signals

                self.changed.emit()
                self.authenticated.emit()
                signals.sessionStarted.emit()
                return

            if not after_setup:
                self.error = rejection_message(result)
                self.pinRejected.emit('auth')
            self.changed.emit()

        def on_error(ex: Exception) -> None:
            self.loading = False
            self.message = AUTH_MESSAGE
            self.pin = ''
            self.error = worker.error_message(ex)
            self.pinRejected.emit('auth')
            self.changed.emit()

        self.executor(lambda: self.client.verify_pin(pin), on_result, on_error)

    def logout(self) -> None:
        """Log out on the server, ignoring failures, and return to the login screen."""
        def on_done(_: Any) -> None:
            from ..ui.actions import signals

            self.show_auth()
            signals.sessionEnded.emit()

        def on_error(ex: Exception) -> None:
            logging.debug(f'Ignoring logout error: {worker.error_message(ex)}')
            on_done(None)

        self.executor(self.client.logout, on_done, on_error)
