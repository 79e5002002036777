"""Tests for the PIN keypad controller.

Run:
    python -m unittest tests.test_auth
"""
import datetime

import requests

from Passbook.core import auth
from Passbook.core.api import ApiClient
from Passbook.core.auth import AuthController, rejection_message
from Passbook.core.session import SessionStore
from Passbook.ui.actions import signals
from tests.base import ClientTestCase, TEST_URL


def pending_executor(func, on_result, on_error):
    """An executor whose requests never finish."""


class AuthTestCase(ClientTestCase):

    def setUp(self) -> None:
        super().setUp()
        store = SessionStore('pin', path=self.config_paths.config_dir / 'auth' / 'pin.json')
        self.client = self.connect(ApiClient(base_url=TEST_URL, session=store))
        self.controller = AuthController(self.client, auto_submit=False)

        self.authenticated = self.record(self.controller.authenticated, owner=self.controller)
        self.rejected = []
        self.controller.pinRejected.connect(self.rejected.append)

    def enter(self, keys: str, submit: bool = False) -> None:
        for key in keys:
            self.controller.press(key)
        if submit:
            self.controller.press('submit')


class SetupScreenTestCase(AuthTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.controller.show_setup()

    def test_initial_state(self):
        self.assertEqual(self.controller.screen, 'setup')
        self.assertEqual(self.controller.message, auth.SETUP_MESSAGE)
        self.assertEqual(self.controller.digits_entered, 0)

    def test_submit_moves_to_confirmation(self):
        self.enter('1234', submit=True)

        self.assertTrue(self.controller.confirm_mode)
        self.assertEqual(self.controller.message, auth.CONFIRM_MESSAGE)
        self.assertEqual(self.controller.digits_entered, 0)
        self.assertEqual(self.server.calls, [])

    def test_short_pin_is_not_submitted(self):
        self.enter('123', submit=True)
        self.assertFalse(self.controller.confirm_mode)

    def test_pin_is_capped(self):
        self.enter('12345678')
        self.assertEqual(self.controller.pin, '123456')

    def test_back_and_clear(self):
        self.enter('123')
        self.controller.press('back')
        self.assertEqual(self.controller.pin, '12')
        self.controller.press('clear')
        self.assertEqual(self.controller.pin, '')

    def test_back_from_empty_confirmation_returns_to_first_entry(self):
        self.enter('1234', submit=True)
        self.enter('5')
        self.controller.press('back')
        self.assertTrue(self.controller.confirm_mode)

        self.controller.press('back')
        self.assertFalse(self.controller.confirm_mode)
        self.assertEqual(self.controller.pin, '1234')
        self.assertEqual(self.controller.message, auth.SETUP_MESSAGE)

    def test_mismatch_restarts_setup(self):
        self.enter('1234', submit=True)
        self.enter('1235', submit=True)

        self.assertEqual(self.controller.error, auth.MISMATCH_ERROR)
        self.assertEqual(self.controller.pin, '')
        self.assertFalse(self.controller.confirm_mode)
        self.assertEqual(self.rejected, ['setup'])
        self.assertEqual(self.server.calls, [])

    def test_typing_clears_error(self):
        self.enter('1234', submit=True)
        self.enter('1235', submit=True)
        self.enter('1')
        self.assertEqual(self.controller.error, '')

    def test_setup_logs_in_with_new_pin(self):
        toasts = self.record(signals.showToast)
        self.server.add('POST', '/api/auth/setup', data={'success': True})
        self.server.add('POST', '/api/auth/verify', data={'success': True, 'token': 'tok'})

        self.enter('1234', submit=True)
        self.enter('1234', submit=True)

        self.assertEqual(self.server.paths(), ['POST /api/auth/setup', 'POST /api/auth/verify'])
        self.assertEqual(self.server.calls[1]['json'], {'pin': '1234'})
        self.assertEqual(self.authenticated.count, 1)
        self.assertEqual(self.controller.screen, 'auth')
        self.assertIn(('PIN created successfully!', 'success'), toasts.calls)
        self.assertTrue(self.client.has_session())

    def test_failed_login_after_setup_shows_login_screen(self):
        self.server.add('POST', '/api/auth/setup', data={'success': True})
        self.server.add('POST', '/api/auth/verify', data={'success': False})

        self.enter('1234', submit=True)
        self.enter('1234', submit=True)

        self.assertEqual(self.authenticated.count, 0)
        self.assertEqual(self.controller.screen, 'auth')
        self.assertEqual(self.controller.message, auth.AUTH_MESSAGE)
        self.assertEqual(self.controller.error, '')

    def test_setup_failure_restarts_setup(self):
        self.server.add('POST', '/api/auth/setup', 400, {'error': 'PIN already set'})

        self.enter('1234', submit=True)
        self.enter('1234', submit=True)

        self.assertEqual(self.controller.screen, 'setup')
        self.assertEqual(self.controller.error, 'PIN already set')
        self.assertFalse(self.controller.loading)
        self.assertEqual(self.rejected, ['setup'])


class LoginScreenTestCase(AuthTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.controller.show_auth()

    def test_successful_login(self):
        self.server.add('POST', '/api/auth/verify', data={'success': True, 'token': 'tok'})
        started = self.record(signals.sessionStarted)
        self.enter('4321', submit=True)

        self.assertEqual(self.server.last()['json'], {'pin': '4321'})
        self.assertEqual(self.authenticated.count, 1)
        self.assertEqual(started.count, 1)
        self.assertEqual(self.controller.pin, '')
        self.assertFalse(self.controller.loading)

    def test_rejected_pin(self):
        self.server.add('POST', '/api/auth/verify', 401, {'success': False, 'attempts_remaining': 2})
        self.enter('0000', submit=True)

        self.assertEqual(self.controller.error, 'Invalid PIN. 2 attempts remaining.')
        self.assertEqual(self.controller.pin, '')
        self.assertEqual(self.rejected, ['auth'])
        self.assertEqual(self.authenticated.count, 0)

    def test_connection_failure(self):
        self.server.add_error('POST', '/api/auth/verify', requests.exceptions.ConnectionError())
        self.enter('0000', submit=True)

        self.assertEqual(self.controller.error, 'Failed to connect to server')
        self.assertEqual(self.rejected, ['auth'])
        self.assertFalse(self.controller.loading)

    def test_short_pin_is_not_submitted(self):
        self.enter('123', submit=True)
        self.assertEqual(self.server.calls, [])

    def test_no_auto_submit(self):
        self.enter('123456')
        self.assertEqual(self.server.calls, [])
        self.assertEqual(self.controller.pin, '123456')

    def test_auto_submit_at_max_length(self):
        self.controller = AuthController(self.client, auto_submit=True)
        self.controller.show_auth()
        self.server.add('POST', '/api/auth/verify', data={'success': True, 'token': 'tok'})

        self.enter('12345')
        self.assertEqual(self.server.calls, [])
        self.enter('6')
        self.assertEqual(self.server.last()['json'], {'pin': '123456'})

    def test_auto_submit_follows_settings(self):
        from Passbook.settings import lib

        controller = AuthController(self.client)
        self.assertFalse(controller.auto_submit)

        lib.settings['auto_submit_pin'] = True
        self.assertTrue(controller.auto_submit)

    def test_input_is_ignored_while_loading(self):
        self.controller = AuthController(self.client, executor=pending_executor, auto_submit=False)
        self.controller.show_auth()
        self.enter('1234', submit=True)

        self.assertTrue(self.controller.loading)
        self.assertEqual(self.controller.message, auth.VERIFYING_MESSAGE)
        self.enter('5')
        self.controller.press('clear')
        self.assertEqual(self.controller.pin, '1234')

    def test_invalid_key(self):
        with self.assertRaises(ValueError):
            self.controller.press('x')

    def test_logout_ignores_server_failure(self):
        ended = self.record(signals.sessionEnded)
        self.client.set_session('tok')
        self.server.add_error('POST', '/api/auth/logout', requests.exceptions.ConnectionError())

        self.controller.logout()

        self.assertEqual(ended.count, 1)
        self.assertEqual(self.controller.screen, 'auth')
        self.assertFalse(self.client.has_session())


class RejectionMessageTestCase(AuthTestCase):

    def test_lockout_takes_precedence(self):
        locked_until = datetime.datetime(2030, 1, 1, 14, 30).timestamp()
        message = rejection_message({'locked_until': locked_until, 'attempts_remaining': 0, 'error': 'Locked'})
        self.assertTrue(message.startswith('Account locked until '))
        self.assertIn('30', message)

    def test_attempts_remaining(self):
        self.assertEqual(
            rejection_message({'attempts_remaining': 0, 'error': 'Nope'}),
            'Invalid PIN. 0 attempts remaining.'
        )

    def test_server_error(self):
        self.assertEqual(rejection_message({'error': 'Nope'}), 'Nope')

    def test_default(self):
        self.assertEqual(rejection_message({}), auth.INVALID_PIN_ERROR)
