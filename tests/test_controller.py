"""Tests for the passbook application flow.

The controller talks to a real :class:`ApiClient` whose transport is replaced
by :class:`tests.base.FakeServer`. Requests run synchronously.
"""
import requests

from Passbook.core import controller as controller_module
from Passbook.core.api import ApiClient
from Passbook.core.controller import PassbookController
from Passbook.core.session import SessionStore
from Passbook.ui.actions import signals
from tests.base import ClientTestCase, DeferredExecutor, TEST_URL

MONTHS_PAGE = {
    'months': [
        {'month': '2024-05', 'monthly_saved': 40},
        {'month': '2024-04', 'monthly_saved': 25},
    ],
    'next_cursor': 'm2',
}

MAY = {
    'month': '2024-05',
    'summary': {'allowance_added': 100, 'total_expenses': 60},
    'total_balance': 250.5,
    'expenses': [
        {'id': 'e1', 'amount': 10, 'description': 'Lunch', 'created_at': '2024-05-02T12:00:00Z'},
        {'id': 'e2', 'amount': 50, 'description': 'Shoes', 'created_at': '2024-05-01T12:00:00Z'},
    ],
    'next_cursor': 'c2',
}


class ControllerTestCase(ClientTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.store = SessionStore('pin', path=self.config_paths.config_dir / 'auth' / 'pin.json')
        self.client = self.connect(ApiClient(base_url=TEST_URL, session=self.store))
        self.controller = PassbookController(client=self.client)
        self.addCleanup(signals.sessionExpired.disconnect, self.controller.on_session_expired)

        self.screens = []
        self.controller.screenChanged.connect(self.screens.append)
        self.failed = self.record(self.controller.formFailed)
        self.succeeded = self.record(self.controller.formSucceeded)
        self.toasts = self.record(signals.showToast)

    def add_data_routes(self) -> None:
        self.server.add('GET', '/api/months', data=MONTHS_PAGE)
        self.server.add('GET', '/api/month/2024-05', data=MAY)

    def log_in(self) -> None:
        self.store.save('tok')
        self.add_data_routes()
        self.controller.load_initial_data()
        self.server.calls.clear()


class InitTestCase(ControllerTestCase):

    def test_not_set_up_shows_setup(self):
        self.server.add('GET', '/api/auth/status', data={'is_setup': False})
        self.controller.init()

        self.assertEqual(self.screens, ['loading', 'setup'])
        self.assertEqual(self.controller.auth.screen, 'setup')

    def test_no_session_shows_login(self):
        self.server.add('GET', '/api/auth/status', data={'is_setup': True})
        self.controller.init()

        self.assertEqual(self.screens, ['loading', 'auth'])
        self.assertEqual(self.server.paths(), ['GET /api/auth/status'])

    def test_stored_session_shows_main(self):
        self.store.save('tok')
        self.server.add('GET', '/api/auth/status', data={'is_setup': True})
        self.add_data_routes()

        self.controller.init()

        self.assertEqual(self.screens, ['loading', 'main'])
        self.assertEqual(self.controller.state.current_month, '2024-05')
        self.assertEqual(len(self.controller.state.expenses), 2)
        self.assertEqual(len(self.controller.state.months), 2)

    def test_stale_session_shows_login(self):
        self.store.save('stale')
        self.server.add('GET', '/api/auth/status', data={'is_setup': True})
        self.server.add('GET', '/api/months', 401, {'error': 'Unauthorized'})

        self.controller.init()

        self.assertEqual(self.screens[-1], 'auth')
        self.assertNotIn('main', self.screens)
        self.assertFalse(self.client.has_session())
        self.assertIn(('Session expired. Please log in again.', 'error'), self.toasts.calls)

    def test_unreachable_server(self):
        self.server.add_error('GET', '/api/auth/status', requests.exceptions.ConnectionError())
        self.controller.init()

        self.assertEqual(self.screens, ['loading', 'auth'])
        self.assertIn(('Failed to connect to server', 'error'), self.toasts.calls)

    def test_login_loads_data(self):
        self.server.add('POST', '/api/auth/verify', data={'success': True, 'token': 'tok'})
        self.add_data_routes()
        self.controller.auth.show_auth()

        for key in '1234':
            self.controller.auth.press(key)
        self.controller.auth.press('submit')

        self.assertEqual(self.screens, ['main'])
        self.assertEqual(
            self.server.paths(),
            ['POST /api/auth/verify', 'GET /api/months', 'GET /api/month/2024-05']
        )
        self.assertEqual(self.server.last()['headers']['X-Session-Token'], 'tok')


class DataTestCase(ControllerTestCase):

    def test_summary(self):
        self.log_in()
        summary = self.controller.state.summary

        self.assertEqual(summary['month'], '2024-05')
        self.assertEqual(summary['monthly_saved'], 40.0)
        self.assertEqual(summary['total_balance'], 250.5)
        self.assertEqual(summary['allowance_added'], 100.0)
        self.assertEqual(summary['total_expenses'], 60.0)

    def test_no_months(self):
        self.store.save('tok')
        self.server.add('GET', '/api/months', data={'months': [], 'next_cursor': None})
        month_changed = self.record(self.controller.monthChanged)

        self.controller.load_initial_data()

        self.assertTrue(self.controller.state.is_empty)
        self.assertEqual(self.controller.state.summary['total_balance'], 0.0)
        self.assertEqual(month_changed.count, 1)
        self.assertEqual(self.server.paths(), ['GET /api/months'])

    def test_load_more_expenses(self):
        self.log_in()
        self.server.routes.clear()
        self.server.add('GET', '/api/month/2024-05', data={
            'month': '2024-05',
            'expenses': [{'id': 'e3', 'amount': 5, 'description': 'Gum'}],
            'next_cursor': None,
        })

        self.controller.load_more_expenses()

        self.assertEqual(self.server.last()['params']['cursor'], 'c2')
        self.assertEqual([e['id'] for e in self.controller.state.expenses], ['e1', 'e2', 'e3'])
        self.assertFalse(self.controller.state.expenses.has_more)

        # Nothing left to load
        self.controller.load_more_expenses()
        self.assertEqual(len(self.server.calls), 1)

    def test_load_more_expenses_with_repeated_cursor(self):
        self.log_in()
        self.server.routes.clear()
        self.server.add('GET', '/api/month/2024-05', data={'expenses': [], 'next_cursor': 'c2'})

        self.controller.load_more_expenses()

        self.assertEqual(len(self.controller.state.expenses), 2)
        self.assertIn(('Failed to load more expenses', 'error'), self.toasts.calls)

    def test_load_more_months(self):
        self.log_in()
        self.server.routes.clear()
        self.server.add('GET', '/api/months', data={'months': [{'month': '2024-03'}], 'next_cursor': None})

        self.controller.load_more_months()

        self.assertEqual(self.server.last()['params']['cursor'], 'm2')
        self.assertEqual(
            [m['month'] for m in self.controller.state.months],
            ['2024-05', '2024-04', '2024-03']
        )

    def test_select_month(self):
        self.log_in()
        self.server.add('GET', '/api/month/2024-04', data={
            'month': '2024-04',
            'summary': {'allowance_added': 30, 'total_expenses': 5},
            'expenses': [],
        })

        self.controller.select_month('2024-04')

        self.assertEqual(self.controller.state.current_month, '2024-04')
        self.assertEqual(self.controller.state.summary['monthly_saved'], 25.0)
        self.assertEqual(len(self.controller.state.expenses), 0)

    def test_load_more_expenses_twice_while_loading(self):
        self.log_in()
        self.server.routes.clear()
        self.server.add('GET', '/api/month/2024-05', data={
            'expenses': [{'id': 'e3', 'amount': 5, 'description': 'Gum'}],
            'next_cursor': None,
        })
        self.controller.executor = DeferredExecutor()

        self.controller.load_more_expenses()
        self.controller.load_more_expenses()
        self.controller.executor.finish()

        self.assertEqual([e['id'] for e in self.controller.state.expenses], ['e1', 'e2', 'e3'])
        self.assertFalse(self.controller.state.expenses.has_more)

    def test_load_more_months_twice_while_loading(self):
        self.log_in()
        self.server.routes.clear()
        self.server.add('GET', '/api/months', data={'months': [{'month': '2024-03'}], 'next_cursor': None})
        self.controller.executor = DeferredExecutor()

        self.controller.load_more_months()
        self.controller.load_more_months()
        self.controller.executor.finish()

        self.assertEqual(
            [m['month'] for m in self.controller.state.months],
            ['2024-05', '2024-04', '2024-03']
        )

    def test_select_month_answers_out_of_order(self):
        self.log_in()
        self.server.add('GET', '/api/month/2024-04', data={'month': '2024-04', 'expenses': [{'id': 'a1'}]})
        self.server.add('GET', '/api/month/2024-03', data={'month': '2024-03', 'expenses': [{'id': 'm1'}]})
        self.controller.executor = DeferredExecutor()

        self.controller.select_month('2024-04')
        self.controller.select_month('2024-03')
        self.controller.executor.finish(1, 0)

        self.assertEqual(self.controller.state.current_month, '2024-03')
        self.assertEqual([e['id'] for e in self.controller.state.expenses], ['m1'])

    def test_load_failure_shows_toast(self):
        self.store.save('tok')
        self.server.add('GET', '/api/months', 500, {'error': 'Database down'})

        self.controller.load_initial_data()
        self.assertIn(('Failed to load month data', 'error'), self.toasts.calls)


class ExpenseFormTestCase(ControllerTestCase):

    def test_invalid_expense(self):
        self.log_in()
        self.controller.add_expense('abc', 'Lunch')

        self.assertEqual(self.failed.calls, [(controller_module.EXPENSE_FORM, 'Please enter a valid amount')])
        self.assertEqual(self.server.calls, [])

    def test_add_expense(self):
        self.log_in()
        self.server.add('POST', '/api/expense', data={'success': True})

        self.controller.add_expense('12.50', ' Pizza ')

        self.assertEqual(self.server.calls[0]['json'], {'amount': 12.5, 'description': 'Pizza'})
        self.assertEqual(self.succeeded.calls, [(controller_module.EXPENSE_FORM,)])
        self.assertIn(('Expense added!', 'success'), self.toasts.calls)
        self.assertEqual(
            self.server.paths(),
            ['POST /api/expense', 'GET /api/months', 'GET /api/month/2024-05']
        )

    def test_add_expense_server_error(self):
        self.log_in()
        self.server.add('POST', '/api/expense', 400, {'error': 'Amount too large'})

        self.controller.add_expense('12', 'Pizza')

        self.assertEqual(self.failed.calls, [(controller_module.EXPENSE_FORM, 'Amount too large')])
        self.assertEqual(self.succeeded.count, 0)

    def test_expired_session_during_form(self):
        self.log_in()
        self.server.add('POST', '/api/expense', 401, {'error': 'Unauthorized'})

        self.controller.add_expense('12', 'Pizza')

        self.assertEqual(self.failed.count, 0)
        self.assertEqual(self.screens[-1], 'auth')
        self.assertTrue(self.controller.state.is_empty)

    def test_edit_expense(self):
        self.log_in()
        edit_requested = self.record(self.controller.editRequested)
        self.server.add('PUT', '/api/expense/2024-05/e1', data={'success': True})

        self.controller.open_edit_expense('e1')
        self.assertEqual(edit_requested.calls[0][0]['description'], 'Lunch')

        self.controller.edit_expense('11', 'Brunch')

        self.assertEqual(self.server.calls[0]['json'], {'amount': 11.0, 'description': 'Brunch'})
        self.assertEqual(self.server.paths()[-1], 'GET /api/month/2024-05')
        self.assertIsNone(self.controller.state.editing_expense)
        self.assertIn(('Expense updated!', 'success'), self.toasts.calls)

    def test_edit_unknown_expense(self):
        self.log_in()
        edit_requested = self.record(self.controller.editRequested)

        self.controller.open_edit_expense('missing')
        self.assertEqual(edit_requested.count, 0)

        self.controller.edit_expense('11', 'Brunch')
        self.assertEqual(self.failed.calls, [(controller_module.EDIT_EXPENSE_FORM, 'No expense selected')])

    def test_cancel_edit(self):
        self.log_in()
        self.controller.open_edit_expense('e2')
        self.controller.cancel_edit_expense()
        self.assertIsNone(self.controller.state.editing_expense)

    def test_delete_expense(self):
        self.log_in()
        self.server.add('DELETE', '/api/expense/2024-05/e2', data={'success': True})

        self.controller.delete_expense('e2')

        self.assertEqual(self.server.paths(), ['DELETE /api/expense/2024-05/e2', 'GET /api/month/2024-05'])
        self.assertIn(('Expense deleted', 'success'), self.toasts.calls)

    def test_delete_expense_failure(self):
        self.log_in()
        self.server.add('DELETE', '/api/expense/2024-05/e2', 404, {'error': 'Not found'})

        self.controller.delete_expense('e2')
        self.assertIn(('Failed to delete expense', 'error'), self.toasts.calls)


class MonthFormTestCase(ControllerTestCase):

    def test_invalid_month(self):
        self.log_in()
        self.controller.create_month('2024-13')
        self.assertEqual(self.failed.calls, [(controller_module.CREATE_MONTH_FORM, 'Please select a valid month')])

    def test_create_month(self):
        self.log_in()
        self.server.add('POST', '/api/month', data={'success': True})

        self.controller.create_month('2024-06')

        self.assertEqual(self.server.calls[0]['json'], {'month': '2024-06'})
        self.assertEqual(self.succeeded.calls, [(controller_module.CREATE_MONTH_FORM,)])
        self.assertIn('GET /api/months', self.server.paths())

    def test_create_existing_month(self):
        self.log_in()
        self.server.add('POST', '/api/month', 409, {'error': 'Month already exists'})

        self.controller.create_month('2024-05')
        self.assertEqual(self.failed.calls, [(controller_module.CREATE_MONTH_FORM, 'Month already exists')])

    def test_add_funds(self):
        self.log_in()
        self.server.add('POST', '/api/month/2024-05/funds', data={'success': True})

        self.controller.add_funds('25')

        self.assertEqual(self.server.calls[0]['json'], {'amount': 25.0})
        self.assertEqual(
            self.server.paths(),
            ['POST /api/month/2024-05/funds', 'GET /api/month/2024-05', 'GET /api/months']
        )
        self.assertIn(('Funds added!', 'success'), self.toasts.calls)

    def test_add_funds_without_month(self):
        self.controller.add_funds('25')
        self.assertEqual(self.failed.calls, [(controller_module.ADD_FUNDS_FORM, 'No month selected')])

    def test_add_funds_invalid_amount(self):
        self.log_in()
        self.controller.add_funds('100000')
        self.assertEqual(
            self.failed.calls,
            [(controller_module.ADD_FUNDS_FORM, 'Amount cannot exceed $99,999.99')]
        )


class PinFormTestCase(ControllerTestCase):

    def test_change_pin_mismatch(self):
        self.log_in()
        self.controller.change_pin('1234', '5678', '5670')
        self.assertEqual(self.failed.calls, [(controller_module.CHANGE_PIN_FORM, 'New PINs do not match')])
        self.assertEqual(self.server.calls, [])

    def test_change_pin(self):
        self.log_in()
        self.server.add('POST', '/api/auth/change', data={'success': True})

        self.controller.change_pin('1234', '5678', '5678')

        self.assertEqual(self.server.last()['json'], {'current_pin': '1234', 'new_pin': '5678'})
        self.assertEqual(self.succeeded.calls, [(controller_module.CHANGE_PIN_FORM,)])
        self.assertIn(('PIN changed successfully!', 'success'), self.toasts.calls)

    def test_change_pin_wrong_current(self):
        self.log_in()
        self.server.add('POST', '/api/auth/change', 400, {'error': 'Current PIN is incorrect'})

        self.controller.change_pin('1234', '5678', '5678')
        self.assertEqual(self.failed.calls, [(controller_module.CHANGE_PIN_FORM, 'Current PIN is incorrect')])

    def test_logout(self):
        self.log_in()
        self.server.add('POST', '/api/auth/logout', data={'success': True})

        self.controller.logout()

        self.assertEqual(self.server.paths(), ['POST /api/auth/logout'])
        self.assertEqual(self.screens[-1], 'auth')
        self.assertTrue(self.controller.state.is_empty)
        self.assertEqual(len(self.controller.state.months), 0)
        self.assertFalse(self.client.has_session())
