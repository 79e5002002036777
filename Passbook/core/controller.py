"""Application flow of the PIN-protected passbook.

:class:`PassbookController` turns user actions into api calls, stores the
answers in :class:`~Passbook.core.state.PassbookState` and notifies the widgets
through its signals. Form failures are reported with :attr:`formFailed`, other
failures as toasts through ``signals.showToast``.
"""

import logging
from typing import Any, Callable, Dict, Optional

from PySide6 import QtCore

from . import forms
from . import worker
from .api import ApiClient
from .auth import AuthController
from .state import PassbookState
from ..status import status

EXPENSE_FORM: str = 'expense'
EDIT_EXPENSE_FORM: str = 'edit_expense'
CREATE_MONTH_FORM: str = 'create_month'
ADD_FUNDS_FORM: str = 'add_funds'
CHANGE_PIN_FORM: str = 'change_pin'


def toast(message: str, kind: str = 'info') -> None:
    from ..ui.actions import signals
    signals.showToast.emit(message, kind)


class PassbookController(QtCore.QObject):
    """Controller of the setup, login and main screens.

    Signals:
        screenChanged (str): Emitted with the name of the screen to show.
        monthChanged (): The current month or its expenses changed.
        monthsChanged (): The list of months changed.
        formFailed (str, str): Form name and the error to show in the form.
        formSucceeded (str): Form name, emitted when the form can be closed.
        editRequested (object): The expense to edit.
    """
    screenChanged = QtCore.Signal(str)
    monthChanged = QtCore.Signal()
    monthsChanged = QtCore.Signal()
    formFailed = QtCore.Signal(str, str)
    formSucceeded = QtCore.Signal(str)
    editRequested = QtCore.Signal(object)

    def __init__(
            self,
            client: Optional[ApiClient] = None,
            executor: Optional[worker.Executor] = None,
            parent: Optional[QtCore.QObject] = None
    ) -> None:
        super().__init__(parent=parent)
        self.client = client or ApiClient()
        self.executor = executor or worker.run_direct
        self.state = PassbookState()
        self.auth = AuthController(self.client, executor=self.executor, parent=self)

        self._connect_signals()

    def _connect_signals(self) -> None:
        from ..ui.actions import signals

        self.auth.authenticated.connect(self.on_auth_success)
        signals.sessionExpired.connect(self.on_session_expired)

    def _show(self, screen: str) -> None:
        self.state.set_screen(screen)
        self.screenChanged.emit(screen)

    def _run(
            self,
            func: Callable[[], Any],
            on_result: Callable[[Any], None],
            on_error: Callable[[Exception], None]
    ) -> None:
        def _on_error(ex: Exception) -> None:
            # Handled by on_session_expired
            if isinstance(ex, status.SessionExpiredException):
                return
            on_error(ex)

        self.executor(func, on_result, _on_error)

    def _toast_on_error(self, message: str) -> Callable[[Exception], None]:
        def on_error(ex: Exception) -> None:
            logging.error(f'{message}: {worker.error_message(ex)}')
            toast(message, 'error')

        return on_error

    def _form_error(self, form: str) -> Callable[[Exception], None]:
        def on_error(ex: Exception) -> None:
            self.formFailed.emit(form, worker.error_message(ex))

        return on_error

    # Startup and authentication

    def init(self) -> None:
        """Decide the first screen: PIN setup, the main screen of a stored session, or login."""
        self._show('loading')

        def on_result(is_setup: bool) -> None:
            if not is_setup:
                self.auth.show_setup()
                self._show('setup')
            elif self.client.has_session():
                self.load_initial_data(on_done=lambda: self._show('main'), on_error=self._show_auth_on_error)
            else:
                self.auth.show_auth()
                self._show('auth')

        def on_error(ex: Exception) -> None:
            toast('Failed to connect to server', 'error')
            self.auth.show_auth()
            self._show('auth')

        self.executor(self.client.check_setup, on_result, on_error)

    def _show_auth_on_error(self, ex: Exception) -> None:
        logging.debug(f'Stored session could not be used: {worker.error_message(ex)}')
        self.auth.show_auth()
        self._show('auth')

    @QtCore.Slot()
    def on_auth_success(self) -> None:
        self._show('main')
        self.load_initial_data()

    @QtCore.Slot()
    def on_session_expired(self) -> None:
        toast('Session expired. Please log in again.', 'error')
        self.state.reset()
        self.auth.show_auth()
        self._show('auth')

    def logout(self) -> None:
        self.state.reset()
        self.auth.logout()
        self._show('auth')

    # Data loading

    def load_initial_data(
            self,
            on_done: Optional[Callable[[], None]] = None,
            on_error: Optional[Callable[[Exception], None]] = None
    ) -> None:
        """Load the months list and open the newest month.

        Args:
            on_done: Called once the data is displayed.
            on_error: Called instead of showing a toast when loading fails.
        """
        on_error = on_error or self._toast_on_error('Failed to load month data')

        def on_months(page: Dict[str, Any]) -> None:
            self.state.months.reset(page)
            months = self.state.months.items

            if not months:
                self.state.clear_month()
                self.monthsChanged.emit()
                self.monthChanged.emit()
                if on_done:
                    on_done()
                return

            # Newest first
            self.state.current_month = months[0].get('month')
            self.monthsChanged.emit()
            self.load_current_month(on_done=on_done, on_error=on_error)

        self._run(self.client.get_months, on_months, on_error)

    def load_current_month(
            self,
            on_done: Optional[Callable[[], None]] = None,
            on_error: Optional[Callable[[Exception], None]] = None
    ) -> None:
        if not self.state.current_month:
            return

        month = self.state.current_month
        on_error = on_error or self._toast_on_error('Failed to load month data')

        def on_result(data: Dict[str, Any]) -> None:
            # Superseded by a later selection
            if month != self.state.current_month:
                return
            self.state.set_month_data(data)
            self.monthChanged.emit()
            if on_done:
                on_done()

        self._run(lambda: self.client.get_month(month), on_result, on_error)

    def load_more_expenses(self) -> None:
        if not self.state.current_month or not self.state.expenses.has_more:
            return

        month = self.state.current_month
        cursor = self.state.expenses.cursor

        def on_result(page: Dict[str, Any]) -> None:
            if month != self.state.current_month or cursor != self.state.expenses.cursor:
                return
            try:
                self.state.expenses.extend(page)
            except status.BaseStatusException:
                toast('Failed to load more expenses', 'error')
                return
            self.monthChanged.emit()

        self._run(
            lambda: self.client.get_month(month, cursor),
            on_result,
            self._toast_on_error('Failed to load more expenses')
        )

    def load_months_list(self) -> None:
        def on_result(page: Dict[str, Any]) -> None:
            self.state.months.reset(page)
            self.monthsChanged.emit()

        self._run(self.client.get_months, on_result, self._toast_on_error('Failed to load history'))

    def load_more_months(self) -> None:
        if not self.state.months.has_more:
            return

        cursor = self.state.months.cursor

        def on_result(page: Dict[str, Any]) -> None:
            # Another request already loaded this page
            if cursor != self.state.months.cursor:
                return
            try:
                self.state.months.extend(page)
            except status.BaseStatusException:
                toast('Failed to load more months', 'error')
                return
            self.monthsChanged.emit()

        self._run(
            lambda: self.client.get_months(cursor),
            on_result,
            self._toast_on_error('Failed to load more months')
        )

    def select_month(self, month: str) -> None:
        self.state.current_month = month
        self.monthsChanged.emit()
        self.load_current_month()

    # Expenses

    def add_expense(self, amount: Any, description: Any) -> None:
        try:
            amount, description = forms.validate_expense(amount, description)
        except status.ValidationException as ex:
            self.formFailed.emit(EXPENSE_FORM, ex.message)
            return

        def on_result(_: Any) -> None:
            self.formSucceeded.emit(EXPENSE_FORM)
            toast('Expense added!', 'success')
            # The server may have created the month
            self.load_initial_data()

        self._run(lambda: self.client.add_expense(amount, description), on_result, self._form_error(EXPENSE_FORM))

    def open_edit_expense(self, expense_id: str) -> None:
        expense = self.state.find_expense(expense_id)
        if expense is None:
            logging.warning(f'Expense "{expense_id}" is not loaded.')
            return
        self.state.editing_expense = expense
        self.editRequested.emit(expense)

    def cancel_edit_expense(self) -> None:
        self.state.editing_expense = None

    def edit_expense(self, amount: Any, description: Any) -> None:
        expense = self.state.editing_expense
        if not expense or not self.state.current_month:
            self.formFailed.emit(EDIT_EXPENSE_FORM, 'No expense selected')
            return

        try:
            amount, description = forms.validate_expense(amount, description)
        except status.ValidationException as ex:
            self.formFailed.emit(EDIT_EXPENSE_FORM, ex.message)
            return

        month = self.state.current_month
        expense_id = expense['id']

        def on_result(_: Any) -> None:
            self.state.editing_expense = None
            self.formSucceeded.emit(EDIT_EXPENSE_FORM)
            toast('Expense updated!', 'success')
            self.load_current_month()

        self._run(
            lambda: self.client.update_expense(month, expense_id, amount, description),
            on_result,
            self._form_error(EDIT_EXPENSE_FORM)
        )

    def delete_expense(self, expense_id: str) -> None:
        if not self.state.current_month:
            return

        month = self.state.current_month

        def on_result(_: Any) -> None:
            toast('Expense deleted', 'success')
            self.load_current_month()

        self._run(
            lambda: self.client.delete_expense(month, expense_id),
            on_result,
            self._toast_on_error('Failed to delete expense')
        )

    # Months

    def create_month(self, month: Any) -> None:
        try:
            month = forms.validate_month_key(month)
        except status.ValidationException as ex:
            self.formFailed.emit(CREATE_MONTH_FORM, ex.message)
            return

        def on_result(_: Any) -> None:
            self.formSucceeded.emit(CREATE_MONTH_FORM)
            toast('Month created!', 'success')
            self.load_initial_data()

        self._run(lambda: self.client.create_month(month), on_result, self._form_error(CREATE_MONTH_FORM))

    def add_funds(self, amount: Any) -> None:
        try:
            amount = forms.parse_amount(amount)
        except status.ValidationException as ex:
            self.formFailed.emit(ADD_FUNDS_FORM, ex.message)
            return

        if not self.state.current_month:
            self.formFailed.emit(ADD_FUNDS_FORM, 'No month selected')
            return

        month = self.state.current_month

        def on_result(_: Any) -> None:
            self.formSucceeded.emit(ADD_FUNDS_FORM)
            toast('Funds added!', 'success')
            self.load_current_month()
            self.load_months_list()

        self._run(lambda: self.client.add_funds(month, amount), on_result, self._form_error(ADD_FUNDS_FORM))

    # PIN

    def change_pin(self, current_pin: str, new_pin: str, confirm_pin: str) -> None:
        try:
            current_pin, new_pin = forms.validate_new_pin(current_pin, new_pin, confirm_pin)
        except status.ValidationException as ex:
            self.formFailed.emit(CHANGE_PIN_FORM, ex.message)
            return

        def on_result(_: Any) -> None:
            self.formSucceeded.emit(CHANGE_PIN_FORM)
            toast('PIN changed successfully!', 'success')

        self._run(
            lambda: self.client.change_pin(current_pin, new_pin),
            on_result,
            self._form_error(CHANGE_PIN_FORM)
        )
