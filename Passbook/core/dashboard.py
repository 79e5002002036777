"""Application flow of the family allowance dashboard.

The dashboard is a set of pages behind an e-mail login: an overview, the
family, the children, their expenses, a form to add funds and the analytics.
"""

import logging
from typing import Any, Callable, Dict, Optional

from PySide6 import QtCore

from . import forms
from . import worker
from .family import FamilyClient
from .state import DashboardState, PAGES
from ..status import status

LOGIN_FORM: str = 'login'
FAMILY_FORM: str = 'family'
CHILD_FORM: str = 'child'
EXPENSE_FORM: str = 'expense'
FUNDS_FORM: str = 'funds'
CHILDREN_LIST: str = 'children'
EXPENSES_LIST: str = 'expenses'


class DashboardController(QtCore.QObject):
    """Controller of the family dashboard pages.

    Signals:
        pageChanged (str): Emitted with the page to show.
        userChanged (): The logged-in user or their family changed.
        childrenChanged (): The list of children was reloaded.
        expensesChanged (): The list of expenses was reloaded.
        formMessage (str, str, str): Form or list name, message and kind
            (``'info'``, ``'success'`` or ``'error'``).
        formSucceeded (str): Form name, emitted when the form can be closed or reset.
    """
    pageChanged = QtCore.Signal(str)
    userChanged = QtCore.Signal()
    childrenChanged = QtCore.Signal()
    expensesChanged = QtCore.Signal()
    formMessage = QtCore.Signal(str, str, str)
    formSucceeded = QtCore.Signal(str)

    def __init__(
            self,
            client: Optional[FamilyClient] = None,
            executor: Optional[worker.Executor] = None,
            parent: Optional[QtCore.QObject] = None
    ) -> None:
        super().__init__(parent=parent)
        self.client = client or FamilyClient()
        self.executor = executor or worker.run_direct
        self.state = DashboardState()

        from ..ui.actions import signals
        signals.sessionExpired.connect(self.on_session_expired)

    @property
    def logged_in(self) -> bool:
        return self.client.has_session()

    def _run(
            self,
            func: Callable[[], Any],
            on_result: Callable[[Any], None],
            on_error: Callable[[Exception], None]
    ) -> None:
        def _on_error(ex: Exception) -> None:
            if isinstance(ex, status.SessionExpiredException):
                return
            on_error(ex)

        self.executor(func, on_result, _on_error)

    def _form_error(self, form: str, prefix: str = '') -> Callable[[Exception], None]:
        def on_error(ex: Exception) -> None:
            self.formMessage.emit(form, f'{prefix}{worker.error_message(ex)}', 'error')

        return on_error

    def init(self) -> None:
        """Restore a stored login, or show the login page."""
        if self.client.has_session() and self.client.user is not None:
            self.state.user = self.client.user
            self.userChanged.emit()
            self.navigate('dashboard')
        else:
            self.navigate('login')

    def navigate(self, page: str) -> None:
        """Show a page and load the data it displays.

        Pages other than the login page require a login.

        Raises:
            ValueError: If the page is unknown.
        """
        if page not in PAGES:
            raise ValueError(f'Invalid page: {page}, must be one of {PAGES}')
        if page != 'login' and not self.logged_in:
            page = 'login'

        self.state.set_page(page)
        self.pageChanged.emit(page)

        if page in ('dashboard', 'children', 'expenses', 'funds', 'analytics'):
            self.load_children()
        if page in ('dashboard', 'expenses', 'analytics'):
            self.load_expenses()

    def login(self, email: str, password: str) -> None:
        try:
            email, password = forms.validate_login(email, password)
        except status.ValidationException as ex:
            self.formMessage.emit(LOGIN_FORM, ex.message, 'error')
            return

        self.formMessage.emit(LOGIN_FORM, 'Logging in...', 'info')

        def on_result(data: Dict[str, Any]) -> None:
            if not self.client.has_session():
                self.formMessage.emit(LOGIN_FORM, 'Login failed', 'error')
                return

            self.state.user = self.client.user
            self.formMessage.emit(LOGIN_FORM, 'Login successful!', 'success')
            self.formSucceeded.emit(LOGIN_FORM)
            self.userChanged.emit()

            from ..ui.actions import signals
            signals.sessionStarted.emit()
            self.navigate('dashboard')

        self._run(lambda: self.client.login(email, password), on_result, self._form_error(LOGIN_FORM))

    def logout(self) -> None:
        from ..ui.actions import signals

        self.client.logout()
        self.state.reset()
        self.userChanged.emit()
        self.navigate('login')
        signals.sessionEnded.emit()

    @QtCore.Slot()
    def on_session_expired(self) -> None:
        if self.state.page == 'login':
            return

        from ..ui.actions import signals
        signals.showToast.emit('Session expired. Please log in again.', 'error')
        self.state.reset()
        self.userChanged.emit()
        self.navigate('login')

    def has_family(self) -> bool:
        return self.client.has_family()

    def create_family(self, family_name: str, currency: str) -> None:
        try:
            family_name, currency = forms.validate_family(family_name, currency)
        except status.ValidationException as ex:
            self.formMessage.emit(FAMILY_FORM, ex.message, 'error')
            return

        self.formMessage.emit(FAMILY_FORM, 'Creating family...', 'info')

        def on_result(data: Dict[str, Any]) -> None:
            self.state.family = data.get('family') if isinstance(data.get('family'), dict) else data
            self.state.user = self.client.user
            self.formMessage.emit(FAMILY_FORM, 'Family created successfully!', 'success')
            self.formSucceeded.emit(FAMILY_FORM)
            self.userChanged.emit()

        self._run(
            lambda: self.client.create_family(family_name, currency),
            on_result,
            self._form_error(FAMILY_FORM)
        )

    # Children

    def load_children(self) -> None:
        def on_result(children: Any) -> None:
            self.state.children = list(children)
            self.childrenChanged.emit()

        self._run(self.client.list_children, on_result, self._form_error(CHILDREN_LIST, 'Failed to load children: '))

    def add_child(self, display_name: str, age: Any, weekly_allowance: Any) -> None:
        try:
            child = forms.validate_child(display_name, age, weekly_allowance)
        except status.ValidationException as ex:
            self.formMessage.emit(CHILD_FORM, ex.message, 'error')
            return

        self.formMessage.emit(CHILD_FORM, 'Adding child...', 'info')

        def on_result(_: Any) -> None:
            self.formMessage.emit(CHILD_FORM, 'Child added successfully!', 'success')
            self.formSucceeded.emit(CHILD_FORM)
            self.load_children()

        self._run(
            lambda: self.client.add_child(child['display_name'], child['age'], child['weekly_allowance']),
            on_result,
            self._form_error(CHILD_FORM)
        )

    # Expenses and funds

    def load_expenses(self) -> None:
        def on_result(expenses: Any) -> None:
            self.state.expenses = list(expenses)
            self.expensesChanged.emit()

        self._run(self.client.list_expenses, on_result, self._form_error(EXPENSES_LIST, 'Failed to load expenses: '))

    def add_expense(self, child_id: Any, description: Any, amount: Any, category: str) -> None:
        try:
            child_id = forms.validate_child_id(child_id)
            description = forms.parse_description(description)
            amount = forms.parse_amount(amount)
            category = forms.validate_category(category)
        except status.ValidationException as ex:
            self.formMessage.emit(EXPENSE_FORM, ex.message, 'error')
            return

        self.formMessage.emit(EXPENSE_FORM, 'Adding expense...', 'info')

        def on_result(_: Any) -> None:
            self.formMessage.emit(EXPENSE_FORM, 'Expense added successfully!', 'success')
            self.formSucceeded.emit(EXPENSE_FORM)
            self.load_expenses()
            self.load_children()

        self._run(
            lambda: self.client.add_expense(child_id, description, amount, category),
            on_result,
            self._form_error(EXPENSE_FORM)
        )

    def add_funds(self, child_id: Any, amount: Any, notes: str = '') -> None:
        try:
            child_id = forms.validate_child_id(child_id)
            amount = forms.parse_amount(amount)
        except status.ValidationException as ex:
            self.formMessage.emit(FUNDS_FORM, ex.message, 'error')
            return

        notes = (notes or '').strip()
        self.formMessage.emit(FUNDS_FORM, 'Adding funds...', 'info')

        def on_result(_: Any) -> None:
            self.formMessage.emit(FUNDS_FORM, 'Funds added successfully!', 'success')
            self.formSucceeded.emit(FUNDS_FORM)
            self.load_children()

        self._run(lambda: self.client.add_funds(child_id, amount, notes), on_result, self._form_error(FUNDS_FORM))

    # Overview

    def stats(self) -> Dict[str, Any]:
        """Returns the figures of the overview page.

        Returns:
            dict: ``family_status`` (``'Active'`` or ``'Not Set'``), ``children``,
            ``expenses`` and ``total_balance``, the sum of the children's balances.
        """
        total_balance = 0.0
        for child in self.state.children:
            try:
                total_balance += float(child.get('balance') or 0)
            except (TypeError, ValueError):
                logging.warning(f'Ignoring invalid balance of {child.get("displayName")}: {child.get("balance")}')

        return {
            'family_status': 'Active' if self.has_family() else 'Not Set',
            'children': len(self.state.children),
            'expenses': len(self.state.expenses),
            'total_balance': total_balance,
        }

    def analytics(self) -> Dict[str, Any]:
        """Returns the spending summaries of the analytics page."""
        from ..data import analytics

        expenses = self.state.expenses
        return {
            'by_category': analytics.spending_by(expenses, 'category'),
            'by_child': analytics.spending_by(expenses, 'childName'),
            'by_month': analytics.monthly_totals(expenses),
            'total': analytics.total_spent(expenses),
        }
