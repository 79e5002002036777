"""Main window of the family allowance dashboard.

The window shows a login form, and once logged in, a sidebar of pages driven
by a :class:`~Passbook.core.dashboard.DashboardController`.

This module defines:
    - show(): initialize and display the window
    - MessageLabel: inline form feedback
    - LoginPage, OverviewPage, FamilyPage, ChildrenPage, ExpensesPage, FundsPage, AnalyticsPage
    - Sidebar: page navigation
    - FamilyWindow: the main window
"""
import logging
from typing import Dict, Optional

from PySide6 import QtCore, QtWidgets, QtGui

from . import ui
from .actions import signals
from ..core import dashboard
from ..core import family
from ..core import forms
from ..core import worker
from ..data import model
from ..settings import locale

widget = None

NAV_PAGES = [
    ('dashboard', 'Dashboard'),
    ('family', 'Family'),
    ('children', 'Children'),
    ('expenses', 'Expenses'),
    ('funds', 'Add Funds'),
    ('analytics', 'Analytics'),
]


def show():
    global widget

    if widget is None:
        widget = FamilyWindow()

    widget.show()


def _table_view(m: QtCore.QAbstractItemModel, parent: QtWidgets.QWidget) -> QtWidgets.QTableView:
    view = QtWidgets.QTableView(parent=parent)
    view.setModel(m)
    view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
    view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
    view.setAlternatingRowColors(True)
    view.setShowGrid(False)
    view.horizontalHeader().setStretchLastSection(True)
    view.verticalHeader().setHidden(True)
    view.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))
    return view


class MessageLabel(QtWidgets.QLabel):
    """Inline feedback of a form. Errors are shown in red."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setWordWrap(True)
        self.setObjectName('SecondaryLabel')
        self.hide()

    def set_message(self, message: str, kind: str = 'info') -> None:
        name = 'ErrorLabel' if kind == 'error' else 'SecondaryLabel'
        if self.objectName() != name:
            self.setObjectName(name)
            self.style().unpolish(self)
            self.style().polish(self)
        self.setText(message)
        self.setVisible(bool(message))

    @QtCore.Slot()
    def clear_message(self) -> None:
        self.set_message('')


class ChildComboBox(QtWidgets.QComboBox):
    """Children of the family, with their user id as item data."""

    def set_children(self, children: list) -> None:
        current = self.currentData()
        self.clear()
        self.addItem('Select a child', userData=None)
        for child in children:
            self.addItem(child.get('displayName') or 'Unknown', userData=child.get('userId'))
        index = self.findData(current)
        self.setCurrentIndex(max(index, 0))


class Page(QtWidgets.QWidget):
    """Base class of the dashboard pages.

    Subclasses list the forms they display in :attr:`form_names` and build their
    widgets in :meth:`_create_page`.
    """
    form_names: tuple = ()
    title: str = ''

    def __init__(self, controller: dashboard.DashboardController, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.controller = controller
        self.message_labels: Dict[str, MessageLabel] = {}

        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(3.0))

        if self.title:
            label = QtWidgets.QLabel(self.title, parent=self)
            label.setObjectName('TitleLabel')
            self.layout().addWidget(label)

        self._create_page()

        self.controller.formMessage.connect(self.form_message)
        self.controller.formSucceeded.connect(self.form_succeeded)

        for editor in self.findChildren(QtWidgets.QLineEdit):
            editor.textEdited.connect(self.clear_messages)

    def _create_page(self) -> None:
        raise NotImplementedError('Abstract method must be implemented by subclass.')

    def add_message_label(self, form: str) -> MessageLabel:
        label = MessageLabel(parent=self)
        self.message_labels[form] = label
        self.layout().addWidget(label)
        return label

    @QtCore.Slot()
    def clear_messages(self) -> None:
        for label in self.message_labels.values():
            if label.objectName() == 'ErrorLabel':
                label.clear_message()

    @QtCore.Slot(str, str, str)
    def form_message(self, form: str, message: str, kind: str) -> None:
        if form in self.message_labels:
            self.message_labels[form].set_message(message, kind)

    @QtCore.Slot(str)
    def form_succeeded(self, form: str) -> None:
        if form in self.form_names:
            self.reset_form(form)

    def reset_form(self, form: str) -> None:
        pass

    def init_data(self) -> None:
        pass


class LoginPage(Page):
    form_names = (dashboard.LOGIN_FORM,)
    title = 'Parent Login'

    def _create_page(self) -> None:
        self.email_editor = QtWidgets.QLineEdit(parent=self)
        self.email_editor.setPlaceholderText('parent@example.com')
        ui.add_row('Email', self.email_editor, self)

        self.password_editor = QtWidgets.QLineEdit(parent=self)
        self.password_editor.setEchoMode(QtWidgets.QLineEdit.Password)
        ui.add_row('Password', self.password_editor, self)

        self.login_button = QtWidgets.QPushButton('Login', parent=self)
        self.login_button.setObjectName('PrimaryButton')
        self.layout().addWidget(self.login_button)

        self.add_message_label(dashboard.LOGIN_FORM)
        self.layout().addStretch(1)

        self.login_button.clicked.connect(self.login)
        self.password_editor.returnPressed.connect(self.login)

    @QtCore.Slot()
    def login(self) -> None:
        self.controller.login(self.email_editor.text(), self.password_editor.text())

    def reset_form(self, form: str) -> None:
        self.password_editor.clear()


class StatCard(QtWidgets.QFrame):
    """A titled figure of the overview page."""

    def __init__(self, title: str, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('StatCard')
        QtWidgets.QVBoxLayout(self)

        label = QtWidgets.QLabel(title, parent=self)
        label.setObjectName('SecondaryLabel')
        self.layout().addWidget(label)

        self.value_label = QtWidgets.QLabel('-', parent=self)
        self.value_label.setObjectName('TitleLabel')
        self.layout().addWidget(self.value_label)

    def set_value(self, value: str) -> None:
        self.value_label.setText(value)


class OverviewPage(Page):
    title = 'Dashboard'

    def _create_page(self) -> None:
        self.welcome_label = QtWidgets.QLabel(parent=self)
        self.welcome_label.setObjectName('SecondaryLabel')
        self.layout().addWidget(self.welcome_label)

        grid = QtWidgets.QWidget(parent=self)
        QtWidgets.QGridLayout(grid)
        grid.layout().setContentsMargins(0, 0, 0, 0)
        grid.layout().setSpacing(ui.Size.Indicator(3.0))

        self.cards = {
            'family_status': StatCard('Family Status', parent=grid),
            'children': StatCard('Children', parent=grid),
            'expenses': StatCard('Expenses', parent=grid),
            'total_balance': StatCard('Total Balance', parent=grid),
        }
        for i, card in enumerate(self.cards.values()):
            grid.layout().addWidget(card, i // 2, i % 2)
        self.layout().addWidget(grid)

        self.hint_label = QtWidgets.QLabel('Create your family to get started.', parent=self)
        self.hint_label.setObjectName('SecondaryLabel')
        self.layout().addWidget(self.hint_label)
        self.layout().addStretch(1)

        self.controller.childrenChanged.connect(self.init_data)
        self.controller.expensesChanged.connect(self.init_data)
        self.controller.userChanged.connect(self.init_data)

    @QtCore.Slot()
    def init_data(self) -> None:
        stats = self.controller.stats()
        self.cards['family_status'].set_value(stats['family_status'])
        self.cards['children'].set_value(f'{stats["children"]}')
        self.cards['expenses'].set_value(f'{stats["expenses"]}')
        self.cards['total_balance'].set_value(locale.format_currency_value(stats['total_balance']))

        user = self.controller.state.user or {}
        name = user.get('displayName') or user.get('email') or ''
        self.welcome_label.setText(f'Welcome, {name}' if name else '')
        self.hint_label.setVisible(not self.controller.has_family())


class FamilyPage(Page):
    form_names = (dashboard.FAMILY_FORM,)
    title = 'Family'

    def _create_page(self) -> None:
        self.status_label = QtWidgets.QLabel(parent=self)
        self.status_label.setObjectName('SecondaryLabel')
        self.layout().addWidget(self.status_label)

        self.form_widget = QtWidgets.QWidget(parent=self)
        QtWidgets.QVBoxLayout(self.form_widget)
        self.form_widget.layout().setContentsMargins(0, 0, 0, 0)

        self.name_editor = QtWidgets.QLineEdit(parent=self.form_widget)
        self.name_editor.setPlaceholderText('The Smiths')
        ui.add_row('Family name', self.name_editor, self.form_widget)

        self.currency_combo = QtWidgets.QComboBox(parent=self.form_widget)
        self.currency_combo.addItems(family.CURRENCIES)
        ui.add_row('Currency', self.currency_combo, self.form_widget)

        self.create_button = QtWidgets.QPushButton('Create Family', parent=self.form_widget)
        self.create_button.setObjectName('PrimaryButton')
        self.form_widget.layout().addWidget(self.create_button)

        self.layout().addWidget(self.form_widget)
        self.add_message_label(dashboard.FAMILY_FORM)
        self.layout().addStretch(1)

        self.create_button.clicked.connect(self.create_family)
        self.controller.userChanged.connect(self.init_data)

    @QtCore.Slot()
    def create_family(self) -> None:
        self.controller.create_family(self.name_editor.text(), self.currency_combo.currentText())

    def reset_form(self, form: str) -> None:
        self.name_editor.clear()
        self.init_data()

    @QtCore.Slot()
    def init_data(self) -> None:
        has_family = self.controller.has_family()
        self.form_widget.setHidden(has_family)

        if not has_family:
            self.status_label.setText('You have not created a family yet.')
            return

        family_data = self.controller.state.family or {}
        name = family_data.get('familyName') or family_data.get('name')
        self.status_label.setText(f'Family: {name}' if name else 'Your family is set up.')


class ChildrenPage(Page):
    form_names = (dashboard.CHILD_FORM,)
    title = 'Children'

    def _create_page(self) -> None:
        self.add_message_label(dashboard.CHILDREN_LIST)

        self.view = _table_view(model.ChildrenModel(parent=self), self)
        self.layout().addWidget(self.view, 1)

        label = QtWidgets.QLabel('Add a child', parent=self)
        label.setObjectName('SecondaryLabel')
        self.layout().addWidget(label)

        self.name_editor = QtWidgets.QLineEdit(parent=self)
        ui.add_row('Name', self.name_editor, self)

        self.age_editor = QtWidgets.QLineEdit(parent=self)
        self.age_editor.setPlaceholderText(f'{forms.MIN_CHILD_AGE}-{forms.MAX_CHILD_AGE}')
        ui.add_row('Age', self.age_editor, self)

        self.allowance_editor = QtWidgets.QLineEdit(parent=self)
        self.allowance_editor.setPlaceholderText('0.00')
        ui.add_row('Weekly allowance', self.allowance_editor, self)

        self.add_button = QtWidgets.QPushButton('Add Child', parent=self)
        self.add_button.setObjectName('PrimaryButton')
        self.layout().addWidget(self.add_button)
        self.add_message_label(dashboard.CHILD_FORM)

        self.add_button.clicked.connect(self.add_child)
        self.controller.childrenChanged.connect(self.init_data)

    @QtCore.Slot()
    def add_child(self) -> None:
        self.controller.add_child(
            self.name_editor.text(),
            self.age_editor.text(),
            self.allowance_editor.text()
        )

    def reset_form(self, form: str) -> None:
        self.name_editor.clear()
        self.age_editor.clear()
        self.allowance_editor.clear()

    @QtCore.Slot()
    def init_data(self) -> None:
        self.view.model().init_data(self.controller.state.children)
        self.message_labels[dashboard.CHILDREN_LIST].clear_message()


class ExpensesPage(Page):
    form_names = (dashboard.EXPENSE_FORM,)
    title = 'Expenses'

    def _create_page(self) -> None:
        self.add_message_label(dashboard.EXPENSES_LIST)

        self.view = _table_view(model.FamilyExpensesModel(parent=self), self)
        self.layout().addWidget(self.view, 1)

        label = QtWidgets.QLabel('Log an expense', parent=self)
        label.setObjectName('SecondaryLabel')
        self.layout().addWidget(label)

        self.child_combo = ChildComboBox(parent=self)
        ui.add_row('Child', self.child_combo, self)

        self.description_editor = QtWidgets.QLineEdit(parent=self)
        self.description_editor.setMaxLength(forms.MAX_DESCRIPTION_LENGTH)
        ui.add_row('Description', self.description_editor, self)

        self.amount_editor = QtWidgets.QLineEdit(parent=self)
        self.amount_editor.setPlaceholderText('0.00')
        ui.add_row('Amount', self.amount_editor, self)

        self.category_combo = QtWidgets.QComboBox(parent=self)
        for category in family.CATEGORIES:
            self.category_combo.addItem(category.title(), userData=category)
        ui.add_row('Category', self.category_combo, self)

        self.add_button = QtWidgets.QPushButton('Add Expense', parent=self)
        self.add_button.setObjectName('PrimaryButton')
        self.layout().addWidget(self.add_button)
        self.add_message_label(dashboard.EXPENSE_FORM)

        self.add_button.clicked.connect(self.add_expense)
        self.controller.childrenChanged.connect(self.children_changed)
        self.controller.expensesChanged.connect(self.init_data)

    @QtCore.Slot()
    def add_expense(self) -> None:
        self.controller.add_expense(
            self.child_combo.currentData(),
            self.description_editor.text(),
            self.amount_editor.text(),
            self.category_combo.currentData()
        )

    def reset_form(self, form: str) -> None:
        self.description_editor.clear()
        self.amount_editor.clear()

    @QtCore.Slot()
    def children_changed(self) -> None:
        self.child_combo.set_children(self.controller.state.children)

    @QtCore.Slot()
    def init_data(self) -> None:
        self.view.model().init_data(self.controller.state.expenses)
        self.message_labels[dashboard.EXPENSES_LIST].clear_message()


class FundsPage(Page):
    form_names = (dashboard.FUNDS_FORM,)
    title = 'Add Funds'

    def _create_page(self) -> None:
        self.child_combo = ChildComboBox(parent=self)
        ui.add_row('Child', self.child_combo, self)

        self.amount_editor = QtWidgets.QLineEdit(parent=self)
        self.amount_editor.setPlaceholderText('0.00')
        ui.add_row('Amount', self.amount_editor, self)

        self.notes_editor = QtWidgets.QLineEdit(parent=self)
        self.notes_editor.setPlaceholderText('Optional')
        ui.add_row('Notes', self.notes_editor, self)

        self.add_button = QtWidgets.QPushButton('Add Funds', parent=self)
        self.add_button.setObjectName('PrimaryButton')
        self.layout().addWidget(self.add_button)
        self.add_message_label(dashboard.FUNDS_FORM)
        self.layout().addStretch(1)

        self.add_button.clicked.connect(self.add_funds)
        self.controller.childrenChanged.connect(self.init_data)

    @QtCore.Slot()
    def add_funds(self) -> None:
        self.controller.add_funds(
            self.child_combo.currentData(),
            self.amount_editor.text(),
            self.notes_editor.text()
        )

    def reset_form(self, form: str) -> None:
        self.amount_editor.clear()
        self.notes_editor.clear()

    @QtCore.Slot()
    def init_data(self) -> None:
        self.child_combo.set_children(self.controller.state.children)


class AnalyticsPage(Page):
    title = 'Analytics'

    def _create_page(self) -> None:
        self.total_label = QtWidgets.QLabel(parent=self)
        self.total_label.setObjectName('BalanceLabel')
        self.layout().addWidget(self.total_label)

        tabs = QtWidgets.QTabWidget(parent=self)
        share_kinds = {'total': model.Kind.Currency, 'count': model.Kind.Integer}
        self.models = {
            'by_category': model.FrameModel(kinds=share_kinds, parent=self),
            'by_child': model.FrameModel(kinds=share_kinds, parent=self),
            'by_month': model.FrameModel(
                kinds={'month': model.Kind.Month, 'total': model.Kind.Currency},
                parent=self
            ),
        }
        for key, name in (('by_category', 'By Category'), ('by_child', 'By Child'), ('by_month', 'By Month')):
            tabs.addTab(_table_view(self.models[key], tabs), name)
        self.layout().addWidget(tabs, 1)

        self.controller.expensesChanged.connect(self.init_data)

    @QtCore.Slot()
    def init_data(self) -> None:
        data = self.controller.analytics()
        self.total_label.setText(f'{locale.format_currency_value(data["total"])} spent')
        for key, m in self.models.items():
            m.init_data(data[key])


class Sidebar(QtWidgets.QFrame):
    """Navigation buttons of the dashboard pages.

    Signals:
        pageRequested (str): Name of the page to show.
        logoutRequested (): The logout button was clicked.
    """
    pageRequested = QtCore.Signal(str)
    logoutRequested = QtCore.Signal()

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('Sidebar')
        self.setFixedWidth(ui.Size.DefaultWidth(0.3))

        self.buttons: Dict[str, QtWidgets.QPushButton] = {}
        self.group = QtWidgets.QButtonGroup(self)
        self.group.setExclusive(True)

        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Indicator(2.0)
        self.layout().setContentsMargins(o, ui.Size.Margin(1.0), o, o)
        self.layout().setSpacing(o)

        for page, name in NAV_PAGES:
            button = QtWidgets.QPushButton(name, parent=self)
            button.setObjectName('NavButton')
            button.setCheckable(True)
            button.clicked.connect(lambda checked=False, p=page: self.pageRequested.emit(p))
            self.group.addButton(button)
            self.layout().addWidget(button)
            self.buttons[page] = button

        self.layout().addStretch(1)

        self.logout_button = QtWidgets.QPushButton('Logout', parent=self)
        self.logout_button.setObjectName('DangerButton')
        self.logout_button.clicked.connect(self.logoutRequested)
        self.layout().addWidget(self.logout_button)

    def set_current(self, page: str) -> None:
        button = self.buttons.get(page)
        if button:
            button.setChecked(True)


class FamilyWindow(QtWidgets.QMainWindow):
    """Main window of the family dashboard."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('PassbookFamilyWindow')

        from ..settings import lib
        self.setWindowTitle(lib.settings['name'] or lib.app_name)

        self.executor = worker.AsyncExecutor(parent=self)
        self.controller = dashboard.DashboardController(executor=self.executor, parent=self)

        self.sidebar = None
        self.stack = None
        self.pages: Dict[str, Page] = {}
        self.toast = None

        self._create_ui()
        self._init_actions()
        self._connect_signals()

    def _create_ui(self) -> None:
        central = QtWidgets.QWidget(parent=self)
        QtWidgets.QHBoxLayout(central)
        central.layout().setContentsMargins(0, 0, 0, 0)
        central.layout().setSpacing(0)

        self.sidebar = Sidebar(parent=central)
        self.sidebar.hide()
        central.layout().addWidget(self.sidebar)

        self.stack = QtWidgets.QStackedWidget(parent=central)
        central.layout().addWidget(self.stack, 1)

        for name, cls in (
                ('login', LoginPage),
                ('dashboard', OverviewPage),
                ('family', FamilyPage),
                ('children', ChildrenPage),
                ('expenses', ExpensesPage),
                ('funds', FundsPage),
                ('analytics', AnalyticsPage),
        ):
            page = cls(self.controller, parent=self.stack)
            self.stack.addWidget(page)
            self.pages[name] = page

        self.setCentralWidget(central)
        self.toast = ui.Toast(parent=self)
        self.setStatusBar(ui.StatusBar(parent=self))

    def _init_actions(self) -> None:
        menu = self.menuBar().addMenu('&View')

        action = menu.addAction('Refresh')
        action.setShortcut('F5')
        action.triggered.connect(lambda: self.controller.navigate(self.controller.state.page))

        menu.addSeparator()
        action = menu.addAction('Open Server')
        action.triggered.connect(lambda: signals.openServer.emit())

        action = menu.addAction('Logs')
        action.setShortcut('Ctrl+Shift+L')
        action.triggered.connect(lambda: signals.showLogs.emit())

        menu.addSeparator()
        action = menu.addAction('Quit')
        action.setShortcut('Ctrl+Q')
        action.triggered.connect(self.close)

    def _connect_signals(self) -> None:
        signals.initializationRequested.connect(self.controller.init)
        signals.showToast.connect(self.toast.show_message)
        signals.showLogs.connect(self.show_logs)

        self.controller.pageChanged.connect(self.show_page)
        self.controller.formMessage.connect(self.form_message)
        self.sidebar.pageRequested.connect(self.controller.navigate)
        self.sidebar.logoutRequested.connect(self.controller.logout)
        self.executor.busyChanged.connect(self.statusBar().set_busy)

    @QtCore.Slot(str)
    def show_page(self, page: str) -> None:
        logging.debug(f'Showing page: {page}')
        self.sidebar.setVisible(page != 'login')
        self.sidebar.set_current(page)

        widget = self.pages[page]
        widget.init_data()
        self.stack.setCurrentWidget(widget)

    @QtCore.Slot(str, str, str)
    def form_message(self, form: str, message: str, kind: str) -> None:
        if kind == 'success':
            signals.showToast.emit(message, kind)

    @QtCore.Slot()
    def show_logs(self) -> None:
        from ..log import view
        view.show(parent=self)

    def resizeEvent(self, event: QtGui.QResizeEvent) -> None:
        super().resizeEvent(event)
        if self.toast.isVisible():
            self.toast.reposition()

    def closeEvent(self, event: QtGui.QCloseEvent) -> None:
        self.executor.wait()
        super().closeEvent(event)

    def sizeHint(self) -> QtCore.QSize:
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.6),
            ui.Size.DefaultHeight(1.3)
        )
