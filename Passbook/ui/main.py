"""Main window of the PIN-protected passbook.

This module defines:
    - show(): initialize and display the main window
    - SummaryHeader: month name, savings, balance and spending of the current month
    - ExpensesView: the expenses of the current month with edit and delete actions
    - MonthsDockWidget: history of months
    - MainWindow: screens of the passbook, menus and toasts
"""
import logging
from typing import Optional

from PySide6 import QtCore, QtWidgets, QtGui

from . import dialogs
from . import pinpad
from . import ui
from .actions import signals
from ..core import worker
from ..core.controller import PassbookController
from ..core.state import EMPTY_TITLE
from ..data import analytics
from ..data import model
from ..settings import locale

widget = None

SCREEN_PAGES = {
    'loading': 0,
    'setup': 1,
    'auth': 1,
    'main': 2,
}


def show():
    global widget

    if widget is None:
        widget = MainWindow()

    widget.show()


def overview_text(months: list) -> str:
    """Returns the savings summary of the loaded months."""
    overview = analytics.month_overview(months)
    if not overview['count']:
        return ''

    text = (
        f'Saved {locale.format_currency_value(overview["total_saved"])} '
        f'over {overview["count"]} month'
        f'{"" if overview["count"] == 1 else "s"}'
    )
    if overview['count'] > 1:
        try:
            best = locale.format_month_name(overview['best'])
        except ValueError:
            best = overview['best']
        text += f'\nBest: {best}'
    return text


class SummaryHeader(QtWidgets.QWidget):
    """Figures of the current month."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.title_label = None
        self.saved_label = None
        self.balance_label = None
        self.spent_label = None
        self.allowance_label = None
        self._create_ui()

    def _create_ui(self) -> None:
        QtWidgets.QGridLayout(self)
        self.layout().setContentsMargins(0, 0, 0, 0)
        self.layout().setSpacing(ui.Size.Indicator(2.0))

        self.title_label = QtWidgets.QLabel(EMPTY_TITLE, parent=self)
        self.title_label.setObjectName('TitleLabel')
        self.layout().addWidget(self.title_label, 0, 0, 1, 2)

        label = QtWidgets.QLabel('Total Balance', parent=self)
        label.setObjectName('SecondaryLabel')
        self.layout().addWidget(label, 1, 0)

        self.balance_label = QtWidgets.QLabel(parent=self)
        self.balance_label.setObjectName('BalanceLabel')
        self.layout().addWidget(self.balance_label, 2, 0)

        self.saved_label = QtWidgets.QLabel(parent=self)
        self.saved_label.setObjectName('SecondaryLabel')
        self.layout().addWidget(self.saved_label, 1, 1, QtCore.Qt.AlignRight)

        self.spent_label = QtWidgets.QLabel(parent=self)
        self.spent_label.setObjectName('SecondaryLabel')
        self.layout().addWidget(self.spent_label, 2, 1, QtCore.Qt.AlignRight)

        self.allowance_label = QtWidgets.QLabel(parent=self)
        self.allowance_label.setObjectName('SecondaryLabel')
        self.layout().addWidget(self.allowance_label, 3, 1, QtCore.Qt.AlignRight)

    def set_summary(self, summary: dict, is_empty: bool) -> None:
        if is_empty or not summary.get('month'):
            self.title_label.setText(EMPTY_TITLE)
        else:
            try:
                self.title_label.setText(locale.format_month_name(summary['month']))
            except ValueError:
                self.title_label.setText(summary['month'])

        self.balance_label.setText(locale.format_currency_value(summary.get('total_balance')))
        self.saved_label.setText(f'Saved this month: {locale.format_currency_value(summary.get("monthly_saved"))}')
        self.spent_label.setText(f'{locale.format_currency_value(summary.get("total_expenses"))} spent')
        self.allowance_label.setText(f'{locale.format_currency_value(summary.get("allowance_added"))} added')


class ExpensesView(QtWidgets.QTableView):
    """Expenses of the current month.

    Signals:
        editRequested (str): Id of the expense to edit.
        deleteRequested (str): Id of the expense to delete.
    """
    editRequested = QtCore.Signal(str)
    deleteRequested = QtCore.Signal(str)

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setModel(model.ExpensesModel(parent=self))

        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.setAlternatingRowColors(True)
        self.setShowGrid(False)
        self.setContextMenuPolicy(QtCore.Qt.ActionsContextMenu)

        self._init_headers()
        self._init_actions()
        self._connect_signals()

    def _init_headers(self) -> None:
        header = self.horizontalHeader()
        header.setDefaultAlignment(QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter)
        header.setSectionResizeMode(0, QtWidgets.QHeaderView.Stretch)
        header.setSectionResizeMode(1, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(2, QtWidgets.QHeaderView.ResizeToContents)

        header = self.verticalHeader()
        header.setDefaultSectionSize(ui.Size.RowHeight(1.0))
        header.setHidden(True)

    def _init_actions(self) -> None:
        action = QtGui.QAction('Edit', self)
        action.setShortcut('Ctrl+E')
        action.triggered.connect(self.edit_current)
        self.addAction(action)

        action = QtGui.QAction('Delete', self)
        action.setShortcut(QtGui.QKeySequence.Delete)
        action.triggered.connect(self.delete_current)
        self.addAction(action)

    def _connect_signals(self) -> None:
        self.activated.connect(self.edit_current)

    def current_id(self) -> Optional[str]:
        index = self.currentIndex()
        if not index.isValid():
            return None
        return index.data(model.IdRole)

    @QtCore.Slot()
    def edit_current(self) -> None:
        expense_id = self.current_id()
        if expense_id:
            self.editRequested.emit(expense_id)

    @QtCore.Slot()
    def delete_current(self) -> None:
        expense_id = self.current_id()
        if expense_id:
            self.deleteRequested.emit(expense_id)


class MainScreen(QtWidgets.QWidget):
    """The current month and its expenses."""

    def __init__(self, controller: PassbookController, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.controller = controller

        self.header = None
        self.add_expense_button = None
        self.view = None
        self.empty_label = None
        self.load_more_button = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(3.0))

        self.header = SummaryHeader(parent=self)
        self.layout().addWidget(self.header)

        self.add_expense_button = QtWidgets.QPushButton('Add Expense', parent=self)
        self.add_expense_button.setObjectName('PrimaryButton')
        self.layout().addWidget(self.add_expense_button)

        self.empty_label = QtWidgets.QLabel('No expenses yet', parent=self)
        self.empty_label.setObjectName('SecondaryLabel')
        self.empty_label.setAlignment(QtCore.Qt.AlignCenter)
        self.layout().addWidget(self.empty_label)

        self.view = ExpensesView(parent=self)
        self.layout().addWidget(self.view, 1)

        self.load_more_button = QtWidgets.QPushButton('Load More', parent=self)
        self.load_more_button.hide()
        self.layout().addWidget(self.load_more_button)

    def _connect_signals(self) -> None:
        self.add_expense_button.clicked.connect(self.add_expense)
        self.load_more_button.clicked.connect(self.controller.load_more_expenses)
        self.view.editRequested.connect(self.controller.open_edit_expense)
        self.view.deleteRequested.connect(self.delete_expense)
        self.controller.monthChanged.connect(self.init_data)
        self.controller.editRequested.connect(self.edit_expense)

    @QtCore.Slot()
    def init_data(self) -> None:
        state = self.controller.state
        self.header.set_summary(state.summary, state.is_empty)
        self.view.model().init_data(state.expenses.items)
        self.empty_label.setVisible(not state.expenses)
        self.load_more_button.setVisible(state.expenses.has_more)

    @QtCore.Slot()
    def add_expense(self) -> None:
        dialogs.ExpenseDialog(self.controller, parent=self.window()).open()

    @QtCore.Slot(object)
    def edit_expense(self, expense: dict) -> None:
        dialogs.EditExpenseDialog(self.controller, expense, parent=self.window()).open()

    @QtCore.Slot(str)
    def delete_expense(self, expense_id: str) -> None:
        result = QtWidgets.QMessageBox.question(
            self,
            'Delete Expense',
            'Delete this expense?',
            QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No,
            QtWidgets.QMessageBox.No
        )
        if result != QtWidgets.QMessageBox.Yes:
            return
        self.controller.delete_expense(expense_id)


class MonthsDockWidget(QtWidgets.QDockWidget):
    """History of months. Selecting a month opens it."""

    def __init__(self, controller: PassbookController, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__('History', parent=parent)
        self.setObjectName('PassbookMonthsDockWidget')
        self.setFeatures(QtWidgets.QDockWidget.DockWidgetMovable | QtWidgets.QDockWidget.DockWidgetClosable)
        self.setMinimumWidth(ui.Size.DefaultWidth(0.35))

        self.controller = controller
        self.view = None
        self.empty_label = None
        self.load_more_button = None
        self.overview_label = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        widget = QtWidgets.QWidget(self)
        QtWidgets.QVBoxLayout(widget)
        o = ui.Size.Indicator(2.0)
        widget.layout().setContentsMargins(o, o, o, o)
        widget.layout().setSpacing(o)

        self.empty_label = QtWidgets.QLabel('No history yet', parent=widget)
        self.empty_label.setObjectName('SecondaryLabel')
        self.empty_label.setAlignment(QtCore.Qt.AlignCenter)
        widget.layout().addWidget(self.empty_label)

        self.view = QtWidgets.QTableView(parent=widget)
        self.view.setModel(model.MonthsModel(parent=self.view))
        self.view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.view.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.view.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.view.setShowGrid(False)
        self.view.horizontalHeader().setSectionResizeMode(0, QtWidgets.QHeaderView.Stretch)
        self.view.verticalHeader().setHidden(True)
        self.view.verticalHeader().setDefaultSectionSize(ui.Size.RowHeight(1.0))
        widget.layout().addWidget(self.view, 1)

        self.load_more_button = QtWidgets.QPushButton('Load More...', parent=widget)
        self.load_more_button.hide()
        widget.layout().addWidget(self.load_more_button)

        self.overview_label = QtWidgets.QLabel(parent=widget)
        self.overview_label.setObjectName('SecondaryLabel')
        self.overview_label.setWordWrap(True)
        widget.layout().addWidget(self.overview_label)

        self.setWidget(widget)

    def _connect_signals(self) -> None:
        self.controller.monthsChanged.connect(self.init_data)
        self.view.clicked.connect(self.month_clicked)
        self.load_more_button.clicked.connect(self.controller.load_more_months)

    @QtCore.Slot()
    def init_data(self) -> None:
        months = self.controller.state.months
        m = self.view.model()
        m.init_data(months.items)
        m.set_current_month(self.controller.state.current_month)

        self.empty_label.setVisible(not months)
        self.load_more_button.setVisible(months.has_more)
        self.overview_label.setText(overview_text(months.items))

        for row in range(m.rowCount()):
            if m.index(row, 0).data(model.CurrentRole):
                self.view.selectRow(row)
                break

    @QtCore.Slot(QtCore.QModelIndex)
    def month_clicked(self, index: QtCore.QModelIndex) -> None:
        month = index.data(model.IdRole)
        if month and month != self.controller.state.current_month:
            self.controller.select_month(month)


class MainWindow(QtWidgets.QMainWindow):
    """Main window of the passbook.

    The window shows one of the loading, PIN and main screens, as decided by
    the controller.
    """

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setObjectName('PassbookMainWindow')

        from ..settings import lib
        self.setWindowTitle(lib.settings['name'] or lib.app_name)

        self.executor = worker.AsyncExecutor(parent=self)
        self.controller = PassbookController(executor=self.executor, parent=self)

        self.stack = None
        self.pin_screen = None
        self.main_screen = None
        self.months_dock = None
        self.toast = None
        self.session_actions = []

        self._create_ui()
        self._init_actions()
        self._connect_signals()

    def _create_ui(self) -> None:
        self.stack = QtWidgets.QStackedWidget(parent=self)

        loading = QtWidgets.QLabel('Loading...', parent=self.stack)
        loading.setObjectName('SecondaryLabel')
        loading.setAlignment(QtCore.Qt.AlignCenter)
        self.stack.addWidget(loading)

        self.pin_screen = pinpad.PinScreen(self.controller.auth, parent=self.stack)
        self.stack.addWidget(self.pin_screen)

        self.main_screen = MainScreen(self.controller, parent=self.stack)
        self.stack.addWidget(self.main_screen)

        self.setCentralWidget(self.stack)

        self.months_dock = MonthsDockWidget(self.controller, parent=self)
        self.addDockWidget(QtCore.Qt.RightDockWidgetArea, self.months_dock)
        self.months_dock.hide()

        self.toast = ui.Toast(parent=self)

        self.setStatusBar(ui.StatusBar(parent=self))

    def _add_action(self, menu: QtWidgets.QMenu, name: str, func, shortcut: Optional[str] = None,
                    session: bool = False) -> QtGui.QAction:
        action = menu.addAction(name)
        action.triggered.connect(func)
        if shortcut:
            action.setShortcut(shortcut)
        if session:
            self.session_actions.append(action)
        return action

    def _init_actions(self) -> None:
        menu = self.menuBar().addMenu('&Passbook')
        self._add_action(menu, 'Add Expense', self.main_screen.add_expense, 'Ctrl+N', session=True)
        self._add_action(menu, 'New Month', self.create_month, 'Ctrl+Shift+N', session=True)
        self._add_action(menu, 'Add Funds', self.add_funds, 'Ctrl+F', session=True)
        menu.addSeparator()
        self._add_action(menu, 'Change PIN', self.change_pin, session=True)
        self._add_action(menu, 'Logout', self.controller.logout, 'Ctrl+L', session=True)
        menu.addSeparator()
        self._add_action(menu, 'Quit', self.close, 'Ctrl+Q')

        menu = self.menuBar().addMenu('&View')
        action = self.months_dock.toggleViewAction()
        action.setShortcut('Ctrl+H')
        menu.addAction(action)
        self.session_actions.append(action)
        self._add_action(menu, 'Refresh', lambda: self.controller.load_initial_data(), 'F5', session=True)
        menu.addSeparator()
        self._add_action(menu, 'Open Server', lambda: signals.openServer.emit())
        self._add_action(menu, 'Logs', lambda: signals.showLogs.emit(), 'Ctrl+Shift+L')

        self.set_session_actions_enabled(False)

    def _connect_signals(self) -> None:
        signals.initializationRequested.connect(self.controller.init)
        signals.showToast.connect(self.toast.show_message)
        signals.showLogs.connect(self.show_logs)

        self.controller.screenChanged.connect(self.show_screen)
        self.executor.busyChanged.connect(self.statusBar().set_busy)

        @QtCore.Slot(str, object)
        def metadata_changed(key: str, value: object) -> None:
            if key == 'name':
                from ..settings import lib
                self.setWindowTitle(value or lib.app_name)

        signals.metadataChanged.connect(metadata_changed)

    def set_session_actions_enabled(self, enabled: bool) -> None:
        for action in self.session_actions:
            action.setEnabled(enabled)

    @QtCore.Slot(str)
    def show_screen(self, screen: str) -> None:
        logging.debug(f'Showing screen: {screen}')
        self.stack.setCurrentIndex(SCREEN_PAGES[screen])

        is_main = screen == 'main'
        self.set_session_actions_enabled(is_main)
        self.months_dock.setVisible(is_main)
        if is_main:
            self.main_screen.init_data()

    @QtCore.Slot()
    def create_month(self) -> None:
        dialogs.CreateMonthDialog(self.controller, parent=self).open()

    @QtCore.Slot()
    def add_funds(self) -> None:
        if not self.controller.state.current_month:
            signals.showToast.emit('No month selected', 'error')
            return
        dialogs.AddFundsDialog(self.controller, parent=self).open()

    @QtCore.Slot()
    def change_pin(self) -> None:
        dialogs.ChangePinDialog(self.controller, parent=self).open()

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
            ui.Size.DefaultWidth(1.4),
            ui.Size.DefaultHeight(1.2)
        )
