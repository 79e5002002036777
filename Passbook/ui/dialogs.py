"""Form dialogs of the passbook.

Each dialog collects the input of one :class:`~Passbook.core.controller.PassbookController`
form and hands it to the controller. The controller answers with
``formFailed`` to show an inline error, or ``formSucceeded`` to close the dialog.

This module defines:
    - FormDialog: base dialog with an inline error label and a submit button
    - ExpenseDialog, EditExpenseDialog: add or edit an expense
    - CreateMonthDialog: start a new month
    - AddFundsDialog: add funds to the current month
    - ChangePinDialog: change the PIN
"""
from typing import Any, Dict, Optional

from PySide6 import QtCore, QtWidgets

from . import ui
from ..core import controller as _controller
from ..core import forms
from ..settings import locale


class FormDialog(QtWidgets.QDialog):
    """Base dialog of a controller form.

    Subclasses set :attr:`form`, :attr:`title` and :attr:`submit_label`,
    create their fields in :meth:`_create_fields` and submit them in :meth:`submit`.
    """
    form: str = ''
    title: str = ''
    submit_label: str = 'Save'

    def __init__(self, controller: _controller.PassbookController, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.controller = controller

        self.setWindowTitle(self.title)
        self.setModal(True)
        self.setMinimumWidth(ui.Size.DefaultWidth(0.6))

        self.error_label = None
        self.submit_button = None
        self.cancel_button = None

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(ui.Size.Indicator(2.0))

        self._create_fields()

        self.error_label = QtWidgets.QLabel(parent=self)
        self.error_label.setObjectName('ErrorLabel')
        self.error_label.setWordWrap(True)
        self.error_label.hide()
        self.layout().addWidget(self.error_label)

        self.layout().addStretch(1)

        buttons = QtWidgets.QWidget(parent=self)
        QtWidgets.QHBoxLayout(buttons)
        buttons.layout().setContentsMargins(0, 0, 0, 0)

        self.cancel_button = QtWidgets.QPushButton('Cancel', parent=buttons)
        buttons.layout().addWidget(self.cancel_button, 1)

        self.submit_button = QtWidgets.QPushButton(self.submit_label, parent=buttons)
        self.submit_button.setObjectName('PrimaryButton')
        self.submit_button.setDefault(True)
        buttons.layout().addWidget(self.submit_button, 1)

        self.layout().addWidget(buttons)

    def _create_fields(self) -> None:
        raise NotImplementedError('Abstract method must be implemented by subclass.')

    def _connect_signals(self) -> None:
        self.cancel_button.clicked.connect(self.reject)
        self.submit_button.clicked.connect(self.submit)

        self.controller.formFailed.connect(self.form_failed)
        self.controller.formSucceeded.connect(self.form_succeeded)

        # Typing clears the error
        for widget in self.findChildren(QtWidgets.QLineEdit):
            widget.textEdited.connect(self.clear_error)

    def submit(self) -> None:
        raise NotImplementedError('Abstract method must be implemented by subclass.')

    @QtCore.Slot()
    def clear_error(self) -> None:
        self.error_label.setText('')
        self.error_label.hide()

    @QtCore.Slot(str, str)
    def form_failed(self, form: str, message: str) -> None:
        if form != self.form:
            return
        self.error_label.setText(message)
        self.error_label.show()

    @QtCore.Slot(str)
    def form_succeeded(self, form: str) -> None:
        if form != self.form:
            return
        self.accept()

    def done(self, result: int) -> None:
        self.controller.formFailed.disconnect(self.form_failed)
        self.controller.formSucceeded.disconnect(self.form_succeeded)
        super().done(result)


def _amount_editor(parent: QtWidgets.QWidget) -> QtWidgets.QLineEdit:
    editor = QtWidgets.QLineEdit(parent=parent)
    editor.setPlaceholderText('0.00')
    editor.setMaxLength(12)
    return editor


class ExpenseDialog(FormDialog):
    """Add an expense to the current month."""
    form = _controller.EXPENSE_FORM
    title = 'Add Expense'
    submit_label = 'Add Expense'

    def _create_fields(self) -> None:
        self.amount_editor = _amount_editor(self)
        ui.add_row('Amount', self.amount_editor, self)

        self.description_editor = QtWidgets.QLineEdit(parent=self)
        self.description_editor.setPlaceholderText('What was it for?')
        self.description_editor.setMaxLength(forms.MAX_DESCRIPTION_LENGTH)
        ui.add_row('Description', self.description_editor, self)

    def submit(self) -> None:
        self.controller.add_expense(self.amount_editor.text(), self.description_editor.text())


class EditExpenseDialog(ExpenseDialog):
    """Edit the amount and description of an expense."""
    form = _controller.EDIT_EXPENSE_FORM
    title = 'Edit Expense'
    submit_label = 'Save Changes'

    def __init__(
            self,
            controller: _controller.PassbookController,
            expense: Dict[str, Any],
            parent: Optional[QtWidgets.QWidget] = None
    ) -> None:
        super().__init__(controller, parent=parent)
        self.amount_editor.setText(f'{float(expense.get("amount") or 0):.2f}')
        self.description_editor.setText(expense.get('description') or '')

    def submit(self) -> None:
        self.controller.edit_expense(self.amount_editor.text(), self.description_editor.text())

    def reject(self) -> None:
        self.controller.cancel_edit_expense()
        super().reject()


class CreateMonthDialog(FormDialog):
    """Start a new month, the current calendar month by default."""
    form = _controller.CREATE_MONTH_FORM
    title = 'New Month'
    submit_label = 'Create Month'

    def _create_fields(self) -> None:
        self.month_editor = QtWidgets.QLineEdit(locale.get_current_month_key(), parent=self)
        self.month_editor.setPlaceholderText('YYYY-MM')
        self.month_editor.setInputMask('9999-99')
        ui.add_row('Month', self.month_editor, self)

    def submit(self) -> None:
        self.controller.create_month(self.month_editor.text())


class AddFundsDialog(FormDialog):
    """Add an allowance to the current month."""
    form = _controller.ADD_FUNDS_FORM
    title = 'Add Funds'
    submit_label = 'Add Funds'

    def _create_fields(self) -> None:
        month = self.controller.state.current_month
        if month:
            label = QtWidgets.QLabel(locale.format_month_name(month), parent=self)
            label.setObjectName('SecondaryLabel')
            self.layout().addWidget(label)

        self.amount_editor = _amount_editor(self)
        ui.add_row('Amount', self.amount_editor, self)

    def submit(self) -> None:
        self.controller.add_funds(self.amount_editor.text())


class ChangePinDialog(FormDialog):
    """Change the PIN. The current PIN must be entered again."""
    form = _controller.CHANGE_PIN_FORM
    title = 'Change PIN'
    submit_label = 'Change PIN'

    def _pin_editor(self) -> QtWidgets.QLineEdit:
        editor = QtWidgets.QLineEdit(parent=self)
        editor.setEchoMode(QtWidgets.QLineEdit.Password)
        editor.setMaxLength(6)
        editor.setInputMethodHints(QtCore.Qt.ImhDigitsOnly)
        return editor

    def _create_fields(self) -> None:
        self.current_editor = self._pin_editor()
        ui.add_row('Current PIN', self.current_editor, self)

        self.new_editor = self._pin_editor()
        ui.add_row('New PIN', self.new_editor, self)

        self.confirm_editor = self._pin_editor()
        ui.add_row('Confirm PIN', self.confirm_editor, self)

    def submit(self) -> None:
        self.controller.change_pin(
            self.current_editor.text(),
            self.new_editor.text(),
            self.confirm_editor.text()
        )
