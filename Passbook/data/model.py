"""Qt table models of the server's lists.

Every model displays a list of dicts. Each column names the key it reads and
how the value is formatted. The raw record of a row is available with
:attr:`RecordRole`.
"""
import enum
import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from PySide6 import QtCore

from ..settings import locale

RecordRole = QtCore.Qt.UserRole + 1
IdRole = QtCore.Qt.UserRole + 2
CurrentRole = QtCore.Qt.UserRole + 3


class Kind(enum.StrEnum):
    Text = 'text'
    Currency = 'currency'
    Expense = 'expense'
    Allowance = 'allowance'
    Timestamp = 'timestamp'
    Day = 'day'
    Month = 'month'
    Integer = 'integer'


def format_value(value: Any, kind: Kind) -> str:
    """Returns the display text of a value.

    Args:
        value: The raw value of a record.
        kind (Kind): How the value should be shown.

    Returns:
        str: The formatted text. Missing values are shown as an empty string,
        or as zero for currency kinds.
    """
    if kind in (Kind.Currency, Kind.Expense, Kind.Allowance):
        try:
            amount = float(value or 0)
        except (TypeError, ValueError):
            return f'{value}'
        text = locale.format_currency_value(amount)
        if kind == Kind.Expense:
            return f'-{text}'
        if kind == Kind.Allowance:
            return f'{text}/week'
        return text

    if value is None or value == '':
        return ''
    if kind == Kind.Timestamp:
        return locale.format_timestamp(value)
    if kind == Kind.Day:
        return locale.format_day(value)
    if kind == Kind.Month:
        try:
            return locale.format_month_name(value)
        except ValueError:
            return f'{value}'
    return f'{value}'


class RecordsModel(QtCore.QAbstractTableModel):
    """Table model of a list of server records.

    Subclasses set :attr:`COLUMNS` to a list of ``(key, header, kind)`` tuples
    and :attr:`ID_KEY` to the key identifying a record.
    """
    COLUMNS: List[Tuple[str, str, Kind]] = []
    ID_KEY: str = 'id'

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)
        self._data: List[Dict[str, Any]] = []

    @QtCore.Slot(list)
    def init_data(self, data: List[Dict[str, Any]]) -> None:
        self.beginResetModel()
        try:
            self._data = [r for r in (data or []) if isinstance(r, dict)]
            if len(self._data) != len(data or []):
                logging.warning(f'{self.__class__.__name__}: ignored malformed records.')
        finally:
            self.endResetModel()

    @QtCore.Slot()
    def clear_data(self) -> None:
        self.beginResetModel()
        self._data = []
        self.endResetModel()

    def record(self, row: int) -> Optional[Dict[str, Any]]:
        if 0 <= row < len(self._data):
            return self._data[row]
        return None

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._data)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self.COLUMNS)

    def is_current(self, record: Dict[str, Any]) -> bool:
        return False

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid():
            return None
        record = self.record(index.row())
        if record is None:
            return None

        key, _, kind = self.COLUMNS[index.column()]
        value = record.get(key)

        if role in (QtCore.Qt.DisplayRole, QtCore.Qt.ToolTipRole, QtCore.Qt.StatusTipRole):
            return format_value(value, kind)
        if role == QtCore.Qt.EditRole:
            return value
        if role == QtCore.Qt.TextAlignmentRole:
            if kind in (Kind.Currency, Kind.Expense, Kind.Allowance, Kind.Integer):
                return QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter
            return QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter
        if role == QtCore.Qt.ForegroundRole and kind in (Kind.Currency, Kind.Expense):
            from ..ui import ui
            try:
                amount = float(value or 0)
            except (TypeError, ValueError):
                return None
            if kind == Kind.Expense or amount < 0:
                return ui.Color.Red()
            return ui.Color.Green() if amount > 0 else ui.Color.DisabledText()
        if role == RecordRole:
            return record
        if role == IdRole:
            return record.get(self.ID_KEY)
        if role == CurrentRole:
            return self.is_current(record)
        return None

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.DisplayRole) -> Any:
        if orientation == QtCore.Qt.Horizontal and role == QtCore.Qt.DisplayRole:
            if 0 <= section < len(self.COLUMNS):
                return self.COLUMNS[section][1]
        return None


class ExpensesModel(RecordsModel):
    """Expenses of the current passbook month."""
    COLUMNS = [
        ('description', 'Description', Kind.Text),
        ('created_at', 'Date', Kind.Timestamp),
        ('amount', 'Amount', Kind.Expense),
    ]


class MonthsModel(RecordsModel):
    """Months of the passbook with the amount saved in each."""
    COLUMNS = [
        ('month', 'Month', Kind.Month),
        ('monthly_saved', 'Saved', Kind.Currency),
    ]
    ID_KEY = 'month'

    def __init__(self, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)
        self.current_month: Optional[str] = None

    def set_current_month(self, month: Optional[str]) -> None:
        self.current_month = month
        if self._data:
            self.dataChanged.emit(
                self.index(0, 0),
                self.index(self.rowCount() - 1, self.columnCount() - 1),
                [CurrentRole]
            )

    def is_current(self, record: Dict[str, Any]) -> bool:
        return record.get('month') == self.current_month


class ChildrenModel(RecordsModel):
    """Children of the family with their allowance and balance."""
    COLUMNS = [
        ('displayName', 'Name', Kind.Text),
        ('age', 'Age', Kind.Integer),
        ('weeklyAllowance', 'Allowance', Kind.Allowance),
        ('balance', 'Balance', Kind.Currency),
    ]
    ID_KEY = 'userId'


class FamilyExpensesModel(RecordsModel):
    """Expenses logged for the children of the family."""
    COLUMNS = [
        ('date', 'Date', Kind.Day),
        ('childName', 'Child', Kind.Text),
        ('description', 'Description', Kind.Text),
        ('category', 'Category', Kind.Text),
        ('amount', 'Amount', Kind.Currency),
    ]

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if role == QtCore.Qt.DisplayRole and index.isValid() and self.COLUMNS[index.column()][0] == 'childName':
            record = self.record(index.row()) or {}
            return record.get('childName') or 'Unknown'
        return super().data(index, role)


class FrameModel(QtCore.QAbstractTableModel):
    """Read-only model of a pandas DataFrame, used by the analytics tables.

    Args:
        kinds (dict): Optional mapping of column names to :class:`Kind`.
    """

    def __init__(self, kinds: Optional[Dict[str, Kind]] = None, parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)
        self._df = pd.DataFrame()
        self._kinds = kinds or {}

    def init_data(self, df: pd.DataFrame) -> None:
        self.beginResetModel()
        self._df = df.reset_index(drop=True) if df is not None else pd.DataFrame()
        self.endResetModel()

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._df)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return 0 if parent.isValid() else len(self._df.columns)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid() or role != QtCore.Qt.DisplayRole:
            return None
        column = self._df.columns[index.column()]
        value = self._df.iat[index.row(), index.column()]
        kind = self._kinds.get(column, Kind.Text)
        if kind == Kind.Text and isinstance(value, float):
            return f'{value:.1f}'
        return format_value(value, kind)

    def headerData(self, section: int, orientation: QtCore.Qt.Orientation, role: int = QtCore.Qt.DisplayRole) -> Any:
        if orientation == QtCore.Qt.Horizontal and role == QtCore.Qt.DisplayRole:
            if 0 <= section < len(self._df.columns):
                return str(self._df.columns[section]).replace('_', ' ').capitalize()
        return None
