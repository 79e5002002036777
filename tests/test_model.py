"""Tests for the Qt table models."""
import pandas as pd
from PySide6 import QtCore

from Passbook.data import model
from Passbook.data.analytics import spending_by
from Passbook.data.model import Kind
from tests.base import BaseTestCase

EXPENSES = [
    {'id': 'e1', 'description': 'Lunch', 'created_at': '2024-05-02T12:00:00', 'amount': 10},
    {'id': 'e2', 'description': 'Shoes', 'created_at': '2024-05-01T12:00:00', 'amount': 49.5},
]


class FormatValueTests(BaseTestCase):

    def test_currency_kinds(self):
        self.assertEqual(model.format_value(12, Kind.Currency), '$12.00')
        self.assertEqual(model.format_value(None, Kind.Currency), '$0.00')
        self.assertEqual(model.format_value(12, Kind.Expense), '-$12.00')
        self.assertEqual(model.format_value('5', Kind.Allowance), '$5.00/week')
        self.assertEqual(model.format_value('n/a', Kind.Currency), 'n/a')

    def test_text_kinds(self):
        self.assertEqual(model.format_value(None, Kind.Text), '')
        self.assertEqual(model.format_value(9, Kind.Integer), '9')
        self.assertEqual(model.format_value('2024-05', Kind.Month), 'May 2024')
        self.assertEqual(model.format_value('bogus', Kind.Month), 'bogus')
        self.assertEqual(model.format_value('2024-05-01T10:30:00', Kind.Timestamp), 'May 1, 10:30 AM')


class RecordsModelTests(BaseTestCase):

    def setUp(self) -> None:
        super().setUp()
        self.model = model.ExpensesModel()
        self.model.init_data(EXPENSES)

    def test_counts(self):
        self.assertEqual(self.model.rowCount(), 2)
        self.assertEqual(self.model.columnCount(), 3)
        self.assertEqual(self.model.headerData(2, QtCore.Qt.Horizontal), 'Amount')
        self.assertIsNone(self.model.headerData(5, QtCore.Qt.Horizontal))

    def test_display(self):
        self.assertEqual(self.model.data(self.model.index(0, 0)), 'Lunch')
        self.assertEqual(self.model.data(self.model.index(1, 2)), '-$49.50')

    def test_roles(self):
        index = self.model.index(1, 2)
        self.assertEqual(self.model.data(index, QtCore.Qt.EditRole), 49.5)
        self.assertEqual(self.model.data(index, model.IdRole), 'e2')
        self.assertEqual(self.model.data(index, model.RecordRole), EXPENSES[1])
        self.assertFalse(self.model.data(index, model.CurrentRole))
        self.assertIsNotNone(self.model.data(index, QtCore.Qt.ForegroundRole))

    def test_malformed_records_are_ignored(self):
        self.model.init_data([EXPENSES[0], 'garbage', None])
        self.assertEqual(self.model.rowCount(), 1)

    def test_clear(self):
        self.model.clear_data()
        self.assertEqual(self.model.rowCount(), 0)
        self.assertIsNone(self.model.record(0))
        self.assertIsNone(self.model.data(self.model.index(0, 0)))


class MonthsModelTests(BaseTestCase):

    def test_current_month(self):
        months = model.MonthsModel()
        months.init_data([{'month': '2024-05', 'monthly_saved': 40}, {'month': '2024-04', 'monthly_saved': -5}])
        changed = self.record(months.dataChanged, owner=months)

        months.set_current_month('2024-04')

        self.assertEqual(changed.count, 1)
        self.assertFalse(months.data(months.index(0, 0), model.CurrentRole))
        self.assertTrue(months.data(months.index(1, 0), model.CurrentRole))
        self.assertEqual(months.data(months.index(0, 0)), 'May 2024')
        self.assertEqual(months.data(months.index(1, 0), model.IdRole), '2024-04')


class FamilyModelTests(BaseTestCase):

    def test_children(self):
        children = model.ChildrenModel()
        children.init_data([{'userId': 'c1', 'displayName': 'Ann', 'age': 9, 'weeklyAllowance': 5, 'balance': 2}])

        self.assertEqual(children.data(children.index(0, 2)), '$5.00/week')
        self.assertEqual(children.data(children.index(0, 3)), '$2.00')
        self.assertEqual(children.data(children.index(0, 0), model.IdRole), 'c1')

    def test_unknown_child_name(self):
        expenses = model.FamilyExpensesModel()
        expenses.init_data([{'date': '2024-05-01', 'description': 'Comic', 'amount': 3}])
        self.assertEqual(expenses.data(expenses.index(0, 1)), 'Unknown')
        self.assertEqual(expenses.data(expenses.index(0, 4)), '$3.00')


class FrameModelTests(BaseTestCase):

    def test_frame(self):
        frame = model.FrameModel(kinds={'total': Kind.Currency})
        frame.init_data(spending_by([{'category': 'food', 'amount': 3}, {'category': 'toys', 'amount': 1}], 'category'))

        self.assertEqual(frame.rowCount(), 2)
        self.assertEqual(frame.columnCount(), 4)
        self.assertEqual(frame.headerData(0, QtCore.Qt.Horizontal), 'Name')
        self.assertEqual(frame.data(frame.index(0, 0)), 'food')
        self.assertEqual(frame.data(frame.index(0, 1)), '$3.00')
        self.assertEqual(frame.data(frame.index(0, 3)), '75.0')

    def test_empty_frame(self):
        frame = model.FrameModel()
        frame.init_data(pd.DataFrame())
        self.assertEqual(frame.rowCount(), 0)
        self.assertEqual(frame.columnCount(), 0)
