"""In-memory state of the two application variants.

The state objects hold what the server sent last, and derive the values the
widgets display. They never talk to the server themselves.
"""
from typing import Any, Dict, List, Optional

from .pagination import CursorList

SCREENS: List[str] = ['loading', 'setup', 'auth', 'main']

PAGES: List[str] = [
    'login',
    'dashboard',
    'family',
    'children',
    'expenses',
    'funds',
    'analytics',
]

EMPTY_TITLE: str = 'No Data Yet'


def monthly_saved(summary: Optional[Dict[str, Any]]) -> float:
    """Returns the allowance of a month minus its expenses."""
    if not summary:
        return 0.0
    return float(summary.get('allowance_added') or 0) - float(summary.get('total_expenses') or 0)


class PassbookState:
    """State of the PIN-protected passbook."""

    def __init__(self) -> None:
        self.screen: str = 'loading'
        self.current_month: Optional[str] = None
        self.month_data: Optional[Dict[str, Any]] = None
        self.expenses = CursorList('expenses')
        self.months = CursorList('months')
        self.editing_expense: Optional[Dict[str, Any]] = None

    def set_screen(self, screen: str) -> None:
        if screen not in SCREENS:
            raise ValueError(f'Invalid screen: {screen}, must be one of {SCREENS}')
        self.screen = screen

    def set_month_data(self, data: Dict[str, Any]) -> None:
        """Replace the current month with a freshly fetched first page."""
        self.month_data = data
        self.current_month = data.get('month') or self.current_month
        self.expenses.reset(data)

    def clear_month(self) -> None:
        self.current_month = None
        self.month_data = None
        self.expenses.clear()

    def find_expense(self, expense_id: str) -> Optional[Dict[str, Any]]:
        return next((e for e in self.expenses if e.get('id') == expense_id), None)

    @property
    def is_empty(self) -> bool:
        """True when the server has no months at all."""
        return self.current_month is None

    @property
    def summary(self) -> Dict[str, Any]:
        """Returns the figures shown at the top of the main screen.

        Returns:
            dict: ``month``, ``monthly_saved``, ``total_balance``, ``allowance_added``
            and ``total_expenses``. All amounts are zero while no month is loaded.
        """
        data = self.month_data or {}
        summary = data.get('summary') or {}
        return {
            'month': self.current_month,
            'monthly_saved': monthly_saved(summary),
            'total_balance': float(data.get('total_balance') or 0),
            'allowance_added': float(summary.get('allowance_added') or 0),
            'total_expenses': float(summary.get('total_expenses') or 0),
        }

    def reset(self) -> None:
        self.clear_month()
        self.months.clear()
        self.editing_expense = None


class DashboardState:
    """State of the family allowance dashboard."""

    def __init__(self) -> None:
        self.page: str = 'login'
        self.user: Optional[Dict[str, Any]] = None
        self.family: Optional[Dict[str, Any]] = None
        self.children: List[Dict[str, Any]] = []
        self.expenses: List[Dict[str, Any]] = []

    def set_page(self, page: str) -> None:
        if page not in PAGES:
            raise ValueError(f'Invalid page: {page}, must be one of {PAGES}')
        self.page = page

    def reset(self) -> None:
        self.page = 'login'
        self.user = None
        self.family = None
        self.children = []
        self.expenses = []
