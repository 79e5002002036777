"""Client of the family allowance backend.

The family backend authenticates with e-mail and password and expects the
token as an ``Authorization: Bearer`` header. A user whose ``familyId`` is
``'UNASSIGNED'`` has not created a family yet.
"""

import logging
from typing import Any, Dict, List, Optional

from .api import BaseClient
from .session import SessionStore

UNASSIGNED_FAMILY: str = 'UNASSIGNED'

CURRENCIES: List[str] = ['USD', 'EUR', 'GBP', 'INR']
CATEGORIES: List[str] = ['food', 'entertainment', 'education', 'clothing', 'other']


class FamilyClient(BaseClient):
    """Method-per-endpoint client of the family allowance dashboard."""

    def __init__(self, base_url: Optional[str] = None, session: Optional[SessionStore] = None, **kwargs: Any) -> None:
        super().__init__(
            base_url=base_url,
            session_name='family',
            header_scheme='bearer',
            session=session,
            **kwargs
        )

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.session.user

    def has_family(self) -> bool:
        user = self.user or {}
        family_id = user.get('familyId')
        return bool(family_id) and family_id != UNASSIGNED_FAMILY

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Log in and store the returned token and user.

        Returns:
            dict: The server's answer, containing ``user`` and ``token``.
        """
        data = self.request('POST', '/auth/login', {'email': email, 'password': password})
        token = data.get('token')
        if token:
            self.set_session(token, data.get('user') or {})
        else:
            logging.warning('Login answer did not contain a token.')
        return data

    def create_family(self, family_name: str, currency: str) -> Dict[str, Any]:
        """Create a family for the logged-in user and record it on the cached user."""
        data = self.request('POST', '/families', {'familyName': family_name, 'currency': currency})

        family = data.get('family') if isinstance(data.get('family'), dict) else data
        family_id = family.get('familyId') or 'created'

        user = dict(self.user or {})
        user['familyId'] = family_id
        self.session.set_user(user)
        return data

    def list_children(self) -> List[Dict[str, Any]]:
        data = self.request('GET', '/children')
        return data.get('children') or []

    def add_child(self, display_name: str, age: int, weekly_allowance: float) -> Dict[str, Any]:
        return self.request('POST', '/children', {
            'displayName': display_name,
            'age': age,
            'weeklyAllowance': weekly_allowance,
        })

    def list_expenses(self) -> List[Dict[str, Any]]:
        data = self.request('GET', '/expenses')
        return data.get('expenses') or []

    def add_expense(self, child_id: str, description: str, amount: float, category: str) -> Dict[str, Any]:
        return self.request('POST', '/expenses', {
            'childId': child_id,
            'description': description,
            'amount': amount,
            'category': category,
        })

    def add_funds(self, child_id: str, amount: float, notes: str = '') -> Dict[str, Any]:
        return self.request('POST', '/funds', {
            'childId': child_id,
            'amount': amount,
            'notes': notes,
        })

    def logout(self) -> None:
        """Forget the local session. The family backend has no logout endpoint."""
        self.clear_session()
