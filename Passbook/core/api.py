"""HTTP client of the Passbook backend.

Provides :class:`BaseClient`, a wrapper around a
:class:`requests.Session` that attaches the session token, serializes
JSON bodies and converts failed responses into status exceptions carrying the
server's ``error`` message.

A ``401`` answer to a request that carried a token means the server no longer
accepts the session: the local session is cleared, ``signals.sessionExpired``
is emitted and :class:`~Passbook.status.status.SessionExpiredException` is raised.
"""

import http.cookiejar
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .session import SessionStore
from ..status import status

DEFAULT_TIMEOUT: float = 10.0
DEFAULT_RETRIES: int = 3
DEFAULT_PAGE_LIMIT: int = 50

RETRY_STATUS_CODES = (502, 503, 504)
RETRY_BACKOFF: float = 0.3

HEADER_SCHEMES = ('session', 'bearer')


def _build_http_session(retries: int) -> requests.Session:
    """Create a requests session that retries idempotent reads and never keeps cookies."""
    http_session = requests.Session()
    http_session.cookies.set_policy(http.cookiejar.DefaultCookiePolicy(allowed_domains=[]))

    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=RETRY_BACKOFF,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset(['GET']),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    http_session.mount('http://', adapter)
    http_session.mount('https://', adapter)
    return http_session


def encode_segment(value: str) -> str:
    """Percent-encode a value for use as a single url path segment."""
    return quote(str(value), safe='')


class BaseClient:
    """Request machinery shared by the backend clients.

    Args:
        base_url: Server url. Defaults to the configured url, resolved on every request.
        session_name: Name of the persisted session.
        header_scheme: ``'session'`` sends the token as ``X-Session-Token``,
            ``'bearer'`` as an ``Authorization: Bearer`` header.
        session: Optional session store, mostly useful for testing.
        timeout: Request timeout in seconds. Defaults to the configured value.
        retries: Number of retries of failed GET requests. Defaults to the configured value.
        page_limit: Page size of paginated endpoints. Defaults to the configured value.
    """

    def __init__(
            self,
            base_url: Optional[str] = None,
            session_name: str = 'pin',
            header_scheme: str = 'session',
            session: Optional[SessionStore] = None,
            timeout: Optional[float] = None,
            retries: Optional[int] = None,
            page_limit: Optional[int] = None,
    ) -> None:
        if header_scheme not in HEADER_SCHEMES:
            raise ValueError(f'Invalid header scheme: {header_scheme}, must be one of {HEADER_SCHEMES}')

        self._base_url = base_url.rstrip('/') if base_url else None
        self.header_scheme = header_scheme
        self.session = session or SessionStore(session_name)

        self.timeout = timeout if timeout is not None else self._server_option('timeout', DEFAULT_TIMEOUT)
        self.retries = retries if retries is not None else self._server_option('retries', DEFAULT_RETRIES)
        self.page_limit = page_limit if page_limit is not None else self._server_option(
            'page_limit', DEFAULT_PAGE_LIMIT)

        self.http = _build_http_session(self.retries)

    @staticmethod
    def _server_option(key: str, default: Any) -> Any:
        from ..settings import lib
        try:
            return lib.settings.get_server_option(key)
        except KeyError:
            return default

    @property
    def base_url(self) -> str:
        if self._base_url:
            return self._base_url
        from ..settings import lib
        return lib.settings.get_server_url()

    def _auth_headers(self, token: str) -> Dict[str, str]:
        if self.header_scheme == 'bearer':
            return {'Authorization': f'Bearer {token}'}
        return {'X-Session-Token': token}

    def request(
            self,
            method: str,
            endpoint: str,
            body: Optional[Dict[str, Any]] = None,
            params: Optional[Dict[str, Any]] = None,
            accept_unauthorized: bool = False,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON answer.

        Args:
            method: HTTP method, e.g. ``'GET'``.
            endpoint: Path of the endpoint, e.g. ``'/api/balance'``.
            body: Optional JSON body.
            params: Optional query parameters. ``None`` values are dropped.
            accept_unauthorized: Return the body of a ``401`` answer instead of raising.

        Returns:
            dict: The decoded response body. Empty answers decode to ``{}``.

        Raises:
            status.ServiceUnavailableException: The server could not be reached,
                or answered with something that is not JSON.
            status.SessionExpiredException: The server rejected the session token.
            status.RequestFailedException: The server answered with a non-2xx status.
        """
        from ..ui.actions import signals

        method = method.upper()
        url = f'{self.base_url}{endpoint}'

        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        token = self.session.token
        if token:
            headers.update(self._auth_headers(token))

        if params:
            params = {k: v for k, v in params.items() if v is not None}

        signals.requestStarted.emit(method, endpoint)
        try:
            response = self.http.request(
                method,
                url,
                headers=headers,
                json=body,
                params=params or None,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as ex:
            logging.debug(f'{method} {url} -> {ex}')
            signals.requestFinished.emit(method, endpoint, 0)
            raise status.ServiceUnavailableException from ex

        logging.debug(f'{method} {url} -> {response.status_code}')
        signals.requestFinished.emit(method, endpoint, response.status_code)

        if response.status_code == 401 and token and not accept_unauthorized:
            self.clear_session()
            signals.sessionExpired.emit()
            raise status.SessionExpiredException

        data = self._decode(response)

        if response.status_code == 401 and accept_unauthorized:
            return data

        if not response.ok:
            message = data.get('error') if isinstance(data.get('error'), str) else None
            raise status.RequestFailedException(message or 'Request failed', status_code=response.status_code)

        return data

    @staticmethod
    def _decode(response: requests.Response) -> Dict[str, Any]:
        if not response.content or not response.content.strip():
            return {}

        try:
            data = response.json()
        except ValueError as ex:
            if not response.ok:
                return {}
            raise status.ServiceUnavailableException('Invalid response from server.') from ex

        if not isinstance(data, dict):
            if not response.ok:
                return {}
            raise status.ServiceUnavailableException('Invalid response from server.')
        return data

    def set_session(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        self.session.save(token, user)

    def clear_session(self) -> None:
        self.session.clear()

    def has_session(self) -> bool:
        """Returns True when a token is stored. The token is not validated with the server."""
        return self.session.has_token()

    def close(self) -> None:
        self.http.close()

    def _page_params(self, cursor: Optional[str]) -> Dict[str, Any]:
        params: Dict[str, Any] = {'limit': self.page_limit}
        if cursor:
            params['cursor'] = cursor
        return params


class ApiClient(BaseClient):
    """Client of the PIN-protected passbook endpoints.

    The session token is sent as an ``X-Session-Token`` header.
    """

    def __init__(self, base_url: Optional[str] = None, session: Optional[SessionStore] = None, **kwargs: Any) -> None:
        kwargs.setdefault('session_name', 'pin')
        kwargs.setdefault('header_scheme', 'session')
        super().__init__(base_url=base_url, session=session, **kwargs)

    # Auth endpoints

    def health(self) -> Dict[str, Any]:
        return self.request('GET', '/api/health')

    def check_setup(self) -> bool:
        """Returns True if the backend already has a PIN configured."""
        data = self.request('GET', '/api/auth/status')
        return bool(data.get('is_setup'))

    def setup_pin(self, pin: str) -> Dict[str, Any]:
        return self.request('POST', '/api/auth/setup', {'pin': pin})

    def verify_pin(self, pin: str) -> Dict[str, Any]:
        """Verify a PIN and store the returned session token on success.

        A rejected PIN is not an error: the server's answer is returned as is and
        may contain ``error``, ``attempts_remaining`` and ``locked_until``.

        Returns:
            dict: The verification result.
        """
        result = self.request('POST', '/api/auth/verify', {'pin': pin}, accept_unauthorized=True)
        if result.get('success') and result.get('token'):
            self.set_session(result['token'])
        return result

    def change_pin(self, current_pin: str, new_pin: str) -> Dict[str, Any]:
        return self.request('POST', '/api/auth/change', {
            'current_pin': current_pin,
            'new_pin': new_pin,
        })

    def logout(self) -> None:
        """Invalidate the session on the server. The local session is always cleared."""
        try:
            self.request('POST', '/api/auth/logout')
        finally:
            self.clear_session()

    # Data endpoints

    def get_balance(self) -> Dict[str, Any]:
        return self.request('GET', '/api/balance')

    def get_month(self, month_key: str, cursor: Optional[str] = None) -> Dict[str, Any]:
        """Fetch a month summary and one page of its expenses.

        Args:
            month_key: Month in ``YYYY-MM`` format.
            cursor: The ``next_cursor`` of the previous page, if any.

        Returns:
            dict: ``month``, ``summary``, ``expenses``, ``total_balance`` and ``next_cursor``.
        """
        return self.request('GET', f'/api/month/{encode_segment(month_key)}', params=self._page_params(cursor))

    def get_months(self, cursor: Optional[str] = None) -> Dict[str, Any]:
        """Fetch one page of months, newest first.

        Returns:
            dict: ``months`` (``month`` and ``monthly_saved`` per item) and ``next_cursor``.
        """
        return self.request('GET', '/api/months', params=self._page_params(cursor))

    def add_expense(self, amount: float, description: str) -> Dict[str, Any]:
        """Add an expense to the current calendar month, creating the month if needed."""
        return self.request('POST', '/api/expense', {'amount': amount, 'description': description})

    def update_expense(self, month: str, expense_id: str, amount: float, description: str) -> Dict[str, Any]:
        return self.request(
            'PUT',
            f'/api/expense/{encode_segment(month)}/{encode_segment(expense_id)}',
            {'amount': amount, 'description': description},
        )

    def delete_expense(self, month: str, expense_id: str) -> Dict[str, Any]:
        return self.request('DELETE', f'/api/expense/{encode_segment(month)}/{encode_segment(expense_id)}')

    def create_month(self, month: str) -> Dict[str, Any]:
        return self.request('POST', '/api/month', {'month': month})

    def add_funds(self, month: str, amount: float) -> Dict[str, Any]:
        """Add allowance to a month. Can be called repeatedly."""
        return self.request('POST', f'/api/month/{encode_segment(month)}/funds', {'amount': amount})
