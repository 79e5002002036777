"""
Persisted session token and cached user.

A session is stored per server variant as ``{"token": ..., "user": ...}``
under the auth directory of the user config. Nothing else is kept on disk.
"""

import json
import logging
import pathlib
import threading
from typing import Any, Dict, Optional


class SessionStore:
    """Thread-safe holder of the session token and the last known user.

    Args:
        name: Session name, used as the file name of the persisted session.
        path: Optional explicit path of the session file.
    """

    def __init__(self, name: str = 'pin', path: Optional[pathlib.Path] = None) -> None:
        self._lock = threading.Lock()
        self.name = name
        self._path = path

        self._token: Optional[str] = None
        self._user: Optional[Dict[str, Any]] = None
        self._loaded = False

    @property
    def path(self) -> pathlib.Path:
        if self._path is None:
            from ..settings import lib
            self._path = lib.settings.session_path(self.name)
        return self._path

    @property
    def token(self) -> Optional[str]:
        self._ensure_loaded()
        return self._token

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        self._ensure_loaded()
        return self._user

    def _ensure_loaded(self) -> None:
        with self._lock:
            if self._loaded:
                return
            self._loaded = True
            self._read()

    def _read(self) -> None:
        if not self.path.exists():
            return

        try:
            with self.path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as ex:
            logging.warning(f'Removing unreadable session file "{self.path}": {ex}')
            self.path.unlink(missing_ok=True)
            return

        if not isinstance(data, dict):
            logging.warning(f'Removing malformed session file "{self.path}"')
            self.path.unlink(missing_ok=True)
            return

        token = data.get('token')
        self._token = token if isinstance(token, str) and token else None
        user = data.get('user')
        self._user = user if isinstance(user, dict) else None

    def save(self, token: str, user: Optional[Dict[str, Any]] = None) -> None:
        """Store a token and, optionally, the user it belongs to.

        Args:
            token: The session token returned by the server.
            user: The user object returned alongside the token.
        """
        if not token:
            raise ValueError('Session token must not be empty.')

        with self._lock:
            self._loaded = True
            self._token = token
            if user is not None:
                self._user = user

            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open('w', encoding='utf-8') as f:
                json.dump({'token': self._token, 'user': self._user}, f, indent=4, ensure_ascii=False)
        logging.debug(f'Session "{self.name}" saved.')

    def set_user(self, user: Dict[str, Any]) -> None:
        """Update the cached user while keeping the current token."""
        token = self.token
        if not token:
            with self._lock:
                self._user = user
            return
        self.save(token, user)

    def clear(self) -> None:
        """Forget the token and user, and remove the persisted session."""
        with self._lock:
            self._loaded = True
            self._token = None
            self._user = None
            self.path.unlink(missing_ok=True)
        logging.debug(f'Session "{self.name}" cleared.')

    def has_token(self) -> bool:
        return bool(self.token)
