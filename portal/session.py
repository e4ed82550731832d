"""
Admin session gate.

A single configured email/password pair unlocks the admin console. This is
a convenience gate, not a security boundary: who may actually approve or
reject is decided by the store's function permissions.

The logged-in flag is kept in a backend so it survives a browser refresh.
InFlightGuard keeps an action disabled while its request is outstanding.
"""

import json
import logging
import os
from typing import Optional

from portal.config import ADMIN_EMAIL, ADMIN_PASSWORD

logger = logging.getLogger(__name__)

SESSION_KEY = "is_admin_logged_in"


class MemorySessionBackend:
    """Keeps the flag in process memory. Lost on restart."""

    def __init__(self):
        self._flag = False

    def load(self) -> bool:
        return self._flag

    def save(self, value: bool) -> None:
        self._flag = value

    def clear(self) -> None:
        self._flag = False


class FileSessionBackend:
    """Keeps the flag in a small JSON file. No expiry."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> bool:
        if not os.path.exists(self.path):
            return False
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f).get(SESSION_KEY) is True
        except (OSError, json.JSONDecodeError, AttributeError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return False

    def save(self, value: bool) -> None:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({SESSION_KEY: value}, f)

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)


class AdminSession:
    """The admin-authenticated state, passed explicitly to the views that need it."""

    def __init__(self, backend, email: Optional[str] = None, password: Optional[str] = None):
        self.backend = backend
        self._email = ADMIN_EMAIL if email is None else email
        self._password = ADMIN_PASSWORD if password is None else password

    @property
    def is_authenticated(self) -> bool:
        return self.backend.load()

    def login(self, email: str, password: str) -> bool:
        if email == self._email and password == self._password:
            self.backend.save(True)
            logger.info("Admin signed in")
            return True
        logger.warning("Rejected admin sign-in for %s", email)
        return False

    def logout(self) -> None:
        self.backend.clear()
        logger.info("Admin signed out")


class InFlightGuard:
    """
    At most one outstanding request per kind of action.

    A button's on_click callback calls start() before the page is drawn, so
    that run renders the action disabled. The page then does the work and
    calls finish(), and the following run enables the action again.

    `state` is any mapping that outlives a single run: st.session_state in
    the app, a plain dict in tests.
    """

    def __init__(self, state, name: str):
        self.state = state
        self._flag = f"{name}_in_flight"
        self._queued = f"{name}_queued"
        self._error = f"{name}_error"

    @property
    def busy(self) -> bool:
        return self.state.get(self._flag, False) is True

    def start(self, request=None) -> bool:
        """Mark the action outstanding and remember what it should do. False if already busy."""
        if self.busy:
            return False
        self.state[self._flag] = True
        self.state[self._queued] = request
        self.state.pop(self._error, None)
        return True

    @property
    def request(self):
        return self.state.get(self._queued) if self.busy else None

    def finish(self, error: Optional[str] = None) -> None:
        self.state[self._flag] = False
        self.state.pop(self._queued, None)
        if error:
            self.state[self._error] = error

    def pop_error(self) -> Optional[str]:
        """The message left by the last failed run, shown once."""
        return self.state.pop(self._error, None)

    def reset(self) -> None:
        for key in (self._flag, self._queued, self._error):
            self.state.pop(key, None)
