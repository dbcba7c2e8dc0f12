# ticketbooth/infrastructure/session_store.py

import json
import logging
from pathlib import Path
from typing import Callable, List, Optional

from pydantic import ValidationError

from ticketbooth.api.schemas.schemas import AuthState, AuthUser


logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional[AuthState]], None]


class SessionStore:
    """
    Holds the authenticated session and notifies subscribers
    whenever it changes.
    """

    def __init__(self, state: AuthState | None = None):
        self._state = state
        self._listeners: List[SessionListener] = []

    def current(self) -> AuthState | None:
        return self._state

    def current_identity(self) -> AuthUser | None:
        state = self.current()
        return state.user if state else None

    def token(self) -> str | None:
        state = self.current()
        return state.token if state else None

    def persist(self, state: AuthState) -> None:
        self._state = state
        self._notify()

    def clear(self) -> None:
        self._state = None
        self._notify()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Registers listener and returns a callable that unregisters it.
        """
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self) -> None:
        state = self._state
        for listener in list(self._listeners):
            listener(state)


class FileSessionStore(SessionStore):
    """
    Session persisted as JSON so other processes see the same login.
    A missing or unreadable file means nobody is logged in.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(self._read())

    def persist(self, state: AuthState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(state.to_wire()), encoding="utf-8")
        super().persist(state)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
        super().clear()

    def refresh(self) -> bool:
        """
        Re-reads the file. Returns True and notifies subscribers
        if the stored session changed underneath us.
        """
        state = self._read()
        if state == self._state:
            return False

        logger.info("Session file %s changed, reloading", self.path)
        self._state = state
        self._notify()
        return True

    def _read(self) -> AuthState | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        if not raw.strip():
            return None

        try:
            return AuthState.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError):
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None
