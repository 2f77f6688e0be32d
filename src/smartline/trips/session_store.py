"""Explicit session storage shared across trip screens.

The pending promo is the only mutable state shared between screens: it is
read once when a trip is set up and consumed after the trip is created.
"""

import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from smartline.pricing.models import Promo
from smartline.providers.dispatch import UserRole

logger = logging.getLogger(__name__)


class UserSession(BaseModel):
    user_id: str
    token: str
    role: UserRole = UserRole.CUSTOMER


class SessionStore(Protocol):
    def get_session(self) -> UserSession | None: ...

    def set_session(self, session: UserSession | None) -> None: ...

    def stage_promo(self, promo: Promo) -> None: ...

    def read_pending_promo(self) -> Promo | None: ...

    def consume_pending_promo(self) -> Promo | None: ...


class InMemorySessionStore:
    def __init__(self, session: UserSession | None = None):
        self._session = session
        self._pending_promo: Promo | None = None

    def get_session(self) -> UserSession | None:
        return self._session

    def set_session(self, session: UserSession | None) -> None:
        self._session = session

    def token(self) -> str | None:
        return self._session.token if self._session else None

    def stage_promo(self, promo: Promo) -> None:
        self._pending_promo = promo

    def read_pending_promo(self) -> Promo | None:
        return self._pending_promo

    def consume_pending_promo(self) -> Promo | None:
        promo, self._pending_promo = self._pending_promo, None
        return promo


class _StoredState(BaseModel):
    session: UserSession | None = None
    pending_promo: Promo | None = None


class FileSessionStore:
    """Session store persisted as a JSON document, surviving app restarts."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _load(self) -> _StoredState:
        if not self.path.exists():
            return _StoredState()
        try:
            return _StoredState.model_validate_json(self.path.read_text())
        except PydanticValidationError as e:
            logger.warning(f"Discarding unreadable session file {self.path}: {e}")
            return _StoredState()

    def _save(self, state: _StoredState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(state.model_dump_json())
        tmp.replace(self.path)

    def get_session(self) -> UserSession | None:
        return self._load().session

    def set_session(self, session: UserSession | None) -> None:
        state = self._load()
        state.session = session
        self._save(state)

    def token(self) -> str | None:
        session = self.get_session()
        return session.token if session else None

    def stage_promo(self, promo: Promo) -> None:
        state = self._load()
        state.pending_promo = promo
        self._save(state)

    def read_pending_promo(self) -> Promo | None:
        return self._load().pending_promo

    def consume_pending_promo(self) -> Promo | None:
        state = self._load()
        promo = state.pending_promo
        if promo is not None:
            state.pending_promo = None
            self._save(state)
        return promo
