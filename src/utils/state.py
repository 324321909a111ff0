from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional

import db.token_store as token_store
from api.models import AdminProfile
from utils.logger import get_logger

_logger = get_logger(__name__)

TokenListener = Callable[[Optional[str]], None]


@dataclass
class SessionState:
    """
    Application context shared by screens, created once at startup.

    Fields:
      - token: bearer token of the logged-in admin, None when logged out
      - profile: last fetched admin profile, shown in the sidebar

    Listeners registered with subscribe() are called with the new token
    whenever it changes through load(), login() or logout().
    """

    token: Optional[str] = None
    profile: Optional[AdminProfile] = None
    _listeners: List[TokenListener] = field(default_factory=list, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def subscribe(self, listener: TokenListener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        for listener in list(self._listeners):
            listener(self.token)

    async def load(self) -> Optional[str]:
        """Restore the token persisted by a previous run."""
        self.token = await token_store.get_token()
        _logger.debug(f"session restored: {self.is_authenticated}")
        self._publish()
        return self.token

    async def login(self, token: str) -> None:
        await token_store.set_token(token)
        self.token = token
        _logger.info("admin logged in")
        self._publish()

    async def logout(self) -> None:
        await token_store.clear_token()
        self.token = None
        self.profile = None
        _logger.info("admin logged out")
        self._publish()
