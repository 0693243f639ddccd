"""Explicit session context.

Carries the signed-in identity and its profile through a request instead of
reading them from module-level globals. Observers are told about every
sign-in and sign-out, and once immediately when they subscribe.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional


@dataclass
class Identity:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    provider: str = "password"
    is_new_user: bool = False


SessionObserver = Callable[["SessionContext"], None]


@dataclass
class SessionContext:
    identity: Optional[Identity] = None
    profile: Optional[dict] = None
    _observers: list = field(default_factory=list, repr=False)

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def uid(self) -> Optional[str]:
        return self.identity.uid if self.identity else None

    @property
    def is_admin(self) -> bool:
        return bool(self.profile) and self.profile.get("role") == "admin"

    @property
    def is_provider(self) -> bool:
        return bool(self.profile) and self.profile.get("accountType") == "provider"

    def observe(self, callback: SessionObserver) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it"""
        self._observers.append(callback)
        callback(self)

        def unsubscribe():
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    def _notify(self):
        for callback in list(self._observers):
            callback(self)

    def sign_in(self, identity: Identity, profile: Optional[dict] = None):
        self.identity = identity
        self.profile = profile
        self._notify()

    def sign_out(self):
        self.identity = None
        self.profile = None
        self._notify()
