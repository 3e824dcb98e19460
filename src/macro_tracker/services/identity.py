"""Identity boundary used to scope sync to the signed-in principal."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

_logger = logging.getLogger(__name__)

IdentityListener = Callable[[str | None], None]


class IdentityProvider(Protocol):
    """Source of the current principal identifier."""

    def current_principal(self) -> str | None:
        """Return the signed-in principal id, or None when signed out."""

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Register a listener for identity changes and return an unsubscribe."""


@dataclass
class SessionIdentityProvider(IdentityProvider):
    """In-process identity holder fed by the authentication layer."""

    principal: str | None = None
    _listeners: list[IdentityListener] = field(default_factory=list, repr=False)

    def current_principal(self) -> str | None:
        return self.principal

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def sign_in(self, principal: str) -> None:
        """Record a successful sign-in."""
        self._set(principal)

    def sign_out(self) -> None:
        """Forget the current principal."""
        self._set(None)

    def _set(self, principal: str | None) -> None:
        if principal == self.principal:
            return
        self.principal = principal
        _logger.info("Identity changed: signed_in=%s", principal is not None)
        for listener in list(self._listeners):
            listener(principal)
