"""Single-owner authorization.

Exactly one privileged identity exists at any time.  Privileged operations
call one of the ``require_*`` predicates before doing anything else.
"""

from __future__ import annotations

import logging

from guestbook.core.errors import AuthorizationError
from guestbook.models.records import normalize_address

logger = logging.getLogger(__name__)


class Ownership:
    """Holds the owner address and answers authorization questions."""

    def __init__(self, owner: str) -> None:
        self._owner = normalize_address(owner)

    @property
    def owner(self) -> str:
        return self._owner

    def is_owner(self, caller: str) -> bool:
        return normalize_address(caller) == self._owner

    def require_owner(self, caller: str, action: str) -> None:
        """Raise ``AuthorizationError`` unless *caller* is the owner."""
        if not self.is_owner(caller):
            logger.warning("Rejected %s by non-owner %s", action, caller)
            raise AuthorizationError(f"{action} is restricted to the owner")

    def require_owner_or(self, caller: str, subject: str, action: str) -> None:
        """Raise unless *caller* is the owner or *subject* itself."""
        caller = normalize_address(caller)
        if caller == normalize_address(subject) or caller == self._owner:
            return
        logger.warning("Rejected %s for %s by %s", action, subject, caller)
        raise AuthorizationError(
            f"{action} on behalf of {subject} requires the owner or the signer"
        )

    def transfer(self, new_owner: str) -> str:
        """Replace the owner, returning the previous one."""
        previous = self._owner
        self._owner = normalize_address(new_owner)
        return previous
