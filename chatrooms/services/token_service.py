"""Token verification against the store.

Tokens are issued elsewhere; this service only answers "is this token valid
for this username" by checking the user-scoped token key.
"""

from __future__ import annotations

import logging

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.logging import hash_identifier
from chatrooms.utils import keys

logger = logging.getLogger(__name__)


class TokenVerifier:
    def __init__(self, store: AbstractStore) -> None:
        self._store = store

    def verify(self, username: str | None, token: str | None) -> bool:
        """Pass/fail gate. Store failures propagate to the caller."""
        if not username or not token:
            return False
        valid = self._store.exists(keys.token_key(username, token))
        if not valid:
            logger.info("auth.token_rejected", extra={"user_hash": hash_identifier(username.lower())})
        return valid
