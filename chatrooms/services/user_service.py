"""User records: verification, auto-provisioning and activity tracking."""

from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import ValidationError

from chatrooms.adapters.store.base import AbstractStore
from chatrooms.core.config import settings
from chatrooms.core.errors import StoreAppError, ValidationAppError
from chatrooms.schemas.messages import User
from chatrooms.utils import keys
from chatrooms.utils.validation import (
    MAX_USERNAME_LENGTH,
    MIN_USERNAME_LENGTH,
    USERNAME_REGEX,
    is_profane_username,
)

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, store: AbstractStore, *, clock: Callable[[], float] = time.time) -> None:
        self._store = store
        self._clock = clock

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, username: str) -> User | None:
        raw = self._store.get(keys.user_key(username))
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.warning("user.malformed_record")
            return None

    def ensure_exists(self, username: str) -> User:
        """Return the user record, creating it on first sight.

        Creation uses SET NX so two concurrent first requests agree on a
        single record.

        Raises:
            ValidationAppError: If the username is profane or malformed.
            StoreAppError: If the record vanished between SET NX and re-read.
        """
        if is_profane_username(username):
            raise ValidationAppError(
                code="inappropriate_username",
                message="Username contains inappropriate language",
            )
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationAppError(
                code="username_too_short",
                message=f"Username must be at least {MIN_USERNAME_LENGTH} characters",
            )
        if len(username) > MAX_USERNAME_LENGTH:
            raise ValidationAppError(
                code="username_too_long",
                message=f"Username must be {MAX_USERNAME_LENGTH} characters or less",
            )
        if not USERNAME_REGEX.fullmatch(username):
            raise ValidationAppError(code="invalid_username", message="Invalid username format")

        existing = self.get(username)
        if existing is not None:
            return existing

        user = User(username=username, last_active=self._now_ms())
        created = self._store.set_nx(
            keys.user_key(username),
            user.model_dump_json(by_alias=True),
            ex=settings.chat.user_ttl_seconds,
        )
        if created:
            logger.info("user.created")
            return user

        # Lost the SET NX race; the winner's record is authoritative
        existing = self.get(username)
        if existing is None:
            raise StoreAppError(
                code="user_provision_race",
                message="Failed to verify user",
            )
        return existing

    def touch(self, user: User) -> User:
        """Record activity now and push the record's expiry out."""
        updated = user.model_copy(update={"last_active": self._now_ms()})
        self._store.set(
            keys.user_key(user.username),
            updated.model_dump_json(by_alias=True),
            ex=settings.chat.user_ttl_seconds,
        )
        return updated
