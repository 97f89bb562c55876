from __future__ import annotations

import json
from typing import Dict

from ..errors import (
    PASSWORD_MISMATCH,
    USERNAME_TAKEN,
    USERNAME_TOO_SHORT,
    InvalidCredentials,
    StorageError,
    ValidationError,
)
from ..logging import get_logger
from .kv import KeyValueStorage


LOG = get_logger("storage-users")

USER_STORAGE_KEY = "drishtifi_users"
DEFAULT_USERS: Dict[str, str] = {"loan_officer": "password123"}
MIN_USERNAME_LENGTH = 3


def _is_user_table(value: object) -> bool:
    return isinstance(value, dict) and all(isinstance(k, str) and isinstance(v, str) for k, v in value.items())


class CredentialStore:
    """username -> password table persisted as one JSON record.

    Passwords are stored and compared as plain strings. Every write replaces
    the whole mapping; concurrent writers race and the last one wins.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self.storage = storage

    def get_users(self) -> Dict[str, str]:
        """Return the user table, seeding the default account if it is absent or unreadable."""
        try:
            raw = self.storage.get_item(USER_STORAGE_KEY)
            if raw:
                users = json.loads(raw)
                if _is_user_table(users):
                    return users
                LOG.error("Stored user table has an unexpected shape; reseeding defaults")
        except (StorageError, ValueError) as exc:
            LOG.error("Failed to read users from storage: %s", exc)
        users = dict(DEFAULT_USERS)
        self.save_users(users)
        return users

    def save_users(self, users: Dict[str, str]) -> None:
        try:
            self.storage.set_item(USER_STORAGE_KEY, json.dumps(users))
        except StorageError as exc:
            LOG.error("Failed to save users to storage: %s", exc)

    def authenticate(self, username: str, password: str) -> str:
        users = self.get_users()
        stored = users.get(username)
        if stored is None or stored != password:
            LOG.info("Login rejected for %r", username)
            raise InvalidCredentials()
        LOG.info("Login accepted for %r", username)
        return username

    def register(self, username: str, password: str, confirm_password: str) -> str:
        if password != confirm_password:
            raise ValidationError(PASSWORD_MISMATCH, "Passwords do not match.")
        if len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(
                USERNAME_TOO_SHORT,
                f"Username must be at least {MIN_USERNAME_LENGTH} characters long.",
            )
        users = self.get_users()
        if username in users:
            raise ValidationError(USERNAME_TAKEN, "Username already exists.")
        users[username] = password
        self.save_users(users)
        LOG.info("Registered user %r (%d account(s) total)", username, len(users))
        return username
