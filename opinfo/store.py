"""Persistence for the scheduling state."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import os
from pathlib import Path
from threading import RLock
from typing import Optional, Protocol

from cryptography.fernet import Fernet, InvalidToken

from .errors import StateStoreError
from .state import SchedulingState


def _derive_fernet_key(secret: str) -> bytes:
    """Return a valid Fernet key from an arbitrary secret string."""

    if not secret:
        raise ValueError("state key must not be empty")

    try:
        decoded = base64.urlsafe_b64decode(secret)
        if len(decoded) == 32:
            return base64.urlsafe_b64encode(decoded)
    except (binascii.Error, ValueError):
        pass

    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class StateStore(Protocol):
    def load(self) -> SchedulingState:
        ...

    def save(self, state: SchedulingState) -> None:
        ...


class InMemoryStateStore:
    """Keeps a private copy of the last saved state."""

    def __init__(self, state: Optional[SchedulingState] = None) -> None:
        self._state = (state or SchedulingState()).copy()
        self._lock = RLock()

    def load(self) -> SchedulingState:
        with self._lock:
            return self._state.copy()

    def save(self, state: SchedulingState) -> None:
        with self._lock:
            self._state = state.copy()


class EncryptedStateStore:
    """Persist the scheduling state on disk as Fernet-encrypted JSON."""

    def __init__(self, secret: str, storage_path: Path) -> None:
        self._fernet = Fernet(_derive_fernet_key(secret))
        self._storage_path = storage_path
        self._lock = RLock()

    def load(self) -> SchedulingState:
        with self._lock:
            if not self._storage_path.exists():
                return SchedulingState()
            try:
                encrypted = self._storage_path.read_bytes()
                payload = self._fernet.decrypt(encrypted)
            except (InvalidToken, ValueError) as exc:
                raise StateStoreError(
                    "Unable to decrypt scheduling state. Ensure the state key matches the original value."
                ) from exc
        data = json.loads(payload.decode("utf-8"))
        return SchedulingState.from_snapshot(data)

    def save(self, state: SchedulingState) -> None:
        payload = json.dumps(state.snapshot(), separators=(",", ":")).encode("utf-8")
        with self._lock:
            encrypted = self._fernet.encrypt(payload)
            self._storage_path.parent.mkdir(parents=True, exist_ok=True)
            # The state file is only ever replaced whole
            temporary = self._storage_path.with_name(self._storage_path.name + ".tmp")
            temporary.write_bytes(encrypted)
            os.replace(temporary, self._storage_path)


def build_state_store(settings) -> StateStore:
    state_path = getattr(settings, "state_path", None)
    state_key = getattr(settings, "state_key", None)
    if state_path and state_key:
        return EncryptedStateStore(state_key, Path(state_path))
    return InMemoryStateStore()


__all__ = ["EncryptedStateStore", "InMemoryStateStore", "StateStore", "build_state_store"]
