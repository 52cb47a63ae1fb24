"""
Session token registry.

Bearer tokens are opaque: 64 random bytes, base64url encoded to 86
characters.  The registry keeps token -> identity in memory and writes each subject's current token to the
``session_token`` column so sessions survive a restart.

Each subject has exactly one live token: issuing a new one replaces the
previous token in storage and evicts it from the registry, so a second
login signs the first device out.  This is stricter than allowing
several concurrent tokens per subject, and is intentional.  Several
different subjects can be logged in at once.

The store is the source of truth.  Cached hits are confirmed against
it, so a logout or re-login handled by another worker process takes
effect here on the next lookup.
"""
from __future__ import annotations

import logging
import secrets
import threading
from dataclasses import dataclass
from typing import Iterable, Optional

from scheduling.models import Employee, Patient, Role

logger = logging.getLogger(__name__)

TOKEN_BYTES = 64
TOKEN_LENGTH = 86


@dataclass(frozen=True)
class SessionIdentity:
    """The authenticated caller, used as ``request.user`` by DRF."""
    token: str
    subject_id: str
    role: str

    is_authenticated = True

    @property
    def pk(self) -> str:
        # throttles key authenticated callers on request.user.pk
        return f'{self.role}:{self.subject_id}'

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class SessionStore:
    """Persistence seam for :class:`SessionRegistry`."""

    def load(self) -> Iterable[SessionIdentity]:
        raise NotImplementedError

    def find(self, token: str) -> Optional[SessionIdentity]:
        raise NotImplementedError

    def save(self, subject_id: str, role: str, token: str) -> None:
        raise NotImplementedError

    def clear(self, token: str) -> None:
        raise NotImplementedError


class ModelSessionStore(SessionStore):
    """Tokens stored on ``Patient.session_token`` and ``Employee.session_token``."""

    @staticmethod
    def _model(role: str):
        return Patient if role == Role.PATIENT else Employee

    def load(self) -> Iterable[SessionIdentity]:
        for rut, token in Patient.objects.exclude(session_token=None).values_list('rut', 'session_token'):
            yield SessionIdentity(token, rut, Role.PATIENT)
        employees = Employee.objects.exclude(session_token=None).values_list('rut', 'session_token', 'type')
        for rut, token, kind in employees:
            yield SessionIdentity(token, rut, Role.MEDIC if kind == Employee.MEDIC else Role.ADMIN)

    def find(self, token: str) -> Optional[SessionIdentity]:
        rut = Patient.objects.filter(session_token=token).values_list('rut', flat=True).first()
        if rut is not None:
            return SessionIdentity(token, rut, Role.PATIENT)
        row = Employee.objects.filter(session_token=token).values_list('rut', 'type').first()
        if row is not None:
            rut, kind = row
            return SessionIdentity(token, rut, Role.MEDIC if kind == Employee.MEDIC else Role.ADMIN)
        return None

    def save(self, subject_id: str, role: str, token: str) -> None:
        self._model(role).objects.filter(pk=subject_id).update(session_token=token)

    def clear(self, token: str) -> None:
        Patient.objects.filter(session_token=token).update(session_token=None)
        Employee.objects.filter(session_token=token).update(session_token=None)


class SessionRegistry:
    """Thread-safe token -> identity map backed by a :class:`SessionStore`.

    ``init()`` (re)loads the map from the store; the first call to any
    other method triggers it lazily.  ``issue``, ``lookup`` and
    ``revoke`` are the only mutators.  Every lookup is answered by the
    store and the map is brought in line with it, which lets several
    worker processes share sessions.
    """

    def __init__(self, store: Optional[SessionStore] = None) -> None:
        self._store = store if store is not None else ModelSessionStore()
        self._lock = threading.Lock()
        self._tokens: dict[str, SessionIdentity] = {}
        self._by_subject: dict[tuple[str, str], str] = {}
        self._loaded = False

    def init(self) -> None:
        with self._lock:
            self._load()

    def _load(self) -> None:
        self._tokens.clear()
        self._by_subject.clear()
        for identity in self._store.load():
            self._remember(identity)
        self._loaded = True
        logger.info('Loaded %d session tokens', len(self._tokens))

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self._load()

    def _remember(self, identity: SessionIdentity) -> None:
        key = (identity.role, identity.subject_id)
        previous = self._by_subject.get(key)
        if previous is not None and previous != identity.token:
            self._tokens.pop(previous, None)
        self._tokens[identity.token] = identity
        self._by_subject[key] = identity.token

    def _forget(self, token: str) -> None:
        identity = self._tokens.pop(token, None)
        if identity is not None:
            key = (identity.role, identity.subject_id)
            if self._by_subject.get(key) == token:
                del self._by_subject[key]

    def _new_token(self) -> str:
        while True:
            token = secrets.token_urlsafe(TOKEN_BYTES)
            if token not in self._tokens:
                return token

    def issue(self, subject_id: str, role: str) -> str:
        with self._lock:
            self._ensure_loaded()
            token = self._new_token()
            # persist first so a storage error leaves the map untouched
            self._store.save(subject_id, role, token)
            self._remember(SessionIdentity(token, subject_id, role))
        logger.info('Issued %s session for %s', role, subject_id)
        return token

    def lookup(self, token: str) -> Optional[SessionIdentity]:
        with self._lock:
            self._ensure_loaded()
            identity = self._store.find(token)
            if identity is None:
                self._forget(token)
            elif self._tokens.get(token) != identity:
                self._remember(identity)
            return identity

    def revoke(self, token: str) -> bool:
        """Forget ``token``; returns False when it was not live."""
        with self._lock:
            self._ensure_loaded()
            identity = self._store.find(token)
            self._forget(token)
            if identity is None:
                return False
            self._store.clear(token)
        logger.info('Revoked %s session for %s', identity.role, identity.subject_id)
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)


_registry: Optional[SessionRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> SessionRegistry:
    """Process-wide registry, created on first use."""
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = SessionRegistry()
        return _registry


def set_registry(registry: Optional[SessionRegistry]) -> None:
    """Swap the process-wide registry (``None`` resets to a fresh one on next use)."""
    global _registry
    with _registry_lock:
        _registry = registry
