"""
Route access gate.

Each view declares, per HTTP method, which roles may call it, plus the
URL kwarg naming the subject for self-scoped routes::

    @permission_classes([SessionGate.route(PATCH=STAFF, self_scope='rut')])

Methods left out of the map are public.  A caller without a valid
session gets 401; so does a caller with the wrong role, or one whose
subject id differs from the path's (admins are exempt from that last
check on every self-scoped route). A malformed subject id is not checked
here; the view rejects it with 400.
"""
from __future__ import annotations

from functools import partial
from typing import Iterable, Optional

from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated
from rest_framework.permissions import BasePermission

from scheduling.models import Role
from scheduling.services.rut import is_valid_rut, normalize_rut
from scheduling.services.sessions import SessionIdentity

PATIENT = frozenset({Role.PATIENT})
MEDIC = frozenset({Role.MEDIC})
ADMIN = frozenset({Role.ADMIN})
STAFF = frozenset({Role.MEDIC, Role.ADMIN})
PATIENT_OR_ADMIN = frozenset({Role.PATIENT, Role.ADMIN})

MISSING_TOKEN = 'Missing session token.'
INVALID_TOKEN = 'Invalid session token.'


class SessionGate(BasePermission):
    def __init__(self, roles: Optional[dict[str, Iterable[str]]] = None, self_scope: Optional[str] = None):
        self.roles = {method: frozenset(allowed) for method, allowed in (roles or {}).items()}
        self.self_scope = self_scope

    @classmethod
    def route(cls, self_scope: Optional[str] = None, **roles: Iterable[str]):
        """Permission factory for ``@permission_classes``."""
        return partial(cls, roles=roles, self_scope=self_scope)

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        method = 'GET' if request.method == 'HEAD' else request.method
        allowed = self.roles.get(method)
        if allowed is None:
            return True
        identity = request.user
        if not isinstance(identity, SessionIdentity):
            raise NotAuthenticated(MISSING_TOKEN)
        if identity.role not in allowed:
            raise AuthenticationFailed(INVALID_TOKEN)
        if self.self_scope and not identity.is_admin:
            subject = str(view.kwargs.get(self.self_scope, ''))
            if is_valid_rut(subject) and identity.subject_id != normalize_rut(subject):
                raise AuthenticationFailed(INVALID_TOKEN)
        return True
