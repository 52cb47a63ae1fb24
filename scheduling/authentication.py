"""
Bearer token authentication.

The ``Authorization`` header must be exactly ``Bearer`` followed by an
86 character base64url token, the format the session registry issues.
A missing, malformed or unknown token leaves the request anonymous; the
route's permission gate then answers 401.
"""
from __future__ import annotations

import re

from rest_framework import authentication

from scheduling.services.sessions import get_registry

BEARER_PATTERN = re.compile(r'Bearer ([A-Za-z0-9_-]{86})', re.ASCII)


class BearerTokenAuthentication(authentication.BaseAuthentication):
    keyword = 'Bearer'

    def authenticate(self, request):
        header = authentication.get_authorization_header(request)
        try:
            header = header.decode('ascii')
        except UnicodeDecodeError:
            return None
        match = BEARER_PATTERN.fullmatch(header)
        if not match:
            return None
        identity = get_registry().lookup(match.group(1))
        if identity is None:
            return None
        return identity, identity.token

    def authenticate_header(self, request):
        # a WWW-Authenticate value makes DRF answer 401 instead of 403
        return self.keyword
