"""
Result type shared by validators and conflict checkers.

Expected failures (bad input, missing records, rule violations) are
returned as a :class:`Violation` instead of being raised; views turn
them into error responses with ``scheduling.exceptions.error_response``.
"""
from __future__ import annotations

from dataclasses import dataclass

from rest_framework import status


@dataclass(frozen=True)
class Violation:
    status: int
    message: str

    @classmethod
    def invalid(cls, message: str) -> Violation:
        return cls(status.HTTP_400_BAD_REQUEST, message)

    @classmethod
    def not_found(cls, message: str) -> Violation:
        return cls(status.HTTP_404_NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> Violation:
        return cls(status.HTTP_409_CONFLICT, message)
