"""
Strict field types for request bodies.

JSON bodies are checked for their real type: a number is not accepted
where a string is expected (and vice versa), and booleans are never
taken for integers.
"""
from __future__ import annotations

import datetime
import re

import bleach
from django.utils import timezone
from rest_framework import serializers

from scheduling.services.rut import is_valid_rut, normalize_rut

EMAIL_PATTERN = re.compile(
    r'^(([^<>()\[\]\\.,;:\s@"]+(\.[^<>()\[\]\\.,;:\s@"]+)*)|(".+"))'
    r'@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}])|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$'
)
DATE_PATTERN = re.compile(r'\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])', re.ASCII)
TIME_PATTERN = re.compile(r'([01]\d|2[0-3]):[0-5]\d', re.ASCII)

PHONE_MIN = 100_000_000
PHONE_MAX = 999_999_999


class StrictCharField(serializers.CharField):
    def to_internal_value(self, data):
        if not isinstance(data, str):
            self.fail('invalid')
        return super().to_internal_value(data)


class TextField(StrictCharField):
    """Free text with any markup stripped."""

    def to_internal_value(self, data):
        return bleach.clean(super().to_internal_value(data), tags=set(), strip=True)


class EmailField(StrictCharField):
    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if not EMAIL_PATTERN.match(value):
            self.fail('invalid')
        return value


class PasswordField(StrictCharField):
    def __init__(self, **kwargs):
        kwargs.setdefault('min_length', 8)
        kwargs.setdefault('write_only', True)
        kwargs.setdefault('trim_whitespace', False)
        super().__init__(**kwargs)


class StrictIntegerField(serializers.IntegerField):
    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            self.fail('invalid')
        if isinstance(data, float) and not data.is_integer():
            self.fail('invalid')
        return super().to_internal_value(int(data))


class PhoneField(StrictIntegerField):
    def __init__(self, **kwargs):
        kwargs.setdefault('min_value', PHONE_MIN)
        kwargs.setdefault('max_value', PHONE_MAX)
        super().__init__(**kwargs)


class PositiveNumberField(serializers.FloatField):
    def to_internal_value(self, data):
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            self.fail('invalid')
        value = super().to_internal_value(data)
        if value <= 0:
            self.fail('invalid')
        return value


class StrictBooleanField(serializers.BooleanField):
    def to_internal_value(self, data):
        if not isinstance(data, bool):
            self.fail('invalid')
        return data


class ReferenceField(StrictIntegerField):
    """Positive integer id that must exist in ``queryset``."""
    default_error_messages = {
        'does_not_exist': 'Object with id {value} does not exist.',
    }

    def __init__(self, queryset, **kwargs):
        self.queryset = queryset
        kwargs.setdefault('min_value', 1)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if not self.queryset.filter(pk=value).exists():
            self.fail('does_not_exist', value=value)
        return value


class RutField(serializers.Field):
    default_error_messages = {
        'invalid': 'Invalid rut.',
    }

    def to_internal_value(self, data):
        if not is_valid_rut(data):
            self.fail('invalid')
        return normalize_rut(data)

    def to_representation(self, value):
        return value


class DateStringField(serializers.Field):
    """``YYYY-MM-DD`` that is also a real calendar date.

    With ``not_past=True`` dates before today (clinic time zone) fail.
    """
    default_error_messages = {
        'invalid': 'Invalid date.',
        'past': 'Date is in the past.',
    }

    def __init__(self, not_past: bool = False, **kwargs):
        self.not_past = not_past
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if not isinstance(data, str) or not DATE_PATTERN.fullmatch(data):
            self.fail('invalid')
        try:
            value = datetime.date.fromisoformat(data)
        except ValueError:
            self.fail('invalid')
        if self.not_past and value < timezone.localdate():
            self.fail('past')
        return value

    def to_representation(self, value):
        return value.isoformat()


class TimeOfDayField(serializers.Field):
    """``HH:MM`` on a 24 hour clock."""
    default_error_messages = {
        'invalid': 'Invalid time.',
    }

    def to_internal_value(self, data):
        if not isinstance(data, str) or not TIME_PATTERN.fullmatch(data):
            self.fail('invalid')
        hours, minutes = data.split(':')
        return datetime.time(int(hours), int(minutes))

    def to_representation(self, value):
        return value.strftime('%H:%M')
