"""
Schema validation base.

Every entity has one serializer.  Creating uses it as is; updating
passes ``partial=True`` so every field becomes optional.  Fields are
checked in declaration order and validation stops at the first failing
field, which ``first_violation`` turns into the error the client sees:

* ``Missing <key>.`` (400) for an absent or empty required field,
* the validator's own message (409) for errors raised with code
  ``conflict`` (duplicate email, illegal state transition...),
* ``Invalid <key>.`` (400) for anything else.

Whole-record rules run afterwards in ``validate()`` or in the services,
so field errors are always reported first.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers, status
from rest_framework.exceptions import ErrorDetail, ValidationError
from rest_framework.fields import SkipField, get_error_detail
from rest_framework.settings import api_settings

from scheduling.services.results import Violation

CONFLICT = 'conflict'
MISSING_CODES = {'required', 'blank', 'null'}


class SchemaSerializer(serializers.Serializer):
    default_error_messages = {
        'invalid': 'Invalid body.',
        'null': 'Invalid body.',
    }

    def __init__(self, *args, fields=None, **kwargs):
        super().__init__(*args, **kwargs)
        if fields is not None:
            for name in set(self.fields) - set(fields):
                self.fields.pop(name)

    def to_internal_value(self, data):
        if not isinstance(data, Mapping):
            raise ValidationError(
                {api_settings.NON_FIELD_ERRORS_KEY: [ErrorDetail(self.error_messages['invalid'], code='invalid')]}
            )
        ret = {}
        for field in self._writable_fields:
            validate_method = getattr(self, 'validate_' + field.field_name, None)
            primitive_value = field.get_value(data)
            try:
                validated_value = field.run_validation(primitive_value)
                if validate_method is not None:
                    validated_value = validate_method(validated_value)
            except SkipField:
                continue
            except ValidationError as exc:
                raise ValidationError({field.field_name: exc.detail})
            except DjangoValidationError as exc:
                raise ValidationError({field.field_name: get_error_detail(exc)})
            self.set_value(ret, field.source_attrs, validated_value)
        return ret


def conflict(message: str) -> ValidationError:
    return ValidationError(message, code=CONFLICT)


def first_violation(serializer: serializers.Serializer) -> Optional[Violation]:
    """Validate ``serializer`` and describe its first error, if any."""
    if serializer.is_valid():
        return None
    key, details = next(iter(serializer.errors.items()))
    detail = details[0] if isinstance(details, list) else details
    code = getattr(detail, 'code', None)
    if code == CONFLICT:
        return Violation(status.HTTP_409_CONFLICT, str(detail))
    if key == api_settings.NON_FIELD_ERRORS_KEY:
        return Violation.invalid(str(detail))
    if code in MISSING_CODES and not serializer.partial:
        return Violation.invalid(f'Missing {key}.')
    return Violation.invalid(f'Invalid {key}.')
