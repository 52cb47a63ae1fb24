"""
Email notifications for appointment events.

``notify`` is fire-and-forget: with ``NOTIFICATIONS_ASYNC`` on, the
message is sent on a daemon thread once the surrounding transaction
commits.  Delivery errors are logged and never reach the caller.
"""
from __future__ import annotations

import logging
import threading

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction

from scheduling.models import Appointment

logger = logging.getLogger(__name__)


def _deliver(recipient: str, subject: str, body: str) -> None:
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [recipient], fail_silently=False)
    except Exception:
        logger.exception('Failed to send email "%s" to %s', subject, recipient)
    else:
        logger.info('Sent email "%s" to %s', subject, recipient)


def notify(recipient: str, subject: str, body: str) -> None:
    if not recipient:
        return
    if getattr(settings, 'NOTIFICATIONS_ASYNC', True):
        def start() -> None:
            threading.Thread(target=_deliver, args=(recipient, subject, body), daemon=True).start()

        transaction.on_commit(start)
    else:
        _deliver(recipient, subject, body)


def _describe(appointment: Appointment) -> str:
    slot = appointment.time_slot
    medic = slot.schedule.medic.employee
    return (
        f"Date: {appointment.date:%Y-%m-%d}\n"
        f"Time: {slot.start:%H:%M} - {slot.end:%H:%M}\n"
        f"Medic: {medic.full_name}\n"
        f"Description: {appointment.description}"
    )


def appointment_booked(appointment: Appointment) -> None:
    patient = appointment.patient
    notify(
        patient.email,
        'Appointment booked',
        f"Hello {patient.first_name},\n\nYour appointment has been booked.\n\n{_describe(appointment)}",
    )


def appointment_confirmed(appointment: Appointment) -> None:
    patient = appointment.patient
    notify(
        patient.email,
        'Appointment confirmed',
        f"Hello {patient.first_name},\n\nYour appointment has been confirmed.\n\n{_describe(appointment)}",
    )


def appointment_cancelled(appointment: Appointment) -> None:
    patient = appointment.patient
    notify(
        patient.email,
        'Appointment cancelled',
        f"Hello {patient.first_name},\n\nYour appointment has been cancelled.\n\n{_describe(appointment)}",
    )
