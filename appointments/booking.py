"""
Slot reservation.

A slot is claimed by exactly one conditional UPDATE that only matches while
the slot is still free; whoever gets the row wins. There is no read-then-save
path anywhere, so concurrent workers on separate processes cannot both book
the same slot.
"""
import logging

from django.db import transaction

from children.registry import get_child
from common.exceptions import AlreadyBooked, Conflict, Forbidden, NotFound, ValidationError
from .availability import get_schedule
from .forms import AppointmentForm
from .models import Appointment, AvailabilitySlot

logger = logging.getLogger(__name__)


def claim_slot(schedule_id, slot_id, parent_id):
    """Book the slot for parent_id. True iff this call flipped it."""
    updated = AvailabilitySlot.objects.filter(
        pk=slot_id, schedule_id=schedule_id, is_booked=False
    ).update(is_booked=True, booked_by_id=parent_id)
    return updated == 1


def free_slot(slot_id, booked_by_id=None):
    """Clear a booking. With booked_by_id, only that holder's booking is cleared."""
    qs = AvailabilitySlot.objects.filter(pk=slot_id, is_booked=True)
    if booked_by_id is not None:
        qs = qs.filter(booked_by_id=booked_by_id)
    released = qs.update(is_booked=False, booked_by=None)
    if released:
        # Appointments tied to this booking no longer hold a slot
        Appointment.objects.active().filter(slot_id=slot_id).update(slot=None)
    return released == 1


def _get_slot(schedule, slot_id):
    try:
        return schedule.slots.get(pk=slot_id)
    except (ValueError, TypeError):
        raise ValidationError('Invalid slot id.', errors={'slot': ['Enter a whole number.']})
    except AvailabilitySlot.DoesNotExist:
        raise NotFound('Slot not found.')


def book_slot(actor, schedule_id, slot_id, child_id=None, details=None):
    """
    Reserve a slot for the calling parent.

    With child_id a pending appointment for that child is created in the same
    transaction, with the doctor, date and time taken from the slot.
    details may carry the appointment's type, vaccines and notes.
    Returns (slot, appointment or None).
    """
    if not actor.is_parent:
        raise Forbidden('Only parents can book slots.')

    schedule = get_schedule(schedule_id)
    slot = _get_slot(schedule, slot_id)
    if not schedule.is_available:
        raise Conflict('This doctor is not taking bookings on that day.')

    form = None
    if child_id is not None:
        child = get_child(actor, child_id)
        form = AppointmentForm(data={
            **(details or {}),
            'scheduled_date': schedule.date,
            'scheduled_time': slot.start_time,
        })
        if not form.is_valid():
            raise ValidationError.from_form(form)

    appointment = None
    with transaction.atomic():
        if not claim_slot(schedule.pk, slot.pk, actor.id):
            logger.info("Slot %s of schedule %s already booked; parent %s turned away", slot.pk, schedule.pk, actor.id)
            raise AlreadyBooked()

        if form is not None:
            appointment = form.save(commit=False)
            appointment.child = child
            appointment.parent_id = actor.id
            appointment.doctor_id = schedule.doctor_id
            appointment.slot = slot
            appointment.status = Appointment.PENDING
            appointment.save()
            form.save_m2m()

    slot.refresh_from_db()
    logger.info("Slot %s of schedule %s booked by parent %s", slot.pk, schedule.pk, actor.id)
    return slot, appointment


def release_slot(actor, schedule_id, slot_id):
    """
    Cancel a booking. Releasing a free slot is a no-op.

    Allowed for the parent holding the booking, the doctor owning the
    schedule, and administrators.
    """
    schedule = get_schedule(schedule_id)
    slot = _get_slot(schedule, slot_id)
    if not slot.is_booked:
        return slot

    if not (actor.is_admin or slot.booked_by_id == actor.id or schedule.doctor_id == actor.id):
        raise Forbidden('Not allowed to cancel this booking.')

    with transaction.atomic():
        # Guard on the holder we checked against so a fresh booking made in
        # between is left alone
        if free_slot(slot.pk, booked_by_id=slot.booked_by_id):
            logger.info("Slot %s of schedule %s released by user %s", slot.pk, schedule.pk, actor.id)

    slot.refresh_from_db()
    return slot
