"""
Appointment requests and their review by doctors.

    pending --confirm--> confirmed --complete--> completed
    pending --reject--> rejected
    pending | confirmed --cancel--> cancelled

Transitions are guarded UPDATEs on status, same as dose records. Leaving
the active states gives the bound slot back to the calendar.
"""
import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from children.registry import get_child
from common.exceptions import AlreadyBooked, Forbidden, InvalidTransition, NotFound, ValidationError
from notifications.dispatch import notify
from .booking import book_slot, claim_slot, free_slot
from .forms import AppointmentForm, AppointmentUpdateForm
from .models import Appointment, AvailabilitySlot

logger = logging.getLogger(__name__)


TRANSITIONS = {
    Appointment.CONFIRMED: (Appointment.PENDING,),
    Appointment.REJECTED: (Appointment.PENDING,),
    Appointment.COMPLETED: (Appointment.CONFIRMED,),
    Appointment.CANCELLED: Appointment.ACTIVE_STATUSES,
}


def _base_queryset():
    return Appointment.objects.select_related('child', 'parent', 'doctor', 'slot').prefetch_related('vaccines')


def _load(appointment_id):
    try:
        return _base_queryset().get(pk=appointment_id)
    except Appointment.DoesNotExist:
        raise NotFound('Appointment not found.')


def _transition(appointment, target, **fields):
    if appointment.status not in TRANSITIONS[target]:
        raise InvalidTransition(f"A {appointment.status} appointment cannot become {target}.")

    updated = Appointment.objects.filter(
        pk=appointment.pk, status__in=TRANSITIONS[target]
    ).update(status=target, updated_at=timezone.now(), **fields)
    if not updated:
        appointment.refresh_from_db(fields=['status'])
        raise InvalidTransition(f"A {appointment.status} appointment cannot become {target}.")

    logger.info("Appointment %s moved to %s", appointment.pk, target)
    return _load(appointment.pk)


def _release_bound_slot(appointment):
    if appointment.slot_id:
        free_slot(appointment.slot_id)
        Appointment.objects.filter(pk=appointment.pk).update(slot=None)


def _require_doctor(actor, appointment):
    if not actor.is_doctor:
        raise Forbidden('Only doctors can review appointments.')
    if appointment.doctor_id and appointment.doctor_id != actor.id:
        raise Forbidden('This appointment is assigned to another doctor.')


def _when(appointment):
    return f"{appointment.scheduled_date:%d/%m/%Y} at {appointment.scheduled_time:%H:%M}"


def list_appointments(actor):
    return _base_queryset().for_actor(actor).order_by('-scheduled_date', '-scheduled_time')


def get_appointment(actor, appointment_id):
    appointment = _load(appointment_id)
    if actor.is_parent and appointment.parent_id != actor.id:
        raise Forbidden()
    if actor.is_doctor and appointment.doctor_id not in (None, actor.id):
        raise Forbidden()
    return appointment


def pending_appointments(actor):
    """Pending requests a doctor can pick up: unassigned ones and their own."""
    if not actor.is_staff:
        raise Forbidden()
    qs = _base_queryset().filter(status=Appointment.PENDING)
    if actor.is_doctor:
        qs = qs.filter(Q(doctor__isnull=True) | Q(doctor_id=actor.id))
    return qs.order_by('scheduled_date', 'scheduled_time')


def today_appointments(actor, today=None):
    if not actor.is_staff:
        raise Forbidden()
    qs = _base_queryset().filter(
        status=Appointment.CONFIRMED,
        scheduled_date=today or timezone.localdate(),
    )
    if actor.is_doctor:
        qs = qs.filter(doctor_id=actor.id)
    return qs.order_by('scheduled_time')


def request_appointment(actor, data):
    """
    A parent asks for an appointment for one of their children.

    If data names a schedule and slot the slot is booked at the same time
    and the request goes to that slot's doctor.
    """
    if not actor.is_parent:
        raise Forbidden('Only parents can request appointments.')

    child_id = data.get('child')
    if not child_id:
        raise ValidationError('child is required.', errors={'child': ['This field is required.']})
    child = get_child(actor, child_id)

    if data.get('slot'):
        if not data.get('schedule'):
            raise ValidationError('schedule is required with slot.', errors={'schedule': ['This field is required.']})
        details = {k: v for k, v in data.items() if k in ('type', 'vaccines', 'notes')}
        _, appointment = book_slot(actor, data['schedule'], data['slot'], child_id=child.pk, details=details)
        return _load(appointment.pk)

    form = AppointmentForm(data=data)
    if not form.is_valid():
        raise ValidationError.from_form(form)
    with transaction.atomic():
        appointment = form.save(commit=False)
        appointment.child = child
        appointment.parent_id = actor.id
        appointment.status = Appointment.PENDING
        appointment.save()
        form.save_m2m()

    logger.info("Appointment %s requested by parent %s for child %s", appointment.pk, actor.id, child.pk)
    return _load(appointment.pk)


def confirm_appointment(actor, appointment_id, slot_id=None, scheduled_date=None, scheduled_time=None, notes=''):
    """
    Accept a pending request and assign it to the confirming doctor.

    slot_id binds one of the doctor's own slots, booking it for the parent;
    the appointment takes the slot's date and time.
    """
    appointment = _load(appointment_id)
    _require_doctor(actor, appointment)

    fields = {'doctor_id': actor.id}
    if scheduled_date:
        fields['scheduled_date'] = scheduled_date
    if scheduled_time:
        fields['scheduled_time'] = scheduled_time
    if notes:
        fields['notes'] = notes

    with transaction.atomic():
        if slot_id and slot_id != appointment.slot_id:
            try:
                slot = AvailabilitySlot.objects.select_related('schedule').get(
                    pk=slot_id, schedule__doctor_id=actor.id
                )
            except AvailabilitySlot.DoesNotExist:
                raise NotFound('Slot not found in your schedule.')
            if not claim_slot(slot.schedule_id, slot.pk, appointment.parent_id):
                raise AlreadyBooked()
            _release_bound_slot(appointment)
            fields.update(
                slot_id=slot.pk,
                scheduled_date=slot.schedule.date,
                scheduled_time=slot.start_time,
            )

        appointment = _transition(appointment, Appointment.CONFIRMED, **fields)
        notify(
            appointment.parent_id,
            'confirmation',
            'Appointment confirmed',
            f"The appointment for {appointment.child.name} on {_when(appointment)} has been confirmed.",
            related_child_id=appointment.child_id,
            related_appointment_id=appointment.pk,
        )
    return appointment


def reject_appointment(actor, appointment_id, reason=''):
    appointment = _load(appointment_id)
    _require_doctor(actor, appointment)

    with transaction.atomic():
        appointment = _transition(
            appointment, Appointment.REJECTED,
            doctor_id=actor.id, rejection_reason=reason or '',
        )
        _release_bound_slot(appointment)
        notify(
            appointment.parent_id,
            'alert',
            'Appointment rejected',
            f"The appointment for {appointment.child.name} was rejected. Reason: {reason or 'not specified'}",
            related_child_id=appointment.child_id,
            related_appointment_id=appointment.pk,
        )
    return _load(appointment.pk)


def complete_appointment(actor, appointment_id, notes=''):
    appointment = _load(appointment_id)
    _require_doctor(actor, appointment)

    fields = {'notes': notes} if notes else {}
    with transaction.atomic():
        appointment = _transition(appointment, Appointment.COMPLETED, **fields)
        notify(
            appointment.parent_id,
            'confirmation',
            'Appointment completed',
            f"The appointment for {appointment.child.name} took place.",
            related_child_id=appointment.child_id,
            related_appointment_id=appointment.pk,
        )
    return appointment


def cancel_appointment(actor, appointment_id, reason=''):
    """
    Parents may withdraw their own pending requests. The assigned doctor and
    administrators may also cancel confirmed appointments.
    """
    appointment = _load(appointment_id)
    if actor.is_parent:
        if appointment.parent_id != actor.id:
            raise Forbidden()
        if appointment.status != Appointment.PENDING:
            raise InvalidTransition('Only pending appointments can be cancelled by a parent.')
    elif actor.is_doctor:
        if appointment.doctor_id != actor.id:
            raise Forbidden('This appointment is assigned to another doctor.')
    elif not actor.is_admin:
        raise Forbidden()

    fields = {'rejection_reason': reason} if reason else {}
    with transaction.atomic():
        appointment = _transition(appointment, Appointment.CANCELLED, **fields)
        _release_bound_slot(appointment)

        if actor.is_parent:
            recipient = appointment.doctor_id
        else:
            recipient = appointment.parent_id
        if recipient:
            notify(
                recipient,
                'cancellation',
                'Appointment cancelled',
                f"The appointment for {appointment.child.name} on {_when(appointment)} was cancelled.",
                related_child_id=appointment.child_id,
                related_appointment_id=appointment.pk,
            )
    return _load(appointment.pk)


def apply_update(actor, appointment_id, data):
    """Entry point for PUT /appointments/<id>; dispatches on status."""
    form = AppointmentUpdateForm(data=data)
    if not form.is_valid():
        raise ValidationError.from_form(form)

    cleaned = form.cleaned_data
    status = cleaned['status']
    if status == Appointment.CONFIRMED:
        return confirm_appointment(
            actor, appointment_id,
            slot_id=cleaned['slot'],
            scheduled_date=cleaned['scheduled_date'],
            scheduled_time=cleaned['scheduled_time'],
            notes=cleaned['notes'],
        )
    if status == Appointment.REJECTED:
        return reject_appointment(actor, appointment_id, reason=cleaned['rejection_reason'])
    if status == Appointment.COMPLETED:
        return complete_appointment(actor, appointment_id, notes=cleaned['notes'])
    return cancel_appointment(actor, appointment_id, reason=cleaned['rejection_reason'])
