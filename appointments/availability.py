"""
Doctor availability: working days and their bookable slots.

A day is published as a whole (upsert on doctor + date). Republishing
replaces the free slots and never touches booked ones.
"""
import logging

from django.db import transaction
from django.db.models import Count, Prefetch, Q
from django.utils import timezone

from common.exceptions import Conflict, Forbidden, NotFound, ValidationError
from .forms import ScheduleForm, SlotForm
from .models import AvailabilitySlot, DoctorSchedule

logger = logging.getLogger(__name__)


def _clean_windows(raw_slots):
    """Validated (start, end) pairs sorted by start; rejects overlaps."""
    if not isinstance(raw_slots, (list, tuple)):
        raise ValidationError('slots must be a list.', errors={'slots': ['Enter a list of slots.']})

    windows = []
    for index, raw in enumerate(raw_slots):
        form = SlotForm(data=raw if isinstance(raw, dict) else {})
        if not form.is_valid():
            error = ValidationError.from_form(form)
            raise ValidationError(f"Slot {index + 1}: {error.message}", errors={f'slots.{index}': error.errors})
        windows.append((form.cleaned_data['start_time'], form.cleaned_data['end_time']))

    windows.sort()
    for (prev_start, prev_end), (start, end) in zip(windows, windows[1:]):
        if start < prev_end:
            raise ValidationError(
                f"Slots {prev_start:%H:%M}-{prev_end:%H:%M} and {start:%H:%M}-{end:%H:%M} overlap."
            )
    return windows


def get_schedule(schedule_id):
    try:
        return DoctorSchedule.objects.select_related('doctor').get(pk=schedule_id)
    except (ValueError, TypeError):
        raise ValidationError('Invalid schedule id.', errors={'schedule': ['Enter a whole number.']})
    except DoctorSchedule.DoesNotExist:
        raise NotFound('Schedule not found.')


def _owned_schedule(actor, schedule_id, allow_admin=False):
    schedule = get_schedule(schedule_id)
    if schedule.doctor_id != actor.id and not (allow_admin and actor.is_admin):
        raise Forbidden()
    return schedule


def publish_day(actor, date, slots=None, is_available=None, notes=None):
    """
    Create or update the actor's schedule for date.

    When slots is given it replaces every free slot of the day. Booked slots
    stay; a submitted window identical to a booked one is kept as that
    booking, one that merely overlaps it is a Conflict.
    Returns (schedule, created).
    """
    if not actor.is_doctor:
        raise Forbidden('Only doctors can publish availability.')

    form = ScheduleForm(data={
        'date': date,
        'is_available': True if is_available is None else is_available,
        'notes': notes or '',
    })
    if not form.is_valid():
        raise ValidationError.from_form(form)
    windows = _clean_windows(slots) if slots is not None else None

    with transaction.atomic():
        schedule, created = DoctorSchedule.objects.select_for_update().get_or_create(
            doctor_id=actor.id,
            date=form.cleaned_data['date'],
            defaults={
                'is_available': form.cleaned_data['is_available'],
                'notes': form.cleaned_data['notes'],
            }
        )
        if not created:
            if is_available is not None:
                schedule.is_available = form.cleaned_data['is_available']
            if notes is not None:
                schedule.notes = form.cleaned_data['notes']
            schedule.save()

        if windows is not None:
            # Lock the day's slots so a booking cannot land between the read and the delete
            current = list(schedule.slots.select_for_update())
            booked = [s for s in current if s.is_booked]
            fresh = []
            for start, end in windows:
                if any(s.start_time == start and s.end_time == end for s in booked):
                    continue
                clash = next((s for s in booked if s.overlaps(start, end)), None)
                if clash:
                    raise Conflict(
                        f"{start:%H:%M}-{end:%H:%M} overlaps the booked slot {clash.start_time:%H:%M}-{clash.end_time:%H:%M}."
                    )
                fresh.append(AvailabilitySlot(schedule=schedule, start_time=start, end_time=end))

            removed, _ = AvailabilitySlot.objects.filter(
                pk__in=[s.pk for s in current if not s.is_booked], is_booked=False
            ).delete()
            AvailabilitySlot.objects.bulk_create(fresh)
            logger.info(
                "Doctor %s published %s: %d free slots replaced by %d, %d booked kept",
                actor.id, schedule.date, removed, len(fresh), len(booked)
            )

    return schedule, created


def add_slots(actor, schedule_id, slots):
    if not actor.is_doctor:
        raise Forbidden('Only doctors can add slots.')
    windows = _clean_windows(slots)

    with transaction.atomic():
        schedule = _owned_schedule(actor, schedule_id)
        existing = list(schedule.slots.all())
        for start, end in windows:
            clash = next((s for s in existing if s.overlaps(start, end)), None)
            if clash:
                raise ValidationError(
                    f"{start:%H:%M}-{end:%H:%M} overlaps the existing slot {clash.start_time:%H:%M}-{clash.end_time:%H:%M}."
                )
        AvailabilitySlot.objects.bulk_create([
            AvailabilitySlot(schedule=schedule, start_time=start, end_time=end)
            for start, end in windows
        ])
    return schedule


def available_slots(doctor_id, date):
    return AvailabilitySlot.objects.filter(
        schedule__doctor_id=doctor_id,
        schedule__date=date,
        schedule__is_available=True,
        is_booked=False,
    ).order_by('start_time')


def available_doctors(date):
    """
    Schedules on date of active doctors that still have a free slot.

    Each schedule carries free_slots and total_slots counts and the free
    slots themselves as available_slots.
    """
    return (
        DoctorSchedule.objects
        .filter(date=date, is_available=True, doctor__is_active=True, doctor__role='doctor')
        .annotate(
            free_slots=Count('slots', filter=Q(slots__is_booked=False)),
            total_slots=Count('slots'),
        )
        .filter(free_slots__gt=0)
        .select_related('doctor')
        .prefetch_related(Prefetch(
            'slots',
            queryset=AvailabilitySlot.objects.filter(is_booked=False).order_by('start_time'),
            to_attr='available_slots',
        ))
        .order_by('doctor__name')
    )


def delete_day(actor, schedule_id):
    """Delete a schedule that has no bookings; Conflict otherwise."""
    with transaction.atomic():
        schedule = _owned_schedule(actor, schedule_id, allow_admin=True)
        # Lock the slots so no booking lands between the check and the delete
        slots = list(schedule.slots.select_for_update())
        if any(slot.is_booked for slot in slots):
            raise Conflict('Cannot delete a schedule with booked slots.')
        schedule.delete()
    logger.info("Schedule %s deleted by user %s", schedule_id, actor.id)


def _with_slots(queryset):
    return queryset.select_related('doctor').prefetch_related(
        Prefetch('slots', queryset=AvailabilitySlot.objects.select_related('booked_by'))
    ).order_by('date')


def doctor_schedules(doctor_id, start=None, end=None):
    qs = DoctorSchedule.objects.filter(doctor_id=doctor_id)
    if start and end:
        qs = qs.filter(date__range=(start, end))
    elif start:
        qs = qs.filter(date__gte=start)
    return _with_slots(qs)


def my_schedules(actor, start=None, end=None, today=None):
    if not actor.is_doctor:
        raise Forbidden('Only doctors have schedules.')
    qs = DoctorSchedule.objects.filter(doctor_id=actor.id)
    if start and end:
        qs = qs.filter(date__range=(start, end))
    else:
        qs = qs.filter(date__gte=today or timezone.localdate())
    return _with_slots(qs)
