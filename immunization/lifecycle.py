"""
Dose record state machine.

    scheduled --(overdue scan)--> delayed
    scheduled | delayed --(doctor administers)--> completed
    scheduled | delayed --(administrative)--> missed | cancelled

completed, missed and cancelled are terminal. The overdue scan never assigns
missed; that state is only reachable by hand.

Every transition is a single UPDATE guarded on the current status, so a
double submit or two doctors acting at once can't both win.
"""
import logging

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from common.exceptions import Forbidden, InvalidTransition, NotFound, ValidationError
from children.registry import get_child
from notifications.dispatch import notify
from .forms import DoseUpdateForm
from .models import DoseRecord
from .schedule import add_months

logger = logging.getLogger(__name__)


# target status -> statuses it may be entered from
TRANSITIONS = {
    DoseRecord.DELAYED: (DoseRecord.SCHEDULED,),
    DoseRecord.COMPLETED: DoseRecord.OPEN_STATUSES,
    DoseRecord.MISSED: DoseRecord.OPEN_STATUSES,
    DoseRecord.CANCELLED: DoseRecord.OPEN_STATUSES,
}


def can_transition(current, target):
    return current in TRANSITIONS.get(target, ())


def get_dose(dose_id):
    try:
        return DoseRecord.objects.select_related('child', 'vaccine').get(pk=dose_id)
    except DoseRecord.DoesNotExist:
        raise NotFound('Vaccination record not found.')


def _require_staff(actor):
    if not actor.is_staff:
        raise Forbidden('Only doctors and administrators can update vaccination records.')


def _transition(dose, target, **fields):
    if not can_transition(dose.status, target):
        raise InvalidTransition(f"A {dose.status} dose cannot become {target}.")

    updated = DoseRecord.objects.filter(
        pk=dose.pk, status__in=TRANSITIONS[target]
    ).update(status=target, updated_at=timezone.now(), **fields)

    if not updated:
        # Lost a race with another request; report what it left behind
        dose.refresh_from_db(fields=['status'])
        raise InvalidTransition(f"A {dose.status} dose cannot become {target}.")

    dose.refresh_from_db()
    logger.info("Dose %s moved to %s", dose.pk, target)
    return dose


def mark_overdue(today=None, queryset=None):
    """
    Overdue scan: scheduled doses whose date has passed become delayed.

    Idempotent and forward-only, so read paths can call it freely.
    Returns the number of records reclassified.
    """
    today = today or timezone.localdate()
    queryset = DoseRecord.objects.all() if queryset is None else queryset
    count = queryset.filter(
        status=DoseRecord.SCHEDULED, scheduled_date__lt=today
    ).update(status=DoseRecord.DELAYED, updated_at=timezone.now())
    if count:
        logger.info("Overdue scan marked %d doses as delayed", count)
    return count


def complete_dose(actor, dose_id, administered_date=None, notes='', batch_number=''):
    _require_staff(actor)

    with transaction.atomic():
        dose = get_dose(dose_id)
        fields = {
            'administered_date': administered_date or timezone.localdate(),
            'doctor_id': actor.id,
        }
        if notes:
            fields['notes'] = notes
        if batch_number:
            fields['batch_number'] = batch_number
        dose = _transition(dose, DoseRecord.COMPLETED, **fields)

        child = dose.child
        notify(
            child.parent_id,
            'confirmation',
            'Vaccination completed',
            f"{dose.vaccine.name} (Dose {dose.dose_number}) was administered to {child.name}.",
            related_child_id=child.pk,
            related_vaccine_id=dose.vaccine_id,
        )
    return dose


def mark_missed(actor, dose_id, notes=''):
    _require_staff(actor)
    with transaction.atomic():
        dose = get_dose(dose_id)
        fields = {'notes': notes} if notes else {}
        return _transition(dose, DoseRecord.MISSED, **fields)


def cancel_dose(actor, dose_id, notes=''):
    _require_staff(actor)
    with transaction.atomic():
        dose = get_dose(dose_id)
        fields = {'notes': notes} if notes else {}
        return _transition(dose, DoseRecord.CANCELLED, **fields)


def apply_status_update(actor, dose_id, data):
    """Entry point for PUT /vaccinations/<id>."""
    _require_staff(actor)
    get_dose(dose_id)

    form = DoseUpdateForm(data=data)
    if not form.is_valid():
        raise ValidationError.from_form(form)

    status = form.cleaned_data['status']
    notes = form.cleaned_data['notes']
    if status == DoseRecord.COMPLETED:
        return complete_dose(
            actor, dose_id,
            administered_date=form.cleaned_data['administered_date'],
            notes=notes,
            batch_number=form.cleaned_data['batch_number'],
        )
    if status == DoseRecord.MISSED:
        return mark_missed(actor, dose_id, notes=notes)
    if status == DoseRecord.CANCELLED:
        return cancel_dose(actor, dose_id, notes=notes)
    raise InvalidTransition(f"Status '{status}' cannot be set manually.")


def doses_for_child(actor, child_id, today=None):
    child = get_child(actor, child_id)
    mark_overdue(today=today, queryset=child.doses.all())
    return child, child.doses.select_related('vaccine', 'doctor').order_by('scheduled_date', 'vaccine__name', 'dose_number')


def delayed_doses(actor, today=None):
    _require_staff(actor)
    today = today or timezone.localdate()
    mark_overdue(today=today)
    return DoseRecord.objects.filter(
        status__in=DoseRecord.OPEN_STATUSES, scheduled_date__lt=today
    ).select_related('child__parent', 'vaccine').order_by('scheduled_date')


def upcoming_doses(actor, today=None):
    _require_staff(actor)
    today = today or timezone.localdate()
    mark_overdue(today=today)
    until = add_months(today, settings.UPCOMING_WINDOW_MONTHS)
    return DoseRecord.objects.filter(
        status=DoseRecord.SCHEDULED,
        scheduled_date__gte=today,
        scheduled_date__lte=until,
    ).select_related('child__parent', 'vaccine').order_by('scheduled_date')[:settings.UPCOMING_LIMIT]
