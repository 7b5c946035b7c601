import logging

from django.db import transaction

from common.exceptions import Forbidden, NotFound, ValidationError
from immunization.models import DoseRecord
from immunization.schedule import generate_schedule
from .forms import ChildForm, ChildUpdateForm
from .models import Child

logger = logging.getLogger(__name__)


def _can_manage(actor, child):
    return actor.is_admin or (actor.is_parent and child.parent_id == actor.id)


def list_children(actor):
    qs = Child.objects.select_related('parent')
    if actor.is_parent:
        qs = qs.filter(parent_id=actor.id)
    return qs


def get_child(actor, child_id):
    try:
        child = Child.objects.select_related('parent').get(pk=child_id)
    except (Child.DoesNotExist, ValueError, TypeError):
        raise NotFound('Child not found.')
    if actor.is_parent and child.parent_id != actor.id:
        raise Forbidden()
    return child


def register_child(actor, data, today=None):
    """
    Enroll a child and generate the full vaccination schedule.

    Both happen in one transaction: if generation fails the child is not
    created either. Returns (child, doses).
    """
    if not actor.is_parent:
        raise Forbidden('Only parents can register children.')

    form = ChildForm(data=data)
    if not form.is_valid():
        raise ValidationError.from_form(form)

    with transaction.atomic():
        child = form.save(commit=False)
        child.parent_id = actor.id
        child.save()
        generate_schedule(child, today=today)

    logger.info("Child %s registered by parent %s", child.pk, actor.id)
    doses = child.doses.select_related('vaccine').order_by('scheduled_date', 'vaccine__name', 'dose_number')
    return child, list(doses)


def update_child(actor, child_id, data):
    child = get_child(actor, child_id)
    if not _can_manage(actor, child):
        raise Forbidden()

    # Partial update: missing keys keep their current value
    current = {
        'name': child.name,
        'gender': child.gender,
        'blood_type': child.blood_type,
        'allergies': child.allergies,
        'notes': child.notes,
        'is_active': child.is_active,
    }
    current.update({k: v for k, v in data.items() if k in current})
    form = ChildUpdateForm(data=current, instance=child)
    if not form.is_valid():
        raise ValidationError.from_form(form)
    return form.save()


def remove_child(actor, child_id):
    """Delete a child together with every dose record it owns."""
    child = get_child(actor, child_id)
    if not _can_manage(actor, child):
        raise Forbidden()

    with transaction.atomic():
        deleted, _ = DoseRecord.objects.filter(child=child).delete()
        child.delete()
    logger.info("Child %s removed with %d dose records", child_id, deleted)
