"""
The vaccine calendar: which vaccines exist and at what ages they are due.

Definitions are immutable once created. They can only be deactivated, which
removes them from future schedules while existing dose records keep
pointing at them.
"""
import logging

from django.db import transaction

from common.exceptions import Forbidden, NotFound, ValidationError
from .forms import VaccineForm
from .models import Vaccine

logger = logging.getLogger(__name__)


# National calendar: name, description, recommended ages in months
NATIONAL_CALENDAR = [
    {
        'name': 'BCG',
        'description': 'Tuberculosis vaccine',
        'recommended_ages': [0],
    },
    {
        'name': 'Hepatitis B',
        'description': 'Hepatitis B vaccine',
        'recommended_ages': [0, 1, 6],
    },
    {
        'name': 'DTP-Hib-HepB (Pentavalent)',
        'description': 'Diphtheria, Tetanus, Pertussis, Haemophilus influenzae b, Hepatitis B',
        'recommended_ages': [2, 3, 4],
    },
    {
        'name': 'Polio (OPV)',
        'description': 'Oral poliomyelitis vaccine',
        'recommended_ages': [2, 3, 4, 16],
    },
    {
        'name': 'Pneumococcal',
        'description': 'Pneumococcal conjugate vaccine',
        'recommended_ages': [2, 4, 12],
    },
    {
        'name': 'Measles-Rubella (MR)',
        'description': 'Measles and rubella vaccine',
        'recommended_ages': [9, 18],
    },
    {
        'name': 'DTP (Booster)',
        'description': 'Diphtheria, Tetanus, Pertussis booster',
        'recommended_ages': [18, 72],
    },
]


def _sort_key(vaccine):
    first = vaccine.first_age
    return (first is None, first if first is not None else 0, vaccine.name)


def active_vaccines():
    """Active definitions ordered by the age of their first dose."""
    return sorted(Vaccine.objects.active(), key=_sort_key)


def get_vaccine(vaccine_id):
    try:
        return Vaccine.objects.get(pk=vaccine_id)
    except Vaccine.DoesNotExist:
        raise NotFound('Vaccine not found.')


def create_vaccine(actor, data):
    if not actor.is_admin:
        raise Forbidden('Only administrators can edit the vaccine calendar.')

    data = dict(data)
    data.setdefault('is_mandatory', True)
    form = VaccineForm(data=data)
    if not form.is_valid():
        raise ValidationError.from_form(form)

    vaccine = form.save(commit=False)
    vaccine.total_doses = form.cleaned_data['total_doses']
    vaccine.save()
    logger.info("Vaccine %s created with ages %s", vaccine.name, vaccine.recommended_ages)
    return vaccine


def deactivate_vaccine(actor, vaccine_id):
    if not actor.is_admin:
        raise Forbidden('Only administrators can edit the vaccine calendar.')

    vaccine = get_vaccine(vaccine_id)
    if vaccine.is_active:
        vaccine.is_active = False
        vaccine.save(update_fields=['is_active', 'updated_at'])
        logger.info("Vaccine %s deactivated", vaccine.name)
    return vaccine


def seed_national_calendar():
    """Load NATIONAL_CALENDAR; existing names are left untouched. Returns (created, existing)."""
    created, existing = [], []
    with transaction.atomic():
        for entry in NATIONAL_CALENDAR:
            vaccine, was_created = Vaccine.objects.get_or_create(
                name=entry['name'],
                defaults={
                    'description': entry['description'],
                    'recommended_ages': list(entry['recommended_ages']),
                    'total_doses': len(entry['recommended_ages']),
                    'is_mandatory': True,
                }
            )
            (created if was_created else existing).append(vaccine)
    return created, existing
