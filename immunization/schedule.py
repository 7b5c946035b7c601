import calendar
import logging
from datetime import date

from django.utils import timezone

from common.exceptions import ValidationError
from .models import DoseRecord, Vaccine

logger = logging.getLogger(__name__)


def add_months(start, months):
    """
    Shift a date by whole months, keeping the day of month.

    Days that do not exist in the target month are clamped to its last day
    (Jan 31 + 1 month is Feb 28, or Feb 29 in a leap year).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def build_doses(child, vaccine, today):
    """
    Unsaved dose records for one vaccine, in dose order.

    Overdue is decided on calendar days: a dose whose date is before today
    starts delayed, and a dose due today (the birth dose of a child enrolled
    on the day of birth) starts scheduled rather than delayed.
    """
    ages = list(vaccine.recommended_ages or [])
    if not ages:
        logger.warning("Vaccine %s has no recommended ages; skipped for child %s", vaccine.name, child.pk)
        return []
    if len(ages) != vaccine.total_doses:
        raise ValidationError(
            f"Vaccine {vaccine.name} lists {len(ages)} ages for {vaccine.total_doses} doses."
        )

    doses = []
    for index, age in enumerate(ages):
        scheduled_date = add_months(child.birth_date, age)
        doses.append(DoseRecord(
            child=child,
            vaccine=vaccine,
            dose_number=index + 1,
            scheduled_date=scheduled_date,
            status=DoseRecord.DELAYED if scheduled_date < today else DoseRecord.SCHEDULED,
        ))
    return doses


def generate_schedule(child, vaccines=None, today=None):
    """
    Expand the active calendar into dose records for a newly enrolled child.

    Must run inside the transaction that creates the child so that a failure
    leaves neither the child nor a partial schedule behind.
    """
    today = today or timezone.localdate()
    if vaccines is None:
        vaccines = Vaccine.objects.active()

    doses = []
    for vaccine in vaccines:
        doses.extend(build_doses(child, vaccine, today))

    created = DoseRecord.objects.bulk_create(doses)
    logger.info("Generated %d dose records for child %s", len(created), child.pk)
    return created
