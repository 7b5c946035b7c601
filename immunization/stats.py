"""Read-only dose counters for the dashboards. Nothing here writes."""
from decimal import Decimal, ROUND_HALF_UP

from django.db.models import Count, Q
from django.utils import timezone

from children.models import Child
from .models import DoseRecord


def completion_rate(completed, scheduled, delayed):
    """
    Percentage of due-or-done doses that were given, as a whole number.

    Halves round up (2.5 -> 3); 0 when nothing is due.
    """
    denominator = completed + scheduled + delayed
    if not denominator:
        return 0
    rate = Decimal(completed) * 100 / Decimal(denominator)
    return int(rate.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def dose_stats(actor, today=None):
    """Counts per status over every child (staff) or the parent's own children."""
    today = today or timezone.localdate()
    doses = DoseRecord.objects.all()
    children = Child.objects.all()
    if actor.is_parent:
        doses = doses.filter(child__parent_id=actor.id)
        children = children.filter(parent_id=actor.id)

    totals = doses.aggregate(
        total=Count('id'),
        scheduled=Count('id', filter=Q(status=DoseRecord.SCHEDULED)),
        delayed=Count('id', filter=Q(status=DoseRecord.DELAYED)),
        completed=Count('id', filter=Q(status=DoseRecord.COMPLETED)),
        missed=Count('id', filter=Q(status=DoseRecord.MISSED)),
        cancelled=Count('id', filter=Q(status=DoseRecord.CANCELLED)),
        completed_this_month=Count('id', filter=Q(
            status=DoseRecord.COMPLETED,
            administered_date__gte=today.replace(day=1),
            administered_date__lte=today,
        )),
    )
    totals['completion_rate'] = completion_rate(
        totals['completed'], totals['scheduled'], totals['delayed']
    )
    totals['total_children'] = children.count()
    return totals
