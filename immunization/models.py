from django.db import models
from django.conf import settings
from django.db.models import Q


class VaccineQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)


class Vaccine(models.Model):
    """Catalog entry of the national vaccination calendar"""
    name = models.CharField(max_length=150, unique=True)
    description = models.TextField(blank=True)
    # Age in months at which each dose is due, in dose order
    recommended_ages = models.JSONField(default=list)
    total_doses = models.PositiveIntegerField(default=1)
    is_mandatory = models.BooleanField(default=True)
    side_effects = models.TextField(blank=True)
    contraindications = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = VaccineQuerySet.as_manager()

    class Meta:
        ordering = ['name']

    def __str__(self):
        return f"{self.name} ({self.total_doses} dose{'s' if self.total_doses != 1 else ''})"

    @property
    def first_age(self):
        return min(self.recommended_ages) if self.recommended_ages else None


class DoseRecord(models.Model):
    """One scheduled or administered dose of a vaccine for one child"""

    SCHEDULED = 'scheduled'
    DELAYED = 'delayed'
    COMPLETED = 'completed'
    MISSED = 'missed'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (SCHEDULED, 'Scheduled'),
        (DELAYED, 'Delayed'),
        (COMPLETED, 'Completed'),
        (MISSED, 'Missed'),
        (CANCELLED, 'Cancelled'),
    ]
    OPEN_STATUSES = (SCHEDULED, DELAYED)

    child = models.ForeignKey('children.Child', on_delete=models.CASCADE, related_name='doses')
    vaccine = models.ForeignKey(Vaccine, on_delete=models.PROTECT, related_name='doses')
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='administered_doses'
    )
    dose_number = models.PositiveIntegerField(default=1)
    scheduled_date = models.DateField()
    administered_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=SCHEDULED)

    notes = models.TextField(blank=True)
    batch_number = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['scheduled_date', 'vaccine__name', 'dose_number']
        constraints = [
            models.UniqueConstraint(fields=['child', 'vaccine', 'dose_number'], name='unique_dose_per_child'),
            models.CheckConstraint(
                condition=(
                    Q(status='completed', administered_date__isnull=False)
                    | (~Q(status='completed') & Q(administered_date__isnull=True))
                ),
                name='administered_date_iff_completed',
            ),
        ]
        indexes = [
            models.Index(fields=['status', 'scheduled_date'], name='dose_status_date_idx'),
        ]

    def __str__(self):
        return f"{self.vaccine.name} Dose {self.dose_number} - {self.child.name} ({self.status})"
