from django.db import models
from django.conf import settings
from django.db.models import Q


class DoctorSchedule(models.Model):
    """A doctor's working day; its slots are what parents book"""
    doctor = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='schedules')
    date = models.DateField()
    is_available = models.BooleanField(default=True)
    notes = models.CharField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['date']
        constraints = [
            models.UniqueConstraint(fields=['doctor', 'date'], name='unique_schedule_per_doctor_day'),
        ]

    def __str__(self):
        return f"{self.doctor} - {self.date}"


class AvailabilitySlot(models.Model):
    schedule = models.ForeignKey(DoctorSchedule, on_delete=models.CASCADE, related_name='slots')
    start_time = models.TimeField()
    end_time = models.TimeField()
    # Only ever flipped by the guarded updates in appointments.booking
    is_booked = models.BooleanField(default=False)
    booked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='booked_slots'
    )

    class Meta:
        ordering = ['start_time']
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(is_booked=True, booked_by__isnull=False)
                    | Q(is_booked=False, booked_by__isnull=True)
                ),
                name='booked_iff_booked_by',
            ),
        ]

    def __str__(self):
        state = 'booked' if self.is_booked else 'free'
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M} ({state})"

    def overlaps(self, start_time, end_time):
        return self.start_time < end_time and start_time < self.end_time


class AppointmentQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status__in=Appointment.ACTIVE_STATUSES)

    def for_actor(self, actor):
        if actor.is_parent:
            return self.filter(parent_id=actor.id)
        if actor.is_doctor:
            return self.filter(doctor_id=actor.id)
        return self


class Appointment(models.Model):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    REJECTED = 'rejected'
    CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (PENDING, 'Pending'),
        (CONFIRMED, 'Confirmed'),
        (COMPLETED, 'Completed'),
        (REJECTED, 'Rejected'),
        (CANCELLED, 'Cancelled'),
    ]
    ACTIVE_STATUSES = (PENDING, CONFIRMED)

    TYPE_CHOICES = [
        ('vaccination', 'Vaccination'),
        ('checkup', 'Checkup'),
        ('consultation', 'Consultation'),
    ]

    child = models.ForeignKey('children.Child', on_delete=models.CASCADE, related_name='appointments')
    parent = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='doctor_appointments'
    )
    slot = models.ForeignKey(
        AvailabilitySlot, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='appointments'
    )
    scheduled_date = models.DateField()
    scheduled_time = models.TimeField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=PENDING)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='vaccination')
    vaccines = models.ManyToManyField('immunization.Vaccine', blank=True, related_name='appointments')
    notes = models.TextField(blank=True)
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AppointmentQuerySet.as_manager()

    class Meta:
        ordering = ['-scheduled_date', '-scheduled_time']
        indexes = [
            models.Index(fields=['status', 'scheduled_date'], name='appt_status_date_idx'),
        ]

    def __str__(self):
        return f"{self.child} on {self.scheduled_date} at {self.scheduled_time:%H:%M} ({self.status})"
