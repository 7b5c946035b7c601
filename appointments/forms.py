from django import forms
from immunization.models import Vaccine
from .models import Appointment, DoctorSchedule


class ScheduleForm(forms.ModelForm):
    class Meta:
        model = DoctorSchedule
        fields = ['date', 'is_available', 'notes']


class SlotForm(forms.Form):
    start_time = forms.TimeField(input_formats=['%H:%M', '%H:%M:%S'])
    end_time = forms.TimeField(input_formats=['%H:%M', '%H:%M:%S'])

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('start_time')
        end = cleaned_data.get('end_time')
        if start and end and start >= end:
            raise forms.ValidationError("A slot must end after it starts.")
        return cleaned_data


class AppointmentForm(forms.ModelForm):
    vaccines = forms.ModelMultipleChoiceField(queryset=Vaccine.objects.active(), required=False)

    class Meta:
        model = Appointment
        fields = ['scheduled_date', 'scheduled_time', 'type', 'vaccines', 'notes']

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['type'].required = False

    def clean_type(self):
        return self.cleaned_data.get('type') or 'vaccination'


class AppointmentUpdateForm(forms.Form):
    STATUS_CHOICES = [
        (Appointment.CONFIRMED, 'Confirmed'),
        (Appointment.REJECTED, 'Rejected'),
        (Appointment.COMPLETED, 'Completed'),
        (Appointment.CANCELLED, 'Cancelled'),
    ]

    status = forms.ChoiceField(choices=STATUS_CHOICES)
    slot = forms.IntegerField(required=False, min_value=1)
    scheduled_date = forms.DateField(required=False)
    scheduled_time = forms.TimeField(required=False, input_formats=['%H:%M', '%H:%M:%S'])
    rejection_reason = forms.CharField(required=False)
    notes = forms.CharField(required=False)
