from django import forms
from .models import Vaccine, DoseRecord


class MonthListField(forms.Field):
    """Ordered list of ages in months; accepts a JSON list or "0, 1, 6"."""

    default_error_messages = {
        'invalid': 'Enter a list of ages in months.',
        'negative': 'Ages in months cannot be negative.',
    }

    def to_python(self, value):
        if value in self.empty_values:
            return []
        if isinstance(value, str):
            value = [part.strip() for part in value.split(',') if part.strip()]
        if not isinstance(value, (list, tuple)):
            raise forms.ValidationError(self.error_messages['invalid'], code='invalid')

        ages = []
        for item in value:
            if isinstance(item, bool):
                raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
            try:
                age = int(item)
            except (TypeError, ValueError):
                raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
            if isinstance(item, float) and item != age:
                raise forms.ValidationError(self.error_messages['invalid'], code='invalid')
            if age < 0:
                raise forms.ValidationError(self.error_messages['negative'], code='negative')
            ages.append(age)
        return ages


class VaccineForm(forms.ModelForm):
    recommended_ages = MonthListField()

    class Meta:
        model = Vaccine
        fields = [
            'name', 'description', 'recommended_ages', 'total_doses',
            'is_mandatory', 'side_effects', 'contraindications'
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        # Derived from the age list when omitted
        self.fields['total_doses'].required = False

    def clean(self):
        cleaned_data = super().clean()
        ages = cleaned_data.get('recommended_ages')
        total = cleaned_data.get('total_doses')
        if ages is None:
            return cleaned_data
        if total is None:
            cleaned_data['total_doses'] = len(ages)
        elif total != len(ages):
            self.add_error(
                'total_doses',
                f"Dose count ({total}) must match the number of recommended ages ({len(ages)})."
            )
        return cleaned_data


class DoseUpdateForm(forms.Form):
    status = forms.ChoiceField(choices=DoseRecord.STATUS_CHOICES)
    administered_date = forms.DateField(required=False)
    notes = forms.CharField(required=False)
    batch_number = forms.CharField(required=False, max_length=50)
