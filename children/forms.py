from django import forms
from django.utils import timezone
from .models import Child


class ChildForm(forms.ModelForm):
    class Meta:
        model = Child
        fields = ['name', 'birth_date', 'gender', 'blood_type', 'allergies', 'notes']

    def clean_birth_date(self):
        birth_date = self.cleaned_data['birth_date']
        if birth_date > timezone.localdate():
            raise forms.ValidationError("Birth date cannot be in the future.")
        return birth_date


class ChildUpdateForm(forms.ModelForm):
    """Birth date is fixed once the vaccination schedule has been generated."""

    class Meta:
        model = Child
        fields = ['name', 'gender', 'blood_type', 'allergies', 'notes', 'is_active']
