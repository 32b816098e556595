from django import forms

from registry.models import Entity
from .models import ActivityLevel, InitialAssessment, IntentRegistration, PermitApplication


class OwnedEntityMixin:
    """Limits the entity choices to the applicant's own active entities."""

    def limit_entities(self, user):
        self.fields['entity'].queryset = Entity.objects.filter(owner=user, is_suspended=False)


class IntentRegistrationForm(OwnedEntityMixin, forms.ModelForm):
    class Meta:
        model = IntentRegistration
        fields = [
            'entity', 'activity_level', 'activity_description',
            'preparatory_work_description', 'commencement_date', 'completion_date',
        ]
        widgets = {
            'entity': forms.Select(attrs={'class': 'form-select'}),
            'activity_level': forms.Select(attrs={'class': 'form-select'}),
            'activity_description': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
            'preparatory_work_description': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
            'commencement_date': forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}),
            'completion_date': forms.DateInput(attrs={'class': 'form-control', 'type': 'date'}),
        }

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        if user is not None:
            self.limit_entities(user)


class PermitApplicationForm(OwnedEntityMixin, forms.ModelForm):
    class Meta:
        model = PermitApplication
        fields = ['entity', 'intent_registration', 'title', 'permit_type', 'activity_level', 'description']
        widgets = {
            'entity': forms.Select(attrs={'class': 'form-select'}),
            'intent_registration': forms.Select(attrs={'class': 'form-select'}),
            'title': forms.TextInput(attrs={'class': 'form-control'}),
            'permit_type': forms.TextInput(attrs={'class': 'form-control'}),
            'activity_level': forms.Select(attrs={'class': 'form-select'}),
            'description': forms.Textarea(attrs={'class': 'form-control', 'rows': 4}),
        }

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['activity_level'].choices = [('', '---------')] + ActivityLevel.choices
        if user is not None:
            self.limit_entities(user)
            self.fields['intent_registration'].queryset = IntentRegistration.objects.filter(
                user=user, status=IntentRegistration.Status.APPROVED
            )


class TransitionForm(forms.Form):
    status = forms.ChoiceField(widget=forms.Select(attrs={'class': 'form-select'}))
    remarks = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3, 'class': 'form-control'}))

    def __init__(self, *args, allowed_statuses=(), choices=(), **kwargs):
        super().__init__(*args, **kwargs)
        labels = dict(choices)
        self.fields['status'].choices = [(value, labels.get(value, value)) for value in sorted(allowed_statuses)]


class AssessmentForm(forms.ModelForm):
    class Meta:
        model = InitialAssessment
        fields = ['assessment_outcome', 'feedback_provided', 'assessment_notes']
        widgets = {
            'assessment_outcome': forms.Select(attrs={'class': 'form-select'}),
            'feedback_provided': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
            'assessment_notes': forms.Textarea(attrs={'class': 'form-control', 'rows': 3}),
        }
        labels = {
            'feedback_provided': 'Feedback to applicant',
            'assessment_notes': 'Internal notes',
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['assessment_outcome'].required = True
