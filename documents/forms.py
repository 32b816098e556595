from django import forms

from permits.models import IntentRegistration, PermitApplication
from .models import DocumentCategory, DraftCategory


class DocumentUploadForm(forms.Form):
    """
    Upload to an existing application or intent registration, or as a draft
    for a form the applicant has not submitted yet.
    """
    file = forms.FileField(widget=forms.ClearableFileInput(attrs={'class': 'form-control'}))
    document_type = forms.ChoiceField(
        choices=[('', 'General Document')] + DocumentCategory.choices,
        required=False,
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    permit = forms.ModelChoiceField(
        queryset=PermitApplication.objects.none(),
        required=False,
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    intent_registration = forms.ModelChoiceField(
        queryset=IntentRegistration.objects.none(),
        required=False,
        widget=forms.Select(attrs={'class': 'form-select'}),
    )
    draft_category = forms.ChoiceField(
        choices=[('', '---------')] + DraftCategory.choices,
        required=False,
        widget=forms.HiddenInput(),
    )

    def __init__(self, *args, user=None, **kwargs):
        super().__init__(*args, **kwargs)
        if user is not None:
            self.fields['permit'].queryset = PermitApplication.objects.filter(user=user)
            self.fields['intent_registration'].queryset = IntentRegistration.objects.filter(user=user)

    def clean(self):
        cleaned_data = super().clean()
        targets = [
            cleaned_data.get('permit'),
            cleaned_data.get('intent_registration'),
            cleaned_data.get('draft_category'),
        ]
        if sum(1 for target in targets if target) != 1:
            raise forms.ValidationError("Choose one application or intent registration for this document.")
        cleaned_data['parent'] = cleaned_data.get('permit') or cleaned_data.get('intent_registration')
        return cleaned_data
