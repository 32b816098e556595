from django import forms
from .models import Invoice


class PaymentStatusForm(forms.Form):
    payment_status = forms.ChoiceField(choices=Invoice.PaymentStatus.choices, widget=forms.Select(attrs={'class': 'form-select'}))
    follow_up_notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2, 'class': 'form-control'}))


class FollowUpForm(forms.Form):
    follow_up_date = forms.DateTimeField(widget=forms.DateTimeInput(attrs={'class': 'form-control', 'type': 'datetime-local'}))
    notes = forms.CharField(widget=forms.Textarea(attrs={'rows': 2, 'class': 'form-control'}))


class VerificationForm(forms.Form):
    verification_status = forms.ChoiceField(
        choices=Invoice.VerificationStatus.choices, widget=forms.Select(attrs={'class': 'form-select'})
    )
    notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 2, 'class': 'form-control'}))
