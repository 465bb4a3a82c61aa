"""Admin forms for staff accounts."""

from django import forms
from django.contrib.auth.forms import UserChangeForm, UserCreationForm

from .models import User


class CustomUserCreationForm(UserCreationForm):
    """
    Accounts created from the admin start with a forced password change;
    employees normally arrive through an invitation instead.
    """

    email = forms.EmailField(required=False)

    class Meta:
        model = User
        fields = ('username', 'email', 'role')

    def clean_email(self):
        return (self.cleaned_data.get('email') or '').strip().lower()

    def save(self, commit=True):
        user = super().save(commit=False)
        user.require_password_change = True
        user.is_staff = user.role in (User.ROLE_ADMIN, User.ROLE_HR)
        if commit:
            user.save()
        return user


class CustomUserChangeForm(UserChangeForm):

    class Meta:
        model = User
        fields = '__all__'

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('is_superuser') and cleaned.get('role') != User.ROLE_ADMIN:
            raise forms.ValidationError('Superusers must have the Administrator role.')
        return cleaned
