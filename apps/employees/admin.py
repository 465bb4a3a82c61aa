"""
Employee Admin
"""

from django.contrib import admin

from .models import (
    Employee, Education, Employment, PeerReference, StateLicense, DEALicense,
    BoardCertification, EmergencyContact, TaxForm, Training, PayerEnrollment, IncidentLog,
)


# =====================
# INLINES (SAFE VIA PARENT)
# =====================

class StateLicenseInline(admin.TabularInline):
    model = StateLicense
    extra = 0


class DEALicenseInline(admin.TabularInline):
    model = DEALicense
    extra = 0


class BoardCertificationInline(admin.TabularInline):
    model = BoardCertification
    extra = 0


class EmergencyContactInline(admin.TabularInline):
    model = EmergencyContact
    extra = 0


# =====================
# MAIN ADMINS
# =====================

@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['id', 'full_name', 'work_email', 'job_title', 'work_location', 'status', 'onboarding_status']
    list_filter = ['status', 'onboarding_status']
    search_fields = ['first_name', 'last_name', 'work_email', 'npi_number']
    raw_id_fields = ['user']
    # Encrypted values are only editable through the API, which masks them on read.
    exclude = ['ssn', 'caqh_password', 'nppes_password', 'onboarding_data']
    inlines = [StateLicenseInline, DEALicenseInline, BoardCertificationInline, EmergencyContactInline]


@admin.register(StateLicense, DEALicense, BoardCertification)
class CredentialAdmin(admin.ModelAdmin):
    list_display = ['employee', 'issue_date', 'expiration_date', 'status']
    list_filter = ['status']
    date_hierarchy = 'expiration_date'
    raw_id_fields = ['employee']


@admin.register(Education, Employment, PeerReference, EmergencyContact, TaxForm, Training, PayerEnrollment)
class EmployeeRecordAdmin(admin.ModelAdmin):
    list_display = ['employee', '__str__']
    raw_id_fields = ['employee']


@admin.register(IncidentLog)
class IncidentLogAdmin(admin.ModelAdmin):
    list_display = ['employee', 'incident_date', 'incident_type', 'severity', 'status']
    list_filter = ['severity', 'status']
    search_fields = ['employee__first_name', 'employee__last_name', 'incident_type']
    raw_id_fields = ['employee']
