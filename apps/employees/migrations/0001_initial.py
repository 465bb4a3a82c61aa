from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

import apps.core.fields


def _employee_fk(related_name):
    return ('employee', models.ForeignKey(
        on_delete=django.db.models.deletion.CASCADE, related_name=related_name, to='employees.employee'))


ID = ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID'))


def _credential_fields():
    return [
        ('issue_date', models.DateField(blank=True, null=True)),
        ('expiration_date', models.DateField(blank=True, db_index=True, null=True)),
        ('status', models.CharField(blank=True, max_length=50)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Employee',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('first_name', models.CharField(max_length=50)),
                ('middle_name', models.CharField(blank=True, max_length=50)),
                ('last_name', models.CharField(max_length=50)),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, max_length=20)),
                ('birth_city', models.CharField(blank=True, max_length=50)),
                ('birth_state', models.CharField(blank=True, max_length=50)),
                ('birth_country', models.CharField(blank=True, max_length=50)),
                ('personal_email', models.EmailField(blank=True, max_length=100, null=True, unique=True)),
                ('work_email', models.EmailField(max_length=100, unique=True)),
                ('cell_phone', models.CharField(blank=True, max_length=20)),
                ('work_phone', models.CharField(blank=True, max_length=20)),
                ('home_address1', models.CharField(blank=True, max_length=100)),
                ('home_address2', models.CharField(blank=True, max_length=100)),
                ('home_city', models.CharField(blank=True, max_length=50)),
                ('home_state', models.CharField(blank=True, max_length=50)),
                ('home_zip', models.CharField(blank=True, max_length=10)),
                ('drivers_license_number', models.CharField(blank=True, max_length=50)),
                ('dl_state_issued', models.CharField(blank=True, max_length=50)),
                ('dl_issue_date', models.DateField(blank=True, null=True)),
                ('dl_expiration_date', models.DateField(blank=True, db_index=True, null=True)),
                ('ssn', apps.core.fields.EncryptedTextField(blank=True)),
                ('npi_number', models.CharField(blank=True, max_length=20, null=True, unique=True)),
                ('enumeration_date', models.DateField(blank=True, null=True)),
                ('job_title', models.CharField(blank=True, db_index=True, max_length=100)),
                ('work_location', models.CharField(blank=True, db_index=True, max_length=100)),
                ('qualification', models.TextField(blank=True)),
                ('medical_license_number', models.CharField(blank=True, max_length=50)),
                ('substance_use_license_number', models.CharField(blank=True, max_length=50)),
                ('substance_use_qualification', models.TextField(blank=True)),
                ('mental_health_license_number', models.CharField(blank=True, max_length=50)),
                ('mental_health_qualification', models.TextField(blank=True)),
                ('medicaid_number', models.CharField(blank=True, max_length=50)),
                ('medicare_ptan_number', models.CharField(blank=True, max_length=50)),
                ('caqh_provider_id', models.CharField(blank=True, max_length=50)),
                ('caqh_issue_date', models.DateField(blank=True, null=True)),
                ('caqh_last_attestation_date', models.DateField(blank=True, null=True)),
                ('caqh_enabled', models.BooleanField(default=False)),
                ('caqh_reattestation_due_date', models.DateField(blank=True, db_index=True, null=True)),
                ('caqh_login_id', models.CharField(blank=True, max_length=50)),
                ('caqh_password', apps.core.fields.EncryptedTextField(blank=True)),
                ('nppes_login_id', models.CharField(blank=True, max_length=50)),
                ('nppes_password', apps.core.fields.EncryptedTextField(blank=True)),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive'), ('on_leave', 'On Leave'), ('terminated', 'Terminated')], db_index=True, default='active', max_length=20)),
                ('onboarding_status', models.CharField(choices=[('not_started', 'Not Started'), ('in_progress', 'In Progress'), ('submitted', 'Submitted'), ('completed', 'Completed')], db_index=True, default='not_started', max_length=20)),
                ('onboarding_step', models.PositiveSmallIntegerField(default=0)),
                ('onboarding_completed_steps', models.JSONField(blank=True, default=list)),
                ('onboarding_data', models.JSONField(blank=True, default=dict)),
                ('onboarding_submitted_at', models.DateTimeField(blank=True, null=True)),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='employee', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'employees',
                'ordering': ['last_name', 'first_name'],
            },
        ),
        migrations.CreateModel(
            name='Education',
            fields=[
                ID,
                ('education_type', models.CharField(blank=True, max_length=50)),
                ('school_institution', models.CharField(blank=True, max_length=100)),
                ('degree', models.CharField(blank=True, max_length=50)),
                ('specialty_major', models.CharField(blank=True, max_length=100)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                _employee_fk('educations'),
            ],
            options={'db_table': 'educations', 'ordering': ['-end_date', '-id']},
        ),
        migrations.CreateModel(
            name='Employment',
            fields=[
                ID,
                ('employer', models.CharField(blank=True, max_length=100)),
                ('position', models.CharField(blank=True, max_length=100)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('description', models.TextField(blank=True)),
                _employee_fk('employments'),
            ],
            options={'db_table': 'employments', 'ordering': ['-start_date', '-id']},
        ),
        migrations.CreateModel(
            name='PeerReference',
            fields=[
                ID,
                ('reference_name', models.CharField(blank=True, max_length=100)),
                ('contact_info', models.CharField(blank=True, max_length=100)),
                ('relationship', models.CharField(blank=True, max_length=100)),
                ('comments', models.TextField(blank=True)),
                _employee_fk('peer_references'),
            ],
            options={'db_table': 'peer_references', 'ordering': ['id']},
        ),
        migrations.CreateModel(
            name='StateLicense',
            fields=[
                ID,
                *_credential_fields(),
                ('license_number', models.CharField(max_length=50)),
                ('state', models.CharField(max_length=50)),
                _employee_fk('state_licenses'),
            ],
            options={'db_table': 'state_licenses', 'ordering': ['expiration_date', 'id']},
        ),
        migrations.CreateModel(
            name='DEALicense',
            fields=[
                ID,
                *_credential_fields(),
                ('license_number', models.CharField(max_length=50)),
                ('state', models.CharField(blank=True, max_length=50)),
                _employee_fk('dea_licenses'),
            ],
            options={'db_table': 'dea_licenses', 'ordering': ['expiration_date', 'id'], 'verbose_name': 'DEA license'},
        ),
        migrations.CreateModel(
            name='BoardCertification',
            fields=[
                ID,
                *_credential_fields(),
                ('board_name', models.CharField(blank=True, max_length=100)),
                ('certification', models.CharField(blank=True, max_length=100)),
                _employee_fk('board_certifications'),
            ],
            options={'db_table': 'board_certifications', 'ordering': ['expiration_date', 'id']},
        ),
        migrations.CreateModel(
            name='EmergencyContact',
            fields=[
                ID,
                ('name', models.CharField(max_length=100)),
                ('relationship', models.CharField(blank=True, max_length=50)),
                ('phone', models.CharField(blank=True, max_length=20)),
                ('email', models.EmailField(blank=True, max_length=100)),
                _employee_fk('emergency_contacts'),
            ],
            options={'db_table': 'emergency_contacts', 'ordering': ['id']},
        ),
        migrations.CreateModel(
            name='TaxForm',
            fields=[
                ID,
                ('form_type', models.CharField(max_length=50)),
                ('file_path', models.CharField(blank=True, max_length=255)),
                ('submitted_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(blank=True, default='pending', max_length=50)),
                _employee_fk('tax_forms'),
            ],
            options={'db_table': 'tax_forms', 'ordering': ['-submitted_date', '-id']},
        ),
        migrations.CreateModel(
            name='Training',
            fields=[
                ID,
                ('training_type', models.CharField(blank=True, max_length=100)),
                ('provider', models.CharField(blank=True, max_length=100)),
                ('completion_date', models.DateField(blank=True, null=True)),
                ('expiration_date', models.DateField(blank=True, db_index=True, null=True)),
                ('credits', models.DecimalField(blank=True, decimal_places=2, max_digits=5, null=True)),
                ('certificate_path', models.CharField(blank=True, max_length=255)),
                _employee_fk('trainings'),
            ],
            options={'db_table': 'trainings', 'ordering': ['-completion_date', '-id']},
        ),
        migrations.CreateModel(
            name='PayerEnrollment',
            fields=[
                ID,
                ('payer_name', models.CharField(blank=True, max_length=100)),
                ('enrollment_id', models.CharField(blank=True, max_length=50)),
                ('enrollment_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(blank=True, max_length=50)),
                _employee_fk('payer_enrollments'),
            ],
            options={'db_table': 'payer_enrollments', 'ordering': ['payer_name', 'id']},
        ),
        migrations.CreateModel(
            name='IncidentLog',
            fields=[
                ID,
                ('incident_date', models.DateField(default=django.utils.timezone.localdate)),
                ('incident_type', models.CharField(blank=True, max_length=50)),
                ('severity', models.CharField(choices=[('low', 'Low'), ('medium', 'Medium'), ('high', 'High'), ('critical', 'Critical')], default='low', max_length=20)),
                ('description', models.TextField(blank=True)),
                ('resolution', models.TextField(blank=True)),
                ('reported_by', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(choices=[('open', 'Open'), ('investigating', 'Investigating'), ('resolved', 'Resolved'), ('closed', 'Closed')], default='open', max_length=20)),
                _employee_fk('incident_logs'),
            ],
            options={'db_table': 'incident_logs', 'ordering': ['-incident_date', '-id']},
        ),
    ]
