from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

import apps.onboarding.models


class Migration(migrations.Migration):

    dependencies = [
        ('onboarding', '0001_initial'),
        ('authentication', '0002_invitation'),
        ('employees', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='FormSubmission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('submission_id', models.CharField(max_length=100, unique=True)),
                ('recipient_email', models.EmailField(max_length=254)),
                ('recipient_name', models.CharField(blank=True, max_length=200)),
                ('recipient_phone', models.CharField(blank=True, max_length=20)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('sent', 'Sent'), ('opened', 'Opened'), ('completed', 'Completed'), ('expired', 'Expired'), ('declined', 'Declined')], db_index=True, default='pending', max_length=20)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('opened_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('expires_at', models.DateTimeField(default=apps.onboarding.models.default_submission_expiry)),
                ('documents_url', models.URLField(blank=True, max_length=500)),
                ('submission_data', models.JSONField(blank=True, default=dict)),
                ('requires_hr_signature', models.BooleanField(default=False)),
                ('employee_signed', models.BooleanField(default=False)),
                ('hr_signed', models.BooleanField(default=False)),
                ('is_onboarding_requirement', models.BooleanField(default=False)),
                ('reminders_sent', models.PositiveSmallIntegerField(default=0)),
                ('last_reminder_at', models.DateTimeField(blank=True, null=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_form_submissions', to=settings.AUTH_USER_MODEL)),
                ('employee', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='form_submissions', to='employees.employee')),
                ('invitation', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='form_submissions', to='authentication.invitation')),
                ('template', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='submissions', to='onboarding.formtemplate')),
            ],
            options={
                'db_table': 'form_submissions',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='SubmissionSigner',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('role', models.CharField(max_length=100)),
                ('signer_type', models.CharField(choices=[('employee', 'Employee'), ('hr', 'HR')], default='employee', max_length=20)),
                ('email', models.EmailField(max_length=254)),
                ('name', models.CharField(blank=True, max_length=200)),
                ('external_id', models.CharField(blank=True, max_length=100)),
                ('status', models.CharField(default='sent', max_length=20)),
                ('sent_at', models.DateTimeField(blank=True, null=True)),
                ('opened_at', models.DateTimeField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('signing_url', models.URLField(blank=True, max_length=500)),
                ('order', models.PositiveSmallIntegerField(default=0)),
                ('submission', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='signers', to='onboarding.formsubmission')),
            ],
            options={
                'db_table': 'submission_signers',
                'ordering': ['order', 'id'],
            },
        ),
    ]
