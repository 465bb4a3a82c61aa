from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

import apps.authentication.models
import apps.core.utils


class Migration(migrations.Migration):

    dependencies = [
        ('authentication', '0001_initial'),
        ('employees', '0001_initial'),
        ('onboarding', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Invitation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('token', models.CharField(default=apps.core.utils.generate_token, editable=False, max_length=128, unique=True)),
                ('email', models.EmailField(db_index=True, max_length=254)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('intended_role', models.CharField(choices=[('admin', 'Administrator'), ('hr', 'HR'), ('employee', 'Employee'), ('prospective_employee', 'Prospective Employee'), ('viewer', 'Viewer')], default='prospective_employee', max_length=30)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('registered', 'Registered'), ('expired', 'Expired')], db_index=True, default='pending', max_length=20)),
                ('expires_at', models.DateTimeField(default=apps.authentication.models.default_invitation_expiry)),
                ('registered_at', models.DateTimeField(blank=True, null=True)),
                ('reminders_sent', models.PositiveSmallIntegerField(default=0)),
                ('last_reminder_at', models.DateTimeField(blank=True, null=True)),
                ('employee', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='invitations', to='employees.employee')),
                ('invited_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='sent_invitations', to=settings.AUTH_USER_MODEL)),
                ('required_form_templates', models.ManyToManyField(blank=True, related_name='invitations', to='onboarding.formtemplate')),
            ],
            options={
                'db_table': 'invitations',
                'ordering': ['-created_at'],
            },
        ),
    ]
