from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion

import apps.authentication.models


class Migration(migrations.Migration):

    dependencies = [
        ('authentication', '0002_invitation'),
    ]

    operations = [
        migrations.CreateModel(
            name='ApiKey',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(max_length=100)),
                ('key_hash', models.CharField(max_length=255)),
                ('key_prefix', models.CharField(max_length=16, unique=True)),
                ('permissions', models.JSONField(default=list)),
                ('environment', models.CharField(choices=[('live', 'Live'), ('test', 'Test')], default='live', max_length=20)),
                ('rate_limit_per_hour', models.PositiveIntegerField(default=1000)),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('expires_at', models.DateTimeField(db_index=True, default=apps.authentication.models.default_api_key_expiry)),
                ('revoked_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('last_used_at', models.DateTimeField(blank=True, null=True)),
                ('usage_count', models.PositiveIntegerField(default=0)),
                ('failed_auth_count', models.PositiveIntegerField(default=0)),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='api_keys', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'api_keys',
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ApiKeyRotation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rotation_type', models.CharField(choices=[('manual', 'Manual'), ('automatic', 'Automatic'), ('emergency', 'Emergency')], default='manual', max_length=20)),
                ('rotated_at', models.DateTimeField(auto_now_add=True)),
                ('grace_period_ends', models.DateTimeField(db_index=True)),
                ('reason', models.TextField(blank=True)),
                ('api_key', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='rotations', to='authentication.apikey')),
                ('new_key', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='replaced_rotations', to='authentication.apikey')),
                ('rotated_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='api_key_rotations', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'db_table': 'api_key_rotations',
                'ordering': ['-rotated_at'],
            },
        ),
    ]
