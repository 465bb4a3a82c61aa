from django.db import migrations, models

import apps.core.fields


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='DocuSealConfiguration',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('name', models.CharField(default='DocuSeal', max_length=100)),
                ('api_key', apps.core.fields.EncryptedTextField()),
                ('base_url', models.URLField(default='https://api.docuseal.co')),
                ('enabled', models.BooleanField(db_index=True, default=True)),
                ('last_test_at', models.DateTimeField(blank=True, null=True)),
                ('last_test_success', models.BooleanField(blank=True, null=True)),
                ('last_test_error', models.TextField(blank=True)),
            ],
            options={
                'db_table': 'docuseal_configurations',
                'ordering': ['-updated_at'],
            },
        ),
    ]
