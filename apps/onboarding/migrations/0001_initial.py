from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='FormTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('template_id', models.CharField(max_length=100, unique=True)),
                ('name', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(choices=[('onboarding', 'Onboarding'), ('tax', 'Tax'), ('employment_agreement', 'Employment Agreement'), ('compliance', 'Compliance'), ('other', 'Other')], default='other', max_length=50)),
                ('fields', models.JSONField(blank=True, default=list)),
                ('signer_roles', models.JSONField(blank=True, default=list)),
                ('document_count', models.PositiveSmallIntegerField(default=0)),
                ('enabled', models.BooleanField(db_index=True, default=True)),
                ('required_for_onboarding', models.BooleanField(db_index=True, default=False)),
                ('sort_order', models.IntegerField(default=0)),
                ('last_synced_at', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'db_table': 'form_templates',
                'ordering': ['sort_order', 'name'],
            },
        ),
    ]
