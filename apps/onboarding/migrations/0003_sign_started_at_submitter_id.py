from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('onboarding', '0002_formsubmission_submissionsigner'),
    ]

    operations = [
        migrations.AddField(
            model_name='formsubmission',
            name='sign_started_at',
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.RenameField(
            model_name='submissionsigner',
            old_name='external_id',
            new_name='slug',
        ),
        migrations.AddField(
            model_name='submissionsigner',
            name='submitter_id',
            field=models.BigIntegerField(blank=True, null=True),
        ),
    ]
