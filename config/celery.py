"""
Celery application: invitation email, DocuSeal form dispatch, the post-sign
status watcher and the daily expiration check.
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('carestaff')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
