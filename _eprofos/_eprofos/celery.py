import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', '_eprofos.settings')

app = Celery('eprofos')

# Toutes les clés CELERY_* des settings Django
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
