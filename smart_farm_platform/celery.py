import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'smart_farm_platform.settings')
app = Celery('smart_farm_platform')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
