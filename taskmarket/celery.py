# taskmarket/celery.py
import os
from celery import Celery
from celery.schedules import crontab

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "taskmarket.settings")

app = Celery("taskmarket")

# lit les variables CELERY_... depuis le settings Django
app.config_from_object("django.conf:settings", namespace="CELERY")

# auto-discovery des tasks.py dans toutes les apps installées
app.autodiscover_tasks()

app.conf.beat_schedule = {
    'profile-completion-reminders': {
        'task': 'market.tasks.send_profile_completion_reminders',
        'schedule': crontab(day_of_week='mon', hour='9', minute='0'),  # chaque lundi
    },
}
