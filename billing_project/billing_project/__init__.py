# Celery instance is defined in billing_project/celery.py
# It points the worker at the Django settings and is shared by every task
from .celery import celery_app

__all__ = ("celery_app",)
