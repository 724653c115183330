# Celery instance is defined in quarry_ledger/celery.py
# It creates celery_app object and points it to Django settings
from .celery import celery_app

# 'from quarry_ledger import *', only exports celery_app
__all__ = ("celery_app",)
