# Celery instance is defined in goods_ledger/celery.py
# Importing it here makes @shared_task bind to this app when Django starts
from .celery import celery_app

# 'from goods_ledger import *' only exports celery_app
__all__ = ("celery_app",)
