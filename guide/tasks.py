import logging

from celery import shared_task

from .services import run_auto_daily_guide

logger = logging.getLogger(__name__)


@shared_task
def auto_daily_guide():
    body, code = run_auto_daily_guide()
    if code >= 400:
        logger.error("auto_daily_guide falló: %s", body.get('error'))
    else:
        logger.info("auto_daily_guide: %s", body.get('message'))
    return body
