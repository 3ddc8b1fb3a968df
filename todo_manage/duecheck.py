# todo_manage/duecheck.py
import logging

from .config import get_settings
from .gateway import build_gateway
from .orchestrator import LifecycleOrchestrator


def handler(event, context):
    # Scheduled once a day: expire overdue todos, carry over, purge old ones
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level)

    orchestrator = LifecycleOrchestrator(settings, build_gateway(settings))
    report = orchestrator.run()
    if not report.ok:
        return {"statusCode": 400}
    return {"statusCode": 200}
