# backend/snapline/tasks/__init__.py
"""Dramatiq task definitions for async operations."""
import dramatiq
from dramatiq.brokers.redis import RedisBroker
from dramatiq.brokers.stub import StubBroker
from snapline.config import get_settings

settings = get_settings()

# Configure broker; the stub broker keeps tests and local runs off Redis
if settings.use_stub_broker:
    broker = StubBroker()
else:
    broker = RedisBroker(url=settings.redis_url)
dramatiq.set_broker(broker)

from .analysis import publish_analysis_task, check_last_flag_integrity_task

__all__ = [
    'broker',
    'publish_analysis_task',
    'check_last_flag_integrity_task',
]
