from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from app.core.config import settings

EMAIL_SWEEP_SECONDS = 120.0


def broker_url(url: str) -> str:
    """rediss:// brokers need an explicit ssl_cert_reqs or Celery refuses to start."""
    if not url or urlparse(url).scheme.lower() != "rediss":
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    qs.setdefault("ssl_cert_reqs", ["CERT_NONE"])
    return urlunparse(parsed._replace(query=urlencode(qs, doseq=True)))


celery = Celery("tourbook", include=["app.tasks.jobs"])
celery.conf.update(
    broker_url=broker_url(settings.REDIS_URL),
    result_backend=broker_url(settings.REDIS_URL),
    timezone="UTC",
    task_acks_late=True,
    # email sends are slow network calls; don't let one worker hoard the queue
    worker_prefetch_multiplier=1,
    beat_schedule={
        "sweep-email-outbox": {
            "task": "app.tasks.jobs.process_email_queue",
            "schedule": EMAIL_SWEEP_SECONDS,
            "kwargs": {"limit": 50},
        },
    },
)
