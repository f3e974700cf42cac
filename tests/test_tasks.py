from app.tasks.celery_app import broker_url, celery


def test_tls_redis_gets_cert_reqs():
    assert broker_url("rediss://:pw@cache.example.com:6380/0") == \
        "rediss://:pw@cache.example.com:6380/0?ssl_cert_reqs=CERT_NONE"


def test_existing_cert_reqs_kept():
    url = "rediss://cache.example.com:6380/0?ssl_cert_reqs=CERT_REQUIRED"
    assert broker_url(url) == url


def test_plain_redis_untouched():
    assert broker_url("redis://localhost:6379/0") == "redis://localhost:6379/0"


def test_email_sweep_is_scheduled():
    entry = celery.conf.beat_schedule["sweep-email-outbox"]
    assert entry["task"] == "app.tasks.jobs.process_email_queue"
