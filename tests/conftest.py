import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["CHECKOUT_ITEM_DELAY_MS"] = "0"
os.environ["REFERENCE_RETRY_DELAY_MS"] = "0"
os.environ["STRIPE_WEBHOOK_SECRET"] = ""
os.environ["ADMIN_ALERT_EMAIL"] = ""
os.environ["ENV"] = "test"

import uuid  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from app.main import app  # noqa: E402
from app.api.deps import get_email_submitter, get_payment_gateway  # noqa: E402
from app.core.security import create_access_token, hash_password  # noqa: E402
from app.db.session import Base, SessionLocal, engine  # noqa: E402
from app.models.audit_log import AuditLog  # noqa: E402,F401
from app.models.booking import Booking  # noqa: E402,F401
from app.models.discount import Discount  # noqa: E402
from app.models.email_log import EmailLog  # noqa: E402,F401
from app.models.tenant import Tenant  # noqa: E402
from app.models.tour import Tour  # noqa: E402
from app.models.user import User  # noqa: E402
from app.services.payment_gateway import PaymentGateway, PaymentGatewayError, PaymentIntent  # noqa: E402

TENANT_ID = "acme-tours"


class FakeGateway(PaymentGateway):
    """In-memory card processor. Register intents with `add_intent`."""

    def __init__(self):
        self.intents: dict[str, PaymentIntent] = {}
        self.created: list[dict] = []
        self.create_status = "succeeded"
        self.fail_with: str | None = None

    def add_intent(self, intent_id: str, amount: int, status: str = "succeeded", currency: str = "USD",
                   metadata: dict | None = None) -> PaymentIntent:
        intent = PaymentIntent(id=intent_id, status=status, amount=amount, currency=currency,
                               client_secret=f"{intent_id}_secret", metadata=metadata or {})
        self.intents[intent_id] = intent
        return intent

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        if self.fail_with:
            raise PaymentGatewayError(self.fail_with)
        if intent_id not in self.intents:
            raise PaymentGatewayError(f"No such payment_intent: '{intent_id}'")
        return self.intents[intent_id]

    def create_intent(self, *, amount, currency, description, metadata, confirm=False,
                      payment_method=None, receipt_email=None) -> PaymentIntent:
        if self.fail_with:
            raise PaymentGatewayError(self.fail_with)
        self.created.append({
            "amount": amount,
            "currency": currency,
            "description": description,
            "metadata": metadata,
            "confirm": confirm,
            "payment_method": payment_method,
            "receipt_email": receipt_email,
        })
        return self.add_intent(f"pi_created_{len(self.created)}", amount, status=self.create_status,
                               currency=currency, metadata=metadata)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def tenant(db):
    t = Tenant(
        tenant_id=TENANT_ID,
        name="Acme Desert Tours",
        domain="acme.test",
        contact_email="hello@acme.test",
        admin_email="ops@acme.test",
        currency="USD",
        currency_symbol="$",
        bank_name="Acme Bank",
        bank_iban="EG000ACME",
    )
    db.add(t)
    db.commit()
    return t


@pytest.fixture
def tours(db, tenant):
    pyramids = Tour(id=str(uuid.uuid4()), tenant_id=TENANT_ID, title="Pyramids Day Trip",
                    slug="pyramids", price=90.0, meeting_point="Hotel lobby")
    cruise = Tour(id=str(uuid.uuid4()), tenant_id=TENANT_ID, title="Nile Dinner Cruise",
                  slug="nile-cruise", price=50.0)
    db.add_all([pyramids, cruise])
    db.commit()
    return {"pyramids": pyramids, "cruise": cruise}


@pytest.fixture
def discount(db, tenant):
    d = Discount(id=str(uuid.uuid4()), tenant_id=TENANT_ID, code="SPRING10", times_used=0)
    db.add(d)
    db.commit()
    return d


def make_user(db, email: str, role: str = "customer", password: str = "secret123") -> User:
    u = User(id=str(uuid.uuid4()), email=email, first_name="Test", last_name="User", role=role,
             password_hash=hash_password(password))
    db.add(u)
    db.commit()
    return u


def auth_headers(user: User, tenant_id: str = TENANT_ID) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id)}", "X-Tenant-ID": tenant_id}


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def submitted():
    return []


@pytest.fixture
def client(db, gateway, submitted):
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_email_submitter] = lambda: submitted.append
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def customer(db):
    return make_user(db, "jane@example.com")


@pytest.fixture
def admin(db):
    return make_user(db, "admin@acme.test", role="admin")


@pytest.fixture
def headers_for():
    return auth_headers
