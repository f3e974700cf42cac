import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import hash_password
from app.models.user import User
from app.models.tenant import Tenant
from app.models.tour import Tour
from app.models.discount import Discount

logger = logging.getLogger(__name__)

SAMPLE_TOURS = [
    ("Pyramids of Giza & Sphinx Day Tour", "pyramids-giza-sphinx", 90.0, None, "8 hours"),
    ("Nile Dinner Cruise", "nile-dinner-cruise", 45.0, 39.0, "3 hours"),
    ("Luxor West Bank Full Day", "luxor-west-bank", 120.0, None, "10 hours"),
]


def ensure_user(db: Session, email: str, password: str, role: str, first_name: str, last_name: str = ""):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            first_name=first_name,
            last_name=last_name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def ensure_tenant(db: Session, tenant_id: str, name: str, **fields):
    if db.get(Tenant, tenant_id):
        return
    db.add(Tenant(tenant_id=tenant_id, name=name, **fields))
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("[seed] users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        tenant_id = settings.DEFAULT_TENANT_ID
        ensure_tenant(
            db, tenant_id, "Excursions Online",
            contact_email="info@tours.com",
            admin_email=settings.ADMIN_ALERT_EMAIL or None,
            currency="USD",
            currency_symbol="$",
        )

        ensure_user(db, "admin@tours.local", "admin12345", "admin", "Admin")
        ensure_user(db, "superadmin@tours.local", "superadmin12345", "superadmin", "Super", "Admin")

        for title, slug, price, discount_price, duration in SAMPLE_TOURS:
            exists = db.query(Tour).filter(Tour.tenant_id == tenant_id, Tour.slug == slug).first()
            if not exists:
                db.add(
                    Tour(
                        id=str(uuid.uuid4()),
                        tenant_id=tenant_id,
                        title=title,
                        slug=slug,
                        price=price,
                        discount_price=discount_price,
                        duration=duration,
                    )
                )

        if not db.query(Discount).filter(Discount.tenant_id == tenant_id, Discount.code == "WELCOME10").first():
            db.add(Discount(id=str(uuid.uuid4()), tenant_id=tenant_id, code="WELCOME10", times_used=0))
        db.commit()
        logger.info("[seed] tenant %s ready", tenant_id)
    finally:
        db.close()


if __name__ == "__main__":
    from app.core.logging import setup_logging

    setup_logging()
    run()
