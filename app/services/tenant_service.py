from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.tenant import Tenant

DEFAULT_COMPANY_NAME = "Excursions Online"
DEFAULT_PRIMARY_COLOR = "#E63946"
DEFAULT_SECONDARY_COLOR = "#1D3557"
DEFAULT_ACCENT_COLOR = "#F4A261"
DEFAULT_CONTACT_EMAIL = "info@tours.com"
DEFAULT_CONTACT_PHONE = "+20 000 000 0000"
DEFAULT_CURRENCY = "USD"
DEFAULT_CURRENCY_SYMBOL = "$"

DEFAULT_BANK = {
    "bank_name": "Commercial International Bank (CIB)",
    "bank_account_name": "Excursions Online",
    "bank_account_number": "1001234567890",
    "bank_iban": "EG380001001001234567890",
    "bank_swift": "CIBEEGCX",
}


@dataclass(frozen=True)
class TenantBranding:
    """Everything a notification needs about the brand, with no gaps to fill."""
    tenant_id: str
    company_name: str
    has_config: bool
    logo: str
    primary_color: str
    secondary_color: str
    accent_color: str
    contact_email: str
    contact_phone: str
    support_email: str
    admin_email: str
    from_name: str
    website: str
    currency: str
    currency_symbol: str
    bank_name: str
    bank_account_name: str
    bank_account_number: str
    bank_iban: str
    bank_swift: str

    def money(self, value: float) -> str:
        return f"{self.currency_symbol}{float(value or 0):.2f}"


def get_tenant(db: Session, tenant_id: str) -> Tenant | None:
    return db.get(Tenant, tenant_id)


def resolve_branding(tenant: Tenant | None, tenant_id: str, base_url: str | None = None) -> TenantBranding:
    base_url = settings.PUBLIC_BASE_URL if base_url is None else base_url

    def pick(attr: str, default: str) -> str:
        value = getattr(tenant, attr, None) if tenant is not None else None
        return value or default

    company = pick("name", DEFAULT_COMPANY_NAME)
    contact_email = pick("contact_email", DEFAULT_CONTACT_EMAIL)
    return TenantBranding(
        tenant_id=tenant.tenant_id if tenant is not None else tenant_id,
        company_name=company,
        has_config=tenant is not None,
        logo=pick("logo", ""),
        primary_color=pick("primary_color", DEFAULT_PRIMARY_COLOR),
        secondary_color=pick("secondary_color", DEFAULT_SECONDARY_COLOR),
        accent_color=pick("accent_color", DEFAULT_ACCENT_COLOR),
        contact_email=contact_email,
        contact_phone=pick("contact_phone", DEFAULT_CONTACT_PHONE),
        support_email=pick("support_email", contact_email),
        admin_email=pick("admin_email", settings.ADMIN_ALERT_EMAIL or contact_email),
        from_name=pick("email_from_name", company),
        website=base_url or (f"https://{tenant.domain}" if tenant is not None and tenant.domain else ""),
        currency=pick("currency", DEFAULT_CURRENCY),
        currency_symbol=pick("currency_symbol", DEFAULT_CURRENCY_SYMBOL),
        bank_name=pick("bank_name", DEFAULT_BANK["bank_name"]),
        bank_account_name=pick("bank_account_name", DEFAULT_BANK["bank_account_name"]),
        bank_account_number=pick("bank_account_number", DEFAULT_BANK["bank_account_number"]),
        bank_iban=pick("bank_iban", DEFAULT_BANK["bank_iban"]),
        bank_swift=pick("bank_swift", DEFAULT_BANK["bank_swift"]),
    )


def load_branding(db: Session, tenant_id: str) -> TenantBranding:
    return resolve_branding(get_tenant(db, tenant_id), tenant_id)
