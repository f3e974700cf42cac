from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.config import settings
from app.core.security import decode_access_token
from app.models.user import User
from app.services.email_service import EmailSubmitter, submit_to_worker
from app.services.payment_gateway import PaymentGateway, StripeConfig, StripeGateway

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        claims = decode_access_token(creds.credentials)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    user = db.get(User, claims["sub"])
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard

def get_tenant_id(x_tenant_id: str | None = Header(default=None)) -> str:
    """X-Tenant-ID wins; requests without it belong to the default storefront."""
    return (x_tenant_id or "").strip() or settings.DEFAULT_TENANT_ID

def get_payment_gateway() -> PaymentGateway:
    return StripeGateway(StripeConfig(api_key=settings.STRIPE_SECRET_KEY))

def get_email_submitter() -> EmailSubmitter:
    return submit_to_worker
