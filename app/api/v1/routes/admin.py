from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import get_tenant_id, require_roles
from app.core import booking_status
from app.models.user import User
from app.models.booking import Booking
from app.schemas.booking import BulkDeleteRequest, StatusUpdateRequest
from app.services.audit_service import log_audit

router = APIRouter(tags=["admin"])


@router.patch("/admin/bookings/{booking_id}/status")
def update_booking_status(booking_id: str, body: StatusUpdateRequest,
                          db: Session = Depends(get_db),
                          tenant_id: str = Depends(get_tenant_id),
                          me: User = Depends(require_roles("admin", "superadmin"))):
    label = booking_status.to_status_label(body.status)
    if not label:
        raise HTTPException(status_code=400, detail=f"Invalid status: {body.status}")
    b = db.query(Booking).filter(Booking.id == booking_id, Booking.tenant_id == tenant_id).first()
    if not b:
        raise HTTPException(status_code=404, detail="Booking not found")
    previous = b.status
    b.status = label
    log_audit(db, tenant_id, me.id, "booking.status_change", "booking", b.id, {"from": previous, "to": label})
    db.commit()
    return {"ok": True, "id": b.id, "bookingReference": b.booking_reference, "status": b.status}


@router.post("/admin/bookings/bulk-delete")
def bulk_delete_bookings(body: BulkDeleteRequest,
                         db: Session = Depends(get_db),
                         tenant_id: str = Depends(get_tenant_id),
                         me: User = Depends(require_roles("admin", "superadmin"))):
    if not body.ids:
        raise HTTPException(status_code=400, detail="ids required")
    rows = db.query(Booking).filter(Booking.tenant_id == tenant_id, Booking.id.in_(body.ids)).all()
    for b in rows:
        log_audit(db, tenant_id, me.id, "booking.delete", "booking", b.id, {"bookingReference": b.booking_reference})
        db.delete(b)
    db.commit()
    return {"ok": True, "deleted": len(rows)}
