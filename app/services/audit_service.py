import json
import uuid

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLog


def log_audit(db: Session, tenant_id: str, actor_user_id: str, action: str, entity_type: str,
              entity_id: str, details: dict | None = None) -> AuditLog:
    """Stage an audit row in the caller's transaction; the caller commits."""
    entry = AuditLog(
        id=str(uuid.uuid4()),
        tenant_id=tenant_id or "",
        actor_user_id=actor_user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False, default=str),
    )
    db.add(entry)
    return entry
