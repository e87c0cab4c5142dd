import uuid, json
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog

def log_audit(db: Session, actor: str, operation: str, table_name: str, record_id: str | None, payload: dict | None = None):
    """Stage an audit row in the caller's transaction; it commits with the write it describes."""
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        table_name=table_name,
        operation=operation,
        actor=actor or "system",
        record_id=record_id,
        payload_json=json.dumps(payload or {}, ensure_ascii=False, default=str),
    ))
