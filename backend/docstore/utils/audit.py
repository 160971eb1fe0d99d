from typing import Optional
from docstore.extensions import db
from docstore.models.audit_log import AuditLog
from docstore.utils.transaction import transactional


def log_action(
    *,
    action: str,
    entity_type: str,
    entity_id: Optional[str],
    actor_id: Optional[str],
    payload: dict | None = None
):
    if not actor_id or not entity_id:
        return  # Skip logging if the actor is unknown

    log = AuditLog()
    log.actor_id = actor_id
    log.action = action
    log.entity_type = entity_type
    log.entity_id = entity_id
    log.payload = payload or {}

    with transactional():
        db.session.add(log)
