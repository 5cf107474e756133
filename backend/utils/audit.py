# backend/utils/audit.py
import logging

from sqlalchemy.orm import Session
from models.log import Log

logger = logging.getLogger(__name__)

def write_log(db: Session, *, user_id=None, session_token=None, action, resource, status="SUCCESS", ip=None, meta=None):
    # Runs in its own commit, so call it only after the business transaction has finished
    entry = Log(
        user_id=user_id,
        session_token=session_token,
        action=action,
        resource=resource,
        status=status,
        ip=ip,
        meta=meta or {},
    )
    try:
        db.add(entry)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Failed to write audit log %s/%s", resource, action)
