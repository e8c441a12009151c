"""
Audit Service
=============
Append-only record of every mutating action.

Audit writes happen after the business write has committed, in their own
commit. A failed audit write is logged and rolled back but never raised:
the triggering action stays in place (at-least-effort, not transactional).
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
import logging

from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError

from models import AuditLog

logger = logging.getLogger(__name__)

MAX_AUDIT_LIMIT = 200

Primitive = str | int | float | bool | None


def normalize_details(details: Optional[dict]) -> dict[str, Primitive]:
    """
    Flatten an arbitrary payload into a key-sorted map of primitives.

    Nested mappings become dotted keys, sequences become indexed keys
    (``items.0``), dates become ISO strings and anything else is stringified.

    >>> normalize_details({"b": 1, "a": {"x": date(2024, 1, 10)}})
    {'a.x': '2024-01-10', 'b': 1}
    """
    flat: dict[str, Primitive] = {}

    def _walk(prefix: str, value: Any):
        if isinstance(value, dict):
            for key in value:
                _walk(f"{prefix}.{key}" if prefix else str(key), value[key])
        elif isinstance(value, (list, tuple, set)):
            for i, item in enumerate(value):
                _walk(f"{prefix}.{i}" if prefix else str(i), item)
        elif value is None or isinstance(value, (str, bool, int, float)):
            flat[prefix] = value
        elif isinstance(value, Decimal):
            flat[prefix] = float(value)
        elif isinstance(value, (datetime, date)):
            flat[prefix] = value.isoformat()
        elif isinstance(value, Enum):
            flat[prefix] = value.value
        else:
            flat[prefix] = str(value)

    _walk("", details or {})
    return {key: flat[key] for key in sorted(flat)}


def record_audit(
    db: Session,
    user_id: Optional[int],
    action: str,
    entity: str,
    entity_id: Any = None,
    details: Optional[dict] = None,
) -> Optional[AuditLog]:
    """
    Append one audit entry.

    Args:
        db: Database session (the business change must already be committed)
        user_id: Acting user
        action: Action tag (checkin, apply_leave, ...)
        entity: Entity type (Attendance, Leave, Employee, ...)
        entity_id: Entity id, stored as string
        details: Free-form payload, see normalize_details

    Returns:
        AuditLog or None when the write failed
    """
    try:
        entry = AuditLog(
            user_id=user_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=normalize_details(details),
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Audit write failed: action={action} entity={entity}:{entity_id}")
        return None


def list_audit_logs(db: Session, limit: int = MAX_AUDIT_LIMIT) -> list[AuditLog]:
    """Most recent entries first, capped at MAX_AUDIT_LIMIT."""
    limit = max(1, min(int(limit or MAX_AUDIT_LIMIT), MAX_AUDIT_LIMIT))
    return (
        db.query(AuditLog)
        .options(joinedload(AuditLog.user))
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
