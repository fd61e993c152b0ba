from typing import Any, Optional
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog


class AuditService:
    def __init__(self, db: Session):
        self.db = db

    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        user_id: Optional[int],
        details: Optional[dict] = None,
    ) -> AuditLog:
        """
        Append an audit entry to the current session.
        Not committed here: the entry lands in the same transaction as the action it describes.
        """
        def sanitize(obj: Any):
            if hasattr(obj, "model_dump"):
                return obj.model_dump(mode="json")
            if isinstance(obj, dict):
                return {k: sanitize(v) for k, v in obj.items()}
            if isinstance(obj, (list, tuple)):
                return [sanitize(i) for i in obj]
            if hasattr(obj, "isoformat"):
                return obj.isoformat()
            return obj

        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            details=sanitize(details or {}),
        )
        self.db.add(entry)
        return entry

    # Static wrapper for call sites that only hold a session
    @staticmethod
    def log(db: Session, *args, **kwargs) -> AuditLog:
        return AuditService(db).log_action(*args, **kwargs)
