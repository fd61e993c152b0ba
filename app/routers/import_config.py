import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import require_admin
from app.schemas.config_import import ConfigImportPayload
from app.services.config_import import ConfigImportService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["configuration-import"])


@router.post("/import-config")
def import_config(
    payload: ConfigImportPayload,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    Upsert a full reference-data payload.
    200 when every section succeeded, 207 when any section reported errors.
    """
    service = ConfigImportService(db, dry_run=payload.dry_run, actor_id=current_user.id)
    try:
        report = service.run(payload.model_dump(), import_id=payload.import_id)
    except Exception:
        db.rollback()
        logger.exception("Configuration import failed", extra={"import_id": payload.import_id})
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Configuration import failed"},
        )

    return JSONResponse(status_code=report.status_code, content=report.to_response())
