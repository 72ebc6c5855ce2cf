# Nombre de archivo: health.py
# Ubicación de archivo: api/app/routes/health.py
# Descripción: Endpoints de health y verificación del store
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from api.app.deps import get_store
from core.store import Consulta, RecordStore, StoreError, TABLA_SERVICIOS

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health():
    return {
        "status": "ok",
        "service": "api",
        "time": datetime.now(timezone.utc).isoformat()
    }


@router.get("/db-check")
def db_check(store: RecordStore = Depends(get_store)):
    """Cuenta registros para confirmar que el store responde."""
    try:
        total = store.query(Consulta(tabla=TABLA_SERVICIOS, solo_conteo=True)).conteo
    except StoreError as exc:
        logger.warning("action=db_check result=error error=%s", exc)
        return {"db": "error", "detail": str(exc)}
    return {"db": "ok", "service_records": total}
