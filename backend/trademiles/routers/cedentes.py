"""Router para cedentes (contas doadoras de pontos)."""

import logging

from fastapi import APIRouter, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError

from ..config import settings
from ..database import DbSession
from ..schemas import CedenteOut, CedentesSalvarRequest
from ..services.cedentes import listar_cedentes, substituir_cedentes

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.get("/")
@limiter.limit("60/minute")
def list_cedentes(request: Request, db: DbSession):
    """Lista os cedentes com saldos por programa."""
    cedentes = [CedenteOut.model_validate(c).model_dump() for c in listar_cedentes(db)]
    return {"ok": True, "data": {"listaCedentes": cedentes}}


@router.post("/")
@limiter.limit("30/minute")
def save_cedentes(request: Request, payload: CedentesSalvarRequest, db: DbSession):
    """Substitui a lista completa de cedentes."""
    try:
        total = substituir_cedentes(db, payload.lista_cedentes)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao salvar cedentes: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao salvar cedentes: {str(e)}")

    logger.info(f"Cedentes salvos: {total}")
    return {"ok": True, "total": total}
