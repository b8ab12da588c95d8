"""Router para vendas de pontos (débito e devolução de saldo dos cedentes)."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import DbSession
from ..models import Venda
from ..schemas import (
    CedenteOut,
    PagamentoStatus,
    VendaCreate,
    VendaCreateResponse,
    VendaListResponse,
    VendaOut,
    VendaPatchRequest,
    VendaRecordResponse,
)
from ..services.cedentes import listar_cedentes
from ..services.vendas import cancelar_venda, excluir_venda, registrar_venda

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

PAGAMENTO_VALIDOS = tuple(s.value for s in PagamentoStatus)


def _buscar_venda(db: Session, venda_id: str) -> Venda:
    venda = db.query(Venda).filter(Venda.id == venda_id).with_for_update().first()
    if not venda:
        raise HTTPException(status_code=404, detail="Venda não encontrada")
    return venda


@router.get("/", response_model=VendaListResponse)
@limiter.limit("60/minute")
def list_vendas(request: Request, db: DbSession):
    """Lista as vendas, mais recentes primeiro."""
    vendas = db.query(Venda).order_by(Venda.created_at.desc(), Venda.id.desc()).all()
    return VendaListResponse(lista=[VendaOut.model_validate(v) for v in vendas])


@router.post("/", response_model=VendaCreateResponse)
@limiter.limit("30/minute")
def create_venda(request: Request, payload: VendaCreate, db: DbSession):
    """
    Registra uma venda e debita os pontos dos cedentes.

    - **cia** e **pontos** são obrigatórios
    - Pontos saem de `contaEscolhida` ou de cada parte de `sugestaoCombinacao`
    - Saldos nunca ficam negativos
    """
    if not payload.cia or not payload.pontos:
        raise HTTPException(status_code=400, detail="Campos obrigatórios ausentes (cia, pontos).")

    try:
        venda = registrar_venda(db, payload)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao registrar venda: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao registrar venda: {str(e)}")

    logger.info(f"Venda registrada: {venda.id} ({venda.pontos} pts {venda.cia})")
    return VendaCreateResponse(
        id=venda.id,
        next_cedentes=[CedenteOut.model_validate(c) for c in listar_cedentes(db)],
    )


@router.patch("/", response_model=VendaRecordResponse)
@limiter.limit("30/minute")
def update_venda(request: Request, payload: VendaPatchRequest, db: DbSession):
    """
    Atualiza o status de pagamento ou cancela uma venda.

    - `{"id", "pagamentoStatus": "pago"}`
    - `{"id", "cancel": {"taxaCia", "taxaEmpresa", "recreditPoints", "note"}}`
    """
    venda = _buscar_venda(db, payload.id)

    if payload.pagamento_status in PAGAMENTO_VALIDOS:
        venda.pagamento_status = payload.pagamento_status
    elif payload.cancel is not None:
        cancelar_venda(db, venda, payload.cancel)
    else:
        raise HTTPException(
            status_code=400,
            detail="Nada para atualizar (use pagamentoStatus ou cancel).",
        )

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao atualizar venda {payload.id}: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao atualizar venda: {str(e)}")

    db.refresh(venda)
    return VendaRecordResponse(record=VendaOut.model_validate(venda))


@router.delete("/")
@limiter.limit("10/minute")
def delete_venda(
    request: Request,
    db: DbSession,
    id: str | None = Query(None, description="ID da venda"),
    restore_points: bool = Query(True, alias="restorePoints", description="Devolver pontos aos cedentes"),
):
    """Remove uma venda (por erro de lançamento), devolvendo os pontos por padrão."""
    if not id:
        raise HTTPException(status_code=400, detail="ID é obrigatório.")

    venda = _buscar_venda(db, id)
    try:
        excluir_venda(db, venda, restaurar_pontos=restore_points)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao excluir venda {id}: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao excluir venda: {str(e)}")

    return {"ok": True, "removedId": id}
