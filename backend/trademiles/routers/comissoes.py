"""Router para comissões de cedentes por compra."""

import logging

from fastapi import APIRouter, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy import or_

from ..config import settings
from ..database import DbSession
from ..models import Comissao
from ..schemas import (
    ComissaoListResponse,
    ComissaoOut,
    ComissaoResponse,
    ComissaoStatusUpdate,
    ComissaoUpsert,
    StatusComissao,
)
from ..services.compras_repo import padrao_contem
from ..services.consolidacao import num

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


@router.get("/", response_model=ComissaoListResponse)
@limiter.limit("60/minute")
def list_comissoes(
    request: Request,
    db: DbSession,
    q: str = Query("", description="Busca por cedente ou compra"),
    status: StatusComissao | None = Query(None, description="Filtrar por status"),
):
    """Lista comissões, mais recentes primeiro."""
    query = db.query(Comissao)
    if status:
        query = query.filter(Comissao.status == status.value)
    if q:
        termo = padrao_contem(q.strip())
        query = query.filter(
            or_(
                Comissao.cedente_nome.ilike(termo, escape="\\"),
                Comissao.compra_id.ilike(termo, escape="\\"),
            )
        )

    comissoes = query.order_by(Comissao.criado_em.desc()).all()
    return ComissaoListResponse(data=[ComissaoOut.model_validate(c) for c in comissoes])


@router.post("/", response_model=ComissaoResponse)
@limiter.limit("30/minute")
def upsert_comissao(request: Request, payload: ComissaoUpsert, db: DbSession):
    """Cria ou atualiza a comissão de um cedente em uma compra."""
    if not payload.compra_id or not payload.cedente_id:
        raise HTTPException(status_code=400, detail="compraId e cedenteId são obrigatórios")

    comissao = (
        db.query(Comissao)
        .filter(Comissao.compra_id == payload.compra_id, Comissao.cedente_id == payload.cedente_id)
        .with_for_update()
        .first()
    )
    if comissao is None:
        comissao = Comissao(compra_id=payload.compra_id, cedente_id=payload.cedente_id)
        db.add(comissao)

    comissao.cedente_nome = payload.cedente_nome or ""
    comissao.valor = num(payload.valor)
    comissao.status = (payload.status or StatusComissao.AGUARDANDO).value

    db.commit()
    db.refresh(comissao)

    logger.info(f"Comissão salva: compra {comissao.compra_id} / cedente {comissao.cedente_id}")
    return ComissaoResponse(data=ComissaoOut.model_validate(comissao))


@router.patch("/{comissao_id}", response_model=ComissaoResponse)
@limiter.limit("30/minute")
def update_comissao_status(
    request: Request,
    comissao_id: str,
    payload: ComissaoStatusUpdate,
    db: DbSession,
):
    """Atualiza o status de uma comissão (ex.: marcar como paga)."""
    comissao = db.get(Comissao, comissao_id)
    if not comissao:
        raise HTTPException(status_code=404, detail="Comissão não encontrada")

    comissao.status = payload.status.value
    db.commit()
    db.refresh(comissao)

    logger.info(f"Comissão {comissao_id} -> {comissao.status}")
    return ComissaoResponse(data=ComissaoOut.model_validate(comissao))


@router.delete("/{comissao_id}")
@limiter.limit("10/minute")
def delete_comissao(request: Request, comissao_id: str, db: DbSession):
    """Remove uma comissão."""
    comissao = db.get(Comissao, comissao_id)
    if not comissao:
        raise HTTPException(status_code=404, detail="Comissão não encontrada")

    db.delete(comissao)
    db.commit()

    logger.info(f"Comissão removida: {comissao_id}")
    return {"ok": True}
