"""Router para compras de pontos (consolidação de itens e totais)."""

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import DbSession
from ..schemas import CompraListResponse, NextIdData, NextIdResponse, StatusPontos
from ..services.compras_repo import (
    RegistroNaoEncontrado,
    atualizar_compra,
    buscar_compra,
    excluir_compra,
    listar_compras,
    proximo_id,
    upsert_compra,
)
from ..services.consolidacao import normalizar

logger = logging.getLogger(__name__)

router = APIRouter()
limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

# Campos aceitos em atualização parcial
CAMPOS_PATCH = {
    "statusPontos",
    "dataCompra",
    "cedenteId",
    "cedenteNome",
    "modo",
    "ciaCompra",
    "destCia",
    "origem",
    "calculos",
    "itens",
    "totais",
    "totaisId",
    "metaMilheiro",
    "comissaoCedente",
}

STATUS_VALIDOS = tuple(s.value for s in StatusPontos)


def _validar_status(payload: dict[str, Any]) -> None:
    if "statusPontos" in payload and payload["statusPontos"] not in STATUS_VALIDOS:
        raise HTTPException(status_code=400, detail="statusPontos inválido")


# === Endpoints ===


@router.get("/", response_model=CompraListResponse)
@limiter.limit("60/minute")
def list_compras(
    request: Request,
    db: DbSession,
    q: str = Query("", description="Busca por ID ou cedente"),
    modo: str = Query("", description="compra ou transferencia"),
    cia: str = Query("", description="latam ou smiles"),
    origem: str = Query("", description="livelo ou esfera"),
    start: str = Query("", description="Data inicial (yyyy-mm-dd)"),
    end: str = Query("", description="Data final (yyyy-mm-dd)"),
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=settings.listagem_limite_max),
):
    """
    Lista compras com filtros e paginação por offset/limit.

    Ordenação: data da compra (mais recente primeiro) e ID.
    """
    total, items = listar_compras(
        db,
        q=q.strip(),
        modo=modo,
        cia=cia,
        origem=origem,
        start=start,
        end=end,
        offset=offset,
        limit=limit,
    )
    return CompraListResponse(total=total, items=items)


@router.get("/next-id", response_model=NextIdResponse)
@limiter.limit("60/minute")
def next_id(request: Request, db: DbSession):
    """Próximo ID curto sequencial (ex.: "0007")."""
    try:
        proximo = proximo_id(db)
    except SQLAlchemyError as e:
        logger.error(f"Erro ao calcular próximo ID: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao calcular próximo ID: {str(e)}")
    return NextIdResponse(next_id=proximo, data=NextIdData(next_id=proximo))


@router.get("/{compra_id}")
@limiter.limit("60/minute")
def get_compra(request: Request, compra_id: str, db: DbSession) -> dict[str, Any]:
    """Busca uma compra pelo ID, com os totais preenchidos."""
    registro = buscar_compra(db, compra_id)
    if registro is None:
        raise HTTPException(status_code=404, detail="Compra não encontrada")
    return registro


@router.post("/")
@limiter.limit("30/minute")
def save_compra(request: Request, db: DbSession, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """
    Cria ou substitui uma compra.

    Aceita o formato antigo (modo/calculos no topo) ou o formato novo
    (`itens` + `totais` opcional). Sem `id`, usa o próximo ID disponível.
    """
    _validar_status(payload)
    registro = normalizar(payload)

    try:
        compra = upsert_compra(db, registro)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao salvar compra {registro['id']}: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao salvar compra: {str(e)}")

    return {"ok": True, "id": compra.id}


def _patch_compra(db: Session, compra_id: str | None, payload: dict[str, Any]) -> dict[str, Any]:
    if not compra_id:
        raise HTTPException(status_code=400, detail="Informe o id da compra")

    patch = {k: v for k, v in payload.items() if k in CAMPOS_PATCH}
    _validar_status(patch)

    try:
        registro = atualizar_compra(db, compra_id, patch)
    except RegistroNaoEncontrado:
        raise HTTPException(status_code=404, detail="Compra não encontrada")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao atualizar compra {compra_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao atualizar compra: {str(e)}")

    return {"ok": True, "id": compra_id, "data": registro}


def _delete_compra(db: Session, compra_id: str | None) -> dict[str, Any]:
    if not compra_id:
        raise HTTPException(status_code=400, detail="Informe o id da compra")

    try:
        excluir_compra(db, compra_id)
    except RegistroNaoEncontrado:
        raise HTTPException(status_code=404, detail="Compra não encontrada")
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Erro ao excluir compra {compra_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Erro ao excluir compra: {str(e)}")

    return {"ok": True, "deleted": compra_id}


@router.patch("/")
@limiter.limit("30/minute")
def patch_compra_by_query(
    request: Request,
    db: DbSession,
    id: str | None = Query(None, description="ID da compra"),
    payload: dict[str, Any] | None = Body(None),
) -> dict[str, Any]:
    """Atualização parcial com o ID na query string (?id=0001)."""
    return _patch_compra(db, id, payload or {})


@router.patch("/{compra_id}")
@limiter.limit("30/minute")
def patch_compra(
    request: Request,
    compra_id: str,
    db: DbSession,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """
    Atualização parcial de uma compra.

    - `{"statusPontos": "liberados"}` só troca o status
    - `{"itens": [...]}` recalcula totais e campos de compat
    - `{"totais": {...}}` regenera `totaisId`/`calculos`
    """
    return _patch_compra(db, compra_id, payload)


@router.delete("/")
@limiter.limit("10/minute")
def delete_compra_by_query(
    request: Request,
    db: DbSession,
    id: str | None = Query(None, description="ID da compra"),
) -> dict[str, Any]:
    """Remove uma compra com o ID na query string (?id=0001)."""
    return _delete_compra(db, id)


@router.delete("/{compra_id}")
@limiter.limit("10/minute")
def delete_compra(request: Request, compra_id: str, db: DbSession) -> dict[str, Any]:
    """Remove uma compra."""
    return _delete_compra(db, compra_id)
