"""Persistência de compras: grava e lê registros já consolidados."""

import logging
import re
import time
from typing import Any, Iterable, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..config import settings
from ..models import Compra
from .consolidacao import (
    TotaisCompra,
    aplicar_patch,
    espelhos_de_totais,
    num,
    preencher_totais,
    totais_do_registro,
)

logger = logging.getLogger(__name__)

_DIGITOS_FINAIS = re.compile(r"(\d+)$")


class RegistroNaoEncontrado(LookupError):
    """Operação por ID em um registro que não existe."""


def padrao_contem(texto: str) -> str:
    """Padrão LIKE de "contém" com `%`, `_` e `\\` tratados como texto."""
    escapado = texto.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escapado}%"


# === IDs ===


def proximo_id_curto(ids: Iterable[Any], tamanho: int = 4) -> str:
    """Maior sequência numérica final entre os IDs + 1, com zeros à esquerda."""
    maior = 0
    for valor in ids:
        match = _DIGITOS_FINAIS.search(str(valor or ""))
        if match:
            maior = max(maior, int(match.group(1)))
    return str(maior + 1).zfill(tamanho)


def proximo_id(db: Session) -> str:
    ids = (row.id for row in db.query(Compra.id).all())
    return proximo_id_curto(ids, settings.tamanho_id_compra)


# === Conversão registro <-> model ===


def compra_para_registro(compra: Compra) -> dict:
    """Serializa no formato lido pelo front (inclui todos os espelhos legados)."""
    totais = TotaisCompra(
        total_pts=compra.total_pts or 0,
        custo_total=compra.custo_total or 0.0,
        custo_milheiro=compra.custo_milheiro or 0.0,
        lucro_total=compra.lucro_total or 0.0,
    )
    registro = {
        "id": compra.id,
        "dataCompra": compra.data_compra or "",
        "statusPontos": compra.status_pontos,
        "cedenteId": compra.cedente_id or "",
        "cedenteNome": compra.cedente_nome or "",
        "itens": compra.itens or [],
        "modo": compra.modo,
        "ciaCompra": compra.cia_compra,
        "destCia": compra.dest_cia,
        "origem": compra.origem,
        "metaMilheiro": compra.meta_milheiro,
        "comissaoCedente": compra.comissao_cedente,
        "savedAt": compra.saved_at,
    }
    registro.update(espelhos_de_totais(totais))
    return registro


def _opcional(valor: Any) -> Optional[float]:
    return None if valor is None else num(valor)


def _texto(valor: Any) -> Optional[str]:
    return str(valor) if valor else None


def _gravar_registro(compra: Compra, registro: dict) -> None:
    totais = totais_do_registro(registro)
    itens = registro.get("itens")

    compra.data_compra = str(registro.get("dataCompra") or "")
    compra.status_pontos = str(registro.get("statusPontos") or "aguardando")
    compra.cedente_id = str(registro.get("cedenteId") or "")
    compra.cedente_nome = str(registro.get("cedenteNome") or "")
    compra.itens = itens if isinstance(itens, list) else []

    compra.total_pts = totais.total_pts
    compra.custo_total = totais.custo_total
    compra.custo_milheiro = totais.custo_milheiro
    compra.lucro_total = totais.lucro_total

    compra.modo = _texto(registro.get("modo"))
    compra.cia_compra = _texto(registro.get("ciaCompra"))
    compra.dest_cia = _texto(registro.get("destCia"))
    compra.origem = _texto(registro.get("origem"))

    compra.meta_milheiro = _opcional(registro.get("metaMilheiro"))
    compra.comissao_cedente = _opcional(registro.get("comissaoCedente"))
    compra.saved_at = int(time.time() * 1000)


def _buscar_para_escrita(db: Session, compra_id: str) -> Optional[Compra]:
    # Trava a linha durante o ciclo ler-alterar-gravar (ignorado no SQLite)
    return db.query(Compra).filter(Compra.id == compra_id).with_for_update().first()


# === Operações ===


def listar_compras(
    db: Session,
    *,
    q: str = "",
    modo: str = "",
    cia: str = "",
    origem: str = "",
    start: str = "",
    end: str = "",
    offset: int = 0,
    limit: int = 20,
) -> tuple[int, list[dict]]:
    """Lista compras filtradas, ordenadas por data desc e ID asc."""
    query = db.query(Compra)

    if q:
        termo = padrao_contem(q)
        query = query.filter(
            or_(
                Compra.id.ilike(termo, escape="\\"),
                Compra.cedente_id.ilike(termo, escape="\\"),
                Compra.cedente_nome.ilike(termo, escape="\\"),
            )
        )
    if modo:
        query = query.filter(Compra.modo == modo)
    if cia:
        query = query.filter(
            or_(
                and_(Compra.modo == "compra", Compra.cia_compra == cia),
                and_(Compra.modo == "transferencia", Compra.dest_cia == cia),
            )
        )
    if origem:
        query = query.filter(Compra.origem == origem)
    if start:
        query = query.filter(Compra.data_compra >= start)
    if end:
        query = query.filter(Compra.data_compra <= end)

    total = query.count()
    compras = (
        query.order_by(Compra.data_compra.desc(), Compra.id.asc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return total, [preencher_totais(compra_para_registro(c)) for c in compras]


def buscar_compra(db: Session, compra_id: str) -> Optional[dict]:
    compra = db.get(Compra, compra_id)
    if compra is None:
        return None
    return preencher_totais(compra_para_registro(compra))


def upsert_compra(db: Session, registro: dict) -> Compra:
    """Cria ou substitui a compra; sem ID, usa o próximo ID curto."""
    compra_id = str(registro.get("id") or "").strip() or proximo_id(db)

    compra = _buscar_para_escrita(db, compra_id)
    if compra is None:
        compra = Compra(id=compra_id)
        db.add(compra)

    _gravar_registro(compra, registro)
    db.commit()
    db.refresh(compra)

    logger.info(f"Compra salva: {compra.id} ({compra.total_pts} pts)")
    return compra


def atualizar_compra(db: Session, compra_id: str, patch: dict) -> dict:
    """Aplica um patch parcial e devolve o registro atualizado."""
    compra = _buscar_para_escrita(db, compra_id)
    if compra is None:
        raise RegistroNaoEncontrado(f"Compra {compra_id} não encontrada")

    registro = aplicar_patch(compra_para_registro(compra), patch)
    _gravar_registro(compra, registro)
    db.commit()
    db.refresh(compra)

    logger.info(f"Compra atualizada: {compra.id} (campos: {', '.join(sorted(patch))})")
    return compra_para_registro(compra)


def excluir_compra(db: Session, compra_id: str) -> None:
    compra = _buscar_para_escrita(db, compra_id)
    if compra is None:
        raise RegistroNaoEncontrado(f"Compra {compra_id} não encontrada")

    db.delete(compra)
    db.commit()
    logger.info(f"Compra removida: {compra_id}")
