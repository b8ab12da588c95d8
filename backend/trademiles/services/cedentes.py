"""Serviço de cedentes: cadastro e movimentação de saldos de pontos."""

import logging
from typing import Any, Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Cedente
from .consolidacao import num

logger = logging.getLogger(__name__)

PROGRAMAS = ("latam", "smiles", "livelo", "esfera")


def cedente_de_dict(dados: dict[str, Any]) -> Cedente | None:
    """Monta um Cedente a partir do formato do front (aceita nome ou nome_completo)."""
    identificador = str(dados.get("identificador") or "").strip()
    if not identificador:
        return None

    nome = dados.get("nome") or dados.get("nome_completo")
    nome_completo = dados.get("nome_completo") or dados.get("nome")
    cedente = Cedente(identificador=identificador, nome=nome, nome_completo=nome_completo)
    for programa in PROGRAMAS:
        setattr(cedente, programa, int(num(dados.get(programa))))
    return cedente


def listar_cedentes(db: Session) -> list[Cedente]:
    return db.query(Cedente).order_by(Cedente.identificador).all()


def substituir_cedentes(db: Session, lista: Iterable[dict[str, Any]]) -> int:
    """Substitui a lista inteira de cedentes. Não faz commit."""
    db.query(Cedente).delete()

    vistos: set[str] = set()
    for dados in lista:
        cedente = cedente_de_dict(dados) if isinstance(dados, dict) else None
        if cedente is None:
            logger.warning("Cedente sem identificador ignorado")
            continue
        chave = cedente.identificador.upper()
        if chave in vistos:
            logger.warning(f"Cedente duplicado ignorado: {cedente.identificador}")
            continue
        vistos.add(chave)
        db.add(cedente)

    db.flush()
    return len(vistos)


def semear_cedentes(db: Session, snapshot: list[dict[str, Any]] | None) -> int:
    """Inicializa os cedentes a partir de um snapshot quando ainda não há nenhum salvo."""
    if not snapshot:
        return 0
    if db.query(Cedente).count() > 0:
        return 0
    total = substituir_cedentes(db, snapshot)
    logger.info(f"Cedentes inicializados a partir do snapshot: {total}")
    return total


def buscar_cedente_para_escrita(db: Session, identificador: Any) -> Cedente | None:
    """Busca por identificador sem diferenciar maiúsculas, travando a linha."""
    chave = str(identificador or "").upper()
    if not chave:
        return None
    return (
        db.query(Cedente)
        .filter(func.upper(Cedente.identificador) == chave)
        .with_for_update()
        .first()
    )


def movimentar_saldo(db: Session, identificador: Any, programa: str, delta: float) -> bool:
    """
    Soma `delta` ao saldo do cedente no programa (negativo = débito).

    O saldo nunca fica negativo. Retorna False quando o cedente não existe.
    """
    cedente = buscar_cedente_para_escrita(db, identificador)
    if cedente is None:
        logger.warning(f"Cedente {identificador} não encontrado para movimentar {programa}")
        return False

    antes = getattr(cedente, programa) or 0
    depois = max(0, int(antes + delta))
    setattr(cedente, programa, depois)
    logger.info(f"Saldo {programa} do cedente {cedente.identificador}: {antes} -> {depois}")
    return True
