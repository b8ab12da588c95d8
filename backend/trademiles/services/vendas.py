"""
Serviço de vendas de pontos.

Cada venda debita os pontos dos cedentes usados (conta escolhida ou
combinação de contas). Cancelamento com devolução e exclusão da venda
creditam os pontos de volta. As funções não fazem commit; o router grava
venda e saldos na mesma transação.
"""

import logging
import time
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from ..models import Venda
from ..schemas import CancelamentoRequest, Cia, VendaCreate
from .cedentes import movimentar_saldo, semear_cedentes
from .consolidacao import num

logger = logging.getLogger(__name__)


def programa_da_venda(cia: str | None) -> str:
    return Cia.LATAM.value if cia == Cia.LATAM.value else Cia.SMILES.value


def partes_da_venda(venda: Venda) -> list[tuple[str, float]]:
    """Contas e quantidades de pontos envolvidas na venda."""
    conta = venda.conta_escolhida if isinstance(venda.conta_escolhida, dict) else {}
    if conta.get("id"):
        return [(conta["id"], venda.pontos or 0)]

    partes = []
    for parte in venda.sugestao_combinacao or []:
        if isinstance(parte, dict):
            partes.append((parte.get("id"), num(parte.get("usar"))))
    return partes


def _movimentar_partes(db: Session, venda: Venda, sinal: int) -> None:
    programa = programa_da_venda(venda.cia)
    for cedente_id, quantidade in partes_da_venda(venda):
        movimentar_saldo(db, cedente_id, programa, sinal * quantidade)


def debitar_pontos(db: Session, venda: Venda) -> None:
    _movimentar_partes(db, venda, -1)


def creditar_pontos(db: Session, venda: Venda) -> None:
    _movimentar_partes(db, venda, 1)


def calcular_estorno(total_cobrar: float, taxa_cia: float, taxa_empresa: float) -> float:
    """Valor devolvido ao cliente no cancelamento (nunca negativo)."""
    return max(0.0, (total_cobrar or 0) - (taxa_cia + taxa_empresa))


def novo_id_venda(db: Session) -> str:
    """Gera 'V' + epoch em ms; avança 1 ms enquanto o ID já estiver em uso."""
    marca = int(time.time() * 1000)
    while db.get(Venda, f"V{marca}") is not None:
        marca += 1
    return f"V{marca}"


def registrar_venda(db: Session, dados: VendaCreate) -> Venda:
    """Cria a venda e debita os pontos dos cedentes."""
    snapshot = dados.cedentes if dados.cedentes is not None else dados.cedentes_snapshot
    semear_cedentes(db, snapshot)

    venda = Venda(
        id=novo_id_venda(db),
        data=dados.data or "",
        pontos=int(dados.pontos or 0),
        cia=programa_da_venda(dados.cia),
        qtd_passageiros=dados.qtd_passageiros,
        funcionario_id=dados.funcionario_id,
        funcionario_nome=dados.funcionario_nome,
        user_name=dados.user_name,
        user_email=dados.user_email,
        cliente_id=dados.cliente_id,
        cliente_nome=dados.cliente_nome,
        cliente_origem=dados.cliente_origem,
        conta_escolhida=(
            dados.conta_escolhida.model_dump(by_alias=True) if dados.conta_escolhida else None
        ),
        sugestao_combinacao=[p.model_dump(by_alias=True) for p in dados.sugestao_combinacao],
        milheiros=dados.milheiros,
        valor_milheiro=dados.valor_milheiro,
        valor_pontos=dados.valor_pontos,
        taxa_embarque=dados.taxa_embarque,
        total_cobrar=dados.total_cobrar,
        meta_milheiro=dados.meta_milheiro,
        comissao_base=dados.comissao_base,
        comissao_bonus_meta=dados.comissao_bonus_meta,
        comissao_total=dados.comissao_total,
        cartao_funcionario_id=dados.cartao_funcionario_id,
        cartao_funcionario_nome=dados.cartao_funcionario_nome,
        pagamento_status=dados.pagamento_status.value,
        localizador=dados.localizador,
        origem_iata=dados.origem_iata,
        sobrenome=dados.sobrenome,
        cancel_info=None,
    )
    db.add(venda)
    debitar_pontos(db, venda)
    return venda


def pontos_devolvidos(venda: Venda) -> bool:
    """Se um cancelamento anterior já devolveu os pontos aos cedentes."""
    info = venda.cancel_info if isinstance(venda.cancel_info, dict) else {}
    return bool(info.get("recreditPoints"))


def cancelar_venda(db: Session, venda: Venda, cancelamento: CancelamentoRequest) -> Venda:
    """
    Registra o cancelamento com taxas/estorno e devolve os pontos se pedido.

    Os pontos voltam no máximo uma vez, mesmo que a venda seja cancelada de novo.
    """
    ja_devolvidos = pontos_devolvidos(venda)
    devolver = cancelamento.recredit_points and not ja_devolvidos

    refund = calcular_estorno(venda.total_cobrar, cancelamento.taxa_cia, cancelamento.taxa_empresa)
    venda.cancel_info = {
        "at": datetime.now(UTC).isoformat(),
        "taxaCia": cancelamento.taxa_cia,
        "taxaEmpresa": cancelamento.taxa_empresa,
        "refund": refund,
        "recreditPoints": ja_devolvidos or cancelamento.recredit_points,
        "note": cancelamento.note,
    }
    if devolver:
        creditar_pontos(db, venda)
    elif cancelamento.recredit_points:
        logger.warning(f"Venda {venda.id}: pontos já devolvidos em cancelamento anterior")

    logger.info(f"Venda {venda.id} cancelada (estorno {refund:.2f})")
    return venda


def excluir_venda(db: Session, venda: Venda, restaurar_pontos: bool = True) -> None:
    """Remove a venda; por padrão devolve os pontos aos cedentes (se ainda não devolvidos)."""
    devolver = restaurar_pontos and not pontos_devolvidos(venda)
    if devolver:
        creditar_pontos(db, venda)
    db.delete(venda)
    logger.info(f"Venda {venda.id} removida (pontos devolvidos: {devolver})")
