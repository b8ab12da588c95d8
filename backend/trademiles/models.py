"""Models SQLAlchemy para o TradeMiles."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from .database import Base


def utc_now() -> datetime:
    """Retorna datetime atual em UTC."""
    return datetime.now(UTC)


def _uuid() -> str:
    return str(uuid.uuid4())


# =============================================================================
# CEDENTES (CONTAS DOADORAS DE PONTOS)
# =============================================================================


class Cedente(Base):
    """Conta de um cedente com saldo em cada programa de fidelidade."""

    __tablename__ = "cedentes"

    identificador = Column(String(50), primary_key=True)
    nome = Column(String(255), nullable=True)
    nome_completo = Column(String(255), nullable=True)

    # Saldos por programa
    latam = Column(Integer, default=0, nullable=False)
    smiles = Column(Integer, default=0, nullable=False)
    livelo = Column(Integer, default=0, nullable=False)
    esfera = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)


# =============================================================================
# COMPRAS DE PONTOS
# =============================================================================


class Compra(Base):
    """
    Compra de pontos consolidada.

    Os totais ficam em uma única representação (total_pts, custo_total,
    custo_milheiro, lucro_total); os espelhos legados `totais`, `totaisId` e
    `calculos` são gerados na serialização.
    """

    __tablename__ = "compras"

    id = Column(String(50), primary_key=True)
    data_compra = Column(String(10), nullable=False, default="", index=True)  # yyyy-mm-dd
    status_pontos = Column(String(20), nullable=False, default="aguardando")

    cedente_id = Column(String(50), nullable=False, default="", index=True)
    cedente_nome = Column(String(255), nullable=False, default="")

    # Itens crus (compra / transferencia / clube / legados com resumo)
    itens = Column(JSON, nullable=False, default=list)

    # Totais canônicos
    total_pts = Column(Integer, nullable=False, default=0)
    custo_total = Column(Float, nullable=False, default=0.0)
    custo_milheiro = Column(Float, nullable=False, default=0.0)
    lucro_total = Column(Float, nullable=False, default=0.0)

    # Compat para listagem/filtros antigos (apenas quando todos os itens têm o mesmo modo)
    modo = Column(String(20), nullable=True, index=True)
    cia_compra = Column(String(20), nullable=True)
    dest_cia = Column(String(20), nullable=True)
    origem = Column(String(20), nullable=True)

    meta_milheiro = Column(Float, nullable=True)
    comissao_cedente = Column(Float, nullable=True)

    saved_at = Column(BigInteger, nullable=True)  # epoch em ms
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        Index("ix_compras_data_id", "data_compra", "id"),
    )


# =============================================================================
# VENDAS
# =============================================================================


class Venda(Base):
    """Venda de pontos para um cliente, debitada dos saldos dos cedentes."""

    __tablename__ = "vendas"

    id = Column(String(30), primary_key=True)  # "V" + epoch em ms
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    data = Column(String(10), nullable=False, default="")
    pontos = Column(Integer, nullable=False, default=0)
    cia = Column(String(20), nullable=False)
    qtd_passageiros = Column(Integer, nullable=False, default=0)

    funcionario_id = Column(String(50), nullable=True)
    funcionario_nome = Column(String(255), nullable=True)
    user_name = Column(String(255), nullable=True)
    user_email = Column(String(255), nullable=True)

    cliente_id = Column(String(50), nullable=True)
    cliente_nome = Column(String(255), nullable=True)
    cliente_origem = Column(String(100), nullable=True)

    # {id, nome, usar, disponivel, leftover, compraId, regra}
    conta_escolhida = Column(JSON, nullable=True)
    # [{id, nome, usar, disp}]
    sugestao_combinacao = Column(JSON, nullable=False, default=list)

    milheiros = Column(Float, nullable=False, default=0.0)
    valor_milheiro = Column(Float, nullable=False, default=0.0)
    valor_pontos = Column(Float, nullable=False, default=0.0)
    taxa_embarque = Column(Float, nullable=False, default=0.0)
    total_cobrar = Column(Float, nullable=False, default=0.0)

    meta_milheiro = Column(Float, nullable=True)
    comissao_base = Column(Float, nullable=False, default=0.0)
    comissao_bonus_meta = Column(Float, nullable=False, default=0.0)
    comissao_total = Column(Float, nullable=False, default=0.0)

    cartao_funcionario_id = Column(String(50), nullable=True)
    cartao_funcionario_nome = Column(String(255), nullable=True)

    pagamento_status = Column(String(20), nullable=False, default="pendente")

    localizador = Column(String(20), nullable=True)
    origem_iata = Column(String(10), nullable=True)
    sobrenome = Column(String(120), nullable=True)

    # {at, taxaCia, taxaEmpresa, refund, recreditPoints, note}
    cancel_info = Column(JSON, nullable=True)


# =============================================================================
# COMISSÕES
# =============================================================================


class Comissao(Base):
    """Comissão devida a um cedente por uma compra."""

    __tablename__ = "comissoes"

    id = Column(String(36), primary_key=True, default=_uuid)
    compra_id = Column(String(50), nullable=False, index=True)
    cedente_id = Column(String(50), nullable=False, index=True)
    cedente_nome = Column(String(255), nullable=False, default="")
    valor = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), nullable=False, default="aguardando")  # aguardando, pago

    criado_em = Column(DateTime(timezone=True), default=utc_now, index=True)
    atualizado_em = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    __table_args__ = (
        UniqueConstraint("compra_id", "cedente_id", name="uq_comissoes_compra_cedente"),
    )
