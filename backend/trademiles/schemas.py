"""Schemas Pydantic para validação e serialização."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# === Enums ===


class StatusPontos(str, Enum):
    """Situação dos pontos de uma compra."""

    AGUARDANDO = "aguardando"
    LIBERADOS = "liberados"


class Cia(str, Enum):
    """Programa de fidelidade de destino."""

    LATAM = "latam"
    SMILES = "smiles"


class PagamentoStatus(str, Enum):
    """Status de pagamento de uma venda."""

    PAGO = "pago"
    PENDENTE = "pendente"


class StatusComissao(str, Enum):
    """Status de uma comissão de cedente."""

    AGUARDANDO = "aguardando"
    PAGO = "pago"


class CamelModel(BaseModel):
    """Base para payloads que trafegam em camelCase (padrão do front)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        coerce_numbers_to_str=True,
    )


# === Compras ===


class CompraListResponse(BaseModel):
    """Response para listagem de compras."""

    ok: bool = True
    total: int
    items: list[dict[str, Any]]


class NextIdData(CamelModel):
    next_id: str


class NextIdResponse(CamelModel):
    """Próximo ID curto disponível para uma compra."""

    ok: bool = True
    next_id: str
    data: NextIdData


# === Cedentes ===


class CedenteOut(BaseModel):
    """Cedente com saldos por programa."""

    model_config = ConfigDict(from_attributes=True)

    identificador: str
    nome: str | None = None
    nome_completo: str | None = None
    latam: int = 0
    smiles: int = 0
    livelo: int = 0
    esfera: int = 0


class CedentesSalvarRequest(CamelModel):
    """Lista completa de cedentes enviada pelo front (substitui a atual)."""

    lista_cedentes: list[dict[str, Any]] = Field(default_factory=list)


# === Vendas ===


class ContaEscolhida(CamelModel):
    """Conta única de onde saem os pontos da venda."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    nome: str | None = None
    usar: float = 0
    disponivel: float = 0
    leftover: float = 0
    compra_id: str | None = None
    regra: str | None = None


class ParteCombinacao(CamelModel):
    """Parte de uma combinação de contas usada na venda."""

    id: str | None = None
    nome: str | None = None
    usar: float = 0
    disp: float = 0


class VendaCreate(CamelModel):
    """Payload para registrar uma venda."""

    data: str = ""
    pontos: float = 0
    cia: str | None = None
    qtd_passageiros: int = 0

    funcionario_id: str | None = None
    funcionario_nome: str | None = None
    user_name: str | None = None
    user_email: str | None = None

    cliente_id: str | None = None
    cliente_nome: str | None = None
    cliente_origem: str | None = None

    conta_escolhida: ContaEscolhida | None = None
    sugestao_combinacao: list[ParteCombinacao] = Field(default_factory=list)

    milheiros: float = 0
    valor_milheiro: float = 0
    valor_pontos: float = 0
    taxa_embarque: float = 0
    total_cobrar: float = 0

    meta_milheiro: float | None = None
    comissao_base: float = 0
    comissao_bonus_meta: float = 0
    comissao_total: float = 0

    cartao_funcionario_id: str | None = None
    cartao_funcionario_nome: str | None = None

    pagamento_status: PagamentoStatus = PagamentoStatus.PENDENTE

    localizador: str | None = None
    origem_iata: str | None = Field(None, alias="origemIATA")
    sobrenome: str | None = None

    # Snapshot usado para inicializar os cedentes quando ainda não há nenhum salvo
    cedentes: list[dict[str, Any]] | None = None
    cedentes_snapshot: list[dict[str, Any]] | None = None


class CancelInfo(CamelModel):
    """Dados do cancelamento de uma venda."""

    at: str
    taxa_cia: float = 0
    taxa_empresa: float = 0
    refund: float = 0
    recredit_points: bool = False
    note: str | None = None


class CancelamentoRequest(CamelModel):
    taxa_cia: float = 0
    taxa_empresa: float = 0
    recredit_points: bool = False
    note: str | None = None


class VendaPatchRequest(CamelModel):
    """Atualiza o pagamento ou cancela uma venda."""

    id: str
    pagamento_status: str | None = None
    cancel: CancelamentoRequest | None = None


class VendaOut(CamelModel):
    """Venda registrada."""

    id: str
    created_at: datetime | None = None

    data: str
    pontos: int
    cia: Cia
    qtd_passageiros: int

    funcionario_id: str | None = None
    funcionario_nome: str | None = None
    user_name: str | None = None
    user_email: str | None = None

    cliente_id: str | None = None
    cliente_nome: str | None = None
    cliente_origem: str | None = None

    conta_escolhida: dict[str, Any] | None = None
    sugestao_combinacao: list[dict[str, Any]] = Field(default_factory=list)

    milheiros: float
    valor_milheiro: float
    valor_pontos: float
    taxa_embarque: float
    total_cobrar: float

    meta_milheiro: float | None = None
    comissao_base: float
    comissao_bonus_meta: float
    comissao_total: float

    cartao_funcionario_id: str | None = None
    cartao_funcionario_nome: str | None = None

    pagamento_status: PagamentoStatus

    localizador: str | None = None
    origem_iata: str | None = Field(None, alias="origemIATA")
    sobrenome: str | None = None

    cancel_info: CancelInfo | None = None


class VendaListResponse(CamelModel):
    ok: bool = True
    lista: list[VendaOut]


class VendaCreateResponse(CamelModel):
    ok: bool = True
    id: str
    next_cedentes: list[CedenteOut]


class VendaRecordResponse(CamelModel):
    ok: bool = True
    record: VendaOut


# === Comissões ===


class ComissaoUpsert(CamelModel):
    """Payload de upsert de comissão (chave: compraId + cedenteId)."""

    compra_id: str | None = None
    cedente_id: str | None = None
    cedente_nome: str | None = None
    valor: float | None = None
    status: StatusComissao | None = None


class ComissaoStatusUpdate(BaseModel):
    status: StatusComissao


class ComissaoOut(CamelModel):
    id: str
    compra_id: str
    cedente_id: str
    cedente_nome: str
    valor: float
    status: StatusComissao
    criado_em: datetime | None = None
    atualizado_em: datetime | None = None


class ComissaoListResponse(CamelModel):
    data: list[ComissaoOut]


class ComissaoResponse(CamelModel):
    ok: bool = True
    data: ComissaoOut


# === Health ===


class HealthResponse(BaseModel):
    """Response do health check."""

    status: str
    db: bool
