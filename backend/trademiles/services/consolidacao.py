"""
Consolidação de compras de pontos.

Recebe uma compra em qualquer um dos formatos já gravados pelo front e
devolve o registro canônico com os totais calculados:

1. Formato antigo: um único item implícito descrito por `modo`, `ciaCompra`,
   `destCia`, `origem`, `valores` e um bloco `calculos` no topo.
2. Formato novo: lista `itens` (kinds `compra`, `transferencia`, `clube` ou
   legados com `resumo`) e um bloco `totais` opcional.

O formato antigo é convertido para o novo logo na entrada, então o resto do
código só lida com uma forma de compra.

Os totais são calculados por uma de três estratégias, nesta ordem:

1. Totais explícitos: `totais` veio com algum valor não nulo.
2. Resumo legado: algum item traz `resumo` com totais já calculados.
3. Por tipo de item: soma pontos (com bônus) e custo de cada item.

Nenhuma função deste módulo lança exceção para entrada malformada; valores
numéricos ausentes ou inválidos contam como 0.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)

# Programas que recebem os pontos (CIA) e programas de origem das transferências
CIAS = ("latam", "smiles")
ORIGENS = ("livelo", "esfera")

MODOS_COMPAT = ("compra", "transferencia")

CAMPOS_TOTAIS_EXPLICITOS = ("totalCIA", "pontosCIA", "custoTotal", "custoMilheiroTotal")

# Ordem de preferência fixa: registros antigos dependem dela
CANDIDATOS_PONTOS = (
    "chegam",
    "chegamPts",
    "totalCIA",
    "pontosCIA",
    "total_destino",
    "total",
    "quantidade",
    "pontosTotais",
    "pontosUsados",
    "pontos",
)
CANDIDATOS_CUSTO = (
    "custoTotal",
    "valor",
    "valorPago",
    "precoTotal",
    "preco",
    "custo",
)


# === Conversões tolerantes ===


def num(valor: Any) -> float:
    """Converte para float; ausente, inválido ou não finito vira 0."""
    if isinstance(valor, str):
        valor = valor.strip() or 0
    if not isinstance(valor, (int, float, str)):
        return 0.0
    try:
        n = float(valor)
    except (ValueError, OverflowError):
        return 0.0
    return n if math.isfinite(n) else 0.0


def arredondar(valor: float) -> int:
    """Arredonda meio para cima (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(valor + 0.5)


def _dict(valor: Any) -> dict:
    return valor if isinstance(valor, dict) else {}


def _verdadeiro(valor: Any) -> bool:
    """Mesma noção de "preenchido" que o front usa ao gravar os registros."""
    if valor is None or valor is False:
        return False
    if isinstance(valor, (int, float)):
        return valor != 0 and not math.isnan(valor)
    if isinstance(valor, str):
        return valor != ""
    return True


def _primeiro_verdadeiro(*valores: Any) -> Any:
    for valor in valores:
        if _verdadeiro(valor):
            return valor
    return None


def _primeiro_positivo(dados: dict, campos: tuple[str, ...]) -> float:
    for campo in campos:
        valor = num(dados.get(campo))
        if valor > 0:
            return valor
    return 0.0


def custo_por_milheiro(custo_total: float, total_pts: float) -> float:
    """Custo por mil pontos; 0 quando não há pontos."""
    if total_pts > 0:
        return custo_total / (total_pts / 1000)
    return 0.0


# === Totais ===


@dataclass
class TotaisCompra:
    """Totais consolidados de uma compra (representação única)."""

    total_pts: int = 0
    custo_total: float = 0.0
    custo_milheiro: float = 0.0
    lucro_total: float = 0.0

    def como_totais(self) -> dict:
        """Formato novo (`totais`)."""
        return {
            "totalCIA": self.total_pts,
            "custoTotal": self.custo_total,
            "custoMilheiroTotal": self.custo_milheiro,
            "lucroTotal": self.lucro_total,
        }

    def como_totais_id(self) -> dict:
        """Formato legado (`totaisId` / `calculos`)."""
        return {
            "totalPts": self.total_pts,
            "custoTotal": self.custo_total,
            "custoMilheiro": self.custo_milheiro,
            "lucroTotal": self.lucro_total,
        }


def espelhos_de_totais(totais: TotaisCompra) -> dict:
    """Gera os três espelhos gravados no registro."""
    return {
        "totais": totais.como_totais(),
        "totaisId": totais.como_totais_id(),
        "calculos": totais.como_totais_id(),
    }


def tem_totais_explicitos(totais: Any) -> bool:
    if not isinstance(totais, dict):
        return False
    return any(num(totais.get(campo)) != 0 for campo in CAMPOS_TOTAIS_EXPLICITOS)


def totais_explicitos(totais: Any) -> TotaisCompra:
    """Confia nos totais informados (aceita `totalCIA` ou `pontosCIA`)."""
    totais = _dict(totais)
    bruto = totais.get("totalCIA")
    if bruto is None:
        bruto = totais.get("pontosCIA")
    total_pts = arredondar(num(bruto))
    custo_total = num(totais.get("custoTotal"))

    informado = num(totais.get("custoMilheiroTotal"))
    custo_milheiro = informado if informado > 0 else custo_por_milheiro(custo_total, total_pts)

    return TotaisCompra(
        total_pts=total_pts,
        custo_total=custo_total,
        custo_milheiro=custo_milheiro,
        lucro_total=num(totais.get("lucroTotal")),
    )


def totais_por_resumo(itens: list) -> TotaisCompra:
    """
    Soma os `resumo` de itens legados.

    O custo por milheiro é a média dos custos de cada item ponderada pelo
    volume de milheiros do item; itens sem pontos ficam fora da média.
    """
    total_pts = 0.0
    custo_total = 0.0
    lucro_total = 0.0
    peso = 0.0
    acumulado = 0.0

    for item in itens:
        resumo = _dict(_dict(item).get("resumo"))
        pts = num(resumo.get("totalPts"))
        custo = num(resumo.get("custoTotal"))

        total_pts += pts
        custo_total += custo
        lucro_total += num(resumo.get("lucroTotal"))

        milheiros = pts / 1000
        if milheiros > 0:
            peso += milheiros
            acumulado += (custo / milheiros) * milheiros

    return TotaisCompra(
        total_pts=arredondar(total_pts),
        custo_total=custo_total,
        custo_milheiro=acumulado / peso if peso > 0 else 0.0,
        lucro_total=lucro_total,
    )


def _pontos_e_custo_genericos(item: dict, dados: dict) -> tuple[float, float]:
    # Item de kind desconhecido: procura nos nomes de campo já usados pelo front,
    # depois no bloco `totais` do item, depois no `resumo` legado.
    pts = _primeiro_positivo(dados, CANDIDATOS_PONTOS)
    custo = _primeiro_positivo(dados, CANDIDATOS_CUSTO)

    totais_item = _dict(item.get("totais"))
    pts_alt = num(
        _primeiro_verdadeiro(
            totais_item.get("totalCIA"),
            totais_item.get("pontosCIA"),
            totais_item.get("cia"),
        )
    )
    custo_alt = num(totais_item.get("custoTotal"))

    pontos = pts if pts > 0 else pts_alt
    valor = custo if custo > 0 else custo_alt

    resumo = _dict(item.get("resumo"))
    if not (pts > 0 or pts_alt > 0) and _verdadeiro(resumo.get("totalPts")):
        pontos += num(resumo.get("totalPts"))
    if not (custo > 0 or custo_alt > 0) and _verdadeiro(resumo.get("custoTotal")):
        valor += num(resumo.get("custoTotal"))

    return pontos, valor


def pontos_e_custo_do_item(item: Any) -> tuple[float, float]:
    """Pontos que chegam na CIA e custo pago por um item do formato novo."""
    item = _dict(item)
    kind = item.get("kind")
    dados = _dict(item.get("data"))

    if kind == "transferencia":
        campo_base = "pontosTotais" if dados.get("modo") == "pontos+dinheiro" else "pontosUsados"
        base = num(dados.get(campo_base))
        chegam = arredondar(base * (1 + num(dados.get("bonusPct")) / 100))
        return max(0, chegam), num(dados.get("valorPago"))

    if kind == "compra":
        pontos = 0
        if dados.get("programa") in CIAS:
            pontos = arredondar(num(dados.get("pontos")) * (1 + num(dados.get("bonusPct")) / 100))
        return pontos, num(dados.get("valor"))

    if kind == "clube":
        pontos = 0.0
        if dados.get("programa") in CIAS:
            pontos = max(0.0, num(dados.get("pontos")))
        return pontos, num(dados.get("valor"))

    return _pontos_e_custo_genericos(item, dados)


def totais_por_tipo(itens: list) -> TotaisCompra:
    """Soma pontos e custo item a item conforme o kind."""
    total_pts = 0.0
    custo_total = 0.0
    for item in itens:
        pontos, custo = pontos_e_custo_do_item(item)
        total_pts += pontos
        custo_total += custo

    total_pts = arredondar(total_pts)
    # Lucro depende do preço de venda, que não existe no item de compra
    lucro_total = sum(num(_dict(_dict(item).get("resumo")).get("lucroTotal")) for item in itens)

    return TotaisCompra(
        total_pts=total_pts,
        custo_total=custo_total,
        custo_milheiro=custo_por_milheiro(custo_total, total_pts),
        lucro_total=lucro_total,
    )


def calcular_totais(itens: Any, totais: Any = None) -> TotaisCompra:
    """Escolhe a estratégia de consolidação e calcula os totais."""
    if tem_totais_explicitos(totais):
        logger.debug("Totais explícitos informados")
        return totais_explicitos(totais)

    itens = itens if isinstance(itens, list) else []
    if any(_verdadeiro(_dict(item).get("resumo")) for item in itens):
        logger.debug("Totais a partir do resumo legado dos itens")
        return totais_por_resumo(itens)

    return totais_por_tipo(itens)


def totais_do_registro(registro: dict) -> TotaisCompra:
    """Lê o bloco `totais` de um registro já consolidado."""
    return totais_explicitos(registro.get("totais"))


# === Campos de compat (modo único) ===


@dataclass
class CompatModo:
    """Visão de modo único usada pela listagem antiga."""

    modo: Optional[str] = None
    cia_compra: Optional[str] = None
    dest_cia: Optional[str] = None
    origem: Optional[str] = None

    def como_dict(self) -> dict:
        return {
            "modo": self.modo,
            "ciaCompra": self.cia_compra,
            "destCia": self.dest_cia,
            "origem": self.origem,
        }


def modo_do_item(item: Any) -> Optional[str]:
    item = _dict(item)
    modo = item.get("modo") or item.get("kind")
    return modo if isinstance(modo, str) else None


def _valor_reconhecido(valor: Any, permitidos: tuple[str, ...]) -> Optional[str]:
    return valor if valor in permitidos else None


def _legado_ou_dados(item: dict, campo_legado: str, campo_dados: str) -> Any:
    valor = _dict(item.get("valores")).get(campo_legado)
    if valor is None:
        valor = _dict(item.get("data")).get(campo_dados)
    return valor


def compat_dos_itens(itens: Any) -> CompatModo:
    """
    Preenche `modo`/`ciaCompra`/`destCia`/`origem` quando todos os itens têm o
    mesmo modo (`compra` ou `transferencia`). Compras mistas ficam sem compat.
    """
    itens = itens if isinstance(itens, list) else []
    modos = {modo_do_item(item) for item in itens}
    if len(modos) != 1:
        return CompatModo()

    modo = modos.pop()
    primeiro = _dict(itens[0])
    if modo == "compra":
        return CompatModo(
            modo=modo,
            cia_compra=_valor_reconhecido(_legado_ou_dados(primeiro, "ciaCompra", "programa"), CIAS),
        )
    if modo == "transferencia":
        return CompatModo(
            modo=modo,
            dest_cia=_valor_reconhecido(_legado_ou_dados(primeiro, "destCia", "destino"), CIAS),
            origem=_valor_reconhecido(_legado_ou_dados(primeiro, "origem", "origem"), ORIGENS),
        )
    return CompatModo()


def compat_do_primeiro_item(itens: list) -> CompatModo:
    """
    Compat de um patch: o primeiro item define o modo. Campos que não se
    aplicam a esse modo ficam nulos.
    """
    primeiro = _dict(itens[0])
    modo = modo_do_item(primeiro)
    if modo in MODOS_COMPAT:
        return compat_dos_itens([primeiro])
    return CompatModo(modo=modo)


# === Submissões ===


@dataclass
class SubmissaoItens:
    """Compra no formato novo: lista de itens e totais opcionais."""

    itens: list
    totais: Optional[dict] = None


@dataclass
class SubmissaoLegada:
    """Compra no formato antigo: um item implícito descrito no topo."""

    modo: str
    calculos: dict
    valores: dict

    def como_itens(self) -> SubmissaoItens:
        resumo = {
            "totalPts": num(self.calculos.get("totalPts")),
            "custoMilheiro": num(self.calculos.get("custoMilheiro")),
            "custoTotal": num(self.calculos.get("custoTotal")),
            "lucroTotal": num(self.calculos.get("lucroTotal")),
        }
        item = {"idx": 1, "modo": self.modo, "resumo": resumo, "valores": self.valores}
        totais = {
            "totalCIA": resumo["totalPts"],
            "custoTotal": resumo["custoTotal"],
            "custoMilheiroTotal": resumo["custoMilheiro"],
            "lucroTotal": resumo["lucroTotal"],
        }
        return SubmissaoItens(itens=[item], totais=totais)


Submissao = Union[SubmissaoItens, SubmissaoLegada]


def decodificar_submissao(corpo: Any) -> Submissao:
    """Identifica o formato da compra pela presença da lista `itens`."""
    corpo = _dict(corpo)
    if isinstance(corpo.get("itens"), list):
        totais = corpo.get("totais")
        return SubmissaoItens(
            itens=list(corpo["itens"]),
            totais=totais if isinstance(totais, dict) else None,
        )

    modo = corpo.get("modo") or ("transferencia" if corpo.get("origem") else "compra")
    valores = corpo.get("valores")
    if not isinstance(valores, dict):
        valores = {
            "ciaCompra": corpo.get("ciaCompra"),
            "destCia": corpo.get("destCia"),
            "origem": corpo.get("origem"),
        }
    return SubmissaoLegada(modo=modo, calculos=_dict(corpo.get("calculos")), valores=valores)


# === Operações ===


def normalizar(corpo: Any) -> dict:
    """
    Converte uma compra enviada pelo front no registro canônico.

    O registro sempre sai com `totais`, `totaisId` e `calculos` preenchidos e
    consistentes entre si.
    """
    corpo = _dict(corpo)
    submissao = decodificar_submissao(corpo)
    if isinstance(submissao, SubmissaoLegada):
        submissao = submissao.como_itens()

    totais = calcular_totais(submissao.itens, submissao.totais)
    compat = compat_dos_itens(submissao.itens)

    compra_id = corpo.get("id")
    registro = {
        "id": "" if compra_id is None else str(compra_id).strip(),
        "dataCompra": corpo.get("dataCompra") or "",
        "statusPontos": corpo.get("statusPontos") or "aguardando",
        "cedenteId": corpo.get("cedenteId") or "",
        "cedenteNome": corpo.get("cedenteNome") or "",
        "itens": submissao.itens,
        "metaMilheiro": corpo.get("metaMilheiro"),
        "comissaoCedente": corpo.get("comissaoCedente"),
    }
    registro.update(espelhos_de_totais(totais))
    registro.update(compat.como_dict())
    return registro


def _totais_de_espelho_legado(espelho: Any) -> dict:
    espelho = _dict(espelho)
    if not espelho:
        return {}
    return {
        "totalCIA": espelho.get("totalPts"),
        "custoTotal": espelho.get("custoTotal"),
        "custoMilheiroTotal": espelho.get("custoMilheiro"),
        "lucroTotal": espelho.get("lucroTotal"),
    }


def aplicar_patch(existente: dict, patch: dict) -> dict:
    """
    Atualização parcial de um registro já consolidado.

    - `itens` novos sem totais explícitos: recalcula os totais.
    - `totais` (ou `totaisId`/`calculos`) sem itens: regenera os espelhos.
    - O primeiro item dos `itens` novos define os campos de compat.
    - Qualquer outro campo é copiado por cima do registro existente.
    """
    aplicar = dict(_dict(patch))
    if "itens" in aplicar and not isinstance(aplicar["itens"], list):
        aplicar.pop("itens")

    totais_informados = _dict(aplicar.get("totais")) or _totais_de_espelho_legado(
        aplicar.get("totaisId") or aplicar.get("calculos")
    )

    totais: Optional[TotaisCompra] = None
    if "itens" in aplicar:
        totais = calcular_totais(aplicar["itens"], totais_informados)
    elif totais_informados:
        totais = totais_explicitos(totais_informados)
    if totais is not None:
        aplicar.update(espelhos_de_totais(totais))

    itens = aplicar.get("itens")
    if itens:
        aplicar.update(compat_do_primeiro_item(itens).como_dict())

    return {**existente, **aplicar}


def preencher_totais(registro: dict) -> dict:
    """Recalcula os totais de um registro gravado sem pontos consolidados."""
    totais = _dict(registro.get("totais"))
    bruto = totais.get("totalCIA")
    if bruto is None:
        bruto = totais.get("pontosCIA")
    if num(bruto):
        return registro
    recalculados = calcular_totais(registro.get("itens"), totais)
    return {**registro, **espelhos_de_totais(recalculados)}
