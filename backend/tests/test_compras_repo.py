"""Testes para a persistência de compras."""

import pytest

from trademiles.models import Compra
from trademiles.services.compras_repo import (
    RegistroNaoEncontrado,
    atualizar_compra,
    compra_para_registro,
    listar_compras,
    padrao_contem,
    proximo_id_curto,
    upsert_compra,
)
from trademiles.services.consolidacao import normalizar


class TestProximoId:
    """Testes para geração do próximo ID curto."""

    def test_sem_ids(self):
        assert proximo_id_curto([]) == "0001"

    def test_maior_sufixo_numerico(self):
        assert proximo_id_curto(["0001", "0007", "abc", "X12", None]) == "0013"

    def test_tamanho(self):
        assert proximo_id_curto(["99"], tamanho=2) == "100"


class TestRegistro:
    """Testes para gravação e leitura do registro."""

    def test_totais_canonicos(self, db_session, compra_nova):
        compra = upsert_compra(db_session, normalizar(compra_nova))
        assert compra.total_pts == 12000
        assert compra.custo_total == 500.0

        registro = compra_para_registro(compra)
        assert registro["totais"]["totalCIA"] == 12000
        assert registro["calculos"] == registro["totaisId"]

    def test_listagem_preenche_totais_zerados(self, db_session, item_transferencia):
        # Registro gravado antes da consolidação, sem pontos nos totais
        db_session.add(Compra(id="0005", data_compra="2025-01-01", itens=[item_transferencia]))
        db_session.commit()

        total, items = listar_compras(db_session)
        assert total == 1
        assert items[0]["totais"]["totalCIA"] == 12000

    def test_atualizar_inexistente(self, db_session):
        with pytest.raises(RegistroNaoEncontrado):
            atualizar_compra(db_session, "9999", {"statusPontos": "liberados"})


class TestPadraoBusca:
    """Testes para o padrão de busca por substring."""

    def test_texto_simples(self):
        assert padrao_contem("maria") == "%maria%"

    def test_curingas_escapados(self):
        assert padrao_contem("10%_a\\b") == "%10\\%\\_a\\\\b%"
