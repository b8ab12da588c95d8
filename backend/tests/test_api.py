"""Testes para endpoints da API."""

import pytest

from trademiles.models import Compra


class TestHealthEndpoint:
    """Testes para endpoint /health."""

    def test_health_check(self, client):
        """Health check retorna status."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["db"] is True


class TestRootEndpoint:
    """Testes para endpoint /."""

    def test_root(self, client):
        """Root retorna informações da API."""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["app"] == "TradeMiles API"
        assert "version" in data


class TestComprasSalvar:
    """Testes para POST /compras."""

    def test_salvar_e_buscar(self, client, compra_nova):
        response = client.post("/compras/", json=compra_nova)
        assert response.status_code == 200
        assert response.json() == {"ok": True, "id": "0001"}

        response = client.get("/compras/0001")
        assert response.status_code == 200
        data = response.json()
        assert data["totais"]["totalCIA"] == 12000
        assert data["totaisId"]["totalPts"] == 12000
        assert data["calculos"]["custoMilheiro"] == pytest.approx(500 / 12)
        assert data["modo"] == "transferencia"
        assert data["destCia"] == "latam"
        assert data["origem"] == "livelo"
        assert data["savedAt"] > 0

    def test_salvar_formato_antigo(self, client, compra_antiga):
        response = client.post("/compras/", json=compra_antiga)
        assert response.status_code == 200

        data = client.get("/compras/0002").json()
        assert data["totais"]["totalCIA"] == 30000
        assert data["totais"]["custoMilheiroTotal"] == pytest.approx(17.5)
        assert data["destCia"] == "smiles"
        assert len(data["itens"]) == 1

    def test_salvar_sem_id_usa_proximo(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)

        sem_id = {**compra_nova}
        sem_id.pop("id")
        response = client.post("/compras/", json=sem_id)
        assert response.status_code == 200
        assert response.json()["id"] == "0002"

    def test_salvar_substitui_existente(self, client, db_session, compra_nova, item_compra):
        client.post("/compras/", json=compra_nova)
        client.post("/compras/", json={**compra_nova, "itens": [item_compra]})

        assert db_session.query(Compra).count() == 1
        data = client.get("/compras/0001").json()
        assert data["totais"]["totalCIA"] == 5000
        assert data["modo"] == "compra"

    def test_salvar_status_invalido(self, client, compra_nova):
        response = client.post("/compras/", json={**compra_nova, "statusPontos": "xpto"})
        assert response.status_code == 400


class TestComprasConsulta:
    """Testes para GET /compras."""

    @pytest.fixture
    def tres_compras(self, client, compra_nova, compra_antiga, item_compra):
        client.post("/compras/", json=compra_nova)
        client.post("/compras/", json=compra_antiga)
        client.post(
            "/compras/",
            json={
                "id": "0003",
                "dataCompra": "2025-10-01",
                "cedenteId": "CED03",
                "cedenteNome": "Ana Prado",
                "itens": [item_compra],
            },
        )

    def test_lista_vazia(self, client):
        response = client.get("/compras/")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "total": 0, "items": []}

    def test_ordenacao_por_data(self, client, tres_compras):
        data = client.get("/compras/").json()
        assert data["total"] == 3
        assert [c["id"] for c in data["items"]] == ["0003", "0001", "0002"]

    def test_filtro_cia(self, client, tres_compras):
        """cia casa ciaCompra (compras) ou destCia (transferências)."""
        data = client.get("/compras/?cia=latam").json()
        assert {c["id"] for c in data["items"]} == {"0001", "0003"}

    def test_filtros_modo_e_origem(self, client, tres_compras):
        assert client.get("/compras/?modo=compra").json()["total"] == 1
        assert client.get("/compras/?origem=esfera").json()["items"][0]["id"] == "0002"

    def test_busca_por_cedente(self, client, tres_compras):
        data = client.get("/compras/?q=maria").json()
        assert [c["id"] for c in data["items"]] == ["0001"]

    def test_busca_curingas_sao_texto(self, client, tres_compras):
        """`%` e `_` na busca casam só com o próprio caractere."""
        assert client.get("/compras/?q=%25").json()["total"] == 0
        assert client.get("/compras/?q=_aria").json()["total"] == 0

    def test_intervalo_de_datas(self, client, tres_compras):
        data = client.get("/compras/?start=2025-09-01&end=2025-09-30").json()
        assert [c["id"] for c in data["items"]] == ["0001"]

    def test_paginacao(self, client, tres_compras):
        data = client.get("/compras/?offset=1&limit=1").json()
        assert data["total"] == 3
        assert [c["id"] for c in data["items"]] == ["0001"]

    def test_limite_maximo(self, client):
        response = client.get("/compras/?limit=500")
        assert response.status_code == 422

    def test_compra_nao_encontrada(self, client):
        response = client.get("/compras/9999")
        assert response.status_code == 404
        assert "não encontrada" in response.json()["detail"]

    def test_next_id(self, client, tres_compras):
        data = client.get("/compras/next-id").json()
        assert data == {"ok": True, "nextId": "0004", "data": {"nextId": "0004"}}

    def test_next_id_sem_compras(self, client):
        assert client.get("/compras/next-id").json()["nextId"] == "0001"


class TestComprasPatch:
    """Testes para PATCH /compras."""

    def test_patch_status(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)
        antes = client.get("/compras/0001").json()

        response = client.patch("/compras/0001", json={"statusPontos": "liberados"})
        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["id"] == "0001"
        assert data["data"]["statusPontos"] == "liberados"
        assert data["data"]["totais"] == antes["totais"]
        assert data["data"]["itens"] == antes["itens"]

    def test_patch_por_query(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)
        response = client.patch("/compras/?id=0001", json={"statusPontos": "liberados"})
        assert response.status_code == 200
        assert client.get("/compras/0001").json()["statusPontos"] == "liberados"

    def test_patch_ignora_campos_desconhecidos(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)
        response = client.patch("/compras/0001", json={"foo": 1, "cedenteNome": "Maria S."})
        data = response.json()["data"]
        assert "foo" not in data
        assert data["cedenteNome"] == "Maria S."

    def test_patch_itens_mistos(self, client, compra_nova, item_transferencia, item_compra):
        client.post("/compras/", json=compra_nova)
        response = client.patch(
            "/compras/0001", json={"itens": [item_transferencia, item_compra]}
        )
        data = response.json()["data"]
        assert data["totais"]["totalCIA"] == 17000
        assert data["modo"] == "transferencia"
        assert data["destCia"] == "latam"
        assert data["ciaCompra"] is None

    def test_patch_clube_sai_do_filtro_de_transferencia(self, client, compra_nova):
        """Compra que deixou de ser transferência não aparece mais no filtro."""
        client.post("/compras/", json=compra_nova)
        clube = {"kind": "clube", "data": {"programa": "latam", "pontos": 1000, "valor": 40}}
        client.patch("/compras/0001", json={"itens": [clube]})

        assert client.get("/compras/?modo=transferencia&cia=latam").json()["total"] == 0
        assert client.get("/compras/0001").json()["modo"] == "clube"

    def test_patch_sem_id(self, client):
        response = client.patch("/compras/", json={"statusPontos": "liberados"})
        assert response.status_code == 400

    def test_patch_status_invalido(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)
        response = client.patch("/compras/0001", json={"statusPontos": "xpto"})
        assert response.status_code == 400

    def test_patch_nao_encontrada(self, client):
        response = client.patch("/compras/9999", json={"statusPontos": "liberados"})
        assert response.status_code == 404


class TestComprasDelete:
    """Testes para DELETE /compras."""

    def test_delete(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)
        response = client.delete("/compras/0001")
        assert response.status_code == 200
        assert response.json() == {"ok": True, "deleted": "0001"}
        assert client.get("/compras/0001").status_code == 404

    def test_delete_por_query(self, client, compra_nova):
        client.post("/compras/", json=compra_nova)
        response = client.delete("/compras/?id=0001")
        assert response.json()["deleted"] == "0001"

    def test_delete_sem_id(self, client):
        assert client.delete("/compras/").status_code == 400

    def test_delete_nao_encontrada(self, client):
        assert client.delete("/compras/9999").status_code == 404
