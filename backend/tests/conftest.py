"""Configuração de fixtures para testes."""

import os

# Antes de importar a aplicação: banco em memória e sem rate limit
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("ENV", "development")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trademiles.database import Base, get_db
from trademiles.main import app


# Banco de dados em memória para testes
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Cria uma sessão de banco de dados para testes."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """Cria um cliente de teste com banco de dados isolado."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def item_transferencia():
    """Transferência Livelo -> Latam com 20% de bônus."""
    return {
        "kind": "transferencia",
        "data": {
            "origem": "livelo",
            "destino": "latam",
            "modo": "pontos",
            "pontosUsados": 10000,
            "bonusPct": 20,
            "valorPago": 500,
        },
    }


@pytest.fixture
def item_compra():
    """Compra direta de 5.000 pontos Latam."""
    return {
        "kind": "compra",
        "data": {"programa": "latam", "pontos": 5000, "bonusPct": 0, "valor": 250},
    }


@pytest.fixture
def compra_nova(item_transferencia):
    """Compra no formato novo (itens)."""
    return {
        "id": "0001",
        "dataCompra": "2025-09-20",
        "statusPontos": "aguardando",
        "cedenteId": "CED01",
        "cedenteNome": "Maria Souza",
        "itens": [item_transferencia],
    }


@pytest.fixture
def compra_antiga():
    """Compra no formato antigo (modo/calculos no topo)."""
    return {
        "id": "0002",
        "dataCompra": "2025-08-01",
        "modo": "transferencia",
        "origem": "esfera",
        "destCia": "smiles",
        "cedenteId": "CED02",
        "cedenteNome": "João Lima",
        "calculos": {
            "totalPts": 30000,
            "custoMilheiro": 17.5,
            "custoTotal": 525,
            "lucroTotal": 90,
        },
    }
