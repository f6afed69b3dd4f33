"""
Fixtures para testes de integração da API.
Usa o TestClient do FastAPI contra a app real, com get_db apontando para o
SQLite em memória do teste.
"""
import pytest
from fastapi.testclient import TestClient

from agroestoque.main import app
from agroestoque.dependencies import get_db

SENHA_ADMIN = "Plantio@2026"
SENHA_OPERADOR = "Colheita#2027"


@pytest.fixture
def client(session_factory):
    """Cliente HTTP sem autenticação."""
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _login(client, email: str, password: str) -> dict:
    response = client.post("/auth/login", data={"username": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def empresa_api(client):
    """Empresa registrada pela rota pública, com um ADMIN e um USER."""
    response = client.post("/companias", json={
        "name": "Fazenda Santa Clara",
        "cnpj": "45.723.174/0001-10",
        "admin_name": "Ana Prado",
        "admin_email": "ana@santaclara.com.br",
        "admin_password": SENHA_ADMIN,
    })
    assert response.status_code == 201, response.text
    body = response.json()

    admin_headers = _login(client, "ana@santaclara.com.br", SENHA_ADMIN)
    response = client.post("/usuarios", headers=admin_headers, json={
        "name": "Pedro Campos",
        "email": "pedro@santaclara.com.br",
        "password": SENHA_OPERADOR,
    })
    assert response.status_code == 201, response.text
    operador = response.json()

    return {
        "company": body["company"],
        "admin": body["admin"],
        "operador": operador,
        "admin_headers": admin_headers,
        "operador_headers": _login(client, "pedro@santaclara.com.br", SENHA_OPERADOR),
    }


@pytest.fixture
def produto_api(client, empresa_api):
    response = client.post("/produtos", headers=empresa_api["admin_headers"], json={
        "nome": "Sulfato de amônio", "unidade": "KG", "categoria": "Fertilizante",
    })
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def fornecedor_api(client, empresa_api):
    response = client.post("/fornecedores", headers=empresa_api["admin_headers"], json={
        "nome": "Distribuidora Cerrado", "cpf": "529.982.247-25",
    })
    assert response.status_code == 201, response.text
    return response.json()
