"""
Testes de API - Autenticação e empresas
"""
from agroestoque.config import settings


class TestAuthAPI:
    """Endpoints de autenticação"""

    def test_login_credenciais_invalidas(self, client, empresa_api):
        """POST /auth/login com senha errada retorna 401"""
        r = client.post("/auth/login", data={"username": "ana@santaclara.com.br", "password": "errada"})
        assert r.status_code == 401

    def test_login_usuario_inexistente(self, client):
        r = client.post("/auth/login", data={"username": "ninguem@exemplo.com", "password": "x"})
        assert r.status_code == 401

    def test_login_sem_dados(self, client):
        """POST /auth/login sem formulário retorna 422"""
        r = client.post("/auth/login")
        assert r.status_code == 422

    def test_login_grava_cookie(self, client, empresa_api):
        r = client.post("/auth/login", data={"username": "ANA@santaclara.com.br", "password": "Plantio@2026"})
        assert r.status_code == 200
        body = r.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["role"] == "ADMIN"
        assert settings.auth_cookie_name in r.cookies

    def test_me_por_cookie(self, client, empresa_api):
        client.post("/auth/login", data={"username": "pedro@santaclara.com.br", "password": "Colheita#2027"})
        r = client.get("/auth/me")
        assert r.status_code == 200
        assert r.json()["email"] == "pedro@santaclara.com.br"

    def test_me_sem_token(self, client):
        """GET /auth/me sem token retorna 401"""
        assert client.get("/auth/me").status_code == 401

    def test_token_invalido(self, client):
        r = client.get("/auth/me", headers={"Authorization": "Bearer token-invalido"})
        assert r.status_code == 401


class TestCompaniasAPI:
    def test_registro_validacao(self, client):
        r = client.post("/companias", json={
            "name": "Sem senha forte",
            "admin_name": "X",
            "admin_email": "x@exemplo.com",
            "admin_password": "123",
        })
        assert r.status_code == 400
        assert r.json()["campos"] == ["password"]

    def test_somente_a_propria_empresa(self, client, empresa_api):
        headers = empresa_api["operador_headers"]
        r = client.get("/companias", headers=headers)
        assert [c["id"] for c in r.json()] == [empresa_api["company"]["id"]]
        assert client.get("/companias/outra-empresa", headers=headers).status_code == 404

    def test_atualizar_exige_admin(self, client, empresa_api):
        company_id = empresa_api["company"]["id"]
        r = client.put(f"/companias/{company_id}", headers=empresa_api["operador_headers"], json={"telefone": "1"})
        assert r.status_code == 403
        r = client.put(f"/companias/{company_id}", headers=empresa_api["admin_headers"], json={"telefone": "6299999"})
        assert r.status_code == 200
        assert r.json()["telefone"] == "6299999"


class TestUsuariosAPI:
    def test_operador_nao_cria_usuario(self, client, empresa_api):
        r = client.post("/usuarios", headers=empresa_api["operador_headers"], json={
            "name": "Novo", "email": "novo@santaclara.com.br", "password": "Plantio@2026",
        })
        assert r.status_code == 403

    def test_operador_le_a_si_mesmo(self, client, empresa_api):
        headers = empresa_api["operador_headers"]
        assert client.get(f"/usuarios/{empresa_api['operador']['id']}", headers=headers).status_code == 200
        assert client.get(f"/usuarios/{empresa_api['admin']['id']}", headers=headers).status_code == 403

    def test_admin_exclui_usuario(self, client, empresa_api):
        r = client.delete(f"/usuarios/{empresa_api['operador']['id']}", headers=empresa_api["admin_headers"])
        assert r.status_code == 204

    def test_fazendas_somente_admin(self, client, empresa_api):
        operador = empresa_api["operador_headers"]
        assert client.get("/fazendas", headers=operador).status_code == 403
        assert client.post("/fazendas", headers=operador, json={"name": "Retiro", "area": 40}).status_code == 403
        r = client.post("/fazendas", headers=empresa_api["admin_headers"], json={"name": "Retiro", "area": 40})
        assert r.status_code == 201
        assert client.get("/fazendas", headers=empresa_api["admin_headers"]).status_code == 200
