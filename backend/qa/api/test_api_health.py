"""
Testes de API - Health e disponibilidade
"""


class TestHealthAPI:
    """Endpoints de saúde da aplicação"""

    def test_ready(self, client):
        """GET /health/ready confirma acesso ao banco"""
        r = client.get("/health/ready")
        assert r.status_code == 200
        assert r.json() == {"status": "ok", "database": "ok"}

    def test_headers_de_seguranca(self, client):
        r = client.get("/health/ready")
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.headers["X-Frame-Options"] == "DENY"
