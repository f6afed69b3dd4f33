"""
Testes de API - Entradas, saídas, estoque e painel
"""


def _compra(client, headers, produto_id, fornecedor_id, quantidade=10, valor_unitario=5):
    return client.post("/entradas", headers=headers, json={
        "tipo": "COMPRA",
        "quantidade": quantidade,
        "valor_unitario": valor_unitario,
        "produto_id": produto_id,
        "fornecedor_id": fornecedor_id,
    })


def _saida(client, headers, produto_id, quantidade):
    return client.post("/saidas", headers=headers, json={
        "tipo": "TRANSFERENCIA_NEGATIVA",
        "quantidade": quantidade,
        "produto_id": produto_id,
    })


def _estoque_do_produto(client, headers, produto_id):
    r = client.get(f"/estoque?produto_id={produto_id}", headers=headers)
    assert r.status_code == 200
    return r.json()["data"][0]


class TestMovimentosAPI:
    def test_fluxo_compra_saida_e_reversao(self, client, empresa_api, produto_api, fornecedor_api):
        headers = empresa_api["operador_headers"]
        r = _compra(client, headers, produto_api["id"], fornecedor_api["id"])
        assert r.status_code == 201
        entrada = r.json()
        assert entrada["valor_total"] == 50.0
        assert entrada["user_id"] == empresa_api["operador"]["id"]

        estoque = _estoque_do_produto(client, headers, produto_api["id"])
        assert estoque["quantidade"] == 10.0
        assert estoque["valor_medio"] == 5.0

        assert _saida(client, headers, produto_api["id"], 4).status_code == 201

        r = client.delete(f"/entradas/{entrada['id']}", headers=headers)
        assert r.status_code == 409
        assert r.json()["disponivel"] == 6.0
        assert "reverter" in r.json()["detail"]
        assert _estoque_do_produto(client, headers, produto_api["id"])["quantidade"] == 6.0

    def test_saida_insuficiente(self, client, empresa_api, produto_api, fornecedor_api):
        headers = empresa_api["operador_headers"]
        _compra(client, headers, produto_api["id"], fornecedor_api["id"], quantidade=3)
        r = _saida(client, headers, produto_api["id"], 3.5)
        assert r.status_code == 400
        assert r.json()["disponivel"] == 3.0
        assert client.get("/saidas", headers=headers).json()["pagination"]["total"] == 0

    def test_compra_sem_fornecedor(self, client, empresa_api, produto_api):
        r = client.post("/entradas", headers=empresa_api["operador_headers"], json={
            "tipo": "COMPRA", "quantidade": 1, "valor_unitario": 2, "produto_id": produto_api["id"],
        })
        assert r.status_code == 400
        assert r.json()["campos"] == ["fornecedor_id"]

    def test_quantidade_que_arredonda_para_zero(self, client, empresa_api, produto_api, fornecedor_api):
        headers = empresa_api["operador_headers"]
        r = _compra(client, headers, produto_api["id"], fornecedor_api["id"], quantidade=0.00001)
        assert r.status_code == 400
        assert r.json()["campos"] == ["quantidade"]
        r = _saida(client, headers, produto_api["id"], 0.00001)
        assert r.status_code == 400
        assert client.get("/entradas", headers=headers).json()["pagination"]["total"] == 0

    def test_tipo_nulo_na_edicao(self, client, empresa_api, produto_api, fornecedor_api):
        headers = empresa_api["operador_headers"]
        _compra(client, headers, produto_api["id"], fornecedor_api["id"])
        saida = _saida(client, headers, produto_api["id"], 2).json()
        r = client.put(f"/saidas/{saida['id']}", headers=headers, json={"tipo": None})
        assert r.status_code == 400
        assert r.json()["campos"] == ["tipo"]
        assert client.get(f"/saidas/{saida['id']}", headers=headers).json()["tipo"] == "TRANSFERENCIA_NEGATIVA"

    def test_operador_nao_edita_registro_do_admin(self, client, empresa_api, produto_api, fornecedor_api):
        entrada = _compra(client, empresa_api["admin_headers"], produto_api["id"], fornecedor_api["id"]).json()
        r = client.put(f"/entradas/{entrada['id']}", headers=empresa_api["operador_headers"], json={"quantidade": 12})
        assert r.status_code == 403

        r = client.put(f"/entradas/{entrada['id']}", headers=empresa_api["admin_headers"], json={"quantidade": 12})
        assert r.status_code == 200
        assert r.json()["quantidade"] == 12.0
        assert r.json()["valor_total"] == 60.0

    def test_excluir_saida_devolve_estoque(self, client, empresa_api, produto_api, fornecedor_api):
        headers = empresa_api["operador_headers"]
        _compra(client, headers, produto_api["id"], fornecedor_api["id"])
        saida = _saida(client, headers, produto_api["id"], 10).json()
        assert _estoque_do_produto(client, headers, produto_api["id"])["status_estoque"] == "SEM_ESTOQUE"

        r = client.delete(f"/saidas/{saida['id']}", headers=headers)
        assert r.status_code == 200
        assert _estoque_do_produto(client, headers, produto_api["id"])["quantidade"] == 10.0

    def test_filtros_invalidos(self, client, empresa_api):
        headers = empresa_api["operador_headers"]
        r = client.get("/entradas?data_inicio=2026-10-10T00:00:00&data_fim=2026-01-01T00:00:00", headers=headers)
        assert r.status_code == 400
        assert client.get("/saidas?limit=1000", headers=headers).status_code == 400

    def test_outra_empresa_nao_ve_movimentos(self, client, empresa_api, produto_api, fornecedor_api):
        entrada = _compra(client, empresa_api["operador_headers"], produto_api["id"], fornecedor_api["id"]).json()
        r = client.post("/companias", json={
            "name": "Granja Esperança",
            "cnpj": "11.222.333/0001-81",
            "admin_name": "Rui Teles",
            "admin_email": "rui@esperanca.com.br",
            "admin_password": "Semente!2026",
        })
        assert r.status_code == 201
        login = client.post("/auth/login", data={"username": "rui@esperanca.com.br", "password": "Semente!2026"})
        headers = {"Authorization": f"Bearer {login.json()['access_token']}"}

        assert client.get(f"/entradas/{entrada['id']}", headers=headers).status_code == 404
        assert client.get("/entradas", headers=headers).json()["pagination"]["total"] == 0
        r = _saida(client, headers, produto_api["id"], 1)
        assert r.status_code == 404


class TestEstoqueAPI:
    def test_ajuste_e_minimo(self, client, empresa_api, produto_api):
        headers = empresa_api["operador_headers"]
        r = client.post("/estoque/ajuste", headers=headers, json={
            "produto_id": produto_api["id"], "quantidade_ajuste": 8, "motivo": "Inventário",
        })
        assert r.status_code == 200
        assert r.json()["nova_quantidade"] == 8.0
        assert r.json()["entrada_id"]

        # Produto criado pelo admin: o operador não altera o mínimo
        r = client.put(f"/estoque/{produto_api['id']}/minimo", headers=headers, json={"quantidade_minima": 10})
        assert r.status_code == 403
        r = client.put(
            f"/estoque/{produto_api['id']}/minimo",
            headers=empresa_api["admin_headers"],
            json={"quantidade_minima": 10},
        )
        assert r.status_code == 200
        assert r.json()["quantidade_minima"] == 10.0

        baixo = client.get("/dashboard/estoque-baixo", headers=headers).json()
        assert baixo[0]["produto"]["id"] == produto_api["id"]
        assert baixo[0]["diferenca"] == 2.0

    def test_painel(self, client, empresa_api, produto_api, fornecedor_api):
        headers = empresa_api["operador_headers"]
        _compra(client, headers, produto_api["id"], fornecedor_api["id"])
        stats = client.get("/dashboard/stats", headers=headers).json()
        assert stats["total_produtos"] == 1
        assert stats["entradas_mes"] == 1
        assert stats["valor_total_estoque"] == 50.0

        recentes = client.get("/dashboard/movimentacoes-recentes?limit=5", headers=headers).json()
        assert recentes[0]["tipo"] == "entrada"
        assert client.get("/dashboard/movimentacoes-recentes?limit=0", headers=headers).status_code == 422

    def test_sem_autenticacao(self, client):
        assert client.get("/estoque").status_code == 401
        assert client.get("/dashboard/stats").status_code == 401
