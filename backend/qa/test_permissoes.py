"""
Testes da tabela de permissões por papel.
"""
import pytest

from agroestoque.domain.enums import UserRole
from agroestoque.domain.models import Fazenda, Produto, User
from agroestoque.domain.models_estoque import Entrada
from agroestoque.application.errors import PermissaoNegadaError
from agroestoque.security.auth import Sessao
from agroestoque.security.permissions import (
    decide, exigir, pode, tipo_do_sujeito, MANAGE, CREATE, READ, UPDATE, DELETE, ALL,
)

USER_ID = "u-1"
OUTRO_ID = "u-2"


class TestAdmin:
    @pytest.mark.parametrize("acao", [READ, CREATE, UPDATE, DELETE, MANAGE])
    def test_admin_pode_tudo(self, acao):
        assert decide(UserRole.ADMIN, acao, "Entrada", USER_ID)
        assert decide(UserRole.ADMIN, acao, ALL, USER_ID)
        assert decide(UserRole.ADMIN, acao, Entrada(user_id=OUTRO_ID), USER_ID)


class TestUsuarioComum:
    @pytest.mark.parametrize("sujeito", ["Entrada", "Saida", "Fornecedor", "Produto", "Talhao"])
    def test_ler_e_criar_cadastros(self, sujeito):
        assert decide(UserRole.USER, READ, sujeito, USER_ID)
        assert decide(UserRole.USER, CREATE, sujeito, USER_ID)

    @pytest.mark.parametrize("acao", [READ, CREATE, UPDATE, DELETE])
    def test_fazendas_somente_admin(self, acao):
        assert not decide(UserRole.USER, acao, "Fazenda", USER_ID)
        assert not decide(UserRole.USER, acao, Fazenda(user_id=USER_ID), USER_ID)

    def test_editar_proprio_registro(self):
        entrada = Entrada(user_id=USER_ID)
        assert decide(UserRole.USER, UPDATE, entrada, USER_ID)
        assert decide(UserRole.USER, DELETE, entrada, USER_ID)

    def test_editar_registro_de_outro_negado(self):
        entrada = Entrada(user_id=OUTRO_ID)
        assert not decide(UserRole.USER, UPDATE, entrada, USER_ID)
        assert not decide(UserRole.USER, DELETE, entrada, USER_ID)

    def test_regra_condicional_nao_casa_com_nome_do_tipo(self):
        assert not decide(UserRole.USER, UPDATE, "Entrada", USER_ID)
        assert not decide(UserRole.USER, DELETE, "Produto", USER_ID)

    def test_sem_manage(self):
        assert not decide(UserRole.USER, MANAGE, ALL, USER_ID)
        assert not decide(UserRole.USER, CREATE, "Usuario", USER_ID)

    def test_proprio_usuario(self):
        assert decide(UserRole.USER, READ, User(id=USER_ID), USER_ID)
        assert decide(UserRole.USER, UPDATE, User(id=USER_ID), USER_ID)
        assert not decide(UserRole.USER, READ, User(id=OUTRO_ID), USER_ID)
        assert not decide(UserRole.USER, DELETE, User(id=USER_ID), USER_ID)

    def test_instancia_como_dict(self):
        registro = {"__typename": "Produto", "user_id": USER_ID}
        assert tipo_do_sujeito(registro) == "Produto"
        assert decide(UserRole.USER, UPDATE, registro, USER_ID)
        assert not decide(UserRole.USER, UPDATE, {**registro, "user_id": OUTRO_ID}, USER_ID)


class TestSessao:
    def test_pode_e_exigir(self):
        sessao = Sessao(user_id=USER_ID, company_id="c-1", role=UserRole.USER)
        produto = Produto(user_id=OUTRO_ID)
        assert pode(sessao, READ, produto)
        with pytest.raises(PermissaoNegadaError):
            exigir(sessao, UPDATE, produto)

    def test_tipo_de_instancia_orm(self):
        assert tipo_do_sujeito(Produto()) == "Produto"
        assert tipo_do_sujeito(User()) == "Usuario"
