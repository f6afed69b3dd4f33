"""
Testes de cadastro de empresa e diretório de usuários.
"""
import pytest

from agroestoque.domain.enums import UserRole
from agroestoque.application.dtos import CompanyIn, UserIn, UserUpdate, Paginacao, ProdutoIn
from agroestoque.application.errors import NaoEncontradoError, PermissaoNegadaError, ValidacaoError
from agroestoque.application.services_usuarios import CompanyService, UsuarioService
from agroestoque.application.services_cadastros import ProdutoService
from agroestoque.security.auth import verify_password

SENHA = "Plantio@2026"


def _company_in(**kwargs):
    dados = dict(
        name="Agropecuária Horizonte",
        cnpj="11.222.333/0001-81",
        admin_name="Maria Souza",
        admin_email="Maria@Horizonte.com.br",
        admin_password=SENHA,
    )
    dados.update(kwargs)
    return CompanyIn(**dados)


class TestRegistroEmpresa:
    def test_registrar_cria_admin(self, uow):
        company, admin = CompanyService(uow).registrar(_company_in())
        assert company.cnpj == "11222333000181"
        assert admin.role == UserRole.ADMIN
        assert admin.company_id == company.id
        assert admin.email == "maria@horizonte.com.br"
        assert verify_password(SENHA, admin.password_hash)

    def test_documento_repetido(self, uow):
        CompanyService(uow).registrar(_company_in())
        with pytest.raises(ValidacaoError):
            CompanyService(uow).registrar(_company_in(admin_email="outro@horizonte.com.br"))

    def test_senha_fraca(self, uow):
        with pytest.raises(ValidacaoError) as exc:
            CompanyService(uow).registrar(_company_in(admin_password="fraca123"))
        assert exc.value.campos == ["password"]

    def test_cnpj_invalido(self, uow):
        with pytest.raises(ValidacaoError):
            CompanyService(uow).registrar(_company_in(cnpj="11.222.333/0001-00"))


class TestUsuarios:
    def test_criar_e_listar(self, uow, empresa, outra_empresa):
        service = UsuarioService(uow)
        novo = service.criar(empresa.id, empresa.admin_id, UserIn(
            name="João Lima", email="joao@boavista.com.br", password=SENHA,
        ))
        assert novo.role == UserRole.USER

        pagina = service.listar(empresa.id, "joão", Paginacao())
        assert [u.id for u in pagina.data] == [novo.id]
        assert service.listar(empresa.id, None, Paginacao()).pagination.total == 3
        with pytest.raises(NaoEncontradoError):
            service.obter(outra_empresa.id, novo.id)

    def test_email_duplicado(self, uow, empresa):
        with pytest.raises(ValidacaoError):
            UsuarioService(uow).criar(empresa.id, empresa.admin_id, UserIn(
                name="Repetido", email="operador@boavista.com.br", password=SENHA,
            ))

    def test_usuario_comum_nao_muda_papel(self, uow, empresa):
        with pytest.raises(PermissaoNegadaError):
            UsuarioService(uow).atualizar(empresa.id, empresa.user_id, False, empresa.user_id, UserUpdate(
                role=UserRole.ADMIN,
            ))

    def test_admin_muda_papel(self, uow, empresa):
        user = UsuarioService(uow).atualizar(empresa.id, empresa.admin_id, True, empresa.user_id, UserUpdate(
            role=UserRole.ADMIN,
        ))
        assert user.role == UserRole.ADMIN

    def test_trocar_senha(self, uow, empresa):
        user = UsuarioService(uow).atualizar(empresa.id, empresa.user_id, False, empresa.user_id, UserUpdate(
            password="Colheita#2027",
        ))
        assert verify_password("Colheita#2027", user.password_hash)

    def test_nao_exclui_a_si_mesmo(self, uow, empresa):
        with pytest.raises(ValidacaoError):
            UsuarioService(uow).excluir(empresa.id, empresa.admin_id, empresa.admin_id)

    def test_nao_exclui_com_registros(self, uow, empresa):
        ProdutoService(uow).criar(empresa.id, empresa.user_id, ProdutoIn(nome="Calcário", unidade="T"))
        with pytest.raises(ValidacaoError):
            UsuarioService(uow).excluir(empresa.id, empresa.admin_id, empresa.user_id)

    def test_excluir(self, uow, empresa):
        UsuarioService(uow).excluir(empresa.id, empresa.admin_id, empresa.user_id)
        with pytest.raises(NaoEncontradoError):
            UsuarioService(uow).obter(empresa.id, empresa.user_id)
