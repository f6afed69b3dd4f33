"""
Testes de consulta de estoque, ajuste de inventário, estoque mínimo e painel.
"""
from decimal import Decimal

import pytest

from agroestoque.domain.enums import StatusEstoque, TipoEntrada, TipoSaida
from agroestoque.application.dtos import AjusteEstoqueIn, EntradaIn, SaidaIn, FiltroEstoque
from agroestoque.application.errors import EstoqueInsuficienteError, NaoEncontradoError, ValidacaoError
from agroestoque.application.services_estoque import EstoqueService, status_estoque
from agroestoque.application.services_entradas import EntradaService
from agroestoque.application.services_saidas import SaidaService
from agroestoque.application.services_dashboard import DashboardService


@pytest.fixture
def cenario(uow, empresa, produto, outro_produto, fornecedor):
    """Ureia: 10 @ 5 com mínimo 20. Glifosato: sem estoque."""
    EntradaService(uow).criar(empresa.id, empresa.user_id, EntradaIn(
        tipo=TipoEntrada.COMPRA, quantidade=Decimal("10"), valor_unitario=Decimal("5"),
        produto_id=produto.id, fornecedor_id=fornecedor.id,
    ))
    EstoqueService(uow).definir_minimo(empresa.id, empresa.admin_id, produto.id, Decimal("20"))
    return produto, outro_produto


def test_status_estoque():
    assert status_estoque(Decimal("0"), Decimal("5")) == StatusEstoque.SEM_ESTOQUE
    assert status_estoque(Decimal("4"), Decimal("5")) == StatusEstoque.ESTOQUE_BAIXO
    assert status_estoque(Decimal("5"), Decimal("5")) == StatusEstoque.ESTOQUE_OK


class TestConsulta:
    def test_lista_com_status_e_resumo(self, uow, empresa, cenario):
        ureia, glifosato = cenario
        pagina = EstoqueService(uow).consultar(empresa.id, FiltroEstoque())

        assert [i.produto_id for i in pagina.data] == [glifosato.id, ureia.id]
        assert pagina.data[0].status_estoque == StatusEstoque.SEM_ESTOQUE
        assert pagina.data[1].status_estoque == StatusEstoque.ESTOQUE_BAIXO
        assert pagina.data[1].valor_total_item == 50.0
        assert pagina.data[1].total_entradas == 1

        resumo = pagina.resumo
        assert resumo.total_produtos == 2
        assert resumo.total_itens_estoque == 10.0
        assert resumo.valor_total_estoque == 50.0
        assert resumo.produtos_sem_estoque == 1
        assert resumo.produtos_estoque_baixo == 1

    def test_filtros(self, uow, empresa, cenario):
        ureia, _ = cenario
        service = EstoqueService(uow)
        assert service.consultar(empresa.id, FiltroEstoque(somente_com_estoque=True)).pagination.total == 1
        assert service.consultar(empresa.id, FiltroEstoque(somente_estoque_baixo=True)).data[0].produto_id == ureia.id
        assert service.consultar(empresa.id, FiltroEstoque(search="glifo")).pagination.total == 1

    def test_faixa_invalida(self):
        with pytest.raises(ValueError):
            FiltroEstoque(estoque_minimo=Decimal("10"), estoque_maximo=Decimal("1"))

    def test_outra_empresa_nao_ve(self, uow, outra_empresa, cenario):
        assert EstoqueService(uow).consultar(outra_empresa.id, FiltroEstoque()).pagination.total == 0


class TestAjuste:
    def test_ajuste_positivo_registra_entrada(self, uow, empresa, cenario):
        ureia, _ = cenario
        out = EstoqueService(uow).ajustar(empresa.id, empresa.admin_id, AjusteEstoqueIn(
            produto_id=ureia.id, quantidade_ajuste=Decimal("5"), motivo="Contagem",
        ))
        assert out.quantidade_anterior == 10.0
        assert out.nova_quantidade == 15.0
        assert out.saida_id is None
        entrada = EntradaService(uow).obter(empresa.id, out.entrada_id)
        assert entrada.tipo == TipoEntrada.TRANSFERENCIA_POSITIVA
        assert "Contagem" in entrada.observacoes
        assert out.estoque.valor_medio == 5.0

    def test_ajuste_negativo_registra_saida(self, uow, empresa, cenario):
        ureia, _ = cenario
        out = EstoqueService(uow).ajustar(empresa.id, empresa.admin_id, AjusteEstoqueIn(
            produto_id=ureia.id, quantidade_ajuste=Decimal("-3"),
        ))
        assert out.nova_quantidade == 7.0
        assert SaidaService(uow).obter(empresa.id, out.saida_id).tipo == TipoSaida.TRANSFERENCIA_NEGATIVA

    def test_ajuste_negativo_maior_que_estoque(self, uow, empresa, cenario):
        ureia, _ = cenario
        with pytest.raises(EstoqueInsuficienteError):
            EstoqueService(uow).ajustar(empresa.id, empresa.admin_id, AjusteEstoqueIn(
                produto_id=ureia.id, quantidade_ajuste=Decimal("-20"),
            ))

    def test_ajuste_zero(self, uow, empresa, cenario):
        ureia, _ = cenario
        with pytest.raises(ValidacaoError):
            EstoqueService(uow).ajustar(empresa.id, empresa.admin_id, AjusteEstoqueIn(
                produto_id=ureia.id, quantidade_ajuste=Decimal("0"),
            ))

    def test_ajuste_produto_de_outra_empresa(self, uow, outra_empresa, cenario):
        ureia, _ = cenario
        with pytest.raises(NaoEncontradoError):
            EstoqueService(uow).ajustar(outra_empresa.id, outra_empresa.admin_id, AjusteEstoqueIn(
                produto_id=ureia.id, quantidade_ajuste=Decimal("1"),
            ))


class TestMinimo:
    def test_minimo_negativo(self, uow, empresa, produto):
        with pytest.raises(ValidacaoError):
            EstoqueService(uow).definir_minimo(empresa.id, empresa.admin_id, produto.id, Decimal("-1"))

    def test_minimo_atualizado(self, uow, empresa, produto):
        estoque = EstoqueService(uow).definir_minimo(empresa.id, empresa.admin_id, produto.id, Decimal("7.5"))
        assert estoque.quantidade_minima == Decimal("7.5")


class TestPainel:
    def test_estatisticas(self, uow, empresa, cenario):
        stats = DashboardService(uow).estatisticas(empresa.id)
        assert stats.total_produtos == 2
        assert stats.total_fornecedores == 1
        assert stats.total_talhoes == 0
        assert stats.entradas_mes == 1
        assert stats.saidas_mes == 0
        # Quantidade igual ao mínimo (0 <= 0) também conta como baixo
        assert stats.produtos_estoque_baixo == 2
        assert stats.valor_total_estoque == 50.0

    def test_estoque_baixo_maior_deficit_primeiro(self, uow, empresa, cenario):
        ureia, glifosato = cenario
        itens = DashboardService(uow).estoque_baixo(empresa.id)
        assert [i.produto.id for i in itens] == [ureia.id, glifosato.id]
        assert itens[0].diferenca == 10.0

    def test_movimentacoes_recentes(self, uow, empresa, cenario):
        ureia, _ = cenario
        SaidaService(uow).criar(empresa.id, empresa.user_id, SaidaIn(
            tipo=TipoSaida.TRANSFERENCIA_NEGATIVA, quantidade=Decimal("1"), produto_id=ureia.id,
        ))
        movimentos = DashboardService(uow).movimentacoes_recentes(empresa.id, limit=5)
        assert {m.tipo for m in movimentos} == {"entrada", "saida"}
        assert all(m.produto == "Ureia 45%" for m in movimentos)
        assert len(DashboardService(uow).movimentacoes_recentes(empresa.id, limit=1)) == 1
