"""
Painel: estatísticas do mês, produtos abaixo do mínimo e últimas movimentações.
"""
from datetime import datetime
from decimal import Decimal
from typing import List

from sqlalchemy import func

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.models import Produto, Talhao, Fornecedor
from .dtos import DashboardStats, EstoqueBaixoOut, MovimentacaoRecente, ProdutoResumo


def _inicio_do_mes(agora: datetime) -> datetime:
    return agora.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class DashboardService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def _contar_ativos(self, modelo, company_id: str) -> int:
        return self.uow.db.query(func.count(modelo.id)).filter(
            modelo.company_id == company_id, modelo.ativo == True  # noqa: E712
        ).scalar() or 0

    def estatisticas(self, company_id: str) -> DashboardStats:
        inicio = _inicio_do_mes(datetime.now())
        estoques = self.uow.estoques.list_ativos(company_id)
        return DashboardStats(
            total_produtos=self._contar_ativos(Produto, company_id),
            total_talhoes=self._contar_ativos(Talhao, company_id),
            total_fornecedores=self._contar_ativos(Fornecedor, company_id),
            produtos_estoque_baixo=sum(1 for e in estoques if e.quantidade <= (e.quantidade_minima or 0)),
            entradas_mes=self.uow.entradas.contar_desde(company_id, inicio),
            saidas_mes=self.uow.saidas.contar_desde(company_id, inicio),
            valor_total_estoque=float(sum((e.quantidade * e.valor_medio for e in estoques), Decimal("0"))),
        )

    def estoque_baixo(self, company_id: str) -> List[EstoqueBaixoOut]:
        itens = []
        for e in self.uow.estoques.list_ativos(company_id):
            minima = e.quantidade_minima or Decimal("0")
            if e.quantidade <= minima:
                itens.append(EstoqueBaixoOut(
                    produto=ProdutoResumo.model_validate(e.produto),
                    quantidade_atual=e.quantidade,
                    quantidade_minima=minima,
                    diferenca=minima - e.quantidade,
                ))
        # Maior déficit primeiro
        return sorted(itens, key=lambda i: i.diferenca, reverse=True)

    def movimentacoes_recentes(self, company_id: str, limit: int = 10) -> List[MovimentacaoRecente]:
        movimentos = [
            MovimentacaoRecente(
                id=e.id, tipo="entrada", produto=e.produto.nome, quantidade=e.quantidade,
                data=e.data_entrada, observacoes=e.observacoes,
            )
            for e in self.uow.entradas.recentes(company_id, limit)
        ] + [
            MovimentacaoRecente(
                id=s.id, tipo="saida", produto=s.produto.nome, quantidade=s.quantidade,
                data=s.data_saida, observacoes=s.observacoes,
            )
            for s in self.uow.saidas.recentes(company_id, limit)
        ]
        movimentos.sort(key=lambda m: m.data, reverse=True)
        return movimentos[:limit]
