"""
Serviços de Estoque
===================

EstoqueStore é o único ponto que altera a linha agregada de Estoque
(quantidade + custo médio ponderado) de um produto numa empresa. Entradas e
saídas aplicam e revertem seus efeitos exclusivamente por aqui, para que as
fórmulas de custo médio existam num só lugar.

Regras:
- quantidade nunca fica negativa após uma operação concluída
- saídas nunca alteram o custo médio
- reverter uma entrada desfaz a mistura ponderada (mistura inversa), com piso zero
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
import logging

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.models_estoque import Estoque
from ..domain.enums import StatusEstoque
from .dtos import (
    FiltroEstoque, EstoquePage, EstoqueItemOut, ResumoEstoque, Pagina, ProdutoResumo,
    AjusteEstoqueIn, AjusteEstoqueOut, EstoqueOut,
)
from .errors import EstoqueInsuficienteError, NaoEncontradoError, ValidacaoError
from .services_audit import log_audit, MODULE_ESTOQUE, ACTION_ADJUST, ACTION_UPDATE

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
Q_QTD = Decimal("0.0001")
Q_CUSTO = Decimal("0.000001")


def _dec(valor) -> Decimal:
    if valor is None:
        return ZERO
    if isinstance(valor, Decimal):
        return valor
    return Decimal(str(valor))


def quantizar_qtd(valor) -> Decimal:
    return _dec(valor).quantize(Q_QTD)


def quantizar_custo(valor) -> Decimal:
    return _dec(valor).quantize(Q_CUSTO)


def media_ponderada(qtd_atual, custo_atual, qtd_entrada, custo_entrada) -> Decimal:
    """
    Custo médio após somar uma entrada com custo.

    Fórmula: (qtd_atual * custo_atual + qtd_entrada * custo_entrada) / (qtd_atual + qtd_entrada)
    Retorna 0 quando o denominador é <= 0.
    """
    qtd_atual, custo_atual = _dec(qtd_atual), _dec(custo_atual)
    qtd_entrada, custo_entrada = _dec(qtd_entrada), _dec(custo_entrada)
    denominador = qtd_atual + qtd_entrada
    if denominador <= 0:
        return ZERO
    media = (qtd_atual * custo_atual + qtd_entrada * custo_entrada) / denominador
    return quantizar_custo(max(ZERO, media))


def media_revertida(qtd_atual, custo_atual, qtd_removida, custo_removido) -> Decimal:
    """
    Mistura inversa: custo médio de antes da entrada (qtd_removida @ custo_removido).

    Fórmula: (qtd_atual * custo_atual - qtd_removida * custo_removido) / (qtd_atual - qtd_removida)
    Retorna 0 quando não sobra quantidade; nunca negativo.
    """
    qtd_atual, custo_atual = _dec(qtd_atual), _dec(custo_atual)
    qtd_removida, custo_removido = _dec(qtd_removida), _dec(custo_removido)
    restante = qtd_atual - qtd_removida
    if restante <= 0:
        return ZERO
    media = (qtd_atual * custo_atual - qtd_removida * custo_removido) / restante
    return quantizar_custo(max(ZERO, media))


class EstoqueStore:
    """
    Loja do agregado de estoque. Toda leitura feita para decidir uma mutação
    usa lock de linha (SELECT ... FOR UPDATE), mantido até o commit da
    unidade transacional.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def get(self, produto_id: str, company_id: str, lock: bool = False) -> Optional[Estoque]:
        return self.uow.estoques.get(produto_id, company_id, lock=lock)

    def quantidade_atual(self, produto_id: str, company_id: str) -> Decimal:
        estoque = self.get(produto_id, company_id, lock=True)
        return _dec(estoque.quantidade) if estoque else ZERO

    def criar_vazio(self, produto_id: str, company_id: str) -> Estoque:
        estoque = Estoque(
            company_id=company_id,
            produto_id=produto_id,
            quantidade=ZERO,
            quantidade_minima=ZERO,
            valor_medio=ZERO,
            ultima_atualizacao=datetime.now(),
        )
        self.uow.estoques.add(estoque)
        self.uow.db.flush()
        return estoque

    def upsert_apply(
        self,
        produto_id: str,
        company_id: str,
        delta,
        valor_unitario=None,
    ) -> Estoque:
        """
        Soma `delta` à quantidade (negativo para saídas). Com valor_unitario > 0
        recalcula o custo médio ponderado; sem ele o custo não muda.
        Cria o agregado se ainda não existir.
        """
        delta = _dec(delta)
        custo = _dec(valor_unitario) if valor_unitario is not None else None
        estoque = self.get(produto_id, company_id, lock=True)
        agora = datetime.now()

        if estoque is None:
            estoque = Estoque(
                company_id=company_id,
                produto_id=produto_id,
                quantidade=quantizar_qtd(delta),
                quantidade_minima=ZERO,
                valor_medio=quantizar_custo(custo if custo and custo > 0 else ZERO),
                ultima_atualizacao=agora,
            )
            self.uow.estoques.add(estoque)
            self.uow.db.flush()
            logger.debug("Estoque criado produto=%s qtd=%s custo=%s", produto_id, estoque.quantidade, estoque.valor_medio)
            return estoque

        qtd_anterior = _dec(estoque.quantidade)
        custo_anterior = _dec(estoque.valor_medio)
        if custo is not None and custo > 0:
            estoque.valor_medio = media_ponderada(qtd_anterior, custo_anterior, delta, custo)
        estoque.quantidade = quantizar_qtd(qtd_anterior + delta)
        estoque.ultima_atualizacao = agora
        self.uow.db.flush()
        logger.debug(
            "Estoque aplicado produto=%s delta=%s custo=%s -> qtd=%s medio=%s",
            produto_id, delta, custo, estoque.quantidade, estoque.valor_medio,
        )
        return estoque

    def reverse_apply(
        self,
        produto_id: str,
        company_id: str,
        delta,
        valor_unitario=None,
    ) -> Optional[Estoque]:
        """
        Ação compensatória de uma entrada já confirmada: retira `delta` e
        desfaz a mistura de custo. O resultado é limitado a zero em vez de
        falhar.
        """
        delta = _dec(delta)
        custo = _dec(valor_unitario) if valor_unitario is not None else None
        estoque = self.get(produto_id, company_id, lock=True)
        if estoque is None:
            return None

        qtd_anterior = _dec(estoque.quantidade)
        custo_anterior = _dec(estoque.valor_medio)
        nova_qtd = qtd_anterior - delta
        if nova_qtd < 0:
            logger.warning(
                "Reversão maior que o estoque produto=%s atual=%s reverter=%s; limitado a zero",
                produto_id, qtd_anterior, delta,
            )
            nova_qtd = ZERO
        if custo is not None and custo > 0:
            estoque.valor_medio = media_revertida(qtd_anterior, custo_anterior, delta, custo)
        estoque.quantidade = quantizar_qtd(nova_qtd)
        estoque.ultima_atualizacao = datetime.now()
        self.uow.db.flush()
        logger.debug(
            "Estoque revertido produto=%s delta=%s custo=%s -> qtd=%s medio=%s",
            produto_id, delta, custo, estoque.quantidade, estoque.valor_medio,
        )
        return estoque

    def assert_sufficient(self, produto_id: str, company_id: str, quantidade, extra=ZERO) -> Decimal:
        """
        Falha com EstoqueInsuficienteError se (atual + extra) < quantidade.
        `extra` é a quantidade que volta ao estoque por uma reversão no mesmo
        passo (edição de saída). Retorna o disponível.
        """
        disponivel = self.quantidade_atual(produto_id, company_id) + _dec(extra)
        if disponivel < _dec(quantidade):
            logger.warning(
                "Estoque insuficiente produto=%s disponivel=%s solicitado=%s",
                produto_id, disponivel, quantidade,
            )
            raise EstoqueInsuficienteError(disponivel=disponivel)
        return disponivel


def status_estoque(quantidade: Decimal, minima: Decimal) -> StatusEstoque:
    if quantidade == 0:
        return StatusEstoque.SEM_ESTOQUE
    if quantidade < minima:
        return StatusEstoque.ESTOQUE_BAIXO
    return StatusEstoque.ESTOQUE_OK


class EstoqueService:
    """Consulta, ajuste de inventário e estoque mínimo."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.store = EstoqueStore(uow)

    def consultar(self, company_id: str, filtro: FiltroEstoque) -> EstoquePage:
        estoques, total = self.uow.estoques.list(company_id, filtro)
        agora = datetime.now()

        itens = []
        for e in estoques:
            qtd, minima, medio = _dec(e.quantidade), _dec(e.quantidade_minima), _dec(e.valor_medio)
            total_entradas, total_saidas = self.uow.produtos.contar_movimentos(e.produto_id)
            itens.append(EstoqueItemOut(
                id=e.id,
                produto_id=e.produto_id,
                quantidade=qtd,
                quantidade_minima=minima,
                valor_medio=medio,
                ultima_atualizacao=e.ultima_atualizacao,
                produto=ProdutoResumo.model_validate(e.produto),
                valor_total_item=qtd * medio,
                status_estoque=status_estoque(qtd, minima),
                dias_ultima_movimentacao=(agora - e.ultima_atualizacao).days if e.ultima_atualizacao else None,
                total_entradas=total_entradas,
                total_saidas=total_saidas,
            ))

        filtrados = self.uow.estoques.all_filtered(company_id, filtro)
        todos = self.uow.estoques.list_ativos(company_id)
        resumo = ResumoEstoque(
            total_produtos=len(filtrados),
            total_itens_estoque=sum((_dec(e.quantidade) for e in filtrados), ZERO),
            valor_total_estoque=round(sum((_dec(e.quantidade) * _dec(e.valor_medio) for e in filtrados), ZERO), 2),
            produtos_sem_estoque=sum(1 for e in todos if _dec(e.quantidade) == 0),
            produtos_estoque_baixo=sum(1 for e in todos if _dec(e.quantidade) < _dec(e.quantidade_minima)),
        )
        return EstoquePage(data=itens, pagination=Pagina.de(filtro, total), resumo=resumo)

    def ajustar(self, company_id: str, user_id: Optional[str], dados: AjusteEstoqueIn) -> AjusteEstoqueOut:
        """
        Ajuste manual de inventário. É registrado como movimento
        (TRANSFERENCIA_POSITIVA / TRANSFERENCIA_NEGATIVA) para que o agregado
        continue igual a entradas - saídas.
        """
        from ..domain.enums import TipoEntrada, TipoSaida
        from .dtos import EntradaIn, SaidaIn
        from .services_entradas import EntradaService
        from .services_saidas import SaidaService

        ajuste = _dec(dados.quantidade_ajuste)
        if ajuste == 0:
            raise ValidacaoError("Quantidade de ajuste deve ser diferente de zero", ["quantidade_ajuste"])
        if self.uow.produtos.get(dados.produto_id, company_id) is None:
            raise NaoEncontradoError("Produto", dados.produto_id)

        atual = self.get(dados.produto_id, company_id)
        quantidade_anterior = _dec(atual.quantidade) if atual else ZERO
        observacoes = f"Ajuste de inventário: {dados.motivo or 'Não informado'}. {dados.observacoes or ''}".strip()

        entrada_id = saida_id = None
        if ajuste > 0:
            entrada = EntradaService(self.uow).criar(company_id, user_id, EntradaIn(
                tipo=TipoEntrada.TRANSFERENCIA_POSITIVA,
                quantidade=ajuste,
                observacoes=observacoes,
                produto_id=dados.produto_id,
            ))
            entrada_id = entrada.id
        else:
            saida = SaidaService(self.uow).criar(company_id, user_id, SaidaIn(
                tipo=TipoSaida.TRANSFERENCIA_NEGATIVA,
                quantidade=-ajuste,
                observacoes=observacoes,
                produto_id=dados.produto_id,
            ))
            saida_id = saida.id

        estoque = self.get(dados.produto_id, company_id)
        logger.info("Ajuste de estoque produto=%s %s -> %s", dados.produto_id, quantidade_anterior, estoque.quantidade)
        log_audit(
            self.uow.db, MODULE_ESTOQUE, ACTION_ADJUST, "Estoque", estoque.id,
            summary=f"{quantidade_anterior} -> {estoque.quantidade}",
            metadata_={"motivo": dados.motivo, "produto_id": dados.produto_id},
            user_id=user_id, company_id=company_id,
        )
        return AjusteEstoqueOut(
            estoque=EstoqueOut.model_validate(estoque),
            quantidade_anterior=quantidade_anterior,
            quantidade_ajuste=ajuste,
            nova_quantidade=_dec(estoque.quantidade),
            entrada_id=entrada_id,
            saida_id=saida_id,
        )

    def definir_minimo(self, company_id: str, user_id: Optional[str], produto_id: str, quantidade_minima) -> Estoque:
        minima = _dec(quantidade_minima)
        if minima < 0:
            raise ValidacaoError("Quantidade mínima não pode ser negativa", ["quantidade_minima"])
        if self.uow.produtos.get(produto_id, company_id) is None:
            raise NaoEncontradoError("Produto", produto_id)
        with self.uow.transaction():
            estoque = self.store.get(produto_id, company_id, lock=True) or self.store.criar_vazio(produto_id, company_id)
            estoque.quantidade_minima = quantizar_qtd(minima)
        log_audit(
            self.uow.db, MODULE_ESTOQUE, ACTION_UPDATE, "Estoque", estoque.id,
            summary=f"quantidade_minima {minima}",
            user_id=user_id, company_id=company_id,
        )
        return estoque

    def get(self, produto_id: str, company_id: str) -> Optional[Estoque]:
        return self.store.get(produto_id, company_id)
