"""
Serviços de Saídas
==================

Saídas de estoque: APLICACAO (em um talhão) e TRANSFERENCIA_NEGATIVA.
Toda saída valida o saldo disponível sob lock da linha de Estoque, dentro da
mesma unidade transacional que grava o movimento. Saídas não alteram o custo
médio.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import TipoSaida
from ..domain.models_estoque import Saida
from .dtos import SaidaIn, SaidaUpdate, FiltroSaidas, SaidaPage, SaidaOut, Pagina
from .errors import ValidacaoError, NaoEncontradoError
from .services_estoque import EstoqueStore, quantizar_qtd
from .services_audit import log_audit, MODULE_SAIDAS, ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE

logger = logging.getLogger(__name__)


def _normalizar(campos: Dict[str, Any]) -> Dict[str, Any]:
    for obrigatorio in ("tipo", "produto_id"):
        if campos.get(obrigatorio) is None:
            raise ValidacaoError(f"Campo obrigatório: {obrigatorio}", [obrigatorio])
    quantidade = campos.get("quantidade")
    if quantidade is None or quantizar_qtd(quantidade) <= 0:
        raise ValidacaoError("Quantidade deve ser maior que zero", ["quantidade"])
    campos["quantidade"] = quantizar_qtd(quantidade)
    if campos["tipo"] == TipoSaida.APLICACAO:
        if not campos.get("talhao_id"):
            raise ValidacaoError("Talhão é obrigatório para aplicações", ["talhao_id"])
    else:
        campos["talhao_id"] = None
    return campos


class SaidaService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.store = EstoqueStore(uow)

    def _resolver_referencias(self, company_id: str, campos: Dict[str, Any]) -> None:
        if self.uow.produtos.get(campos["produto_id"], company_id) is None:
            raise NaoEncontradoError("Produto", campos["produto_id"])
        if campos.get("talhao_id") and self.uow.talhoes.get(campos["talhao_id"], company_id) is None:
            raise NaoEncontradoError("Talhão", campos["talhao_id"])

    def obter(self, company_id: str, saida_id: str) -> Saida:
        saida = self.uow.saidas.get(saida_id, company_id)
        if saida is None:
            raise NaoEncontradoError("Saída", saida_id)
        return saida

    def listar(self, company_id: str, filtro: FiltroSaidas) -> SaidaPage:
        saidas, total = self.uow.saidas.list(company_id, filtro)
        return SaidaPage(
            data=[SaidaOut.model_validate(s) for s in saidas],
            pagination=Pagina.de(filtro, total),
        )

    def criar(self, company_id: str, user_id: Optional[str], dados: SaidaIn) -> Saida:
        campos = _normalizar(dados.model_dump())
        self._resolver_referencias(company_id, campos)
        quantidade = quantizar_qtd(campos["quantidade"])

        with self.uow.transaction():
            self.store.assert_sufficient(campos["produto_id"], company_id, quantidade)
            saida = Saida(
                company_id=company_id,
                user_id=user_id,
                tipo=campos["tipo"],
                quantidade=quantidade,
                observacoes=campos.get("observacoes"),
                data_saida=campos.get("data_saida") or datetime.now(),
                produto_id=campos["produto_id"],
                talhao_id=campos.get("talhao_id"),
            )
            self.uow.saidas.add(saida)
            self.uow.db.flush()
            self.store.upsert_apply(saida.produto_id, company_id, -quantidade)

        logger.info("Saída criada id=%s produto=%s qtd=%s", saida.id, saida.produto_id, quantidade)
        log_audit(
            self.uow.db, MODULE_SAIDAS, ACTION_CREATE, "Saida", saida.id,
            summary=f"{campos['tipo'].value} {quantidade}",
            user_id=user_id, company_id=company_id,
        )
        return self.obter(company_id, saida.id)

    def atualizar(self, company_id: str, user_id: Optional[str], saida_id: str, dados: SaidaUpdate) -> Saida:
        saida = self.obter(company_id, saida_id)
        campos = {
            "tipo": saida.tipo,
            "quantidade": saida.quantidade,
            "observacoes": saida.observacoes,
            "data_saida": saida.data_saida,
            "produto_id": saida.produto_id,
            "talhao_id": saida.talhao_id,
        }
        campos.update(dados.model_dump(exclude_unset=True))
        campos = _normalizar(campos)
        self._resolver_referencias(company_id, campos)

        original_produto = saida.produto_id
        original_qtd = Decimal(saida.quantidade)
        nova_qtd = quantizar_qtd(campos["quantidade"])

        with self.uow.transaction():
            if campos["produto_id"] == original_produto:
                # A quantidade original volta ao estoque antes da nova retirada
                self.store.assert_sufficient(original_produto, company_id, nova_qtd, extra=original_qtd)
            else:
                self.store.assert_sufficient(campos["produto_id"], company_id, nova_qtd)
            self.store.upsert_apply(original_produto, company_id, original_qtd)
            self.store.upsert_apply(campos["produto_id"], company_id, -nova_qtd)

            saida.tipo = campos["tipo"]
            saida.quantidade = nova_qtd
            saida.observacoes = campos.get("observacoes")
            saida.data_saida = campos.get("data_saida") or saida.data_saida
            saida.produto_id = campos["produto_id"]
            saida.talhao_id = campos.get("talhao_id")

        logger.info("Saída atualizada id=%s qtd %s -> %s", saida_id, original_qtd, nova_qtd)
        log_audit(
            self.uow.db, MODULE_SAIDAS, ACTION_UPDATE, "Saida", saida_id,
            summary=f"quantidade {original_qtd} -> {nova_qtd}",
            metadata_={"produto_anterior": original_produto, "produto": campos["produto_id"]},
            user_id=user_id, company_id=company_id,
        )
        self.uow.db.expire_all()
        return self.obter(company_id, saida_id)

    def excluir(self, company_id: str, user_id: Optional[str], saida_id: str) -> None:
        saida = self.obter(company_id, saida_id)
        quantidade = Decimal(saida.quantidade)

        with self.uow.transaction():
            # Devolver ao estoque nunca falha; cria o agregado se ele não existir
            self.store.upsert_apply(saida.produto_id, company_id, quantidade)
            self.uow.saidas.delete(saida)

        logger.info("Saída excluída id=%s", saida_id)
        log_audit(
            self.uow.db, MODULE_SAIDAS, ACTION_DELETE, "Saida", saida_id,
            summary=f"quantidade {quantidade}",
            user_id=user_id, company_id=company_id,
        )
