"""
Serviços de Entradas
====================

Entradas de estoque: COMPRA (com fornecedor e custo) e TRANSFERENCIA_POSITIVA
(sem custo). Criar, editar e excluir uma entrada gravam o registro e o efeito
no agregado de Estoque na mesma unidade transacional.

Editar uma entrada equivale a retirar o efeito original e aplicar o novo.
Se saídas posteriores já consumiram a quantidade original, a edição (ou a
exclusão) é rejeitada com ReversaoImpossivelError em vez de deixar o estoque
negativo.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional
import logging

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import TipoEntrada
from ..domain.models_estoque import Entrada
from .dtos import EntradaIn, EntradaUpdate, FiltroEntradas, EntradaPage, EntradaOut, Pagina
from .errors import ValidacaoError, NaoEncontradoError, ReversaoImpossivelError
from .services_estoque import EstoqueStore, quantizar_qtd, quantizar_custo
from .services_audit import log_audit, MODULE_ENTRADAS, ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE

logger = logging.getLogger(__name__)


def _normalizar(campos: Dict[str, Any]) -> Dict[str, Any]:
    """
    Valida e completa os campos de uma entrada já mesclada (criação ou edição).
    Quantidade e custos são arredondados à precisão gravada antes de validar.
    Transferências não carregam custo nem fornecedor.
    """
    for obrigatorio in ("tipo", "produto_id"):
        if campos.get(obrigatorio) is None:
            raise ValidacaoError(f"Campo obrigatório: {obrigatorio}", [obrigatorio])

    quantidade = campos.get("quantidade")
    if quantidade is None or quantizar_qtd(quantidade) <= 0:
        raise ValidacaoError("Quantidade deve ser maior que zero", ["quantidade"])
    campos["quantidade"] = quantizar_qtd(quantidade)

    if campos["tipo"] == TipoEntrada.TRANSFERENCIA_POSITIVA:
        campos["valor_unitario"] = None
        campos["valor_total"] = None
        campos["fornecedor_id"] = None
        return campos

    if not campos.get("fornecedor_id"):
        raise ValidacaoError("Fornecedor é obrigatório para compras", ["fornecedor_id"])
    valor_unitario = campos.get("valor_unitario")
    if valor_unitario is None or quantizar_custo(valor_unitario) <= 0:
        raise ValidacaoError("Valor unitário deve ser maior que zero", ["valor_unitario"])
    campos["valor_unitario"] = quantizar_custo(valor_unitario)
    valor_total = campos.get("valor_total")
    if valor_total is not None and quantizar_custo(valor_total) <= 0:
        raise ValidacaoError("Valor total deve ser maior que zero", ["valor_total"])
    if valor_total is None:
        valor_total = campos["quantidade"] * campos["valor_unitario"]
    campos["valor_total"] = quantizar_custo(valor_total)
    return campos


class EntradaService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.store = EstoqueStore(uow)

    def _resolver_referencias(self, company_id: str, campos: Dict[str, Any]) -> None:
        if self.uow.produtos.get(campos["produto_id"], company_id) is None:
            raise NaoEncontradoError("Produto", campos["produto_id"])
        if campos.get("fornecedor_id") and self.uow.fornecedores.get(campos["fornecedor_id"], company_id) is None:
            raise NaoEncontradoError("Fornecedor", campos["fornecedor_id"])

    def obter(self, company_id: str, entrada_id: str) -> Entrada:
        entrada = self.uow.entradas.get(entrada_id, company_id)
        if entrada is None:
            raise NaoEncontradoError("Entrada", entrada_id)
        return entrada

    def listar(self, company_id: str, filtro: FiltroEntradas) -> EntradaPage:
        entradas, total = self.uow.entradas.list(company_id, filtro)
        return EntradaPage(
            data=[EntradaOut.model_validate(e) for e in entradas],
            pagination=Pagina.de(filtro, total),
        )

    def criar(self, company_id: str, user_id: Optional[str], dados: EntradaIn) -> Entrada:
        campos = _normalizar(dados.model_dump())
        self._resolver_referencias(company_id, campos)

        quantidade = quantizar_qtd(campos["quantidade"])
        valor_unitario = quantizar_custo(campos["valor_unitario"]) if campos["valor_unitario"] is not None else None

        with self.uow.transaction():
            entrada = Entrada(
                company_id=company_id,
                user_id=user_id,
                tipo=campos["tipo"],
                quantidade=quantidade,
                valor_unitario=valor_unitario,
                valor_total=campos["valor_total"],
                numero_nota=campos.get("numero_nota"),
                observacoes=campos.get("observacoes"),
                data_entrada=campos.get("data_entrada") or datetime.now(),
                produto_id=campos["produto_id"],
                fornecedor_id=campos.get("fornecedor_id"),
            )
            self.uow.entradas.add(entrada)
            self.uow.db.flush()
            self.store.upsert_apply(entrada.produto_id, company_id, quantidade, valor_unitario)

        logger.info("Entrada criada id=%s produto=%s qtd=%s", entrada.id, entrada.produto_id, quantidade)
        log_audit(
            self.uow.db, MODULE_ENTRADAS, ACTION_CREATE, "Entrada", entrada.id,
            summary=f"{campos['tipo'].value} {quantidade}",
            user_id=user_id, company_id=company_id,
        )
        return self.obter(company_id, entrada.id)

    def atualizar(self, company_id: str, user_id: Optional[str], entrada_id: str, dados: EntradaUpdate) -> Entrada:
        entrada = self.obter(company_id, entrada_id)
        mudancas = dados.model_dump(exclude_unset=True)

        campos = {
            "tipo": entrada.tipo,
            "quantidade": entrada.quantidade,
            "valor_unitario": entrada.valor_unitario,
            "valor_total": entrada.valor_total,
            "numero_nota": entrada.numero_nota,
            "observacoes": entrada.observacoes,
            "data_entrada": entrada.data_entrada,
            "produto_id": entrada.produto_id,
            "fornecedor_id": entrada.fornecedor_id,
        }
        campos.update(mudancas)
        if ("quantidade" in mudancas or "valor_unitario" in mudancas) and "valor_total" not in mudancas:
            campos["valor_total"] = None
        campos = _normalizar(campos)
        self._resolver_referencias(company_id, campos)

        original_produto = entrada.produto_id
        original_qtd = Decimal(entrada.quantidade)
        original_custo = entrada.valor_unitario
        nova_qtd = quantizar_qtd(campos["quantidade"])
        novo_custo = quantizar_custo(campos["valor_unitario"]) if campos["valor_unitario"] is not None else None

        with self.uow.transaction():
            if campos["produto_id"] == original_produto:
                atual = self.store.quantidade_atual(original_produto, company_id)
                if atual - original_qtd + nova_qtd < 0:
                    logger.warning(
                        "Edição de entrada rejeitada id=%s atual=%s original=%s nova=%s",
                        entrada_id, atual, original_qtd, nova_qtd,
                    )
                    raise ReversaoImpossivelError(disponivel=atual, necessario=original_qtd - nova_qtd)
                # Aplica o novo efeito antes de retirar o original: nenhum estado intermediário fica negativo
                self.store.upsert_apply(original_produto, company_id, nova_qtd, novo_custo)
                self.store.reverse_apply(original_produto, company_id, original_qtd, original_custo)
            else:
                atual = self.store.quantidade_atual(original_produto, company_id)
                if atual < original_qtd:
                    logger.warning(
                        "Troca de produto rejeitada id=%s atual=%s original=%s",
                        entrada_id, atual, original_qtd,
                    )
                    raise ReversaoImpossivelError(disponivel=atual, necessario=original_qtd)
                self.store.reverse_apply(original_produto, company_id, original_qtd, original_custo)
                self.store.upsert_apply(campos["produto_id"], company_id, nova_qtd, novo_custo)

            entrada.tipo = campos["tipo"]
            entrada.quantidade = nova_qtd
            entrada.valor_unitario = novo_custo
            entrada.valor_total = campos["valor_total"]
            entrada.numero_nota = campos.get("numero_nota")
            entrada.observacoes = campos.get("observacoes")
            entrada.data_entrada = campos.get("data_entrada") or entrada.data_entrada
            entrada.produto_id = campos["produto_id"]
            entrada.fornecedor_id = campos.get("fornecedor_id")

        logger.info("Entrada atualizada id=%s qtd %s -> %s", entrada_id, original_qtd, nova_qtd)
        log_audit(
            self.uow.db, MODULE_ENTRADAS, ACTION_UPDATE, "Entrada", entrada_id,
            summary=f"quantidade {original_qtd} -> {nova_qtd}",
            metadata_={"produto_anterior": original_produto, "produto": campos["produto_id"]},
            user_id=user_id, company_id=company_id,
        )
        self.uow.db.expire_all()
        return self.obter(company_id, entrada_id)

    def excluir(self, company_id: str, user_id: Optional[str], entrada_id: str) -> None:
        entrada = self.obter(company_id, entrada_id)
        quantidade = Decimal(entrada.quantidade)

        with self.uow.transaction():
            atual = self.store.quantidade_atual(entrada.produto_id, company_id)
            if atual < quantidade:
                logger.warning(
                    "Exclusão de entrada rejeitada id=%s atual=%s necessario=%s",
                    entrada_id, atual, quantidade,
                )
                raise ReversaoImpossivelError(disponivel=atual, necessario=quantidade)
            self.store.reverse_apply(entrada.produto_id, company_id, quantidade, entrada.valor_unitario)
            self.uow.entradas.delete(entrada)

        logger.info("Entrada excluída id=%s", entrada_id)
        log_audit(
            self.uow.db, MODULE_ENTRADAS, ACTION_DELETE, "Entrada", entrada_id,
            summary=f"quantidade {quantidade}",
            user_id=user_id, company_id=company_id,
        )
