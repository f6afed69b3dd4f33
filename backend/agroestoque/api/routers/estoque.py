from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import (
    EstoquePage, EstoqueOut, AjusteEstoqueIn, AjusteEstoqueOut, MinimoEstoqueIn, FiltroEstoque, montar_filtro,
)
from ...application.services_estoque import EstoqueService
from ...application.services_cadastros import ProdutoService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE

router = APIRouter(prefix="/estoque", tags=["estoque"])


@router.get("", response_model=EstoquePage)
def consultar_estoque(
    produto_id: Optional[str] = None,
    categoria: Optional[str] = None,
    search: Optional[str] = None,
    estoque_minimo: Optional[Decimal] = None,
    estoque_maximo: Optional[Decimal] = None,
    valor_minimo: Optional[Decimal] = None,
    valor_maximo: Optional[Decimal] = None,
    somente_com_estoque: bool = False,
    somente_estoque_baixo: bool = False,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Produto")
    filtro = montar_filtro(
        FiltroEstoque,
        produto_id=produto_id, categoria=categoria, search=search,
        estoque_minimo=estoque_minimo, estoque_maximo=estoque_maximo,
        valor_minimo=valor_minimo, valor_maximo=valor_maximo,
        somente_com_estoque=somente_com_estoque, somente_estoque_baixo=somente_estoque_baixo,
        page=page, limit=limit,
    )
    return EstoqueService(UnitOfWork(db)).consultar(sessao.company_id, filtro)


@router.post("/ajuste", response_model=AjusteEstoqueOut)
def ajustar_estoque(payload: AjusteEstoqueIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    """Ajuste de inventário, registrado como transferência positiva ou negativa."""
    exigir(sessao, CREATE, "Entrada" if payload.quantidade_ajuste > 0 else "Saida")
    return EstoqueService(UnitOfWork(db)).ajustar(sessao.company_id, sessao.user_id, payload)


@router.put("/{produto_id}/minimo", response_model=EstoqueOut)
def definir_minimo(
    produto_id: str,
    payload: MinimoEstoqueIn,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    uow = UnitOfWork(db)
    exigir(sessao, UPDATE, ProdutoService(uow).obter(sessao.company_id, produto_id))
    return EstoqueService(uow).definir_minimo(sessao.company_id, sessao.user_id, produto_id, payload.quantidade_minima)
