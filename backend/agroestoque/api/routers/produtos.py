from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import ProdutoIn, ProdutoUpdate, ProdutoOut, ProdutoPage, ExclusaoOut, FiltroProdutos, montar_filtro
from ...application.services_cadastros import ProdutoService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/produtos", tags=["produtos"])


@router.get("", response_model=ProdutoPage)
def list_produtos(
    search: Optional[str] = None,
    categoria: Optional[str] = None,
    ativo: Optional[bool] = None,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Produto")
    filtro = montar_filtro(FiltroProdutos, search=search, categoria=categoria, ativo=ativo, page=page, limit=limit)
    return ProdutoService(UnitOfWork(db)).listar(sessao.company_id, filtro)


@router.get("/{produto_id}", response_model=ProdutoOut)
def get_produto(produto_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Produto")
    service = ProdutoService(UnitOfWork(db))
    return service.detalhar(service.obter(sessao.company_id, produto_id))


@router.post("", response_model=ProdutoOut, status_code=201)
def create_produto(payload: ProdutoIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, CREATE, "Produto")
    service = ProdutoService(UnitOfWork(db))
    return service.detalhar(service.criar(sessao.company_id, sessao.user_id, payload))


@router.put("/{produto_id}", response_model=ProdutoOut)
def update_produto(
    produto_id: str,
    payload: ProdutoUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = ProdutoService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, produto_id))
    return service.detalhar(service.atualizar(sessao.company_id, sessao.user_id, produto_id, payload))


@router.delete("/{produto_id}", response_model=ExclusaoOut)
def delete_produto(produto_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    """Desativa se houver movimentações; caso contrário exclui junto com o estoque vazio."""
    service = ProdutoService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, produto_id))
    return service.excluir(sessao.company_id, sessao.user_id, produto_id)
