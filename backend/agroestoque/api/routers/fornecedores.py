from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import (
    FornecedorIn, FornecedorUpdate, FornecedorOut, FornecedorPage, ExclusaoOut, FiltroFornecedores, montar_filtro,
)
from ...application.services_cadastros import FornecedorService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/fornecedores", tags=["fornecedores"])


@router.get("", response_model=FornecedorPage)
def list_fornecedores(
    search: Optional[str] = None,
    ativo: Optional[bool] = None,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Fornecedor")
    filtro = montar_filtro(FiltroFornecedores, search=search, ativo=ativo, page=page, limit=limit)
    return FornecedorService(UnitOfWork(db)).listar(sessao.company_id, filtro)


@router.get("/{fornecedor_id}", response_model=FornecedorOut)
def get_fornecedor(fornecedor_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Fornecedor")
    service = FornecedorService(UnitOfWork(db))
    return service.detalhar(service.obter(sessao.company_id, fornecedor_id))


@router.post("", response_model=FornecedorOut, status_code=201)
def create_fornecedor(payload: FornecedorIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    """CPF ou CNPJ (apenas um), validados por dígito verificador."""
    exigir(sessao, CREATE, "Fornecedor")
    service = FornecedorService(UnitOfWork(db))
    return service.detalhar(service.criar(sessao.company_id, sessao.user_id, payload))


@router.put("/{fornecedor_id}", response_model=FornecedorOut)
def update_fornecedor(
    fornecedor_id: str,
    payload: FornecedorUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = FornecedorService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, fornecedor_id))
    return service.detalhar(service.atualizar(sessao.company_id, sessao.user_id, fornecedor_id, payload))


@router.delete("/{fornecedor_id}", response_model=ExclusaoOut)
def delete_fornecedor(fornecedor_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    service = FornecedorService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, fornecedor_id))
    return service.excluir(sessao.company_id, sessao.user_id, fornecedor_id)
