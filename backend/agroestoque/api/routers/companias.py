from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import CompanyIn, CompanyUpdate, CompanyOut, UserOut
from ...application.errors import NaoEncontradoError
from ...application.services_usuarios import CompanyService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, MANAGE, ALL

router = APIRouter(prefix="/companias", tags=["companias"])


@router.post("", status_code=201)
def register_company(payload: CompanyIn, db: Session = Depends(get_db)):
    """Cadastro público: cria a empresa e o primeiro usuário ADMIN."""
    company, admin = CompanyService(UnitOfWork(db)).registrar(payload)
    return {"company": CompanyOut.model_validate(company), "admin": UserOut.model_validate(admin)}


@router.get("", response_model=List[CompanyOut])
def list_companies(sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    return [CompanyService(UnitOfWork(db)).obter(sessao.company_id)]


@router.get("/{company_id}", response_model=CompanyOut)
def get_company(company_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    if company_id != sessao.company_id:
        raise NaoEncontradoError("Empresa", company_id)
    return CompanyService(UnitOfWork(db)).obter(company_id)


@router.put("/{company_id}", response_model=CompanyOut)
def update_company(
    company_id: str,
    payload: CompanyUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, MANAGE, ALL)
    if company_id != sessao.company_id:
        raise NaoEncontradoError("Empresa", company_id)
    return CompanyService(UnitOfWork(db)).atualizar(company_id, sessao.user_id, payload)
