from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import FazendaIn, FazendaUpdate, FazendaOut, ExclusaoOut
from ...application.services_cadastros import FazendaService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/fazendas", tags=["fazendas"])


@router.get("", response_model=List[FazendaOut])
def list_fazendas(sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Fazenda")
    return FazendaService(UnitOfWork(db)).listar(sessao.company_id)


@router.get("/{fazenda_id}", response_model=FazendaOut)
def get_fazenda(fazenda_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Fazenda")
    service = FazendaService(UnitOfWork(db))
    return service.detalhar(service.obter(sessao.company_id, fazenda_id))


@router.post("", response_model=FazendaOut, status_code=201)
def create_fazenda(payload: FazendaIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, CREATE, "Fazenda")
    service = FazendaService(UnitOfWork(db))
    return service.detalhar(service.criar(sessao.company_id, sessao.user_id, payload))


@router.put("/{fazenda_id}", response_model=FazendaOut)
def update_fazenda(
    fazenda_id: str,
    payload: FazendaUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = FazendaService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, fazenda_id))
    return service.detalhar(service.atualizar(sessao.company_id, sessao.user_id, fazenda_id, payload))


@router.delete("/{fazenda_id}", response_model=ExclusaoOut)
def delete_fazenda(fazenda_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    service = FazendaService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, fazenda_id))
    return service.excluir(sessao.company_id, sessao.user_id, fazenda_id)
