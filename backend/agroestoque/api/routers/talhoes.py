from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import TalhaoIn, TalhaoUpdate, TalhaoOut, TalhaoPage, ExclusaoOut, FiltroTalhoes, montar_filtro
from ...application.services_cadastros import TalhaoService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/talhoes", tags=["talhoes"])


@router.get("", response_model=TalhaoPage)
def list_talhoes(
    search: Optional[str] = None,
    fazenda_id: Optional[str] = None,
    ativo: Optional[bool] = None,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Talhao")
    filtro = montar_filtro(FiltroTalhoes, search=search, fazenda_id=fazenda_id, ativo=ativo, page=page, limit=limit)
    return TalhaoService(UnitOfWork(db)).listar(sessao.company_id, filtro)


@router.get("/{talhao_id}", response_model=TalhaoOut)
def get_talhao(talhao_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Talhao")
    service = TalhaoService(UnitOfWork(db))
    return service.detalhar(service.obter(sessao.company_id, talhao_id))


@router.post("", response_model=TalhaoOut, status_code=201)
def create_talhao(payload: TalhaoIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, CREATE, "Talhao")
    service = TalhaoService(UnitOfWork(db))
    return service.detalhar(service.criar(sessao.company_id, sessao.user_id, payload))


@router.put("/{talhao_id}", response_model=TalhaoOut)
def update_talhao(
    talhao_id: str,
    payload: TalhaoUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = TalhaoService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, talhao_id))
    return service.detalhar(service.atualizar(sessao.company_id, sessao.user_id, talhao_id, payload))


@router.delete("/{talhao_id}", response_model=ExclusaoOut)
def delete_talhao(talhao_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    service = TalhaoService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, talhao_id))
    return service.excluir(sessao.company_id, sessao.user_id, talhao_id)
