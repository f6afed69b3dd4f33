from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import UserIn, UserUpdate, UserOut, UserPage, Paginacao, montar_filtro
from ...application.services_usuarios import UsuarioService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/usuarios", tags=["usuarios"])


@router.get("", response_model=UserPage)
def list_users(
    search: Optional[str] = None,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Usuario")
    paginacao = montar_filtro(Paginacao, page=page, limit=limit)
    return UsuarioService(UnitOfWork(db)).listar(sessao.company_id, search, paginacao)


@router.get("/{user_id}", response_model=UserOut)
def get_user(user_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    user = UsuarioService(UnitOfWork(db)).obter(sessao.company_id, user_id)
    exigir(sessao, READ, user)
    return user


@router.post("", response_model=UserOut, status_code=201)
def create_user(payload: UserIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, CREATE, "Usuario")
    return UsuarioService(UnitOfWork(db)).criar(sessao.company_id, sessao.user_id, payload)


@router.put("/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = UsuarioService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, user_id))
    return service.atualizar(sessao.company_id, sessao.user_id, sessao.is_admin, user_id, payload)


@router.delete("/{user_id}", status_code=204)
def delete_user(user_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    service = UsuarioService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, user_id))
    service.excluir(sessao.company_id, sessao.user_id, user_id)
