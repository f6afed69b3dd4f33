from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...domain.enums import TipoSaida
from ...application.dtos import SaidaIn, SaidaUpdate, SaidaOut, SaidaPage, FiltroSaidas, montar_filtro
from ...application.services_saidas import SaidaService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/saidas", tags=["saidas"])


@router.get("", response_model=SaidaPage)
def list_saidas(
    tipo: Optional[TipoSaida] = None,
    produto_id: Optional[str] = None,
    talhao_id: Optional[str] = None,
    data_inicio: Optional[datetime] = None,
    data_fim: Optional[datetime] = None,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Saida")
    filtro = montar_filtro(
        FiltroSaidas, tipo=tipo, produto_id=produto_id, talhao_id=talhao_id,
        data_inicio=data_inicio, data_fim=data_fim, page=page, limit=limit,
    )
    return SaidaService(UnitOfWork(db)).listar(sessao.company_id, filtro)


@router.get("/{saida_id}", response_model=SaidaOut)
def get_saida(saida_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Saida")
    return SaidaService(UnitOfWork(db)).obter(sessao.company_id, saida_id)


@router.post("", response_model=SaidaOut, status_code=201)
def create_saida(payload: SaidaIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    """Registra a saída; falha com 400 se o estoque não cobre a quantidade."""
    exigir(sessao, CREATE, "Saida")
    return SaidaService(UnitOfWork(db)).criar(sessao.company_id, sessao.user_id, payload)


@router.put("/{saida_id}", response_model=SaidaOut)
def update_saida(
    saida_id: str,
    payload: SaidaUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = SaidaService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, saida_id))
    return service.atualizar(sessao.company_id, sessao.user_id, saida_id, payload)


@router.delete("/{saida_id}")
def delete_saida(saida_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    service = SaidaService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, saida_id))
    service.excluir(sessao.company_id, sessao.user_id, saida_id)
    return {"id": saida_id, "message": "Saída excluída com sucesso"}
