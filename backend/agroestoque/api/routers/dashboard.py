from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.dtos import DashboardStats, EstoqueBaixoOut, MovimentacaoRecente
from ...application.services_dashboard import DashboardService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def stats(sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Produto")
    return DashboardService(UnitOfWork(db)).estatisticas(sessao.company_id)


@router.get("/estoque-baixo", response_model=List[EstoqueBaixoOut])
def estoque_baixo(sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Produto")
    return DashboardService(UnitOfWork(db)).estoque_baixo(sessao.company_id)


@router.get("/movimentacoes-recentes", response_model=List[MovimentacaoRecente])
def movimentacoes_recentes(
    limit: int = Query(10, ge=1, le=50),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Entrada")
    exigir(sessao, READ, "Saida")
    return DashboardService(UnitOfWork(db)).movimentacoes_recentes(sessao.company_id, limit)
