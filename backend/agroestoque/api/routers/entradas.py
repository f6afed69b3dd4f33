from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...domain.enums import TipoEntrada
from ...application.dtos import EntradaIn, EntradaUpdate, EntradaOut, EntradaPage, FiltroEntradas, montar_filtro
from ...application.services_entradas import EntradaService
from ...security.auth import Sessao, get_current_session
from ...security.permissions import exigir, READ, CREATE, UPDATE, DELETE

router = APIRouter(prefix="/entradas", tags=["entradas"])


@router.get("", response_model=EntradaPage)
def list_entradas(
    tipo: Optional[TipoEntrada] = None,
    produto_id: Optional[str] = None,
    fornecedor_id: Optional[str] = None,
    data_inicio: Optional[datetime] = None,
    data_fim: Optional[datetime] = None,
    page: int = Query(1),
    limit: int = Query(20),
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    exigir(sessao, READ, "Entrada")
    filtro = montar_filtro(
        FiltroEntradas, tipo=tipo, produto_id=produto_id, fornecedor_id=fornecedor_id,
        data_inicio=data_inicio, data_fim=data_fim, page=page, limit=limit,
    )
    return EntradaService(UnitOfWork(db)).listar(sessao.company_id, filtro)


@router.get("/{entrada_id}", response_model=EntradaOut)
def get_entrada(entrada_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    exigir(sessao, READ, "Entrada")
    return EntradaService(UnitOfWork(db)).obter(sessao.company_id, entrada_id)


@router.post("", response_model=EntradaOut, status_code=201)
def create_entrada(payload: EntradaIn, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    """Registra a entrada e soma ao estoque (custo médio ponderado em compras)."""
    exigir(sessao, CREATE, "Entrada")
    return EntradaService(UnitOfWork(db)).criar(sessao.company_id, sessao.user_id, payload)


@router.put("/{entrada_id}", response_model=EntradaOut)
def update_entrada(
    entrada_id: str,
    payload: EntradaUpdate,
    sessao: Sessao = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    service = EntradaService(UnitOfWork(db))
    exigir(sessao, UPDATE, service.obter(sessao.company_id, entrada_id))
    return service.atualizar(sessao.company_id, sessao.user_id, entrada_id, payload)


@router.delete("/{entrada_id}")
def delete_entrada(entrada_id: str, sessao: Sessao = Depends(get_current_session), db: Session = Depends(get_db)):
    service = EntradaService(UnitOfWork(db))
    exigir(sessao, DELETE, service.obter(sessao.company_id, entrada_id))
    service.excluir(sessao.company_id, sessao.user_id, entrada_id)
    return {"id": entrada_id, "message": "Entrada excluída com sucesso"}
