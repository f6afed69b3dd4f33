"""
Auditoria de Ações
==================
Registro imutável das operações que alteram cadastros e movimentos de estoque.
"""
from datetime import datetime
from typing import Any, Dict
from sqlalchemy import Integer, String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from ..db import Base


class AuditLog(Base):
    """
    Log de auditoria. Somente INSERT.
    Sem FKs: a linha sobrevive à exclusão física do registro auditado.
    """
    __tablename__ = "audit_log"
    __table_args__ = {"comment": "Auditoria - imutável"}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    user_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    company_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    module: Mapped[str] = mapped_column(String(50), index=True)  # ENTRADAS, SAIDAS, ESTOQUE, CADASTROS, AUTH
    action: Mapped[str] = mapped_column(String(50), index=True)  # CREATE, UPDATE, DELETE, DEACTIVATE, LOGIN...
    entity_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    summary: Mapped[str | None] = mapped_column(String(500), nullable=True)
    metadata_: Mapped[Dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
