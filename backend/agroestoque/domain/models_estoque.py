"""
Modelos do Domínio de Estoque
=============================

- Estoque: linha agregada única por (empresa, produto), com quantidade atual e
  custo médio ponderado. Só é alterada pelo razão de estoque.
- Entrada: movimento que aumenta o estoque (COMPRA ou TRANSFERENCIA_POSITIVA).
- Saida: movimento que diminui o estoque (APLICACAO ou TRANSFERENCIA_NEGATIVA).
"""
from sqlalchemy import String, ForeignKey, Numeric, DateTime, Enum, UniqueConstraint, Text
from sqlalchemy.orm import relationship, Mapped, mapped_column
from datetime import datetime
from decimal import Decimal
from ..db import Base
from .enums import TipoEntrada, TipoSaida
from .models import new_id


class Estoque(Base):
    """
    Estoque agregado por Produto e Empresa.
    Invariante: quantidade == soma(entradas) - soma(saidas) do produto, e nunca negativa.
    """
    __tablename__ = "estoques"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    produto_id: Mapped[str] = mapped_column(ForeignKey("produtos.id"), index=True)
    quantidade: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=Decimal("0"))
    quantidade_minima: Mapped[Decimal] = mapped_column(Numeric(14, 4), default=Decimal("0"))
    valor_medio: Mapped[Decimal] = mapped_column(Numeric(18, 6), default=Decimal("0"))  # Custo médio ponderado
    ultima_atualizacao: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    __table_args__ = (
        UniqueConstraint('company_id', 'produto_id', name='uq_estoque_company_produto'),
    )

    produto = relationship("Produto", back_populates="estoque")


class Entrada(Base):
    __tablename__ = "entradas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    tipo: Mapped[TipoEntrada] = mapped_column(Enum(TipoEntrada))
    quantidade: Mapped[Decimal] = mapped_column(Numeric(14, 4))
    valor_unitario: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    valor_total: Mapped[Decimal | None] = mapped_column(Numeric(18, 6), nullable=True)
    numero_nota: Mapped[str | None] = mapped_column(String(50), nullable=True)
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_entrada: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    produto_id: Mapped[str] = mapped_column(ForeignKey("produtos.id"), index=True)
    fornecedor_id: Mapped[str | None] = mapped_column(ForeignKey("fornecedores.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    produto = relationship("Produto", back_populates="entradas")
    fornecedor = relationship("Fornecedor", back_populates="entradas")


class Saida(Base):
    __tablename__ = "saidas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    tipo: Mapped[TipoSaida] = mapped_column(Enum(TipoSaida))
    quantidade: Mapped[Decimal] = mapped_column(Numeric(14, 4))
    observacoes: Mapped[str | None] = mapped_column(Text, nullable=True)
    data_saida: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    produto_id: Mapped[str] = mapped_column(ForeignKey("produtos.id"), index=True)
    talhao_id: Mapped[str | None] = mapped_column(ForeignKey("talhoes.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    produto = relationship("Produto", back_populates="saidas")
    talhao = relationship("Talhao", back_populates="saidas")
