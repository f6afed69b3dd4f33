import uuid
from sqlalchemy import String, Boolean, ForeignKey, DateTime, Numeric, Enum, UniqueConstraint, Text
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import relationship, Mapped, mapped_column
from ..db import Base
from .enums import UserRole


def new_id() -> str:
    return str(uuid.uuid4())


class Company(Base):
    """Empresa (tenant). Todas as entidades e estoques são isolados por company_id."""
    __tablename__ = "companies"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    cnpj: Mapped[str | None] = mapped_column(String(18), unique=True, nullable=True)
    cpf: Mapped[str | None] = mapped_column(String(14), unique=True, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    telefone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    endereco: Mapped[str | None] = mapped_column(String(500), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    users = relationship("User", back_populates="company")


class User(Base):
    __tablename__ = "users"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(200))
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.USER)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)  # URL já hospedada, sem upload
    company_id: Mapped[str | None] = mapped_column(ForeignKey("companies.id"), index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    company = relationship("Company", back_populates="users")


class Fazenda(Base):
    __tablename__ = "fazendas"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    area: Mapped[Decimal] = mapped_column(Numeric(14, 4))  # hectares
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    talhoes = relationship("Talhao", back_populates="fazenda")


class Talhao(Base):
    """Parcela de terra que consome produtos por aplicações (saídas do tipo APLICACAO)."""
    __tablename__ = "talhoes"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    fazenda_id: Mapped[str | None] = mapped_column(ForeignKey("fazendas.id"), nullable=True, index=True)
    nome: Mapped[str] = mapped_column(String(200))
    descricao: Mapped[str | None] = mapped_column(Text, nullable=True)
    area: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)  # hectares
    localizacao: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    fazenda = relationship("Fazenda", back_populates="talhoes")
    saidas = relationship("Saida", back_populates="talhao")


class Fornecedor(Base):
    """Contraparte das compras. Identificado por CPF ou CNPJ (mutuamente exclusivos)."""
    __tablename__ = "fornecedores"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    nome: Mapped[str] = mapped_column(String(200))
    cnpj: Mapped[str | None] = mapped_column(String(14), nullable=True, index=True)  # somente dígitos
    cpf: Mapped[str | None] = mapped_column(String(11), nullable=True, index=True)  # somente dígitos
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    telefone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    endereco: Mapped[str | None] = mapped_column(String(500), nullable=True)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        UniqueConstraint('company_id', 'cnpj', name='uq_fornecedor_company_cnpj'),
        UniqueConstraint('company_id', 'cpf', name='uq_fornecedor_company_cpf'),
    )

    entradas = relationship("Entrada", back_populates="fornecedor")


class Produto(Base):
    __tablename__ = "produtos"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(ForeignKey("companies.id"), index=True)
    user_id: Mapped[str | None] = mapped_column(ForeignKey("users.id"), nullable=True, index=True)
    nome: Mapped[str] = mapped_column(String(200), index=True)
    descricao: Mapped[str | None] = mapped_column(Text, nullable=True)
    unidade: Mapped[str] = mapped_column(String(20))  # KG, L, SC, UN...
    categoria: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    codigo_barras: Mapped[str | None] = mapped_column(String(50), nullable=True)
    ativo: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    estoque = relationship("Estoque", back_populates="produto", uselist=False)
    entradas = relationship("Entrada", back_populates="produto")
    saidas = relationship("Saida", back_populates="produto")
