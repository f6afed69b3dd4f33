"""
Configuração global do pytest: banco SQLite em memória por teste e
empresas/usuários de exemplo.
"""
import os
import sys
import tempfile
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest

# Adicionar o diretório raiz (backend/) ao path para imports
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", str(Path(tempfile.gettempdir()) / "agroestoque-qa-logs"))

from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agroestoque.db import build_engine, init_db
from agroestoque.domain.enums import UserRole
from agroestoque.domain.models import Company, User
from agroestoque.infrastructure.unit_of_work import UnitOfWork
from agroestoque.application.dtos import ProdutoIn, FornecedorIn, TalhaoIn
from agroestoque.application.services_cadastros import ProdutoService, FornecedorService, TalhaoService

CNPJ_VALIDO = "11.222.333/0001-81"
CNPJ_VALIDO_2 = "45.723.174/0001-10"
CPF_VALIDO = "529.982.247-25"


@pytest.fixture
def engine():
    eng = build_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


def _criar_empresa(db, nome: str, dominio: str) -> SimpleNamespace:
    company = Company(name=nome, active=True)
    db.add(company)
    db.flush()
    admin = User(
        name=f"Admin {nome}", email=f"admin@{dominio}", password_hash="-",
        role=UserRole.ADMIN, company_id=company.id,
    )
    operador = User(
        name=f"Operador {nome}", email=f"operador@{dominio}", password_hash="-",
        role=UserRole.USER, company_id=company.id,
    )
    db.add_all([admin, operador])
    db.commit()
    return SimpleNamespace(id=company.id, admin_id=admin.id, user_id=operador.id)


@pytest.fixture
def empresa(db):
    return _criar_empresa(db, "Fazenda Boa Vista", "boavista.com.br")


@pytest.fixture
def outra_empresa(db):
    return _criar_empresa(db, "Sítio Santa Luzia", "santaluzia.com.br")


@pytest.fixture
def produto(uow, empresa):
    return ProdutoService(uow).criar(empresa.id, empresa.user_id, ProdutoIn(
        nome="Ureia 45%", unidade="KG", categoria="Fertilizante",
    ))


@pytest.fixture
def outro_produto(uow, empresa):
    return ProdutoService(uow).criar(empresa.id, empresa.user_id, ProdutoIn(
        nome="Glifosato", unidade="L", categoria="Herbicida",
    ))


@pytest.fixture
def fornecedor(uow, empresa):
    return FornecedorService(uow).criar(empresa.id, empresa.user_id, FornecedorIn(
        nome="Agro Insumos Ltda", cnpj=CNPJ_VALIDO,
    ))


@pytest.fixture
def talhao(uow, empresa):
    return TalhaoService(uow).criar(empresa.id, empresa.user_id, TalhaoIn(
        nome="Talhão 01", area=Decimal("12.5"),
    ))
