import os
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings


def build_engine(url: str, isolation_level: str | None = None, **kwargs):
    """Cria o engine aplicando o nível de isolamento configurado e FKs no SQLite."""
    if isolation_level:
        kwargs["isolation_level"] = isolation_level
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    eng = create_engine(url, echo=False, future=True, **kwargs)

    if url.startswith("sqlite"):
        @event.listens_for(eng, "connect")
        def _sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return eng


if settings.database_url.startswith("sqlite:///./"):
    os.makedirs("./data", exist_ok=True)

engine = build_engine(settings.database_url, settings.database_isolation_level)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def _import_all_models():
    """Importa todos os modelos para que Base.metadata os registre."""
    from .domain import models  # noqa: F401 - Company, User, Fazenda, Talhao, Fornecedor, Produto
    from .domain import models_estoque  # noqa: F401 - Estoque, Entrada, Saida
    from .domain import models_audit  # noqa: F401 - AuditLog


def init_db(bind=None):
    """Cria as tabelas se não existirem (arranque normal)."""
    _import_all_models()
    Base.metadata.create_all(bind=bind or engine)

