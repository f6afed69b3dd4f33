import logging
from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..db import SessionLocal
from ..application.errors import EstoqueAgricolaError, TransacaoError
from .repositories import (
    CompanyRepository, UserRepository, ProdutoRepository, FornecedorRepository,
    FazendaRepository, TalhaoRepository, EstoqueRepository, EntradaRepository, SaidaRepository,
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    """
    Unidade transacional. Recebe a sessão por injeção (rotas, testes) ou abre
    uma própria; só fecha a sessão que ela mesma abriu.
    """

    def __init__(self, db: Session = None):
        self._owns_session = db is None
        self.db: Session = db if db is not None else SessionLocal()
        self.companies = CompanyRepository(self.db)
        self.users = UserRepository(self.db)
        self.produtos = ProdutoRepository(self.db)
        self.fornecedores = FornecedorRepository(self.db)
        self.fazendas = FazendaRepository(self.db)
        self.talhoes = TalhaoRepository(self.db)
        self.estoques = EstoqueRepository(self.db)
        self.entradas = EntradaRepository(self.db)
        self.saidas = SaidaRepository(self.db)

    def commit(self): self.db.commit()
    def rollback(self): self.db.rollback()
    def close(self):
        if self._owns_session:
            self.db.close()

    @contextmanager
    def transaction(self):
        """
        begin -> bloco -> commit. Qualquer exceção desfaz tudo o que o bloco
        escreveu; erros do banco chegam ao chamador como TransacaoError.
        """
        try:
            yield self
            self.commit()
        except EstoqueAgricolaError:
            self.rollback()
            raise
        except SQLAlchemyError as e:
            self.rollback()
            logger.error("Transação abortada: %s", e)
            raise TransacaoError(f"Falha na transação: {e.__class__.__name__}") from e
        except Exception:
            self.rollback()
            raise
