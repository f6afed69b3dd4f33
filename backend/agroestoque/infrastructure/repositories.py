from typing import List, Optional, Tuple
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, joinedload
from ..domain.models import Company, User, Fazenda, Talhao, Fornecedor, Produto
from ..domain.models_estoque import Estoque, Entrada, Saida
from ..application.dtos import (
    FiltroEntradas, FiltroSaidas, FiltroProdutos, FiltroFornecedores, FiltroTalhoes, FiltroEstoque,
)


def _like(term: str) -> str:
    return f"%{term.strip().lower()}%"


class CompanyRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, c: Company): self.db.add(c); return c
    def get(self, id: str): return self.db.get(Company, id)
    def by_documento(self, cnpj: Optional[str], cpf: Optional[str]):
        conds = []
        if cnpj:
            conds.append(Company.cnpj == cnpj)
        if cpf:
            conds.append(Company.cpf == cpf)
        if not conds:
            return None
        return self.db.query(Company).filter(or_(*conds)).first()


class UserRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, u: User): self.db.add(u); return u
    def get(self, id: str, company_id: str):
        return self.db.query(User).filter(User.id == id, User.company_id == company_id).first()
    def by_email(self, email: str):
        return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
    def list(self, company_id: str, search: Optional[str], offset: int, limit: int) -> Tuple[List[User], int]:
        q = self.db.query(User).filter(User.company_id == company_id)
        if search:
            q = q.filter(func.lower(User.name).like(_like(search)))
        return q.order_by(User.name).offset(offset).limit(limit).all(), q.count()
    def contar_registros(self, user_id: str) -> int:
        return sum(
            self.db.query(func.count(m.id)).filter(m.user_id == user_id).scalar() or 0
            for m in (Entrada, Saida, Produto, Fornecedor, Talhao, Fazenda)
        )
    def delete(self, u: User): self.db.delete(u)


class ProdutoRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, p: Produto): self.db.add(p); return p
    def get(self, id: str, company_id: str):
        return self.db.query(Produto).filter(Produto.id == id, Produto.company_id == company_id).first()
    def list(self, company_id: str, f: FiltroProdutos) -> Tuple[List[Produto], int]:
        q = self.db.query(Produto).filter(Produto.company_id == company_id)
        if f.ativo is not None:
            q = q.filter(Produto.ativo == f.ativo)
        if f.categoria:
            q = q.filter(func.lower(Produto.categoria).like(_like(f.categoria)))
        if f.search:
            term = _like(f.search)
            q = q.filter(or_(
                func.lower(Produto.nome).like(term),
                func.lower(Produto.categoria).like(term),
                func.lower(Produto.codigo_barras).like(term),
            ))
        total = q.count()
        items = q.options(joinedload(Produto.estoque)).order_by(Produto.nome).offset(f.offset).limit(f.limit).all()
        return items, total
    def contar_movimentos(self, produto_id: str) -> Tuple[int, int]:
        entradas = self.db.query(func.count(Entrada.id)).filter(Entrada.produto_id == produto_id).scalar() or 0
        saidas = self.db.query(func.count(Saida.id)).filter(Saida.produto_id == produto_id).scalar() or 0
        return entradas, saidas
    def delete(self, p: Produto): self.db.delete(p)


class FornecedorRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, f: Fornecedor): self.db.add(f); return f
    def get(self, id: str, company_id: str):
        return self.db.query(Fornecedor).filter(Fornecedor.id == id, Fornecedor.company_id == company_id).first()
    def by_documento(self, company_id: str, cnpj: Optional[str], cpf: Optional[str], excluir_id: Optional[str] = None):
        conds = []
        if cnpj:
            conds.append(Fornecedor.cnpj == cnpj)
        if cpf:
            conds.append(Fornecedor.cpf == cpf)
        if not conds:
            return None
        q = self.db.query(Fornecedor).filter(Fornecedor.company_id == company_id, or_(*conds))
        if excluir_id:
            q = q.filter(Fornecedor.id != excluir_id)
        return q.first()
    def list(self, company_id: str, f: FiltroFornecedores) -> Tuple[List[Fornecedor], int]:
        q = self.db.query(Fornecedor).filter(Fornecedor.company_id == company_id)
        if f.ativo is not None:
            q = q.filter(Fornecedor.ativo == f.ativo)
        if f.search:
            term = _like(f.search)
            q = q.filter(or_(
                func.lower(Fornecedor.nome).like(term),
                Fornecedor.cnpj.like(term),
                Fornecedor.cpf.like(term),
                func.lower(Fornecedor.email).like(term),
            ))
        return q.order_by(Fornecedor.nome).offset(f.offset).limit(f.limit).all(), q.count()
    def resumo_compras(self, fornecedor_id: str):
        return self.db.query(
            func.count(Entrada.id), func.max(Entrada.data_entrada), func.coalesce(func.sum(Entrada.valor_total), 0)
        ).filter(Entrada.fornecedor_id == fornecedor_id).one()


class FazendaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, f: Fazenda): self.db.add(f); return f
    def get(self, id: str, company_id: str):
        return self.db.query(Fazenda).filter(Fazenda.id == id, Fazenda.company_id == company_id).first()
    def list(self, company_id: str):
        return self.db.query(Fazenda).filter(Fazenda.company_id == company_id).order_by(Fazenda.name).all()
    def contar_talhoes(self, fazenda_id: str) -> int:
        return self.db.query(func.count(Talhao.id)).filter(Talhao.fazenda_id == fazenda_id).scalar() or 0
    def delete(self, f: Fazenda): self.db.delete(f)


class TalhaoRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, t: Talhao): self.db.add(t); return t
    def get(self, id: str, company_id: str):
        return self.db.query(Talhao).filter(Talhao.id == id, Talhao.company_id == company_id).first()
    def by_nome(self, company_id: str, nome: str, excluir_id: Optional[str] = None):
        q = self.db.query(Talhao).filter(Talhao.company_id == company_id, func.lower(Talhao.nome) == nome.strip().lower())
        if excluir_id:
            q = q.filter(Talhao.id != excluir_id)
        return q.first()
    def list(self, company_id: str, f: FiltroTalhoes) -> Tuple[List[Talhao], int]:
        q = self.db.query(Talhao).filter(Talhao.company_id == company_id)
        if f.ativo is not None:
            q = q.filter(Talhao.ativo == f.ativo)
        if f.fazenda_id:
            q = q.filter(Talhao.fazenda_id == f.fazenda_id)
        if f.search:
            term = _like(f.search)
            q = q.filter(or_(func.lower(Talhao.nome).like(term), func.lower(Talhao.localizacao).like(term)))
        return q.order_by(Talhao.nome).offset(f.offset).limit(f.limit).all(), q.count()
    def resumo_aplicacoes(self, talhao_id: str):
        return self.db.query(func.count(Saida.id), func.max(Saida.data_saida)).filter(Saida.talhao_id == talhao_id).one()


class EstoqueRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, e: Estoque): self.db.add(e); return e
    def get(self, produto_id: str, company_id: str, lock: bool = False):
        q = self.db.query(Estoque).filter(Estoque.produto_id == produto_id, Estoque.company_id == company_id)
        if lock:
            # Bloqueia a linha até o commit: mutações concorrentes do mesmo produto são serializadas
            q = q.with_for_update(nowait=False)
        return q.first()
    def delete(self, e: Estoque): self.db.delete(e)
    def _query(self, company_id: str, f: FiltroEstoque):
        q = self.db.query(Estoque).join(Produto, Estoque.produto_id == Produto.id).filter(
            Estoque.company_id == company_id, Produto.ativo == True  # noqa: E712
        )
        if f.produto_id:
            q = q.filter(Estoque.produto_id == f.produto_id)
        if f.categoria:
            q = q.filter(func.lower(Produto.categoria).like(_like(f.categoria)))
        if f.search:
            term = _like(f.search)
            q = q.filter(or_(
                func.lower(Produto.nome).like(term),
                func.lower(Produto.categoria).like(term),
                func.lower(Produto.codigo_barras).like(term),
            ))
        if f.estoque_minimo is not None:
            q = q.filter(Estoque.quantidade >= f.estoque_minimo)
        if f.estoque_maximo is not None:
            q = q.filter(Estoque.quantidade <= f.estoque_maximo)
        if f.valor_minimo is not None:
            q = q.filter(Estoque.valor_medio >= f.valor_minimo)
        if f.valor_maximo is not None:
            q = q.filter(Estoque.valor_medio <= f.valor_maximo)
        if f.somente_com_estoque:
            q = q.filter(Estoque.quantidade > 0)
        if f.somente_estoque_baixo:
            q = q.filter(Estoque.quantidade < Estoque.quantidade_minima)
        return q
    def list(self, company_id: str, f: FiltroEstoque) -> Tuple[List[Estoque], int]:
        q = self._query(company_id, f)
        total = q.count()
        items = (
            q.options(joinedload(Estoque.produto))
            .order_by(Estoque.quantidade.asc(), Produto.nome.asc())
            .offset(f.offset).limit(f.limit).all()
        )
        return items, total
    def all_filtered(self, company_id: str, f: FiltroEstoque) -> List[Estoque]:
        return self._query(company_id, f).all()
    def list_ativos(self, company_id: str) -> List[Estoque]:
        return (
            self.db.query(Estoque).join(Produto, Estoque.produto_id == Produto.id)
            .options(joinedload(Estoque.produto))
            .filter(Estoque.company_id == company_id, Produto.ativo == True)  # noqa: E712
            .all()
        )


class EntradaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, e: Entrada): self.db.add(e); return e
    def get(self, id: str, company_id: str):
        return (
            self.db.query(Entrada)
            .options(joinedload(Entrada.produto), joinedload(Entrada.fornecedor))
            .filter(Entrada.id == id, Entrada.company_id == company_id)
            .first()
        )
    def list(self, company_id: str, f: FiltroEntradas) -> Tuple[List[Entrada], int]:
        q = self.db.query(Entrada).filter(Entrada.company_id == company_id)
        if f.tipo:
            q = q.filter(Entrada.tipo == f.tipo)
        if f.produto_id:
            q = q.filter(Entrada.produto_id == f.produto_id)
        if f.fornecedor_id:
            q = q.filter(Entrada.fornecedor_id == f.fornecedor_id)
        if f.data_inicio:
            q = q.filter(Entrada.data_entrada >= f.data_inicio)
        if f.data_fim:
            q = q.filter(Entrada.data_entrada <= f.data_fim)
        total = q.count()
        items = (
            q.options(joinedload(Entrada.produto), joinedload(Entrada.fornecedor))
            .order_by(Entrada.data_entrada.desc())
            .offset(f.offset).limit(f.limit).all()
        )
        return items, total
    def recentes(self, company_id: str, limit: int):
        return (
            self.db.query(Entrada).options(joinedload(Entrada.produto))
            .filter(Entrada.company_id == company_id)
            .order_by(Entrada.data_entrada.desc()).limit(limit).all()
        )
    def contar_desde(self, company_id: str, desde) -> int:
        return self.db.query(func.count(Entrada.id)).filter(
            Entrada.company_id == company_id, Entrada.data_entrada >= desde
        ).scalar() or 0
    def delete(self, e: Entrada): self.db.delete(e)


class SaidaRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, s: Saida): self.db.add(s); return s
    def get(self, id: str, company_id: str):
        return (
            self.db.query(Saida)
            .options(joinedload(Saida.produto), joinedload(Saida.talhao))
            .filter(Saida.id == id, Saida.company_id == company_id)
            .first()
        )
    def list(self, company_id: str, f: FiltroSaidas) -> Tuple[List[Saida], int]:
        q = self.db.query(Saida).filter(Saida.company_id == company_id)
        if f.tipo:
            q = q.filter(Saida.tipo == f.tipo)
        if f.produto_id:
            q = q.filter(Saida.produto_id == f.produto_id)
        if f.talhao_id:
            q = q.filter(Saida.talhao_id == f.talhao_id)
        if f.data_inicio:
            q = q.filter(Saida.data_saida >= f.data_inicio)
        if f.data_fim:
            q = q.filter(Saida.data_saida <= f.data_fim)
        total = q.count()
        items = (
            q.options(joinedload(Saida.produto), joinedload(Saida.talhao))
            .order_by(Saida.data_saida.desc())
            .offset(f.offset).limit(f.limit).all()
        )
        return items, total
    def recentes(self, company_id: str, limit: int):
        return (
            self.db.query(Saida).options(joinedload(Saida.produto))
            .filter(Saida.company_id == company_id)
            .order_by(Saida.data_saida.desc()).limit(limit).all()
        )
    def contar_desde(self, company_id: str, desde) -> int:
        return self.db.query(func.count(Saida.id)).filter(
            Saida.company_id == company_id, Saida.data_saida >= desde
        ).scalar() or 0
    def delete(self, s: Saida): self.db.delete(s)
