from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from typing import List, Optional, Type, TypeVar
from datetime import datetime
from decimal import Decimal

from ..domain.enums import TipoEntrada, TipoSaida, UserRole, StatusEstoque
from .errors import ValidacaoError

# ===== FILTROS (parâmetros de consulta tipados) =====

class Paginacao(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class _FiltroPeriodo(Paginacao):
    data_inicio: Optional[datetime] = None
    data_fim: Optional[datetime] = None

    @model_validator(mode="after")
    def _periodo_valido(self):
        if self.data_inicio and self.data_fim and self.data_inicio > self.data_fim:
            raise ValueError("data_inicio deve ser anterior ou igual a data_fim")
        return self


class FiltroEntradas(_FiltroPeriodo):
    tipo: Optional[TipoEntrada] = None
    produto_id: Optional[str] = None
    fornecedor_id: Optional[str] = None


class FiltroSaidas(_FiltroPeriodo):
    tipo: Optional[TipoSaida] = None
    produto_id: Optional[str] = None
    talhao_id: Optional[str] = None


class FiltroProdutos(Paginacao):
    search: Optional[str] = None
    categoria: Optional[str] = None
    ativo: Optional[bool] = None


class FiltroFornecedores(Paginacao):
    search: Optional[str] = None
    ativo: Optional[bool] = None


class FiltroTalhoes(Paginacao):
    search: Optional[str] = None
    fazenda_id: Optional[str] = None
    ativo: Optional[bool] = None


class FiltroEstoque(Paginacao):
    produto_id: Optional[str] = None
    categoria: Optional[str] = None
    search: Optional[str] = None
    estoque_minimo: Optional[Decimal] = None
    estoque_maximo: Optional[Decimal] = None
    valor_minimo: Optional[Decimal] = None
    valor_maximo: Optional[Decimal] = None
    somente_com_estoque: bool = False
    somente_estoque_baixo: bool = False

    @model_validator(mode="after")
    def _faixas_validas(self):
        if self.estoque_minimo is not None and self.estoque_maximo is not None and self.estoque_minimo > self.estoque_maximo:
            raise ValueError("estoque_minimo maior que estoque_maximo")
        if self.valor_minimo is not None and self.valor_maximo is not None and self.valor_minimo > self.valor_maximo:
            raise ValueError("valor_minimo maior que valor_maximo")
        return self


class Pagina(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

    @classmethod
    def de(cls, filtro: Paginacao, total: int) -> "Pagina":
        return cls(
            page=filtro.page,
            limit=filtro.limit,
            total=total,
            total_pages=(total + filtro.limit - 1) // filtro.limit,
        )


F = TypeVar("F", bound=Paginacao)


def montar_filtro(cls: Type[F], **params) -> F:
    """Constrói um filtro a partir dos query params; erros viram ValidacaoError."""
    try:
        return cls(**{k: v for k, v in params.items() if v is not None})
    except ValidationError as e:
        campos = [str(err["loc"][0]) for err in e.errors() if err.get("loc")]
        mensagem = "; ".join(err["msg"] for err in e.errors())
        raise ValidacaoError(f"Filtro inválido: {mensagem}", campos) from e

# ===== MOVIMENTOS =====

class EntradaIn(BaseModel):
    tipo: TipoEntrada
    quantidade: Decimal
    valor_unitario: Optional[Decimal] = None
    valor_total: Optional[Decimal] = None
    numero_nota: Optional[str] = None
    observacoes: Optional[str] = None
    data_entrada: Optional[datetime] = None
    produto_id: str
    fornecedor_id: Optional[str] = None


class EntradaUpdate(BaseModel):
    tipo: Optional[TipoEntrada] = None
    quantidade: Optional[Decimal] = None
    valor_unitario: Optional[Decimal] = None
    valor_total: Optional[Decimal] = None
    numero_nota: Optional[str] = None
    observacoes: Optional[str] = None
    data_entrada: Optional[datetime] = None
    produto_id: Optional[str] = None
    fornecedor_id: Optional[str] = None


class SaidaIn(BaseModel):
    tipo: TipoSaida
    quantidade: Decimal
    observacoes: Optional[str] = None
    data_saida: Optional[datetime] = None
    produto_id: str
    talhao_id: Optional[str] = None


class SaidaUpdate(BaseModel):
    tipo: Optional[TipoSaida] = None
    quantidade: Optional[Decimal] = None
    observacoes: Optional[str] = None
    data_saida: Optional[datetime] = None
    produto_id: Optional[str] = None
    talhao_id: Optional[str] = None


class ProdutoResumo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nome: str
    unidade: str
    categoria: Optional[str] = None


class FornecedorResumo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nome: str
    cnpj: Optional[str] = None
    cpf: Optional[str] = None


class TalhaoResumo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nome: str
    area: Optional[float] = None


class EntradaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tipo: TipoEntrada
    quantidade: float
    valor_unitario: Optional[float] = None
    valor_total: Optional[float] = None
    numero_nota: Optional[str] = None
    observacoes: Optional[str] = None
    data_entrada: datetime
    produto_id: str
    fornecedor_id: Optional[str] = None
    user_id: Optional[str] = None
    produto: Optional[ProdutoResumo] = None
    fornecedor: Optional[FornecedorResumo] = None


class SaidaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tipo: TipoSaida
    quantidade: float
    observacoes: Optional[str] = None
    data_saida: datetime
    produto_id: str
    talhao_id: Optional[str] = None
    user_id: Optional[str] = None
    produto: Optional[ProdutoResumo] = None
    talhao: Optional[TalhaoResumo] = None


class EntradaPage(BaseModel):
    data: List[EntradaOut]
    pagination: Pagina


class SaidaPage(BaseModel):
    data: List[SaidaOut]
    pagination: Pagina

# ===== ESTOQUE =====

class EstoqueOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    produto_id: str
    quantidade: float
    quantidade_minima: float
    valor_medio: float
    ultima_atualizacao: datetime


class EstoqueItemOut(EstoqueOut):
    produto: ProdutoResumo
    valor_total_item: float
    status_estoque: StatusEstoque
    dias_ultima_movimentacao: Optional[int] = None
    total_entradas: int = 0
    total_saidas: int = 0


class ResumoEstoque(BaseModel):
    total_produtos: int
    total_itens_estoque: float
    valor_total_estoque: float
    produtos_sem_estoque: int
    produtos_estoque_baixo: int


class EstoquePage(BaseModel):
    data: List[EstoqueItemOut]
    pagination: Pagina
    resumo: ResumoEstoque


class AjusteEstoqueIn(BaseModel):
    produto_id: str
    quantidade_ajuste: Decimal
    motivo: Optional[str] = None
    observacoes: Optional[str] = None


class AjusteEstoqueOut(BaseModel):
    estoque: EstoqueOut
    quantidade_anterior: float
    quantidade_ajuste: float
    nova_quantidade: float
    entrada_id: Optional[str] = None
    saida_id: Optional[str] = None


class MinimoEstoqueIn(BaseModel):
    quantidade_minima: Decimal

# ===== CADASTROS =====

class ProdutoIn(BaseModel):
    nome: str
    descricao: Optional[str] = None
    unidade: str
    categoria: Optional[str] = None
    codigo_barras: Optional[str] = None
    ativo: bool = True


class ProdutoUpdate(BaseModel):
    nome: Optional[str] = None
    descricao: Optional[str] = None
    unidade: Optional[str] = None
    categoria: Optional[str] = None
    codigo_barras: Optional[str] = None
    ativo: Optional[bool] = None


class ProdutoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nome: str
    descricao: Optional[str] = None
    unidade: str
    categoria: Optional[str] = None
    codigo_barras: Optional[str] = None
    ativo: bool
    user_id: Optional[str] = None
    quantidade: Optional[float] = None
    valor_medio: Optional[float] = None
    total_entradas: int = 0
    total_saidas: int = 0


class ProdutoPage(BaseModel):
    data: List[ProdutoOut]
    pagination: Pagina


class FornecedorIn(BaseModel):
    nome: str
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    ativo: bool = True


class FornecedorUpdate(BaseModel):
    nome: Optional[str] = None
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    ativo: Optional[bool] = None


class FornecedorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nome: str
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    ativo: bool
    user_id: Optional[str] = None
    total_compras: int = 0
    ultima_compra: Optional[datetime] = None
    valor_total_compras: float = 0.0


class FornecedorPage(BaseModel):
    data: List[FornecedorOut]
    pagination: Pagina


class FazendaIn(BaseModel):
    name: str
    area: Decimal


class FazendaUpdate(BaseModel):
    name: Optional[str] = None
    area: Optional[Decimal] = None


class FazendaOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    area: float
    user_id: Optional[str] = None
    total_talhoes: int = 0


class TalhaoIn(BaseModel):
    nome: str
    descricao: Optional[str] = None
    area: Optional[Decimal] = None
    localizacao: Optional[str] = None
    ativo: bool = True
    fazenda_id: Optional[str] = None


class TalhaoUpdate(BaseModel):
    nome: Optional[str] = None
    descricao: Optional[str] = None
    area: Optional[Decimal] = None
    localizacao: Optional[str] = None
    ativo: Optional[bool] = None
    fazenda_id: Optional[str] = None


class TalhaoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    nome: str
    descricao: Optional[str] = None
    area: Optional[float] = None
    localizacao: Optional[str] = None
    ativo: bool
    fazenda_id: Optional[str] = None
    user_id: Optional[str] = None
    total_aplicacoes: int = 0
    ultima_aplicacao: Optional[datetime] = None


class TalhaoPage(BaseModel):
    data: List[TalhaoOut]
    pagination: Pagina


class ExclusaoOut(BaseModel):
    """Resultado de uma exclusão: desativado (soft) ou removido (hard)."""
    id: str
    desativado: bool
    message: str

# ===== EMPRESAS E USUÁRIOS =====

class CompanyIn(BaseModel):
    name: str
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    admin_name: str
    admin_email: str
    admin_password: str


class CompanyUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    active: Optional[bool] = None


class CompanyOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    cnpj: Optional[str] = None
    cpf: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None
    endereco: Optional[str] = None
    active: bool


class UserIn(BaseModel):
    name: str
    email: str
    password: str
    role: UserRole = UserRole.USER
    avatar_url: Optional[str] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[UserRole] = None
    avatar_url: Optional[str] = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: UserRole
    avatar_url: Optional[str] = None
    company_id: Optional[str] = None


class UserPage(BaseModel):
    data: List[UserOut]
    pagination: Pagina

# ===== DASHBOARD =====

class DashboardStats(BaseModel):
    total_produtos: int
    total_talhoes: int
    total_fornecedores: int
    produtos_estoque_baixo: int
    entradas_mes: int
    saidas_mes: int
    valor_total_estoque: float


class EstoqueBaixoOut(BaseModel):
    produto: ProdutoResumo
    quantidade_atual: float
    quantidade_minima: float
    diferenca: float


class MovimentacaoRecente(BaseModel):
    id: str
    tipo: str  # "entrada" | "saida"
    produto: str
    quantidade: float
    data: datetime
    observacoes: Optional[str] = None
