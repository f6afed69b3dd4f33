"""
Serviços de Cadastros
=====================

Produtos, fornecedores, talhões e fazendas.

Exclusão em duas etapas:
1. tem_historico(): o registro já foi referenciado por movimentos?
2. desativar() (ativo=False, o histórico continua legível) ou purgar()
   (exclusão física).
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.models import Produto, Fornecedor, Talhao, Fazenda
from .dtos import (
    ProdutoIn, ProdutoUpdate, ProdutoOut, ProdutoPage, FiltroProdutos,
    FornecedorIn, FornecedorUpdate, FornecedorOut, FornecedorPage, FiltroFornecedores,
    TalhaoIn, TalhaoUpdate, TalhaoOut, TalhaoPage, FiltroTalhoes,
    FazendaIn, FazendaUpdate, FazendaOut, ExclusaoOut, Pagina,
)
from .errors import ValidacaoError, NaoEncontradoError
from .documentos import somente_digitos, validar_cpf, validar_cnpj, formatar_cpf, formatar_cnpj
from .services_estoque import EstoqueStore
from .services_audit import (
    log_audit, MODULE_CADASTROS, ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE, ACTION_DEACTIVATE,
)

logger = logging.getLogger(__name__)


def _obrigatorio(valor: Optional[str], campo: str, rotulo: str) -> str:
    if valor is None or not str(valor).strip():
        raise ValidacaoError(f"{rotulo} é obrigatório", [campo])
    return str(valor).strip()


def _area_positiva(area, campo: str = "area", obrigatoria: bool = False) -> Optional[Decimal]:
    if area is None:
        if obrigatoria:
            raise ValidacaoError("Área é obrigatória", [campo])
        return None
    if Decimal(area) <= 0:
        raise ValidacaoError("Área deve ser maior que zero", [campo])
    return Decimal(area)


class _CadastroService:
    """Base: exclusão em duas etapas e auditoria comum."""

    entidade: str = ""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def tem_historico(self, registro) -> bool:
        raise NotImplementedError

    def desativar(self, registro) -> None:
        registro.ativo = False

    def purgar(self, registro) -> None:
        self.uow.db.delete(registro)

    def _auditar(self, action: str, registro_id: str, company_id: str, user_id: Optional[str], summary: str = None):
        log_audit(
            self.uow.db, MODULE_CADASTROS, action, self.entidade, registro_id,
            summary=summary, user_id=user_id, company_id=company_id,
        )

    def _excluir(self, registro, company_id: str, user_id: Optional[str]) -> ExclusaoOut:
        registro_id = registro.id
        with self.uow.transaction():
            historico = self.tem_historico(registro)
            if historico:
                self.desativar(registro)
            else:
                self.purgar(registro)

        if historico:
            logger.info("%s desativado id=%s (possui histórico)", self.entidade, registro_id)
            self._auditar(ACTION_DEACTIVATE, registro_id, company_id, user_id)
            return ExclusaoOut(id=registro_id, desativado=True, message=f"{self.entidade} desativado (possui movimentações)")
        logger.info("%s excluído id=%s", self.entidade, registro_id)
        self._auditar(ACTION_DELETE, registro_id, company_id, user_id)
        return ExclusaoOut(id=registro_id, desativado=False, message=f"{self.entidade} excluído com sucesso")


# ===== PRODUTOS =====

class ProdutoService(_CadastroService):
    entidade = "Produto"

    def obter(self, company_id: str, produto_id: str) -> Produto:
        produto = self.uow.produtos.get(produto_id, company_id)
        if produto is None:
            raise NaoEncontradoError("Produto", produto_id)
        return produto

    def detalhar(self, produto: Produto) -> ProdutoOut:
        total_entradas, total_saidas = self.uow.produtos.contar_movimentos(produto.id)
        out = ProdutoOut.model_validate(produto)
        out.total_entradas = total_entradas
        out.total_saidas = total_saidas
        if produto.estoque is not None:
            out.quantidade = float(produto.estoque.quantidade)
            out.valor_medio = float(produto.estoque.valor_medio)
        return out

    def listar(self, company_id: str, filtro: FiltroProdutos) -> ProdutoPage:
        produtos, total = self.uow.produtos.list(company_id, filtro)
        return ProdutoPage(data=[self.detalhar(p) for p in produtos], pagination=Pagina.de(filtro, total))

    def criar(self, company_id: str, user_id: Optional[str], dados: ProdutoIn) -> Produto:
        nome = _obrigatorio(dados.nome, "nome", "Nome")
        unidade = _obrigatorio(dados.unidade, "unidade", "Unidade")

        with self.uow.transaction():
            produto = Produto(
                company_id=company_id,
                user_id=user_id,
                nome=nome,
                descricao=dados.descricao,
                unidade=unidade,
                categoria=dados.categoria,
                codigo_barras=dados.codigo_barras,
                ativo=dados.ativo,
            )
            self.uow.produtos.add(produto)
            self.uow.db.flush()
            EstoqueStore(self.uow).criar_vazio(produto.id, company_id)

        logger.info("Produto criado id=%s nome=%s", produto.id, nome)
        self._auditar(ACTION_CREATE, produto.id, company_id, user_id, summary=nome)
        return produto

    def atualizar(self, company_id: str, user_id: Optional[str], produto_id: str, dados: ProdutoUpdate) -> Produto:
        produto = self.obter(company_id, produto_id)
        mudancas = dados.model_dump(exclude_unset=True)
        if "nome" in mudancas:
            mudancas["nome"] = _obrigatorio(mudancas["nome"], "nome", "Nome")
        if "unidade" in mudancas:
            mudancas["unidade"] = _obrigatorio(mudancas["unidade"], "unidade", "Unidade")

        with self.uow.transaction():
            for campo, valor in mudancas.items():
                setattr(produto, campo, valor)

        self._auditar(ACTION_UPDATE, produto_id, company_id, user_id, summary=", ".join(mudancas))
        return produto

    def tem_historico(self, produto: Produto) -> bool:
        entradas, saidas = self.uow.produtos.contar_movimentos(produto.id)
        return entradas > 0 or saidas > 0

    def purgar(self, produto: Produto) -> None:
        if produto.estoque is not None:
            self.uow.estoques.delete(produto.estoque)
        self.uow.produtos.delete(produto)

    def excluir(self, company_id: str, user_id: Optional[str], produto_id: str) -> ExclusaoOut:
        return self._excluir(self.obter(company_id, produto_id), company_id, user_id)


# ===== FORNECEDORES =====

def _documentos(cnpj: Optional[str], cpf: Optional[str]) -> Dict[str, Optional[str]]:
    """Exatamente um documento, com dígito verificador válido. Guarda só os dígitos."""
    cnpj = somente_digitos(cnpj) or None
    cpf = somente_digitos(cpf) or None
    if cnpj and cpf:
        raise ValidacaoError("Informe apenas CPF ou CNPJ, não ambos", ["cnpj", "cpf"])
    if not cnpj and not cpf:
        raise ValidacaoError("CPF ou CNPJ é obrigatório", ["cnpj", "cpf"])
    if cnpj and not validar_cnpj(cnpj):
        raise ValidacaoError("CNPJ inválido", ["cnpj"])
    if cpf and not validar_cpf(cpf):
        raise ValidacaoError("CPF inválido", ["cpf"])
    return {"cnpj": cnpj, "cpf": cpf}


class FornecedorService(_CadastroService):
    entidade = "Fornecedor"

    def obter(self, company_id: str, fornecedor_id: str) -> Fornecedor:
        fornecedor = self.uow.fornecedores.get(fornecedor_id, company_id)
        if fornecedor is None:
            raise NaoEncontradoError("Fornecedor", fornecedor_id)
        return fornecedor

    def detalhar(self, fornecedor: Fornecedor) -> FornecedorOut:
        total, ultima, valor = self.uow.fornecedores.resumo_compras(fornecedor.id)
        out = FornecedorOut.model_validate(fornecedor)
        out.total_compras = total or 0
        out.ultima_compra = ultima
        out.valor_total_compras = float(valor or 0)
        return out

    def listar(self, company_id: str, filtro: FiltroFornecedores) -> FornecedorPage:
        fornecedores, total = self.uow.fornecedores.list(company_id, filtro)
        return FornecedorPage(data=[self.detalhar(f) for f in fornecedores], pagination=Pagina.de(filtro, total))

    def _checar_duplicado(self, company_id: str, docs: Dict[str, Optional[str]], excluir_id: Optional[str] = None):
        existente = self.uow.fornecedores.by_documento(company_id, docs["cnpj"], docs["cpf"], excluir_id)
        if existente is not None:
            if docs["cnpj"]:
                raise ValidacaoError(f"Já existe fornecedor com o CNPJ {formatar_cnpj(docs['cnpj'])}", ["cnpj"])
            raise ValidacaoError(f"Já existe fornecedor com o CPF {formatar_cpf(docs['cpf'])}", ["cpf"])

    def criar(self, company_id: str, user_id: Optional[str], dados: FornecedorIn) -> Fornecedor:
        nome = _obrigatorio(dados.nome, "nome", "Nome")
        docs = _documentos(dados.cnpj, dados.cpf)
        self._checar_duplicado(company_id, docs)

        with self.uow.transaction():
            fornecedor = Fornecedor(
                company_id=company_id,
                user_id=user_id,
                nome=nome,
                email=dados.email,
                telefone=dados.telefone,
                endereco=dados.endereco,
                ativo=dados.ativo,
                **docs,
            )
            self.uow.fornecedores.add(fornecedor)

        logger.info("Fornecedor criado id=%s nome=%s", fornecedor.id, nome)
        self._auditar(ACTION_CREATE, fornecedor.id, company_id, user_id, summary=nome)
        return fornecedor

    def atualizar(self, company_id: str, user_id: Optional[str], fornecedor_id: str, dados: FornecedorUpdate) -> Fornecedor:
        fornecedor = self.obter(company_id, fornecedor_id)
        mudancas: Dict[str, Any] = dados.model_dump(exclude_unset=True)
        if "nome" in mudancas:
            mudancas["nome"] = _obrigatorio(mudancas["nome"], "nome", "Nome")

        if "cnpj" in mudancas or "cpf" in mudancas:
            # Trocar o tipo de documento substitui o anterior
            cnpj = mudancas.get("cnpj") if "cnpj" in mudancas else (None if mudancas.get("cpf") else fornecedor.cnpj)
            cpf = mudancas.get("cpf") if "cpf" in mudancas else (None if mudancas.get("cnpj") else fornecedor.cpf)
            docs = _documentos(cnpj, cpf)
            self._checar_duplicado(company_id, docs, excluir_id=fornecedor_id)
            mudancas.update(docs)

        with self.uow.transaction():
            for campo, valor in mudancas.items():
                setattr(fornecedor, campo, valor)

        self._auditar(ACTION_UPDATE, fornecedor_id, company_id, user_id, summary=", ".join(mudancas))
        return fornecedor

    def tem_historico(self, fornecedor: Fornecedor) -> bool:
        total, _, _ = self.uow.fornecedores.resumo_compras(fornecedor.id)
        return bool(total)

    def excluir(self, company_id: str, user_id: Optional[str], fornecedor_id: str) -> ExclusaoOut:
        return self._excluir(self.obter(company_id, fornecedor_id), company_id, user_id)


# ===== TALHÕES =====

class TalhaoService(_CadastroService):
    entidade = "Talhão"

    def obter(self, company_id: str, talhao_id: str) -> Talhao:
        talhao = self.uow.talhoes.get(talhao_id, company_id)
        if talhao is None:
            raise NaoEncontradoError("Talhão", talhao_id)
        return talhao

    def detalhar(self, talhao: Talhao) -> TalhaoOut:
        total, ultima = self.uow.talhoes.resumo_aplicacoes(talhao.id)
        out = TalhaoOut.model_validate(talhao)
        out.total_aplicacoes = total or 0
        out.ultima_aplicacao = ultima
        return out

    def listar(self, company_id: str, filtro: FiltroTalhoes) -> TalhaoPage:
        talhoes, total = self.uow.talhoes.list(company_id, filtro)
        return TalhaoPage(data=[self.detalhar(t) for t in talhoes], pagination=Pagina.de(filtro, total))

    def _checar_nome(self, company_id: str, nome: str, excluir_id: Optional[str] = None):
        if self.uow.talhoes.by_nome(company_id, nome, excluir_id) is not None:
            raise ValidacaoError(f"Já existe um talhão com o nome '{nome}'", ["nome"])

    def _checar_fazenda(self, company_id: str, fazenda_id: Optional[str]):
        if fazenda_id and self.uow.fazendas.get(fazenda_id, company_id) is None:
            raise NaoEncontradoError("Fazenda", fazenda_id)

    def criar(self, company_id: str, user_id: Optional[str], dados: TalhaoIn) -> Talhao:
        nome = _obrigatorio(dados.nome, "nome", "Nome")
        area = _area_positiva(dados.area)
        self._checar_nome(company_id, nome)
        self._checar_fazenda(company_id, dados.fazenda_id)

        with self.uow.transaction():
            talhao = Talhao(
                company_id=company_id,
                user_id=user_id,
                fazenda_id=dados.fazenda_id,
                nome=nome,
                descricao=dados.descricao,
                area=area,
                localizacao=dados.localizacao,
                ativo=dados.ativo,
            )
            self.uow.talhoes.add(talhao)

        logger.info("Talhão criado id=%s nome=%s", talhao.id, nome)
        self._auditar(ACTION_CREATE, talhao.id, company_id, user_id, summary=nome)
        return talhao

    def atualizar(self, company_id: str, user_id: Optional[str], talhao_id: str, dados: TalhaoUpdate) -> Talhao:
        talhao = self.obter(company_id, talhao_id)
        mudancas = dados.model_dump(exclude_unset=True)
        if "nome" in mudancas:
            mudancas["nome"] = _obrigatorio(mudancas["nome"], "nome", "Nome")
            self._checar_nome(company_id, mudancas["nome"], excluir_id=talhao_id)
        if "area" in mudancas:
            mudancas["area"] = _area_positiva(mudancas["area"])
        if "fazenda_id" in mudancas:
            self._checar_fazenda(company_id, mudancas["fazenda_id"])

        with self.uow.transaction():
            for campo, valor in mudancas.items():
                setattr(talhao, campo, valor)

        self._auditar(ACTION_UPDATE, talhao_id, company_id, user_id, summary=", ".join(mudancas))
        return talhao

    def tem_historico(self, talhao: Talhao) -> bool:
        total, _ = self.uow.talhoes.resumo_aplicacoes(talhao.id)
        return bool(total)

    def excluir(self, company_id: str, user_id: Optional[str], talhao_id: str) -> ExclusaoOut:
        return self._excluir(self.obter(company_id, talhao_id), company_id, user_id)


# ===== FAZENDAS =====

class FazendaService(_CadastroService):
    """Fazendas não têm flag ativo: com talhões vinculados a exclusão é recusada."""

    entidade = "Fazenda"

    def obter(self, company_id: str, fazenda_id: str) -> Fazenda:
        fazenda = self.uow.fazendas.get(fazenda_id, company_id)
        if fazenda is None:
            raise NaoEncontradoError("Fazenda", fazenda_id)
        return fazenda

    def detalhar(self, fazenda: Fazenda) -> FazendaOut:
        out = FazendaOut.model_validate(fazenda)
        out.total_talhoes = self.uow.fazendas.contar_talhoes(fazenda.id)
        return out

    def listar(self, company_id: str) -> List[FazendaOut]:
        return [self.detalhar(f) for f in self.uow.fazendas.list(company_id)]

    def criar(self, company_id: str, user_id: Optional[str], dados: FazendaIn) -> Fazenda:
        nome = _obrigatorio(dados.name, "name", "Nome")
        area = _area_positiva(dados.area, obrigatoria=True)

        with self.uow.transaction():
            fazenda = Fazenda(company_id=company_id, user_id=user_id, name=nome, area=area)
            self.uow.fazendas.add(fazenda)

        logger.info("Fazenda criada id=%s nome=%s", fazenda.id, nome)
        self._auditar(ACTION_CREATE, fazenda.id, company_id, user_id, summary=nome)
        return fazenda

    def atualizar(self, company_id: str, user_id: Optional[str], fazenda_id: str, dados: FazendaUpdate) -> Fazenda:
        fazenda = self.obter(company_id, fazenda_id)
        mudancas = dados.model_dump(exclude_unset=True)
        if "name" in mudancas:
            mudancas["name"] = _obrigatorio(mudancas["name"], "name", "Nome")
        if "area" in mudancas:
            mudancas["area"] = _area_positiva(mudancas["area"], obrigatoria=True)

        with self.uow.transaction():
            for campo, valor in mudancas.items():
                setattr(fazenda, campo, valor)

        self._auditar(ACTION_UPDATE, fazenda_id, company_id, user_id, summary=", ".join(mudancas))
        return fazenda

    def tem_historico(self, fazenda: Fazenda) -> bool:
        return self.uow.fazendas.contar_talhoes(fazenda.id) > 0

    def desativar(self, fazenda: Fazenda) -> None:
        raise ValidacaoError("Fazenda possui talhões vinculados e não pode ser excluída", ["id"])

    def purgar(self, fazenda: Fazenda) -> None:
        self.uow.fazendas.delete(fazenda)

    def excluir(self, company_id: str, user_id: Optional[str], fazenda_id: str) -> ExclusaoOut:
        return self._excluir(self.obter(company_id, fazenda_id), company_id, user_id)
