"""
Empresas e usuários
===================

Cadastro de empresa com o primeiro usuário ADMIN e diretório de usuários
restrito à empresa do chamador.
"""
from typing import Optional, Tuple
import logging

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import UserRole
from ..domain.models import Company, User
from ..security.auth import get_password_hash, validar_senha_forte
from .dtos import CompanyIn, CompanyUpdate, UserIn, UserUpdate, UserOut, UserPage, Paginacao, Pagina
from .errors import ValidacaoError, NaoEncontradoError, PermissaoNegadaError
from .documentos import somente_digitos, validar_cpf, validar_cnpj
from .services_audit import (
    log_audit, MODULE_USUARIOS, MODULE_CADASTROS, ACTION_CREATE, ACTION_UPDATE, ACTION_DELETE, ACTION_CHANGE_ROLE,
)

logger = logging.getLogger(__name__)


def _email(valor: Optional[str]) -> str:
    email = (valor or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidacaoError("E-mail inválido", ["email"])
    return email


class CompanyService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def obter(self, company_id: str) -> Company:
        company = self.uow.companies.get(company_id)
        if company is None:
            raise NaoEncontradoError("Empresa", company_id)
        return company

    def registrar(self, dados: CompanyIn) -> Tuple[Company, User]:
        """Cria a empresa e o seu primeiro usuário (ADMIN) na mesma transação."""
        if not dados.name or not dados.name.strip():
            raise ValidacaoError("Nome da empresa é obrigatório", ["name"])
        cnpj = somente_digitos(dados.cnpj) or None
        cpf = somente_digitos(dados.cpf) or None
        if cnpj and not validar_cnpj(cnpj):
            raise ValidacaoError("CNPJ inválido", ["cnpj"])
        if cpf and not validar_cpf(cpf):
            raise ValidacaoError("CPF inválido", ["cpf"])
        if self.uow.companies.by_documento(cnpj, cpf) is not None:
            raise ValidacaoError("Já existe empresa com este documento", ["cnpj", "cpf"])

        email = _email(dados.admin_email)
        if self.uow.users.by_email(email) is not None:
            raise ValidacaoError("E-mail já cadastrado", ["admin_email"])
        validar_senha_forte(dados.admin_password)

        with self.uow.transaction():
            company = Company(
                name=dados.name.strip(),
                cnpj=cnpj,
                cpf=cpf,
                email=dados.email,
                telefone=dados.telefone,
                endereco=dados.endereco,
                active=True,
            )
            self.uow.companies.add(company)
            self.uow.db.flush()
            admin = User(
                name=dados.admin_name,
                email=email,
                password_hash=get_password_hash(dados.admin_password),
                role=UserRole.ADMIN,
                company_id=company.id,
            )
            self.uow.users.add(admin)

        logger.info("Empresa registrada id=%s admin=%s", company.id, email)
        log_audit(
            self.uow.db, MODULE_CADASTROS, ACTION_CREATE, "Company", company.id,
            summary=company.name, user_id=admin.id, company_id=company.id,
        )
        return company, admin

    def atualizar(self, company_id: str, user_id: str, dados: CompanyUpdate) -> Company:
        company = self.obter(company_id)
        mudancas = dados.model_dump(exclude_unset=True)
        with self.uow.transaction():
            for campo, valor in mudancas.items():
                setattr(company, campo, valor)
        log_audit(
            self.uow.db, MODULE_CADASTROS, ACTION_UPDATE, "Company", company_id,
            summary=", ".join(mudancas), user_id=user_id, company_id=company_id,
        )
        return company


class UsuarioService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def obter(self, company_id: str, user_id: str) -> User:
        user = self.uow.users.get(user_id, company_id)
        if user is None:
            raise NaoEncontradoError("Usuário", user_id)
        return user

    def listar(self, company_id: str, search: Optional[str], paginacao: Paginacao) -> UserPage:
        users, total = self.uow.users.list(company_id, search, paginacao.offset, paginacao.limit)
        return UserPage(data=[UserOut.model_validate(u) for u in users], pagination=Pagina.de(paginacao, total))

    def criar(self, company_id: str, autor_id: str, dados: UserIn) -> User:
        if not dados.name or not dados.name.strip():
            raise ValidacaoError("Nome é obrigatório", ["name"])
        email = _email(dados.email)
        if self.uow.users.by_email(email) is not None:
            raise ValidacaoError("E-mail já cadastrado", ["email"])
        validar_senha_forte(dados.password)

        with self.uow.transaction():
            user = User(
                name=dados.name.strip(),
                email=email,
                password_hash=get_password_hash(dados.password),
                role=dados.role,
                avatar_url=dados.avatar_url,
                company_id=company_id,
            )
            self.uow.users.add(user)

        logger.info("Usuário criado id=%s email=%s", user.id, email)
        log_audit(
            self.uow.db, MODULE_USUARIOS, ACTION_CREATE, "User", user.id,
            summary=email, user_id=autor_id, company_id=company_id,
        )
        return user

    def atualizar(self, company_id: str, autor_id: str, autor_admin: bool, user_id: str, dados: UserUpdate) -> User:
        user = self.obter(company_id, user_id)
        mudancas = dados.model_dump(exclude_unset=True)

        if "role" in mudancas and mudancas["role"] != user.role:
            if not autor_admin:
                raise PermissaoNegadaError("Apenas administradores podem alterar o papel de um usuário")
        if "email" in mudancas:
            mudancas["email"] = _email(mudancas["email"])
            existente = self.uow.users.by_email(mudancas["email"])
            if existente is not None and existente.id != user_id:
                raise ValidacaoError("E-mail já cadastrado", ["email"])
        if "password" in mudancas:
            validar_senha_forte(mudancas["password"])
            mudancas["password_hash"] = get_password_hash(mudancas.pop("password"))

        papel_anterior = user.role
        with self.uow.transaction():
            for campo, valor in mudancas.items():
                setattr(user, campo, valor)

        action = ACTION_CHANGE_ROLE if user.role != papel_anterior else ACTION_UPDATE
        log_audit(
            self.uow.db, MODULE_USUARIOS, action, "User", user_id,
            summary=", ".join(k for k in mudancas if k != "password_hash") or None,
            user_id=autor_id, company_id=company_id,
        )
        return user

    def excluir(self, company_id: str, autor_id: str, user_id: str) -> None:
        user = self.obter(company_id, user_id)
        if user_id == autor_id:
            raise ValidacaoError("Não é possível excluir o próprio usuário", ["id"])
        if self.uow.users.contar_registros(user_id) > 0:
            raise ValidacaoError("Usuário possui registros vinculados e não pode ser excluído", ["id"])
        with self.uow.transaction():
            self.uow.users.delete(user)
        logger.info("Usuário excluído id=%s", user_id)
        log_audit(
            self.uow.db, MODULE_USUARIOS, ACTION_DELETE, "User", user_id,
            user_id=autor_id, company_id=company_id,
        )
