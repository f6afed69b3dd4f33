"""
Permissões por papel
====================

Tabela ordenada de regras por papel. A primeira regra que casa permite;
sem regra, nega.

O sujeito pode ser o nome do tipo ("Entrada") ou uma instância (objeto ORM
ou dict). O tipo de uma instância vem da chave "__typename" ou do nome da
classe. Regras condicionais (dono do registro) só casam com instâncias.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Union

from ..domain.enums import UserRole
from ..application.errors import PermissaoNegadaError

MANAGE = "manage"
CREATE = "create"
READ = "read"
UPDATE = "update"
DELETE = "delete"

ALL = "all"

# Nome da classe ORM -> sujeito
_ALIASES = {"User": "Usuario"}

Sujeito = Union[str, Any]
Condicao = Callable[[Any, str], bool]


def _campo(instancia: Any, nome: str) -> Any:
    if isinstance(instancia, dict):
        return instancia.get(nome)
    return getattr(instancia, nome, None)


def _dono(instancia: Any, user_id: str) -> bool:
    return _campo(instancia, "user_id") == user_id


def _proprio_usuario(instancia: Any, user_id: str) -> bool:
    return _campo(instancia, "id") == user_id


@dataclass(frozen=True)
class Regra:
    acoes: FrozenSet[str]
    sujeito: str
    condicao: Optional[Condicao] = None

    def casa(self, acao: str, tipo: str, instancia: Any, user_id: str) -> bool:
        if MANAGE not in self.acoes and acao not in self.acoes:
            return False
        if self.sujeito != ALL and self.sujeito != tipo:
            return False
        if self.condicao is None:
            return True
        if instancia is None:
            return False
        return self.condicao(instancia, user_id)


def _regras_cadastro(sujeito: str) -> List[Regra]:
    return [
        Regra(frozenset({READ, CREATE}), sujeito),
        Regra(frozenset({UPDATE, DELETE}), sujeito, _dono),
    ]


ROLE_RULES: Dict[UserRole, List[Regra]] = {
    UserRole.ADMIN: [
        Regra(frozenset({MANAGE}), ALL),
    ],
    UserRole.USER: [
        *_regras_cadastro("Entrada"),
        *_regras_cadastro("Saida"),
        *_regras_cadastro("Fornecedor"),
        *_regras_cadastro("Produto"),
        *_regras_cadastro("Talhao"),
        Regra(frozenset({READ, UPDATE}), "Usuario", _proprio_usuario),
    ],
}


def tipo_do_sujeito(sujeito: Sujeito) -> str:
    if isinstance(sujeito, str):
        return sujeito
    if isinstance(sujeito, dict) and sujeito.get("__typename"):
        return sujeito["__typename"]
    nome = type(sujeito).__name__
    return _ALIASES.get(nome, nome)


def decide(role: UserRole, acao: str, sujeito: Sujeito, user_id: str) -> bool:
    """Função pura: True se alguma regra do papel permite a ação."""
    tipo = tipo_do_sujeito(sujeito)
    instancia = None if isinstance(sujeito, str) else sujeito
    for regra in ROLE_RULES.get(role, []):
        if regra.casa(acao, tipo, instancia, user_id):
            return True
    return False


def pode(sessao, acao: str, sujeito: Sujeito) -> bool:
    return decide(sessao.role, acao, sujeito, sessao.user_id)


def exigir(sessao, acao: str, sujeito: Sujeito) -> None:
    if not pode(sessao, acao, sujeito):
        raise PermissaoNegadaError(
            f"Sem permissão para {acao} {tipo_do_sujeito(sujeito)}"
        )
