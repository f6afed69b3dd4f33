from enum import Enum

class UserRole(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"

class TipoEntrada(str, Enum):
    COMPRA = "COMPRA"
    TRANSFERENCIA_POSITIVA = "TRANSFERENCIA_POSITIVA"

class TipoSaida(str, Enum):
    APLICACAO = "APLICACAO"
    TRANSFERENCIA_NEGATIVA = "TRANSFERENCIA_NEGATIVA"

class StatusEstoque(str, Enum):
    SEM_ESTOQUE = "SEM_ESTOQUE"
    ESTOQUE_BAIXO = "ESTOQUE_BAIXO"
    ESTOQUE_OK = "ESTOQUE_OK"
