"""
Taxonomia de erros da aplicação.

O chamador precisa distinguir "corrija sua entrada" (ValidacaoError,
NaoEncontradoError), "o estoque mudou" (EstoqueInsuficienteError,
ReversaoImpossivelError) e "falha de infraestrutura, tente de novo"
(TransacaoError). A conversão para HTTP acontece só na borda (main.py).
"""
from decimal import Decimal
from typing import List, Optional


class EstoqueAgricolaError(Exception):
    """Exceção base de todos os erros de domínio"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidacaoError(EstoqueAgricolaError):
    """Entrada malformada ou semanticamente inválida"""

    def __init__(self, message: str, campos: Optional[List[str]] = None):
        super().__init__(message)
        self.campos = campos or []


class NaoEncontradoError(EstoqueAgricolaError):
    """Registro referenciado não existe dentro da empresa do chamador"""

    def __init__(self, entidade: str, entidade_id: Optional[str] = None):
        super().__init__(f"{entidade} não encontrado(a)")
        self.entidade = entidade
        self.entidade_id = entidade_id


class PermissaoNegadaError(EstoqueAgricolaError):
    pass


class EstoqueInsuficienteError(EstoqueAgricolaError):
    """Uma saída levaria o estoque abaixo de zero"""

    def __init__(self, disponivel: Decimal, message: str = "Estoque insuficiente para esta operação"):
        super().__init__(message)
        self.disponivel = disponivel


class ReversaoImpossivelError(EstoqueAgricolaError):
    """
    Reverter uma entrada exigiria retirar mais do que existe hoje no estoque,
    porque saídas posteriores já consumiram a quantidade que ela trouxe.
    """

    def __init__(self, disponivel: Decimal, necessario: Decimal):
        super().__init__(
            "Não é possível reverter esta entrada. Estoque insuficiente para reverter a operação."
        )
        self.disponivel = disponivel
        self.necessario = necessario


class TransacaoError(EstoqueAgricolaError):
    """A unidade transacional abortou; nenhum estado parcial foi persistido"""
    pass
