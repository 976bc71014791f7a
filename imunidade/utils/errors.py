from __future__ import annotations

"""
Taxonomia de erros da estimativa.

Todas as falhas fatais herdam de EstimateError (um ValueError), para que o
chamador possa tratá-las juntas ou separadamente.
"""


class EstimateError(ValueError):
    """Falha fatal no cálculo da estimativa."""


class InsufficientDataError(EstimateError):
    """Nenhuma linha qualificada, ou menos linhas do que a janela exige."""


class MissingDataError(EstimateError):
    """Um campo numérico obrigatório não foi reportado na linha escolhida."""


class ZeroRateError(EstimateError, ZeroDivisionError):
    """Taxa diária igual a zero: não há como projetar a duração."""


__all__ = [
    "EstimateError",
    "InsufficientDataError",
    "MissingDataError",
    "ZeroRateError",
]
