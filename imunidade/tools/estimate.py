from __future__ import annotations

import math
from fractions import Fraction
from typing import NamedTuple, Sequence

import pandas as pd

from imunidade import HERD_FRACTION, POPULATION, WINDOW_DAYS
from imunidade.tools.records import CountryRecord, VaccinationRecord
from imunidade.utils.errors import MissingDataError, ZeroRateError


class RateSummary(NamedTuple):
    total: int
    daily_rate: int


class ProgressRatios(NamedTuple):
    """Cobertura de 1ª dose e de 2ª dose, ambas já somando a dose única."""

    first: float
    second: float


def vaccinated_total(record: VaccinationRecord) -> int:
    """
    Doses equivalentes aplicadas: 1ª + 2ª + 2 x dose única
    (a dose única conta como esquema completo).
    """
    counts = (record.vaccinated, record.vaccinated_second, record.vaccinated_single)
    if any(c is None for c in counts):
        raise MissingDataError(
            f"Dados de vacinação ausentes em {record.date} ({record.region_label})."
        )
    first, second, single = counts
    return first + second + 2 * single


def aggregate_rate(
    current: VaccinationRecord,
    anchor: VaccinationRecord,
    window: int = WINDOW_DAYS,
) -> RateSummary:
    """
    Total atual e média diária na janela (divisão inteira).
    Uma queda no acumulado (correção retroativa da fonte) vira taxa 0, que o
    estimador rejeita com ZeroRateError.
    """
    total = vaccinated_total(current)
    delta = total - vaccinated_total(anchor)
    return RateSummary(total=total, daily_rate=max(0, delta) // window)


def estimate_days(
    total_vaccinations: int,
    daily_rate: int,
    population: int = POPULATION,
    herd_fraction: Fraction = HERD_FRACTION,
) -> int:
    """
    Dias até 2 doses para `herd_fraction` da população, no ritmo atual.
    Nunca negativo; taxa zero é erro, não "duração infinita".
    """
    if daily_rate <= 0:
        raise ZeroRateError(f"Taxa diária de vacinação inválida: {daily_rate}.")
    if population < 0:
        raise ValueError(f"População inválida: {population}.")

    herd_size = math.floor(population * Fraction(herd_fraction))
    doses = max(0, herd_size * 2 - total_vaccinations)
    return doses // daily_rate


def progress_ratios(record: VaccinationRecord) -> ProgressRatios:
    """Converte os percentuais por 100 habitantes em razões (0.0 a 1.0+)."""
    pcts = (
        record.vaccinated_per_100,
        record.vaccinated_second_per_100,
        record.vaccinated_single_per_100,
    )
    if any(p is None for p in pcts):
        raise MissingDataError(
            f"Percentuais de vacinação ausentes em {record.date} ({record.region_label})."
        )
    first, second, single = pcts
    return ProgressRatios(first=(first + single) / 100, second=(second + single) / 100)


def totals_frame(rows: Sequence[VaccinationRecord]) -> pd.DataFrame:
    """Série diária do total de doses equivalentes (linhas incompletas ficam de fora)."""
    data = [
        {"day": r.date, "doses": vaccinated_total(r)}
        for r in rows
        if None not in (r.vaccinated, r.vaccinated_second, r.vaccinated_single)
    ]
    return pd.DataFrame(data, columns=["day", "doses"])


def country_progress_ratios(record: CountryRecord) -> ProgressRatios:
    """No CSV por país a dose única já entra em ambos os percentuais."""
    first = record.people_vaccinated_per_hundred
    second = record.people_fully_vaccinated_per_hundred
    if first is None or second is None:
        raise MissingDataError(
            f"Percentuais de vacinação ausentes em {record.date} ({record.location})."
        )
    return ProgressRatios(first=first / 100, second=second / 100)
