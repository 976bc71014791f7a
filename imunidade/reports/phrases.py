from __future__ import annotations

import datetime
from fractions import Fraction
from typing import NamedTuple

from dateutil.relativedelta import relativedelta

from imunidade import HERD_FRACTION
from imunidade.utils.validate import ensure_aware

"""
Texto da estimativa em português.

- duration_parts(): decompõe o intervalo em anos/meses/dias de CALENDÁRIO
  (respeita o tamanho real dos meses, não divide por 30/365).
- format_duration(): "falta 1 mês", "faltam 1 ano, 1 mês e 1 dia", ...
- estimate_phrase(): trata o caso especial de zero dias (meta atingida).
- compose_message(): frase + barras de progresso, pronta para publicar.
"""

ZERO_PHRASE = "0 dias"
ALREADY_IMMUNE_MSG = "A população brasileira já está imunizada!"


class DurationParts(NamedTuple):
    years: int
    months: int
    days: int


def _as_timedelta(duration: int | datetime.timedelta) -> datetime.timedelta:
    if isinstance(duration, datetime.timedelta):
        return duration
    return datetime.timedelta(days=duration)


def duration_parts(
    now: datetime.datetime, duration: int | datetime.timedelta
) -> DurationParts:
    """Anos, meses e dias inteiros entre `now` e `now + duration`."""
    delta = _as_timedelta(duration)
    if delta < datetime.timedelta(0):
        raise ValueError(f"Duração negativa: {delta}.")
    start = ensure_aware(now)
    rd = relativedelta(start + delta, start)
    return DurationParts(years=rd.years, months=rd.months, days=rd.days)


def _unit(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def format_duration(now: datetime.datetime, duration: int | datetime.timedelta) -> str:
    parts = duration_parts(now, duration)

    items: list[str] = []
    if parts.years > 0:
        items.append(_unit(parts.years, "ano", "anos"))
    if parts.months > 0:
        items.append(_unit(parts.months, "mês", "meses"))
    if parts.days > 0:
        items.append(_unit(parts.days, "dia", "dias"))

    if len(items) == 0:
        text = ZERO_PHRASE
    elif len(items) == 1:
        text = items[0]
    elif len(items) == 2:
        text = " e ".join(items)
    elif len(items) == 3:
        text = f"{items[0]}, {items[1]} e {items[2]}"
    else:
        raise RuntimeError(f"Componentes de duração inesperados: {items!r}")

    # Concordância pelo primeiro caractere do numeral, não pelo valor
    if len(items) == 1 and items[0].startswith("1"):
        return f"falta {text}"
    return f"faltam {text}"


def estimate_phrase(now: datetime.datetime, days: int) -> str:
    """Frase da estimativa; zero dias significa meta já atingida."""
    if days == 0:
        return ALREADY_IMMUNE_MSG
    return format_duration(now, days)


def compose_message(
    now: datetime.datetime,
    days: int,
    progress_block: str,
    herd_fraction: Fraction = HERD_FRACTION,
) -> str:
    """Texto final: estimativa + bloco de progresso, separados por linha em branco."""
    phrase = estimate_phrase(now, days)
    if days == 0:
        head = phrase
    else:
        pct = round(float(herd_fraction) * 100)
        head = (
            f"{phrase[0].upper()}{phrase[1:]} para {pct}% da população brasileira "
            "estar imunizada, no ritmo atual de vacinação."
        )
    return f"{head}\n\n{progress_block}"
