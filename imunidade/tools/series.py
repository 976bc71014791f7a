from __future__ import annotations

import datetime
from typing import NamedTuple, Sequence

from imunidade import UTC_OFFSET_HOURS, WINDOW_DAYS
from imunidade.tools.records import CountryRecord, VaccinationRecord
from imunidade.utils.errors import InsufficientDataError
from imunidade.utils.validate import local_date, validate_location


class Window(NamedTuple):
    """Linha "atual" e a linha `window` dias antes dela."""

    current: VaccinationRecord
    anchor: VaccinationRecord


def qualifying_rows(
    records: Sequence[VaccinationRecord],
    now: datetime.datetime,
    utc_offset_hours: int = UTC_OFFSET_HOURS,
) -> list[VaccinationRecord]:
    """
    Linhas do agregado nacional, na ordem do arquivo, sem as do dia local de
    `now` (dados do próprio dia ainda são provisórios).
    Lança InsufficientDataError se as datas não forem estritamente crescentes.
    """
    today = local_date(now, utc_offset_hours)
    rows = [r for r in records if r.is_aggregate and r.date != today]

    for prev, cur in zip(rows, rows[1:]):
        if cur.date <= prev.date:
            raise InsufficientDataError(
                f"Datas fora de ordem ou repetidas: {prev.date} seguida de {cur.date}."
            )
    return rows


def select_window(
    records: Sequence[VaccinationRecord],
    now: datetime.datetime,
    window: int = WINDOW_DAYS,
    utc_offset_hours: int = UTC_OFFSET_HOURS,
) -> Window:
    """
    Escolhe a última linha qualificada (atual) e a que está `window` posições
    antes dela (âncora). As `window + 1` linhas finais devem cobrir dias
    consecutivos; lacunas invalidam a janela.
    """
    if window < 1:
        raise ValueError(f"Janela inválida: {window}.")

    rows = qualifying_rows(records, now, utc_offset_hours)
    if not rows:
        raise InsufficientDataError("Nenhum dado de vacinação agregado encontrado.")
    if len(rows) < window + 1:
        raise InsufficientDataError(
            f"Dados insuficientes: {len(rows)} dia(s), a janela exige {window + 1}."
        )

    current = rows[-1]
    anchor = rows[-1 - window]
    gap = (current.date - anchor.date).days
    if gap != window:
        raise InsufficientDataError(
            f"Lacuna na série: {anchor.date} a {current.date} são {gap} dias, "
            f"esperado {window}."
        )
    return Window(current=current, anchor=anchor)


def select_latest(records: Sequence[CountryRecord], location: str) -> CountryRecord:
    """Última linha do país informado (modo sem janela móvel)."""
    loc = validate_location(location)
    last: CountryRecord | None = None
    for r in records:
        if r.location == loc:
            last = r
    if last is None:
        raise InsufficientDataError(f"Nenhum dado de vacinação encontrado para {loc}.")
    return last
