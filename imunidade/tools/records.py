from __future__ import annotations

import datetime
import io
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

import pandas as pd

from imunidade.tools import AGGREGATE_LABEL, OWID_COLS, STATE_COLS
from imunidade.utils.audit import log_kv, write_event

"""
Decodificação do CSV de vacinação em registros tipados.

- As colunas são casadas pelo NOME do cabeçalho (a ordem no arquivo não importa).
- Campos numéricos vazios viram None ("não reportado"), nunca zero.
- Linhas que não decodificam são descartadas e logadas; o restante segue.
"""

R = TypeVar("R")


class RegionKind(Enum):
    """Tipo da linha: agregado nacional ou uma subdivisão (UF)."""

    AGGREGATE = "aggregate"
    SUBDIVISION = "subdivision"

    @classmethod
    def from_label(cls, label: str) -> "RegionKind":
        return cls.AGGREGATE if label == AGGREGATE_LABEL else cls.SUBDIVISION


# ------------------ Helpers de conversão ------------------ #
def _blank(x: Any) -> bool:
    if x is None:
        return True
    return str(x).strip() == ""


def _to_int(x: Any) -> Optional[int]:
    """Contagem acumulada: vazio -> None; valor inválido ou negativo -> ValueError."""
    if _blank(x):
        return None
    s = str(x).strip()
    try:
        n = int(s)
    except ValueError:
        f = float(s)
        if not f.is_integer():
            raise ValueError(f"contagem não inteira: {s!r}")
        n = int(f)
    if n < 0:
        raise ValueError(f"contagem negativa: {s!r}")
    return n


def _to_float(x: Any) -> Optional[float]:
    if _blank(x):
        return None
    return float(str(x).strip())


def _to_str(x: Any) -> str:
    if _blank(x):
        raise ValueError("campo texto obrigatório vazio")
    return str(x).strip()


def _to_date(x: Any) -> datetime.date:
    """Datas no formato YYYY-MM-DD."""
    return datetime.date.fromisoformat(_to_str(x))


# ------------------ Registros ------------------ #
@dataclass(frozen=True)
class VaccinationRecord:
    """Uma linha do CSV por UF: uma região em um dia."""

    date: datetime.date
    region_label: str
    region_kind: RegionKind
    vaccinated: Optional[int]
    vaccinated_second: Optional[int]
    vaccinated_single: Optional[int]
    vaccinated_per_100: Optional[float]
    vaccinated_second_per_100: Optional[float]
    vaccinated_single_per_100: Optional[float]

    @property
    def is_aggregate(self) -> bool:
        return self.region_kind is RegionKind.AGGREGATE

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "VaccinationRecord":
        label = _to_str(row.get("state"))
        return cls(
            date=_to_date(row.get("date")),
            region_label=label,
            region_kind=RegionKind.from_label(label),
            vaccinated=_to_int(row.get("vaccinated")),
            vaccinated_second=_to_int(row.get("vaccinated_second")),
            vaccinated_single=_to_int(row.get("vaccinated_single")),
            vaccinated_per_100=_to_float(row.get("vaccinated_per_100_inhabitants")),
            vaccinated_second_per_100=_to_float(
                row.get("vaccinated_second_per_100_inhabitants")
            ),
            vaccinated_single_per_100=_to_float(
                row.get("vaccinated_single_per_100_inhabitants")
            ),
        )


@dataclass(frozen=True)
class CountryRecord:
    """Uma linha do CSV por país (Our World in Data)."""

    location: str
    iso_code: str
    date: datetime.date
    total_vaccinations: Optional[int]
    people_vaccinated: Optional[int]
    people_fully_vaccinated: Optional[int]
    daily_vaccinations_raw: Optional[int]
    daily_vaccinations: Optional[int]
    total_vaccinations_per_hundred: Optional[float]
    people_vaccinated_per_hundred: Optional[float]
    people_fully_vaccinated_per_hundred: Optional[float]
    daily_vaccinations_per_million: Optional[int]

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "CountryRecord":
        return cls(
            location=_to_str(row.get("location")),
            iso_code=_to_str(row.get("iso_code")),
            date=_to_date(row.get("date")),
            total_vaccinations=_to_int(row.get("total_vaccinations")),
            people_vaccinated=_to_int(row.get("people_vaccinated")),
            people_fully_vaccinated=_to_int(row.get("people_fully_vaccinated")),
            daily_vaccinations_raw=_to_int(row.get("daily_vaccinations_raw")),
            daily_vaccinations=_to_int(row.get("daily_vaccinations")),
            total_vaccinations_per_hundred=_to_float(
                row.get("total_vaccinations_per_hundred")
            ),
            people_vaccinated_per_hundred=_to_float(
                row.get("people_vaccinated_per_hundred")
            ),
            people_fully_vaccinated_per_hundred=_to_float(
                row.get("people_fully_vaccinated_per_hundred")
            ),
            daily_vaccinations_per_million=_to_int(
                row.get("daily_vaccinations_per_million")
            ),
        )


# ------------------ Leitura ------------------ #
def _read_frame(text: str, wanted_cols: list[str]) -> pd.DataFrame:
    return pd.read_csv(
        io.StringIO(text),
        usecols=lambda c: c in wanted_cols,
        dtype=str,
        keep_default_na=False,
        on_bad_lines="skip",
    )


def _read_line_by_line(csv_text: str, wanted_cols: list[str], rid: str) -> pd.DataFrame:
    """
    Releitura linha a linha (cabeçalho + 1 linha por vez), usada quando o
    arquivo inteiro não tokeniza (ex.: aspas sem fechamento).
    Linhas que continuam falhando são descartadas.
    """
    lines = csv_text.splitlines()
    header, body = lines[0], lines[1:]
    frames: list[pd.DataFrame] = []
    for pos, line in enumerate(body):
        if not line.strip():
            continue
        try:
            frames.append(_read_frame(f"{header}\n{line}\n", wanted_cols))
        except pd.errors.ParserError as e:
            write_event(
                "csv.row_skipped", level="DEBUG", run_id=rid, row=pos, error=str(e)
            )
    if not frames:
        return pd.DataFrame(columns=wanted_cols)
    return pd.concat(frames, ignore_index=True)


def _read_csv_text(
    csv_text: str, wanted_cols: list[str], run_id: str | None = None
) -> pd.DataFrame:
    """
    Lê o CSV como texto puro (sem inferência de tipos) usando apenas as
    colunas de 'wanted_cols' presentes no cabeçalho.
    Linhas com campos a mais são descartadas pelo próprio pandas; um erro de
    tokenização não aborta a leitura (cai para a releitura linha a linha).
    """
    rid = run_id or "n/a"
    if not csv_text.strip():
        return pd.DataFrame(columns=wanted_cols)
    try:
        return _read_frame(csv_text, wanted_cols)
    except pd.errors.ParserError as e:
        log_kv(rid, "csv.parse_error", error=str(e))
        return _read_line_by_line(csv_text, wanted_cols, rid)


def _missing_cells(row: dict[str, Any]) -> list[str]:
    """
    Com keep_default_na=False, células vazias chegam como "". NaN só aparece
    quando a linha tem menos campos que o cabeçalho.
    """
    return [k for k, v in row.items() if isinstance(v, float) and pd.isna(v)]


def decode_records(
    csv_text: str,
    from_row: Callable[[dict[str, Any]], R],
    wanted_cols: list[str],
    run_id: str | None = None,
) -> list[R]:
    """
    Decodifica cada linha com `from_row`, preservando a ordem do arquivo.
    Linhas truncadas ou que levantam ValueError são puladas (evento csv.row_skipped).
    """
    rid = run_id or "n/a"
    df = _read_csv_text(csv_text, wanted_cols, run_id=rid)

    out: list[R] = []
    skipped = 0
    for idx, row in zip(df.index, df.to_dict(orient="records")):
        try:
            missing = _missing_cells(row)
            if missing:
                raise ValueError(f"linha truncada, faltam: {', '.join(missing)}")
            out.append(from_row(row))
        except ValueError as e:
            skipped += 1
            write_event(
                "csv.row_skipped", level="DEBUG", run_id=rid, row=int(idx), error=str(e)
            )

    log_kv(rid, "csv.decoded", rows=len(out), skipped=skipped)
    return out


def decode_vaccination_csv(
    csv_text: str, run_id: str | None = None
) -> list[VaccinationRecord]:
    return decode_records(csv_text, VaccinationRecord.from_row, STATE_COLS, run_id)


def decode_country_csv(csv_text: str, run_id: str | None = None) -> list[CountryRecord]:
    return decode_records(csv_text, CountryRecord.from_row, OWID_COLS, run_id)
