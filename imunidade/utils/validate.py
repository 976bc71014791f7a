from __future__ import annotations

import datetime

from imunidade import UTC_OFFSET_HOURS


def ensure_aware(now: datetime.datetime) -> datetime.datetime:
    """Instantes sem timezone são tratados como UTC."""
    if now.tzinfo is None or now.tzinfo.utcoffset(now) is None:
        return now.replace(tzinfo=datetime.UTC)
    return now


def parse_now(
    value: str | None, offset_hours: int = UTC_OFFSET_HOURS
) -> datetime.datetime:
    """
    Converte o --now da CLI (ISO-8601) em instante com timezone.
    - Sem valor -> relógio atual (UTC).
    - Só a data (YYYY-MM-DD) -> meia-noite daquele dia no fuso local.
    - Data e hora sem offset -> UTC.
    Lança ValueError se o formato for inválido.
    """
    if not value:
        return datetime.datetime.now(datetime.UTC)
    s = value.strip()
    if len(s) == 10:
        day = datetime.date.fromisoformat(s)
        tz = datetime.timezone(datetime.timedelta(hours=offset_hours))
        return datetime.datetime(day.year, day.month, day.day, tzinfo=tz)
    return ensure_aware(datetime.datetime.fromisoformat(s))


def local_date(
    now: datetime.datetime, offset_hours: int = UTC_OFFSET_HOURS
) -> datetime.date:
    """Data do calendário local (offset fixo, sem horário de verão)."""
    tz = datetime.timezone(datetime.timedelta(hours=offset_hours))
    return ensure_aware(now).astimezone(tz).date()


def validate_location(location: str) -> str:
    """Normaliza o nome do país; lança ValueError se vazio."""
    if not location or not location.strip():
        raise ValueError("País vazio.")
    return location.strip()
