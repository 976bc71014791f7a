from __future__ import annotations

import os
from fractions import Fraction

# -----------------------------
# Fontes de dados
# -----------------------------
DATA_URL: str = os.getenv(
    "DATA_URL",
    "https://raw.githubusercontent.com/wcota/covid19br/master/cases-brazil-states.csv",
)
OWID_DATA_URL: str = os.getenv(
    "OWID_DATA_URL",
    "https://covid.ourworldindata.org/data/vaccinations/vaccinations.csv",
)
# Quando definido, o pipeline lê o CSV do disco em vez de baixar.
DATA_FILE: str = os.getenv("DATA_FILE", "")
COUNTRY: str = os.getenv("COUNTRY", "Brazil")

# -----------------------------
# Parâmetros da estimativa
# -----------------------------
# https://ftp.ibge.gov.br/Estimativas_de_Populacao/Estimativas_2020/POP2020_20210204.pdf
POPULATION: int = int(os.getenv("POPULATION", "211755692"))
HERD_FRACTION: Fraction = Fraction(os.getenv("HERD_FRACTION", "7/10"))
WINDOW_DAYS: int = int(os.getenv("WINDOW_DAYS", "7"))
# Horário de Brasília
UTC_OFFSET_HOURS: int = int(os.getenv("UTC_OFFSET_HOURS", "-3"))

# -----------------------------
# Rede e retries (usado por tools.download)
# -----------------------------
API_TIMEOUT: int = int(os.getenv("API_TIMEOUT", "30"))
API_MAX_RETRIES: int = int(os.getenv("API_MAX_RETRIES", "2"))
API_BACKOFF_BASE: float = float(os.getenv("API_BACKOFF_BASE", "0.5"))

__all__ = [
    "DATA_URL",
    "OWID_DATA_URL",
    "DATA_FILE",
    "COUNTRY",
    "POPULATION",
    "HERD_FRACTION",
    "WINDOW_DAYS",
    "UTC_OFFSET_HOURS",
    "API_TIMEOUT",
    "API_MAX_RETRIES",
    "API_BACKOFF_BASE",
]
