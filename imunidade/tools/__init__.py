from __future__ import annotations

# Colunas usadas do CSV por UF (wcota/covid19br, cases-brazil-states.csv)
STATE_COLS: list[str] = [
    "date",
    "state",
    "vaccinated",
    "vaccinated_per_100_inhabitants",
    "vaccinated_second",
    "vaccinated_second_per_100_inhabitants",
    "vaccinated_single",
    "vaccinated_single_per_100_inhabitants",
]

# Colunas usadas do CSV por país (Our World in Data, vaccinations.csv)
OWID_COLS: list[str] = [
    "location",
    "iso_code",
    "date",
    "total_vaccinations",
    "people_vaccinated",
    "people_fully_vaccinated",
    "daily_vaccinations_raw",
    "daily_vaccinations",
    "total_vaccinations_per_hundred",
    "people_vaccinated_per_hundred",
    "people_fully_vaccinated_per_hundred",
    "daily_vaccinations_per_million",
]

# Rótulo da linha agregada (Brasil inteiro) no CSV por UF
AGGREGATE_LABEL: str = "TOTAL"

__all__ = ["STATE_COLS", "OWID_COLS", "AGGREGATE_LABEL"]
