from __future__ import annotations

import argparse
import os

"""
Utilitários de CLI.

- parse_args(): lê flags da linha de comando usando valores do ambiente
  (ex.: carregados do .env) como defaults.

Obs.: NÃO chama load_dotenv aqui; o main.py deve chamar antes.
"""


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Retorna os argumentos de execução do pipeline."""
    parser = argparse.ArgumentParser(
        description="Estima quanto falta para a imunidade de rebanho."
    )
    parser.add_argument(
        "--source",
        choices=["states", "owid"],
        default=os.getenv("DATA_SOURCE", "states"),
        help="Série de dados: states (por UF, janela de 7 dias) | owid (por país).",
    )
    parser.add_argument(
        "--csv",
        default=os.getenv("DATA_FILE", ""),
        help="Lê o CSV deste arquivo em vez de baixar. Padrão: DATA_FILE do .env.",
    )
    parser.add_argument(
        "--country",
        default=os.getenv("COUNTRY", "Brazil"),
        help="País usado com --source owid. Padrão: COUNTRY do .env ou 'Brazil'.",
    )
    parser.add_argument(
        "--now",
        default=None,
        help="Instante de referência em ISO-8601 (ex.: 2021-03-16T12:00:00-03:00); "
        "só a data vale como meia-noite no fuso local.",
    )
    parser.add_argument(
        "--no-report",
        action="store_true",
        help="Não gera gráfico nem relatório HTML (apenas imprime a mensagem).",
    )
    return parser.parse_args(argv)
