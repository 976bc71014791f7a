"""
Ponto de entrada.

Recursos:
- Carrega variáveis do .env
- Oferece CLI (em imunidade/utils/cli.py) para sobrescrever parâmetros
- Executa o grafo e imprime a mensagem (estimativa + barras de progresso)

Exemplos:
  python main.py
  python main.py --csv data/cases-brazil-states.csv --now 2021-03-16
  python main.py --source owid --country Brazil --no-report
"""

from __future__ import annotations

import os
import sys
from dotenv import load_dotenv


def main(argv: list[str] | None = None) -> int:
    # 1) Carrega .env primeiro (para que parse_args e a config usem esses valores)
    load_dotenv()

    from imunidade.utils.cli import parse_args
    from imunidade.utils.errors import EstimateError
    from imunidade.utils.validate import parse_now

    # 2) Lê flags (sobrescrevem os valores do .env para esta execução)
    args = parse_args(argv)

    # 3) Propaga flags para o ambiente (consumido pelos nós do pipeline)
    os.environ["DATA_FILE"] = args.csv
    os.environ["COUNTRY"] = args.country
    if args.no_report:
        os.environ["DISABLE_REPORT"] = "1"

    try:
        now = parse_now(args.now)
    except ValueError as e:
        print(f"[ERRO] --now inválido: {e}", file=sys.stderr)
        return 2

    from imunidade.agents.orchestrator import run_pipeline

    # 4) Executa pipeline
    try:
        result = run_pipeline(args.source, now=now)
    except EstimateError as e:
        print(f"[ERRO] Não foi possível estimar: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"[ERRO] Falha ao executar pipeline: {e}", file=sys.stderr)
        return 1

    # 5) Exibe a mensagem e os artefatos gerados
    print(result["message"])
    print()
    print("Relatório HTML:", result.get("html_path") or "não gerado")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
