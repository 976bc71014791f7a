from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
import matplotlib

matplotlib.use("Agg")  # sem display: só gravamos PNG

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd
import seaborn as sns

# === Diretórios padrão ========================================================
TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
REPORTS_DIR = Path(os.getenv("REPORTS_DIR", "resources/reports"))


# === 1) GRÁFICO COM SEABORN ===================================================
def plot_series(
    df: pd.DataFrame,
    x_col: str,
    y_col: str,
    title: str,
    out_path: str,
) -> str:
    """
    Gráfico de linha da série `y_col` x `x_col`, salvo em `out_path` (PNG).
    """
    if x_col not in df.columns or y_col not in df.columns:
        raise ValueError(f"plot_series: DataFrame não contém {x_col} e/ou {y_col}.")
    if df.empty:
        raise ValueError("plot_series: DataFrame vazio — nada para plotar.")

    data = df[[x_col, y_col]].copy()
    data[x_col] = pd.to_datetime(data[x_col])
    data = data.sort_values(by=x_col)

    sns.set_theme(context="talk", style="whitegrid")
    fig, ax = plt.subplots(figsize=(10, 4))
    sns.lineplot(data=data, x=x_col, y=y_col, ax=ax)
    ax.set_title(title)
    ax.set_xlabel("")
    ax.set_ylabel("")
    plt.setp(ax.get_xticklabels(), rotation=30, ha="right")
    fig.tight_layout()

    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    return out_path


# === 2) RENDERIZAÇÃO DO HTML (Jinja2) =========================================
def _jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=("html", "j2")),
    )


def render_html(
    context: dict[str, Any],
    template_name: str = "report.html.j2",
    out_name: str = "relatorio.html",
    out_dir: str | Path | None = None,
) -> str:
    """
    Renderiza o template com o `context` e grava o HTML final.
    O contexto só aceita valores simples (texto/números), nunca tabelas.
    """
    for key, value in context.items():
        if isinstance(value, pd.DataFrame | pd.Series):
            raise ValueError(f"Contexto contém dados tabulares não permitidos: {key}")

    if isinstance(context.get("chart"), str):
        context["chart"] = Path(context["chart"]).as_posix()

    template = _jinja_env().get_template(template_name)
    html_str = template.render(**context)

    folder = Path(out_dir) if out_dir is not None else REPORTS_DIR
    folder.mkdir(parents=True, exist_ok=True)
    out_path = folder / out_name
    out_path.write_text(html_str, encoding="utf-8")
    return str(out_path)
