from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path
from typing import Any, TypedDict

from langgraph.graph import END, StateGraph

import imunidade as cfg

# Relatório e gráfico
from imunidade.reports.phrases import compose_message, estimate_phrase
from imunidade.reports.progress import render_progress
from imunidade.reports.renderer import plot_series, render_html

# Dados: download, decodificação, seleção e estimativa
from imunidade.tools.download import fetch_csv, read_local_csv
from imunidade.tools.estimate import (
    aggregate_rate,
    country_progress_ratios,
    estimate_days,
    progress_ratios,
    totals_frame,
)
from imunidade.tools.records import decode_country_csv, decode_vaccination_csv
from imunidade.tools.series import qualifying_rows, select_latest, select_window

# Auditoria estruturada
from imunidade.utils.audit import audit_span, log_kv, new_run_id
from imunidade.utils.errors import MissingDataError
from imunidade.utils.validate import ensure_aware

SOURCES = ("states", "owid")


class AgentState(TypedDict, total=False):
    """Estado compartilhado do grafo (chaves adicionadas ao longo do fluxo)."""

    run_id: str
    source: str
    now: datetime
    csv_text: str
    data_date: str
    total: int
    daily_rate: int
    days: int
    estimate: str
    progress: str
    message: str
    series: Any
    chart: str | None
    html_path: str | None


def node_fetch(state: AgentState):
    run_id = state["run_id"]
    source = state["source"]
    local = os.getenv("DATA_FILE", cfg.DATA_FILE)
    url = cfg.DATA_URL if source == "states" else cfg.OWID_DATA_URL
    with audit_span("fetch", run_id, node="fetch", source=source, local=bool(local)):
        if local:
            state["csv_text"] = read_local_csv(local, run_id=run_id)
        else:
            state["csv_text"] = fetch_csv(url, run_id=run_id)
    return state


def _estimate_states(state: AgentState) -> None:
    run_id = state["run_id"]
    now = state["now"]
    records = decode_vaccination_csv(state["csv_text"], run_id=run_id)
    current, anchor = select_window(records, now, window=cfg.WINDOW_DAYS)
    summary = aggregate_rate(current, anchor, window=cfg.WINDOW_DAYS)

    state["data_date"] = current.date.isoformat()
    state["total"] = summary.total
    state["daily_rate"] = summary.daily_rate
    state["progress"] = render_progress(progress_ratios(current))
    state["series"] = totals_frame(qualifying_rows(records, now))


def _estimate_owid(state: AgentState) -> None:
    records = decode_country_csv(state["csv_text"], run_id=state["run_id"])
    last = select_latest(records, os.getenv("COUNTRY", cfg.COUNTRY))
    if last.total_vaccinations is None or last.daily_vaccinations is None:
        raise MissingDataError(f"Dados de vacinação ausentes em {last.date}.")

    state["data_date"] = last.date.isoformat()
    state["total"] = last.total_vaccinations
    state["daily_rate"] = last.daily_vaccinations
    state["progress"] = render_progress(country_progress_ratios(last))


def node_estimate(state: AgentState):
    run_id = state["run_id"]
    with audit_span("estimate", run_id, node="estimate", source=state["source"]):
        if state["source"] == "states":
            _estimate_states(state)
        else:
            _estimate_owid(state)

        days = estimate_days(
            state["total"],
            state["daily_rate"],
            population=cfg.POPULATION,
            herd_fraction=cfg.HERD_FRACTION,
        )
        state["days"] = days
        state["estimate"] = estimate_phrase(state["now"], days)
        state["message"] = compose_message(
            state["now"], days, state["progress"], herd_fraction=cfg.HERD_FRACTION
        )
        log_kv(
            run_id,
            "estimate.summary",
            data_date=state["data_date"],
            total=state["total"],
            daily_rate=state["daily_rate"],
            days=days,
        )
    return state


def node_chart(state: AgentState):
    run_id = state["run_id"]
    with audit_span("chart", run_id, node="chart"):
        series = state.get("series")
        state["chart"] = None
        if os.getenv("DISABLE_REPORT") != "1" and series is not None and len(series) > 0:
            out = str(Path(os.getenv("CHARTS_DIR", "resources/charts")) / "doses.png")
            state["chart"] = plot_series(
                series, "day", "doses", "Doses aplicadas (acumulado)", out
            )
        log_kv(run_id, "chart.output", chart=state["chart"])
    return state


def node_report(state: AgentState):
    run_id = state["run_id"]
    with audit_span("report", run_id, node="report"):
        state["html_path"] = None
        if os.getenv("DISABLE_REPORT") == "1":
            log_kv(run_id, "report.skip", reason="disabled")
            return state

        reports_dir = Path(os.getenv("REPORTS_DIR", "resources/reports"))
        chart = state.get("chart")
        ctx = {
            "location": (
                "Brasil"
                if state["source"] == "states"
                else os.getenv("COUNTRY", cfg.COUNTRY)
            ),
            "estimate": state["estimate"],
            "progress": state["progress"],
            # caminho relativo ao HTML, em formato POSIX
            "chart": (
                Path(os.path.relpath(chart, start=reports_dir)).as_posix()
                if chart
                else None
            ),
            "data_date": state["data_date"],
            "source": state["source"],
            "now": state["now"].strftime("%d/%m/%Y %H:%M"),
        }
        state["html_path"] = render_html(ctx, out_dir=reports_dir)
        log_kv(run_id, "report.output", html=state["html_path"])
    return state


def build_graph():
    g = StateGraph(AgentState)
    g.add_node("fetch", node_fetch)
    g.add_node("estimate", node_estimate)
    g.add_node("chart", node_chart)
    g.add_node("report", node_report)
    g.set_entry_point("fetch")
    g.add_edge("fetch", "estimate")
    g.add_edge("estimate", "chart")
    g.add_edge("chart", "report")
    g.add_edge("report", END)
    return g.compile()


# Compila o grafo uma única vez ao importar o módulo
graph = build_graph()


def run_pipeline(source: str = "states", now: datetime | None = None) -> dict[str, Any]:
    """
    Executa o grafo e retorna um dicionário CANÔNICO com a mensagem final.
    Erros de estimativa (EstimateError) e de download propagam ao chamador.
    """
    if source not in SOURCES:
        raise ValueError(f"Fonte inválida: {source!r}. Use: {', '.join(SOURCES)}.")
    run_id = new_run_id()
    now = ensure_aware(now) if now is not None else datetime.now(timezone.utc)
    initial_state: AgentState = {"run_id": run_id, "source": source, "now": now}

    with audit_span("run", run_id, node="orchestrator", source=source):
        final_state: AgentState = graph.invoke(initial_state)

    return {
        "source": source,
        "data_date": final_state.get("data_date"),
        "total": final_state.get("total"),
        "daily_rate": final_state.get("daily_rate"),
        "days": final_state.get("days"),
        "estimate": final_state.get("estimate"),
        "progress": final_state.get("progress"),
        "message": final_state.get("message"),
        "chart": final_state.get("chart"),
        "html_path": final_state.get("html_path"),
    }
