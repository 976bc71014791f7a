import datetime
import pathlib

import requests


def test_pipeline_offline_end_to_end(monkeypatch, tmp_path, states_csv_path):
    """
    Smoke test **OFFLINE** da pipeline de ponta a ponta.

    Força DATA_FILE para o CSV de teste (sem download), gera gráfico e HTML
    reais em diretórios temporários e confere a mensagem final.
    """
    monkeypatch.setenv("DATA_FILE", str(states_csv_path))
    monkeypatch.setenv("REPORTS_DIR", str(tmp_path / "reports"))
    monkeypatch.setenv("CHARTS_DIR", str(tmp_path / "charts"))
    monkeypatch.delenv("DISABLE_REPORT", raising=False)

    def _blocked(*args, **kwargs):
        raise AssertionError("requests.get não deve ser chamado com DATA_FILE")

    monkeypatch.setattr(requests, "get", _blocked, raising=True)

    from imunidade.agents.orchestrator import run_pipeline

    brt = datetime.timezone(datetime.timedelta(hours=-3))
    now = datetime.datetime(2021, 3, 10, 15, 0, tzinfo=brt)
    out = run_pipeline("states", now=now)

    assert out["message"].startswith("Faltam 6 anos, 7 meses e 6 dias")
    assert pathlib.Path(out["chart"]).exists()
    html = pathlib.Path(out["html_path"]).read_text(encoding="utf-8")
    assert "faltam 6 anos, 7 meses e 6 dias" in html
    assert "../charts/doses.png" in html
