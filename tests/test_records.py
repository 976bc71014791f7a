import datetime
import json
import pathlib

from imunidade.tools.estimate import aggregate_rate
from imunidade.tools.records import (
    RegionKind,
    decode_country_csv,
    decode_vaccination_csv,
)
from imunidade.tools.series import select_window

HEADER = "date,state,vaccinated,vaccinated_second,vaccinated_single\n"


def _total_rows(days):
    return "".join(f"2021-03-{d:02d},TOTAL,{100 * d},{10 * d},0\n" for d in days)


def _events(run_id):
    import imunidade.utils.audit as audit

    lines = pathlib.Path(audit.LOG_FILE).read_text(encoding="utf-8").splitlines()
    return [e for e in map(json.loads, lines) if e.get("run_id") == run_id]


def test_decode_states_skips_bad_rows(states_csv):
    """Linha com 'abc' numa contagem é descartada; as demais seguem na ordem do arquivo."""
    rows = decode_vaccination_csv(states_csv, run_id="t-records")

    # 20 linhas válidas (SP + TOTAL x 10 dias) + linha RJ vazia; a RJ com 'abc' sai
    assert len(rows) == 21
    assert all(r.region_label in {"SP", "TOTAL", "RJ"} for r in rows)
    assert [r.date for r in rows[:2]] == [datetime.date(2021, 3, 1)] * 2

    total = [r for r in rows if r.region_kind is RegionKind.AGGREGATE]
    assert len(total) == 10
    assert total[-1].vaccinated == 1900000
    assert total[-1].vaccinated_single_per_100 == 0.00897


def test_blank_numbers_are_absent_not_zero(states_csv):
    rows = decode_vaccination_csv(states_csv)
    rj = [r for r in rows if r.region_label == "RJ"]
    assert len(rj) == 1
    assert rj[0].vaccinated is None
    assert rj[0].vaccinated_second is None
    assert rj[0].vaccinated_per_100 is None
    assert not rj[0].is_aggregate


def test_columns_matched_by_name():
    """Trocar a ordem das colunas não muda o resultado."""
    a = (
        "date,state,vaccinated,vaccinated_second,vaccinated_single,"
        "vaccinated_per_100_inhabitants,vaccinated_second_per_100_inhabitants,"
        "vaccinated_single_per_100_inhabitants\n"
        "2021-03-01,TOTAL,10,5,1,1.5,0.5,0.1\n"
    )
    b = (
        "vaccinated_single_per_100_inhabitants,vaccinated_single,city,"
        "vaccinated_second_per_100_inhabitants,vaccinated_second,"
        "vaccinated_per_100_inhabitants,vaccinated,state,date\n"
        "0.1,1,TOTAL,0.5,5,1.5,10,TOTAL,2021-03-01\n"
    )
    assert decode_vaccination_csv(a) == decode_vaccination_csv(b)


def test_bad_date_and_negative_count_are_skipped():
    csv_text = (
        "date,state,vaccinated,vaccinated_second,vaccinated_single\n"
        "2021-13-01,TOTAL,1,1,1\n"
        "2021-03-01,TOTAL,-5,1,1\n"
        "2021-03-02,TOTAL,7.5,1,1\n"
        "2021-03-03,,1,1,1\n"
        "2021-03-04,TOTAL,100.0,1,1\n"
    )
    rows = decode_vaccination_csv(csv_text)
    assert len(rows) == 1
    assert rows[0].date == datetime.date(2021, 3, 4)
    assert rows[0].vaccinated == 100
    # colunas de percentual ausentes no cabeçalho -> None
    assert rows[0].vaccinated_per_100 is None


def test_empty_text_decodes_to_nothing():
    assert decode_vaccination_csv("") == []


def test_decode_country_csv(owid_csv):
    rows = decode_country_csv(owid_csv)
    # a linha 'not-a-number' é descartada
    assert len(rows) == 5
    brazil = [r for r in rows if r.location == "Brazil"]
    assert brazil[-1].date == datetime.date(2021, 3, 14)
    assert brazil[-1].daily_vaccinations == 168025
    assert brazil[0].daily_vaccinations_raw is None


def test_decode_logs_summary_event(states_csv):
    import imunidade.utils.audit as audit

    decode_vaccination_csv(states_csv, run_id="t-records-log")

    lines = pathlib.Path(audit.LOG_FILE).read_text(encoding="utf-8").splitlines()
    events = [json.loads(ln) for ln in lines]
    mine = [e for e in events if e.get("run_id") == "t-records-log"]
    assert mine, "Evento csv.decoded não foi gravado."
    assert mine[-1]["event"] == "csv.decoded"
    assert mine[-1]["rows"] == 21
    assert mine[-1]["skipped"] == 1


def test_truncated_row_is_skipped_not_blank():
    """
    Linha com menos campos que o cabeçalho (download cortado) é descartada,
    em vez de virar um registro com todas as contagens ausentes.
    """
    csv_text = HEADER + _total_rows(range(1, 10)) + "2021-03-10,TOTAL\n"
    rows = decode_vaccination_csv(csv_text, run_id="t-records-trunc")

    assert len(rows) == 9
    assert rows[-1].date == datetime.date(2021, 3, 9)

    now = datetime.datetime(2021, 3, 12, 12, tzinfo=datetime.UTC)
    win = select_window(rows, now)
    assert win.current.date == datetime.date(2021, 3, 9)
    assert win.anchor.date == datetime.date(2021, 3, 2)
    # (990 - 220) // 7
    assert aggregate_rate(win.current, win.anchor).daily_rate == 110

    summary = _events("t-records-trunc")[-1]
    assert summary["event"] == "csv.decoded"
    assert summary["skipped"] == 1


def test_unterminated_quote_keeps_good_rows():
    """Aspas sem fechamento no meio do arquivo não derrubam a leitura."""
    csv_text = (
        HEADER
        + _total_rows(range(1, 5))
        + '2021-03-99,"SP,1,1,1,1,1,1\n'
        + _total_rows(range(5, 9))
    )
    rows = decode_vaccination_csv(csv_text, run_id="t-records-quote")

    assert [r.date.day for r in rows] == list(range(1, 9))
    names = [e["event"] for e in _events("t-records-quote")]
    assert "csv.parse_error" in names
    assert names[-1] == "csv.decoded"


def test_skipped_row_logs_frame_position(monkeypatch):
    """
    A posição logada é a do DataFrame: linhas em branco já saíram na
    leitura e não deslocam a contagem.
    """
    import imunidade.utils.audit as audit

    monkeypatch.setattr(audit, "LOG_LEVEL", "DEBUG")
    csv_text = (
        HEADER
        + "2021-03-01,TOTAL,1,1,1\n"
        + "\n\n"
        + "2021-03-03,TOTAL,abc,1,1\n"
    )
    rows = decode_vaccination_csv(csv_text, run_id="t-records-pos")
    assert len(rows) == 1

    skipped = [e for e in _events("t-records-pos") if e["event"] == "csv.row_skipped"]
    assert len(skipped) == 1
    assert skipped[0]["row"] == 1
    assert skipped[0]["level"] == "DEBUG"
