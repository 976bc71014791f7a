import os
import pathlib
import tempfile

import pytest

# O módulo de auditoria lê LOG_DIR/LOG_FILE AO IMPORTAR; por isso o ambiente
# é ajustado aqui, antes de qualquer import do pacote pelos testes.
_LOG_DIR = tempfile.mkdtemp(prefix="imunidade-logs-")
os.environ.setdefault("LOG_DIR", _LOG_DIR)
os.environ.setdefault("LOG_FILE", os.path.join(_LOG_DIR, "events.jsonl"))

TESTDATA = pathlib.Path(__file__).parent / "testdata"


@pytest.fixture
def states_csv_path() -> pathlib.Path:
    return TESTDATA / "cases-brazil-states.csv"


@pytest.fixture
def states_csv(states_csv_path) -> str:
    return states_csv_path.read_text(encoding="utf-8")


@pytest.fixture
def owid_csv() -> str:
    return (TESTDATA / "vaccinations.csv").read_text(encoding="utf-8")
