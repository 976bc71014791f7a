# imunidade/utils/audit.py
from __future__ import annotations

import datetime
import json
import os
import time
import traceback
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Optional

"""
Log estruturado da execução (JSONL, 1 linha por evento).

- write_event(): grava um evento.
- audit_span(): contexto que loga início/fim/erro + duração.
- log_kv(): atalho para eventos chave-valor.
- new_run_id(): id único por execução.

Configuração por .env:
- LOG_DIR       (default: resources/json)
- LOG_FILE      (default: <LOG_DIR>/events.jsonl)
- LOG_LEVEL     (default: INFO)  [INFO | DEBUG]
- LOG_SANITIZE  (default: 1)     [1=mascara credenciais, 0=desliga]
"""


LOG_DIR = os.getenv("LOG_DIR", "resources/json")
LOG_FILE = os.getenv("LOG_FILE", os.path.join(LOG_DIR, "events.jsonl"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SANITIZE = os.getenv("LOG_SANITIZE", "1") == "1"

os.makedirs(os.path.dirname(LOG_FILE) or ".", exist_ok=True)


def _now() -> str:
    """Timestamp ISO8601 com milissegundos (UTC)."""
    return datetime.datetime.now(datetime.UTC).isoformat(timespec="milliseconds")


def _truncate(s: str, max_len: int = 1000) -> str:
    return s if len(s) <= max_len else s[:max_len] + f"... [truncated:{len(s)}]"


# Credenciais do app/usuário no serviço de publicação + genéricas
_SENSITIVE_KEYS = {
    "key",
    "secret",
    "token",
    "password",
    "authorization",
    "consumer_key",
    "consumer_secret",
    "access_token",
    "access_token_secret",
}


def _is_sensitive(key: str) -> bool:
    k = key.lower()
    return k in _SENSITIVE_KEYS or k.endswith(("_secret", "_token", "api_key"))


def _sanitize_value(v: Any) -> Any:
    """Mascara recursivamente chaves sensíveis e trunca strings longas."""
    if isinstance(v, dict):
        out: Dict[str, Any] = {}
        for k, vv in v.items():
            out[k] = "[REDACTED]" if _is_sensitive(str(k)) else _sanitize_value(vv)
        return out
    if isinstance(v, (list, tuple)):
        return [_sanitize_value(x) for x in v]
    if isinstance(v, str):
        return _truncate(v)
    return v


def sanitize_payload(d: Dict[str, Any]) -> Dict[str, Any]:
    if not SANITIZE:
        return d
    return _sanitize_value(d)


def write_event(event: str, level: str = "INFO", **payload):
    """
    Grava um evento estruturado (uma linha JSON).
    Eventos DEBUG só são gravados com LOG_LEVEL=DEBUG.
    """
    if level == "DEBUG" and LOG_LEVEL != "DEBUG":
        return
    rec = {
        "ts": _now(),
        "level": level,
        "event": event,
        **sanitize_payload(payload),
    }
    with open(LOG_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(rec, ensure_ascii=False, default=str) + "\n")
        f.flush()


def new_run_id() -> str:
    return str(uuid.uuid4())


@contextmanager
def audit_span(event: str, run_id: str, node: Optional[str] = None, **ctx):
    """
    Instrumenta um trecho: <event>.start / <event>.end / <event>.error
    """
    span_id = str(uuid.uuid4())
    t0 = time.perf_counter()
    write_event(f"{event}.start", run_id=run_id, span_id=span_id, node=node, **ctx)
    try:
        yield {"run_id": run_id, "span_id": span_id}
    except Exception as e:
        write_event(
            f"{event}.error",
            level="ERROR",
            run_id=run_id,
            span_id=span_id,
            node=node,
            duration_ms=int((time.perf_counter() - t0) * 1000),
            ok=False,
            error_type=type(e).__name__,
            error=str(e),
            traceback=traceback.format_exc(),
        )
        raise
    write_event(
        f"{event}.end",
        run_id=run_id,
        span_id=span_id,
        node=node,
        duration_ms=int((time.perf_counter() - t0) * 1000),
        ok=True,
    )


def log_kv(run_id: str, event: str, **kv):
    """Atalho para eventos simples (chave-valor)."""
    write_event(event, run_id=run_id, **kv)
