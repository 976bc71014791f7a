from __future__ import annotations

import random
import time
from pathlib import Path

import requests

from imunidade import API_BACKOFF_BASE, API_MAX_RETRIES, API_TIMEOUT
from imunidade.utils.audit import log_kv

RETRYABLE_STATUS = (429, 500, 502, 503, 504)


def _sleep_backoff(attempt: int) -> None:
    """Backoff exponencial com jitter leve."""
    base = API_BACKOFF_BASE * (2**attempt)
    time.sleep(base + random.uniform(0, 0.25))


def read_local_csv(path: str, run_id: str | None = None) -> str:
    """Lê um CSV do disco (UTF-8). Lança FileNotFoundError se não existir."""
    rid = run_id or "n/a"
    text = Path(path).read_text(encoding="utf-8")
    log_kv(rid, "download.local", path=path, chars=len(text))
    return text


def fetch_csv(url: str, run_id: str | None = None) -> str:
    """
    Baixa o CSV com timeout e re-tentativas para 429/5xx e falhas de conexão.
    - Demais erros HTTP (ex.: 404) não são repetidos.
    - Esgotadas as tentativas, lança RuntimeError (sem dados não há estimativa).
    """
    rid = run_id or "n/a"
    u = (url or "").strip()
    if not u:
        raise ValueError("URL de dados vazia.")

    last_err: str | None = None
    for attempt in range(API_MAX_RETRIES + 1):
        try:
            r = requests.get(u, timeout=API_TIMEOUT)
        except requests.RequestException as e:
            # timeouts, DNS, conexão etc.
            last_err = str(e)
            log_kv(rid, "download.retry.exception", attempt=attempt, error=last_err)
            if attempt < API_MAX_RETRIES:
                _sleep_backoff(attempt)
                continue
            break

        if r.status_code in RETRYABLE_STATUS:
            last_err = f"http_status={r.status_code}"
            log_kv(rid, "download.retry", attempt=attempt, status=r.status_code)
            if attempt < API_MAX_RETRIES:
                _sleep_backoff(attempt)
                continue
            break

        if r.status_code >= 400:
            log_kv(rid, "download.client_error", status=r.status_code, url=u)
            raise RuntimeError(f"Falha ao baixar {u}: HTTP {r.status_code}.")

        r.encoding = r.encoding or "utf-8"
        text = r.text
        log_kv(rid, "download.ok", url=u, chars=len(text), attempts=attempt + 1)
        return text

    log_kv(rid, "download.fail", url=u, error=last_err)
    raise RuntimeError(f"Falha ao baixar {u}: {last_err}")
