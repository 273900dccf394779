"""JSONL diagnostics for projection runs: input repairs, integrity failures, crashes.

Events land in ``runtime_events.jsonl`` under ``.local_store/`` or under the
directory named by ``AGENCY_FORECAST_STORAGE_ROOT``. Writing an event never
raises; a dashboard rerun with unchanged warnings or findings does not log the
same event twice.
"""

from __future__ import annotations

import json
import os
import sys
import traceback
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, MutableMapping, Sequence

from streamlit.runtime.scriptrunner import get_script_run_ctx


STORAGE_ENV_VAR = "AGENCY_FORECAST_STORAGE_ROOT"
DEFAULT_LOG_DIR = Path(".local_store")
EVENTS_FILE_NAME = "runtime_events.jsonl"

LOG_DIR = DEFAULT_LOG_DIR
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / EVENTS_FILE_NAME

# Session keys holding the last logged signature per event stream.
INPUT_WARNINGS_STATE_KEY = "_input_warning_log_signature"
INTEGRITY_STATE_KEY = "_integrity_log_signature"
MAX_LOGGED_FINDINGS = 25

_hook_installed = False


def configure_log_root(path_value: str | Path | None) -> Path:
    """Point runtime events at ``path_value`` (``~`` and ``$VARS`` expanded); blank means the default."""
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    text = "" if path_value is None else str(path_value).strip()
    LOG_DIR = Path(os.path.expandvars(os.path.expanduser(text))) if text else DEFAULT_LOG_DIR
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / EVENTS_FILE_NAME
    return LOG_DIR


def runtime_log_path() -> str:
    return str(RUNTIME_EVENTS_LOG_FILE.resolve())


def _json_fallback(value: Any):
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _event_record(
    level: str, event: str, message: str, context: dict[str, Any] | None, exc: BaseException | None
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "level": str(level).upper(),
        "event": str(event),
        "message": str(message),
        "context": dict(context or {}),
    }
    if exc is not None:
        record["exception_type"] = type(exc).__name__
        record["exception_message"] = str(exc)
        if exc.__traceback__ is not None:
            record["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return record


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    try:
        line = json.dumps(_event_record(level, event, message, context, exc), default=_json_fallback, ensure_ascii=False)
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except Exception:
        # A read-only or full disk must not take the dashboard down.
        pass


def _parse_event_line(line: str) -> dict[str, Any]:
    try:
        return json.loads(line)
    except json.JSONDecodeError:
        return _event_record("ERROR", "log_parse_error", "Malformed log line encountered.", {"line": line}, None)


def read_runtime_events(limit: int = 200) -> list[dict[str, Any]]:
    """Return the last ``limit`` events, oldest first."""
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except OSError:
        return []
    return [_parse_event_line(line) for line in lines[-int(limit) :] if line.strip()]


def count_events_by_level(events: list[dict[str, Any]]) -> dict[str, int]:
    return dict(Counter(str(e.get("level", "")).upper() for e in events))


def diagnostics_signature(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def log_on_change(
    state: MutableMapping[str, Any],
    state_key: str,
    items: Sequence[Any],
    *,
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
) -> bool:
    """Log ``event`` when ``items`` differ from what was last logged under ``state_key``.

    An empty ``items`` clears the stored signature so the same items are logged
    again if they come back. Returns True when an event was written.
    """
    if not items:
        state[state_key] = ""
        return False
    signature = diagnostics_signature(list(items))
    if state.get(state_key) == signature:
        return False
    append_runtime_event(level=level, event=event, message=message, context=context)
    state[state_key] = signature
    return True


def log_projection_diagnostics(
    state: MutableMapping[str, Any],
    assumptions: dict[str, Any],
    input_warnings: Sequence[str],
    findings: Sequence[dict[str, Any]],
) -> None:
    """Record new input warnings and integrity findings for one projection run."""
    log_on_change(
        state,
        INPUT_WARNINGS_STATE_KEY,
        input_warnings,
        level="WARNING",
        event="input_warnings",
        message=f"{len(input_warnings)} input warning(s) generated during model run.",
        context={"warnings": list(input_warnings), "assumptions": assumptions},
    )
    log_on_change(
        state,
        INTEGRITY_STATE_KEY,
        findings,
        level="ERROR",
        event="integrity_checks_failed",
        message=f"{len(findings)} integrity check(s) failed.",
        context={
            "finding_count": len(findings),
            "findings": list(findings[:MAX_LOGGED_FINDINGS]),
            "assumptions": assumptions,
        },
    )


def _log_uncaught(exc_type, exc, exc_tb) -> None:
    try:
        # Exceptions outside a Streamlit script run belong to the host process.
        if get_script_run_ctx() is None:
            return
        append_runtime_event(
            level="ERROR",
            event="uncaught_exception",
            message=str(exc),
            context={"traceback": "".join(traceback.format_exception(exc_type, exc, exc_tb))},
            exc=exc,
        )
    except Exception:
        pass


def install_global_exception_logging() -> None:
    """Chain an excepthook that copies uncaught dashboard exceptions into the runtime log."""
    global _hook_installed
    if _hook_installed:
        return
    previous_hook = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        _log_uncaught(exc_type, exc, exc_tb)
        previous_hook(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _hook_installed = True


configure_log_root(os.getenv(STORAGE_ENV_VAR, ""))
