"""Utility helpers for persisting question banks, submissions and grading records.

The production deployment keeps these rows in the relational store; this
module stands in for that caller with simple JSON files on disk so the API
stays stateless across restarts.
"""

from __future__ import annotations

import json
import os
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from band_core.question_bank import questions_from_payload, submission_from_record
from band_core.types import Question, Submission


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
TESTS_DIR = DATA_ROOT / "tests"
SUBMISSIONS_DIR = DATA_ROOT / "submissions"
GRADING_DIR = DATA_ROOT / "grading"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    for d in (TESTS_DIR, SUBMISSIONS_DIR, GRADING_DIR):
        d.mkdir(parents=True, exist_ok=True)


def _safe_name(key: str) -> str:
    name = "".join(ch for ch in str(key) if ch.isalnum() or ch in "-_.")
    if not name or name.startswith("."):
        raise ValueError(f"invalid id: {key!r}")
    return name


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def save_questions(test_id: str, payload: Any) -> None:
    _ensure_dirs()
    _write_json(TESTS_DIR / f"{_safe_name(test_id)}.json", payload)


def load_questions(test_id: str) -> List[Question]:
    payload = _read_json(TESTS_DIR / f"{_safe_name(test_id)}.json", [])
    return questions_from_payload(payload)


def save_submission(record: Dict[str, Any]) -> None:
    _ensure_dirs()
    _write_json(SUBMISSIONS_DIR / f"{_safe_name(record['id'])}.json", record)


def load_submission(submission_id: str) -> Optional[Submission]:
    row = _read_json(SUBMISSIONS_DIR / f"{_safe_name(submission_id)}.json", None)
    if not isinstance(row, dict):
        return None
    return submission_from_record(row)


def save_grading(submission_id: str, record: Dict[str, Any]) -> None:
    """Persist the grading record (score columns + JSON blob) for a submission."""

    _ensure_dirs()
    with _LOCK:
        _write_json(GRADING_DIR / f"{_safe_name(submission_id)}.json", record)


def load_grading(submission_id: str) -> Optional[Dict[str, Any]]:
    data = _read_json(GRADING_DIR / f"{_safe_name(submission_id)}.json", None)
    return data if isinstance(data, dict) else None


def delete_grading(submission_id: str) -> bool:
    path = GRADING_DIR / f"{_safe_name(submission_id)}.json"
    with _LOCK:
        if not path.exists():
            return False
        path.unlink()
    return True
