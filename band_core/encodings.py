"""Decoders for the stored option / correct-answer encodings.

The question bank accumulated several shapes per question type over a number
of schema changes (JSON text columns, bare arrays, comma-joined strings,
numeric indices next to option text).  Every ``decode_*`` function here
either returns the canonical form or raises ``MalformedEncodingError``; the
scoring layer turns that into "no correct answer set".  ``decode_or_none``
is the total wrapper used where a missing value is an acceptable outcome.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

from .errors import MalformedEncodingError

log = logging.getLogger(__name__)

T = TypeVar("T")

_INT_RX = re.compile(r"^-?\d+$")


def maybe_json(raw: Any) -> Any:
    """Parse JSON-looking text; anything else is returned unchanged."""
    if not isinstance(raw, str):
        return raw
    s = raw.strip()
    if s[:1] in ("[", "{", '"'):
        try:
            return json.loads(s)
        except ValueError:
            return raw
    return raw


def as_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and _INT_RX.match(value.strip()):
        return int(value.strip())
    return None


def _option_text(opt: Any) -> str:
    if isinstance(opt, dict):
        for k in ("text", "label", "option", "value"):
            v = opt.get(k)
            if isinstance(v, str) and v.strip():
                return v.strip()
        return str(opt)
    return str(opt).strip()


def decode_options(raw: Any) -> List[str]:
    parsed = maybe_json(raw)
    if not isinstance(parsed, (list, tuple)):
        raise MalformedEncodingError("options", raw, "expected a list of choices")
    opts = [_option_text(o) for o in parsed if o is not None]
    if not opts:
        raise MalformedEncodingError("options", raw, "no choices")
    return opts


def _is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def decode_choice_key(raw: Any, options: Any, legacy_index: Any = None) -> str:
    """Resolve a single-choice key (index, numeric string or option text) to option text."""
    key = raw
    if _is_blank(key):
        if _is_blank(legacy_index):
            raise MalformedEncodingError("correct_answer", raw, "empty")
        key = legacy_index
    key = maybe_json(key)
    if isinstance(key, (list, tuple)):
        if len(key) != 1:
            raise MalformedEncodingError("correct_answer", raw, "expected one key")
        key = key[0]
    idx = as_index(key)
    if idx is not None:
        opts = decode_options(options)
        if 0 <= idx < len(opts):
            return opts[idx]
        # option text that happens to be numeric, e.g. a year
        if str(key).strip() in opts:
            return str(key).strip()
        raise MalformedEncodingError("correct_answer", raw, f"index {idx} out of range")
    text = str(key).strip() if key is not None else ""
    if not text:
        raise MalformedEncodingError("correct_answer", raw, "empty")
    return text


def decode_accepted_answers(raw: Any) -> List[str]:
    """Acceptable short answers: JSON array, single string, or comma-joined string."""
    parsed = maybe_json(raw)
    if isinstance(parsed, (int, float)) and not isinstance(parsed, bool):
        parsed = str(parsed)
    if isinstance(parsed, str):
        s = parsed.strip()
        parts = s.split(",") if "," in s else [s]
    elif isinstance(parsed, (list, tuple)):
        parts = [str(p) for p in parsed if p is not None]
    else:
        raise MalformedEncodingError("correct_answer", raw, "expected text or list")
    accepted = [p.strip() for p in parts if p.strip()]
    if not accepted:
        raise MalformedEncodingError("correct_answer", raw, "no acceptable answers")
    return accepted


def decode_matching_key(raw: Any) -> List[Tuple[str, str]]:
    """Matching key as ordered (left, right) pairs.

    Accepts ``{"left": [...], "right": [...]}`` (reading editor) and a list of
    ``{"left": .., "right": ..}`` objects (listening editor).
    """
    parsed = maybe_json(raw)
    pairs: List[Tuple[str, str]] = []
    if isinstance(parsed, dict):
        left, right = parsed.get("left"), parsed.get("right")
        if not isinstance(left, list) or not isinstance(right, list):
            raise MalformedEncodingError("correct_answer", raw, "missing left/right lists")
        if len(left) != len(right):
            raise MalformedEncodingError("correct_answer", raw, "left/right length mismatch")
        pairs = [(str(l).strip(), str(r).strip()) for l, r in zip(left, right)]
    elif isinstance(parsed, list):
        for p in parsed:
            if not isinstance(p, dict) or "left" not in p or "right" not in p:
                raise MalformedEncodingError("correct_answer", raw, "bad pair object")
            pairs.append((str(p["left"]).strip(), str(p["right"]).strip()))
    else:
        raise MalformedEncodingError("correct_answer", raw, "expected pairs")
    if not pairs:
        raise MalformedEncodingError("correct_answer", raw, "no pairs")
    if any(not r for _, r in pairs):
        raise MalformedEncodingError("correct_answer", raw, "pair without answer")
    return pairs


def decode_map_key(raw: Any) -> List[Tuple[str, str]]:
    """Map/diagram key as ordered (label, answer) pairs, one per drop box.

    Stored as a list of boxes or ``{"boxes": [...]}``; a box's answer is its
    ``answer`` field, falling back to ``label``.
    """
    parsed = maybe_json(raw)
    if isinstance(parsed, dict):
        parsed = parsed.get("boxes")
    if not isinstance(parsed, list) or not parsed:
        raise MalformedEncodingError("correct_answer", raw, "expected boxes")
    out: List[Tuple[str, str]] = []
    for i, box in enumerate(parsed, start=1):
        if isinstance(box, dict):
            answer = box.get("answer") or box.get("label")
        else:
            answer = box
        if _is_blank(answer):
            raise MalformedEncodingError("correct_answer", raw, f"box {i} without answer")
        out.append((f"Label {i}", str(answer).strip()))
    return out


def _text_list(raw: Any) -> List[Any]:
    parsed = maybe_json(raw)
    if _is_blank(parsed):
        return []
    if isinstance(parsed, (list, tuple, set)):
        return [p for p in parsed if not _is_blank(p)]
    if isinstance(parsed, str):
        s = parsed.strip()
        return [p.strip() for p in s.split(",") if p.strip()] if "," in s else [s]
    return [parsed]


def decode_selection_key(raw: Any, options: Any) -> List[str]:
    """Correct option texts for a multiple-selection question.

    Older rows store option indices (``[0, 1]``); those resolve against the
    options.  A numeric string that is itself one of the options stays text.
    """
    items = _text_list(raw)
    if not items:
        raise MalformedEncodingError("correct_answer", raw, "no selections")
    opts: Optional[List[str]] = decode_or_none(decode_options, options)
    out: List[str] = []
    for item in items:
        text = _resolve_option(item, opts)
        if text is None:
            raise MalformedEncodingError("correct_answer", raw, f"unresolvable selection {item!r}")
        if text not in out:
            out.append(text)
    return out


def _resolve_option(item: Any, opts: Optional[Sequence[str]]) -> Optional[str]:
    if isinstance(item, str) and opts and item.strip() in opts:
        return item.strip()
    idx = as_index(item)
    if idx is not None:
        if opts and 0 <= idx < len(opts):
            return opts[idx]
        return None
    text = str(item).strip()
    return text or None


def normalize_choice_answer(raw: Any, options: Optional[Sequence[str]] = None) -> str:
    """Student answer for single-choice questions as trimmed option text."""
    if raw is None:
        return ""
    if isinstance(raw, (list, tuple)):
        return normalize_choice_answer(raw[0], options) if len(raw) == 1 else ""
    if isinstance(raw, int) and not isinstance(raw, bool):
        if options and 0 <= raw < len(options):
            return options[raw]
        return str(raw)
    return str(raw).strip()


def normalize_selection_answer(raw: Any, options: Optional[Sequence[str]] = None) -> List[str]:
    out: List[str] = []
    for item in _text_list(raw):
        if isinstance(item, int) and not isinstance(item, bool):
            text = _resolve_option(item, options) or str(item)
        else:
            text = str(item).strip()
        if text and text not in out:
            out.append(text)
    return out


def decode_or_none(fn: Callable[..., T], *args: Any) -> Optional[T]:
    try:
        return fn(*args)
    except MalformedEncodingError as e:
        log.debug("decode failed: %s", e)
        return None


__all__ = [
    "maybe_json",
    "as_index",
    "decode_options",
    "decode_choice_key",
    "decode_accepted_answers",
    "decode_matching_key",
    "decode_map_key",
    "decode_selection_key",
    "normalize_choice_answer",
    "normalize_selection_answer",
    "decode_or_none",
]
