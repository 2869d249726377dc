from __future__ import annotations
from html import escape
from typing import Any, Dict, List

from . import config
from .bands import band_label
from .types import PAIRED_TYPES

_SECTION_TITLES = {"reading": "Reading", "listening": "Listening", "writing": "Writing"}


def _band(v: Any) -> str:
    try:
        f = float(v)
    except (TypeError, ValueError):
        return "-"
    return f"{f:.1f}" if f > 0 else "-"


def _row_section(sec: str, bd: Dict[str, Any], band: Any) -> str:
    total = int(bd.get("total", 0) or 0)
    if not total:
        return f"<tr><td>{_SECTION_TITLES[sec]}</td><td>-</td><td>-</td><td>{_band(band)}</td></tr>"
    correct = float(bd.get("correct", 0.0) or 0.0)
    pct = float(bd.get("percentage", 0.0) or 0.0)
    return (
        f"<tr><td>{_SECTION_TITLES[sec]}</td><td>{correct:g} / {total}</td>"
        f"<td>{pct:.1f}%</td><td>{_band(band)}</td></tr>"
    )


def _row_question(n: int, d: Dict[str, Any], overrides: Dict[str, Any]) -> str:
    qid = str(d.get("questionId"))
    ok = bool(overrides[qid]) if qid in overrides else bool(d.get("isCorrect"))
    mark = "&#10003;" if ok else "&#10007;"
    if qid in overrides:
        mark += " <span class=\"override\">(manual override)</span>"
    credit = d.get("credit")
    partial = ""
    if d.get("questionType") in PAIRED_TYPES and qid not in overrides and credit not in (None, 0, 1, 0.0, 1.0):
        partial = f" <span>({float(credit):.2f})</span>"
    return (
        f"<tr class=\"{'ok' if ok else 'miss'}\"><td>{n}</td>"
        f"<td>{escape(str(d.get('section', '')))}</td>"
        f"<td>{escape(str(d.get('questionText', '')))}</td>"
        f"<td>{escape(str(d.get('userAnswer', '')))}</td>"
        f"<td>{escape(str(d.get('correctAnswer', '')))}</td>"
        f"<td>{mark}{partial}</td></tr>"
    )


def render_report_html(result: Dict[str, Any], title: str = "IELTS Grading Report") -> str:
    breakdown = result.get("breakdown") or {}
    overrides = result.get("overrides") or {}
    details: List[Dict[str, Any]] = result.get("detailedResults") or []
    overall = float(result.get("overallBandScore", config.BAND_FLOOR) or config.BAND_FLOOR)

    section_rows = "\n".join(
        _row_section(sec, breakdown.get(sec) or {}, result.get(f"{sec}BandScore"))
        for sec in ("reading", "listening", "writing")
    )
    question_rows = "\n".join(_row_question(i, d, overrides) for i, d in enumerate(details, start=1))

    banner = ""
    if overrides:
        banner = f"<div class=\"banner\">{len(overrides)} verdict(s) manually overridden by a grader.</div>"

    unset = sum(1 for d in details if d.get("correctAnswer") == config.NO_CORRECT_ANSWER)
    if unset:
        banner += f"<div class=\"banner warning\">{unset} question(s) have no correct answer set.</div>"

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>{escape(title)}</title>
<style>
 body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,'Helvetica Neue',Arial}}
 .wrap{{max-width:960px;margin:40px auto;padding:0 16px}}
 h1{{margin:0 0 16px}}
 .overall{{font-size:1.1rem;margin:8px 0 16px}}
 .banner{{padding:12px 16px;border-radius:6px;margin:16px 0;background:#eef4ff;border:1px solid #9db8f5}}
 .banner.warning{{background:#ffe7d9;border:1px solid #f5a623;color:#7a2d00}}
 table{{border-collapse:collapse;width:100%}}
 th,td{{text-align:left}}
 tr.miss td{{color:#7a2d00}}
 .override{{font-size:.85em;color:#555}}
</style>
</head>
<body>
<div class="wrap">
  <h1>{escape(title)}</h1>
  <div class="overall"><b>Overall band:</b> {overall:.1f} ({band_label(overall)})</div>
  {banner}

  <table border='1' cellpadding='6' cellspacing='0'>
    <thead><tr><th>Section</th><th>Correct</th><th>Percentage</th><th>Band</th></tr></thead>
    <tbody>{section_rows}</tbody>
  </table>

  <h3>Question review</h3>
  <table border='1' cellpadding='6' cellspacing='0'>
    <thead><tr><th>#</th><th>Section</th><th>Question</th><th>Answer</th><th>Correct answer</th><th>Result</th></tr></thead>
    <tbody>{question_rows}</tbody>
  </table>
</div>
</body>
</html>"""


def export_report_html(result: Dict[str, Any], path: str) -> str:
    html = render_report_html(result)
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)
    return path
