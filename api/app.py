from __future__ import annotations
from fastapi import Body, FastAPI, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel
from contextlib import contextmanager
import logging, typing as t

# ---- Engine imports ----
from band_core.config import AUDIT_EXPORT_ENABLED, MATCHING_DENOMINATOR
from band_core.engine import ReviewSession, grade, grade_submission, regrade
from band_core.errors import MissingSubmissionDataError
from band_core.question_bank import questions_from_payload
from band_core.report_html import render_report_html
from band_core.reporting import from_basic, persisted_columns, submission_rows, to_basic
from band_core.audit_export import to_json as results_to_json, to_csv as results_to_csv
from band_core.types import Submission
from band_core.writing import grade_from_dict, writing_band, writing_summary
from .storage import (
    delete_grading,
    load_grading,
    load_questions,
    load_submission,
    save_grading,
    save_questions,
    save_submission,
    utcnow_iso,
)

log = logging.getLogger(__name__)

app = FastAPI(title="Band Grader API")


@app.get("/")
def root():
    return {"status": "ok", "service": "band-grader-api"}


ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",  # dev
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,  # keep False unless you use cookies
)


# ---- Schemas ----
class GradeReq(BaseModel):
    questions: t.Any                      # list of rows, or a dict keyed by section
    answers: dict[str, t.Any] = {}
    submission_id: str = "adhoc"
    writing_band: float = 0.0
    writing: dict[str, dict[str, t.Any]] | None = None  # task_id -> criterion scores


class RegradeReq(BaseModel):
    result: dict[str, t.Any]              # a previously returned grading result
    overrides: dict[str, bool] | None = None
    writing_band: float | None = None


class WritingReq(BaseModel):
    tasks: dict[str, dict[str, t.Any]]


class SubmissionReq(BaseModel):
    test_id: str
    student_id: str | None = None
    answers: dict[str, t.Any] = {}


class SubmissionGradeReq(BaseModel):
    writing_band: float | None = None


# ---- Helpers ----
@contextmanager
def _http_errors():
    try:
        yield
    except MissingSubmissionDataError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(422, str(e))


def _writing_from_tasks(tasks: dict[str, dict[str, t.Any]] | None) -> tuple[float, dict[str, t.Any] | None]:
    if not tasks:
        return 0.0, None
    grades = [grade_from_dict(tid, raw) for tid, raw in tasks.items()]
    return writing_band(grades), writing_summary(grades)


def _record(sid: str, result, writing: dict[str, t.Any] | None, created_at: str | None = None) -> dict[str, t.Any]:
    columns = persisted_columns(result)
    return {
        "submissionId": sid,
        "createdAt": created_at or utcnow_iso(),
        "updatedAt": utcnow_iso(),
        "columns": {k: v for k, v in columns.items() if k != "auto_grading_data"},
        "auto_grading_data": columns["auto_grading_data"],
        "result": to_basic(result),
        "rows": submission_rows(result),
        "writing": writing,
    }


def _load_record(sid: str) -> dict[str, t.Any]:
    with _http_errors():
        rec = load_grading(sid)
    if not rec:
        raise HTTPException(404, "grading result not found")
    return rec


def _session(rec: dict[str, t.Any]) -> ReviewSession:
    return ReviewSession(from_basic(rec["result"]))


def _store(sid: str, session: ReviewSession, rec: dict[str, t.Any]) -> dict[str, t.Any]:
    updated = _record(sid, session.result, rec.get("writing"), rec.get("createdAt"))
    save_grading(sid, updated)
    return updated


# ---- Health ----
@app.get("/health")
def health():
    return {
        "matching_denominator": MATCHING_DENOMINATOR,
        "audit_export_enabled": AUDIT_EXPORT_ENABLED,
    }


# ---- Stateless grading ----
@app.post("/grade")
def grade_endpoint(req: GradeReq):
    with _http_errors():
        questions = questions_from_payload(req.questions)
        band, summary = _writing_from_tasks(req.writing)
        sub = Submission(id=req.submission_id, test_id="adhoc", student_id=None, answers=req.answers)
        res = grade(questions, sub, writing_band=band if summary else req.writing_band)
    body = to_basic(res)
    if summary:
        body["writing"] = summary
    return body


@app.post("/regrade")
def regrade_endpoint(req: RegradeReq):
    with _http_errors():
        prev = from_basic(req.result)
        overrides = prev.overrides if req.overrides is None else req.overrides
        wb = prev.writing_band if req.writing_band is None else req.writing_band
        return to_basic(regrade(prev.detailed_results, overrides, wb))


@app.post("/writing/band")
def writing_band_endpoint(req: WritingReq):
    with _http_errors():
        _band, summary = _writing_from_tasks(req.tasks)
    if summary is None:
        raise HTTPException(422, "at least one writing task is required")
    return summary


# ---- Stored tests and submissions ----
@app.put("/tests/{test_id}/questions")
def put_questions(test_id: str, payload: t.Any = Body(...)):
    with _http_errors():
        questions = questions_from_payload(payload)
        save_questions(test_id, payload)
    return {"test_id": test_id, "questions": len(questions)}


@app.put("/submissions/{sid}")
def put_submission(sid: str, req: SubmissionReq):
    with _http_errors():
        save_submission({"id": sid, "test_id": req.test_id, "student_id": req.student_id, "answers": req.answers})
    return {"ok": True}


@app.post("/submissions/{sid}/grade")
def grade_stored(sid: str, req: SubmissionGradeReq | None = None):
    with _http_errors():
        prev = load_grading(sid) or {}
        writing = prev.get("writing")
        if req is not None and req.writing_band is not None:
            wb = req.writing_band
        elif writing:
            wb = float(writing.get("overallBandScore", 0.0))
        else:
            wb = 0.0
        res = grade_submission(sid, load_submission, load_questions, writing_band=wb)
        rec = _record(sid, res, writing, prev.get("createdAt"))
        save_grading(sid, rec)
    log.info("stored grading for submission %s (overall %.1f)", sid, res.overall_band)
    return rec


@app.get("/submissions/{sid}/result")
def get_result(sid: str):
    return _load_record(sid)


@app.post("/submissions/{sid}/overrides/{qid}/toggle")
def toggle_override(sid: str, qid: str):
    rec = _load_record(sid)
    session = _session(rec)
    try:
        session.toggle(qid)
    except KeyError:
        raise HTTPException(404, f"question not found: {qid}")
    return _store(sid, session, rec)


@app.delete("/submissions/{sid}/overrides")
def clear_overrides(sid: str):
    rec = _load_record(sid)
    session = _session(rec)
    session.clear()
    return _store(sid, session, rec)


@app.put("/submissions/{sid}/writing")
def put_writing(sid: str, req: WritingReq):
    rec = _load_record(sid)
    session = _session(rec)
    with _http_errors():
        band, summary = _writing_from_tasks(req.tasks)
        session.set_writing_band(band)
    rec["writing"] = summary
    return _store(sid, session, rec)


@app.delete("/submissions/{sid}/result")
def delete_result(sid: str):
    with _http_errors():
        ok = delete_grading(sid)
    if not ok:
        raise HTTPException(404, "grading result not found")
    return {"ok": True}


# ---- Exports ----
@app.get("/submissions/{sid}/results.json")
def get_results_json(sid: str):
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "results export disabled")

    rec = _load_record(sid)
    payload = results_to_json(from_basic(rec["result"]))
    return {"submission_id": sid, **payload}


@app.get("/submissions/{sid}/results.csv")
def get_results_csv(sid: str):
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "results export disabled")

    rec = _load_record(sid)
    body = results_to_csv(from_basic(rec["result"]))
    filename = f"{sid}_results.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )


@app.get("/submissions/{sid}/report.html")
def get_report_html(sid: str):
    rec = _load_record(sid)
    return HTMLResponse(render_report_html(rec["result"], title=f"IELTS Grading Report: {sid}"))
