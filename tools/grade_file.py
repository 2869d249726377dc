# tools/grade_file.py
from __future__ import annotations
import argparse, json, logging, os, sys
from typing import List, Optional

from band_core.engine import grade
from band_core.question_bank import load_questions, load_submission
from band_core.report_html import export_report_html
from band_core.reporting import persisted_columns, to_basic


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Grade one submission file against a questions file.")
    ap.add_argument("questions", help="questions JSON (list, or dict keyed by section)")
    ap.add_argument("submission", help="submission JSON with an 'answers' object")
    ap.add_argument("--writing-band", type=float, default=0.0, help="instructor-assigned writing band (0 = not graded)")
    ap.add_argument("--out", help="write the JSON result here; a .html path writes the review report instead")
    ap.add_argument("-v", "--verbose", action="store_true")
    a = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO if a.verbose else logging.WARNING, format="[%(levelname)s] %(message)s")

    try:
        res = grade(load_questions(a.questions), load_submission(a.submission), writing_band=a.writing_band)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    d = to_basic(res)
    cols = persisted_columns(res)
    print(
        f"reading={cols['reading_score']:.1f} listening={cols['listening_score']:.1f} "
        f"writing={cols['writing_score']:.1f} overall={cols['total_score']:.1f} ({d['overallLabel']})"
    )
    if a.out:
        if os.path.dirname(a.out):
            os.makedirs(os.path.dirname(a.out), exist_ok=True)
        if a.out.lower().endswith(".html"):
            export_report_html(d, a.out)
        else:
            with open(a.out, "w", encoding="utf-8") as f:
                json.dump(d, f, indent=2, ensure_ascii=False)
        print(f"Wrote: {a.out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
