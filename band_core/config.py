from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_str(name: str, default: str, allowed: tuple[str, ...] | None = None) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    val = raw.strip().lower()
    if allowed and val not in allowed:
        return default
    return val


# (min percentage, band), highest first. Reading/listening only.
BAND_THRESHOLDS: tuple[tuple[int, float], ...] = (
    (90, 9.0),
    (80, 8.0),
    (70, 7.0),
    (60, 6.0),
    (50, 5.0),
    (40, 4.0),
    (30, 3.0),
    (20, 2.0),
)
BAND_FLOOR: float = 1.0
BAND_CEIL: float = 9.0
ABSENT_BAND: float = 0.0

TFNG_OPTIONS: tuple[str, ...] = ("TRUE", "FALSE", "NOT GIVEN")

NO_CORRECT_ANSWER: str = "No correct answer set"
NO_ANSWER: str = "No answer provided"
WRITING_MANUAL: str = "Writing requires manual assessment"
WRITING_EXPLANATION: str = "Writing tasks require manual grading by instructor"

# "node": one matching question counts once toward the section total.
# "pairs": each matching pair counts toward the total.
MATCHING_DENOMINATOR: str = "node"

DEBUG_TRACE: bool = False
AUDIT_EXPORT_ENABLED: bool = True

# // env overrides for staging/ops
MATCHING_DENOMINATOR = _env_str("MATCHING_DENOMINATOR", MATCHING_DENOMINATOR, ("node", "pairs"))
DEBUG_TRACE = _env_bool("DEBUG_TRACE", DEBUG_TRACE)
AUDIT_EXPORT_ENABLED = _env_bool("AUDIT_EXPORT_ENABLED", AUDIT_EXPORT_ENABLED)
