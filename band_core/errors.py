from __future__ import annotations


class MalformedEncodingError(ValueError):
    """A stored options/correct-answer field does not decode to the expected shape.

    Raised by the decoders in ``band_core.encodings`` and always recovered
    inside ``band_core.scoring``; callers of the engine never see it.
    """

    def __init__(self, field: str, raw: object, reason: str = "") -> None:
        self.field = field
        self.raw = raw
        self.reason = reason
        msg = f"malformed {field}: {raw!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class MissingSubmissionDataError(LookupError):
    """The submission referenced by the caller does not exist."""

    def __init__(self, submission_id: str | None) -> None:
        self.submission_id = submission_id
        super().__init__(f"submission not found: {submission_id}")
