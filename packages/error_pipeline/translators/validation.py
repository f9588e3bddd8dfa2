"""Transform schema-validation failures into a single ``ValidationError``.

Issue paths are joined with ``.`` for every segment, array indices included,
so ``["subTasks", 0, "title"]`` becomes ``subTasks.0.title``. Issues with an
empty path are grouped under ``_root``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from packages.error_pipeline.errors import ErrorCode, ValidationError, validation_error

PATH_SEPARATOR = "."
ROOT_FIELD = "_root"
SINGLE_FIELD_MESSAGE = "Invalid input"


class EmptyIssueListError(ValueError):
    """Raised when the transformer is handed no issues at all."""


def join_path(path: Iterable[object]) -> str:
    """Join path segments into the canonical field key."""
    joined = PATH_SEPARATOR.join(str(segment) for segment in path)
    return joined or ROOT_FIELD


def transform_validation_issues(
    issues: object,
    *,
    context: Mapping[str, Any] | None = None,
) -> ValidationError:
    """Group validation issues by field path into one ``ValidationError``.

    Accepts ``{"issues": [...]}``, a sequence of issue mappings or objects with
    ``path``/``message`` attributes, or a pydantic ``ValidationError``.
    """
    pairs = list(_iter_issue_pairs(issues))
    if not pairs:
        raise EmptyIssueListError("validation transformer requires at least one issue")

    field_errors: dict[str, list[str]] = {}
    for path, message in pairs:
        field_errors.setdefault(path, []).append(message)

    merged = dict(context or {})
    merged["issueCount"] = len(pairs)
    return validation_error(
        _summary_message(len(field_errors)),
        code=ErrorCode.VALIDATION_ERROR,
        field_errors=field_errors,
        context=merged,
    )


def validation_summary(error: ValidationError) -> dict[str, Any]:
    """Return field/issue counts for a validation error."""
    return {
        "fields": list(error.field_errors),
        "fieldCount": len(error.field_errors),
        "errorCount": sum(len(messages) for messages in error.field_errors.values()),
    }


def _summary_message(field_count: int) -> str:
    if field_count == 1:
        return SINGLE_FIELD_MESSAGE
    return f"{field_count} fields have problems"


def _iter_issue_pairs(issues: object) -> Iterable[tuple[str, str]]:
    if isinstance(issues, PydanticValidationError):
        for item in issues.errors():
            yield join_path(item.get("loc", ())), str(item.get("msg", ""))
        return

    if isinstance(issues, Mapping):
        issues = issues.get("issues", ())

    if isinstance(issues, (str, bytes)) or not isinstance(issues, Sequence):
        raise TypeError(f"unsupported issue container: {type(issues).__name__}")

    for issue in issues:
        if isinstance(issue, Mapping):
            path = issue.get("path", ())
            message = issue.get("message", "")
        else:
            path = getattr(issue, "path", ())
            message = getattr(issue, "message", "")
        if isinstance(path, (str, int)):
            path = (path,)
        yield join_path(path or ()), str(message)
