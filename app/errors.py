"""
app/errors.py

Exception taxonomy for the survey import pipeline and the hierarchy store.

File-level errors abort an import before any row is processed and are shown
to the operator verbatim. Row-level problems are never raised; they travel as
issue strings on each matched row.
"""

from __future__ import annotations

from typing import Any


class SurveyFileError(ValueError):
    """
    Raised when an uploaded survey file cannot be turned into rows.
    """

    code = "invalid_file"

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class UnsupportedFormatError(SurveyFileError):
    """Raised when the file extension is neither CSV nor a workbook."""

    code = "unsupported_format"


class EmptyFileError(SurveyFileError):
    """Raised when no data rows remain after header extraction."""

    code = "empty_file"


class MissingColumnError(SurveyFileError):
    """
    Raised when a required canonical column has no matching header.
    """

    code = "missing_column"

    def __init__(self, field_name: str, *, accepted_headers: tuple[str, ...] = ()) -> None:
        accepted = ", ".join(accepted_headers)
        message = f'Column "{field_name}" not found'
        if accepted:
            message = f"{message} (accepted: {accepted})"
        super().__init__(
            message,
            context={"field_name": field_name, "accepted_headers": list(accepted_headers)},
        )
        self.field_name = field_name


class OutcomeCatalogError(RuntimeError):
    """Raised when the active outcome catalog cannot be read."""


class SurveyImportPersistenceError(RuntimeError):
    """Raised when the atomic survey import cannot be written."""


class OrganizationNotFoundError(LookupError):
    """Raised when an organization slug does not exist."""

    def __init__(self, org_slug: str) -> None:
        super().__init__(f"Organization '{org_slug}' not found")
        self.org_slug = org_slug


class HierarchyNotFoundError(LookupError):
    """Raised when a hierarchy node, survey or parent slug does not resolve."""

    def __init__(self, kind: str, slug: str) -> None:
        super().__init__(f"{kind} '{slug}' not found")
        self.kind = kind
        self.slug = slug


class HierarchyConflictError(ValueError):
    """Raised when a write would violate slug uniqueness."""


class StaleLookupError(RuntimeError):
    """Raised when a slug lookup is used before an explicit refresh."""


class MemberNotFoundError(LookupError):
    """Raised when a membership id does not exist in the organization."""

    def __init__(self, member_id: object) -> None:
        super().__init__(f"Member '{member_id}' not found")
        self.member_id = member_id


class MemberConflictError(ValueError):
    """Raised when a user already belongs to the organization."""
