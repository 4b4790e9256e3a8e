"""
app/domain/data_transfer.py

Portable organization snapshot (hierarchy, surveys, results) and the report
produced when a snapshot is imported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from app.domain.hierarchy import BigJobNode, SurveyRecord


class MergeBehavior:
    """
    How an imported entity is applied when its slug (or code) already exists.

    ``skip`` keeps the existing entity, ``overwrite`` replaces its fields with
    the incoming ones, ``merge`` only fills fields the existing entity lacks.
    """

    SKIP = "skip"
    OVERWRITE = "overwrite"
    MERGE = "merge"

    ALL = frozenset({SKIP, OVERWRITE, MERGE})


@dataclass(frozen=True)
class TransferResult:
    survey_code: str
    outcome_slug: str
    importance: float
    satisfaction: float
    opportunity_score: float


@dataclass(frozen=True)
class TransferDocument:
    organization: str
    exported_at: datetime | None = None
    big_jobs: tuple[BigJobNode, ...] = ()
    surveys: tuple[SurveyRecord, ...] = ()
    outcome_results: tuple[TransferResult, ...] = ()


@dataclass
class EntityCounts:
    created: int = 0
    updated: int = 0
    skipped: int = 0


@dataclass(frozen=True)
class TransferConflict:
    """
    An existing entity left different from the incoming one.
    """

    type: str
    slug: str
    existing: dict[str, Any]
    incoming: dict[str, Any]


@dataclass
class DataImportReport:
    merge_behavior: str
    dry_run: bool = False
    big_jobs: EntityCounts = field(default_factory=EntityCounts)
    little_jobs: EntityCounts = field(default_factory=EntityCounts)
    outcomes: EntityCounts = field(default_factory=EntityCounts)
    surveys: EntityCounts = field(default_factory=EntityCounts)
    outcome_results: EntityCounts = field(default_factory=EntityCounts)
    conflicts: list[TransferConflict] = field(default_factory=list)
