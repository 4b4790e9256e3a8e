"""
app/domain/hierarchy.py

Read models for the JTBD hierarchy (Big Job -> Little Job -> Outcome), survey
rounds and the flattened per-outcome result view.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date


class NodeKind:
    """Hierarchy levels; values double as change-log entity names."""

    BIG_JOB = "big_job"
    LITTLE_JOB = "little_job"
    OUTCOME = "outcome"

    ORDERED = (BIG_JOB, LITTLE_JOB, OUTCOME)


@dataclass(frozen=True)
class OutcomeNode:
    slug: str
    name: str
    description: str | None = None
    tags: tuple[str, ...] = ()
    status: str = "active"
    order_index: int = 0
    importance: float | None = None
    satisfaction: float | None = None
    opportunity_score: float | None = None


@dataclass(frozen=True)
class LittleJobNode:
    slug: str
    name: str
    description: str | None = None
    status: str = "active"
    order_index: int = 0
    outcomes: tuple[OutcomeNode, ...] = ()


@dataclass(frozen=True)
class BigJobNode:
    slug: str
    name: str
    description: str | None = None
    tags: tuple[str, ...] = ()
    status: str = "active"
    order_index: int = 0
    little_jobs: tuple[LittleJobNode, ...] = ()


@dataclass(frozen=True)
class SurveyRecord:
    code: str
    name: str
    date: date
    description: str | None = None


@dataclass(frozen=True)
class ResearchRound:
    """
    One survey with the active hierarchy and that survey's scores attached.
    """

    code: str
    name: str
    date: date
    description: str
    big_jobs: tuple[BigJobNode, ...] = ()


@dataclass(frozen=True)
class OutcomeResultView:
    """
    One result row joined with its survey and hierarchy path.
    """

    survey_code: str
    survey_name: str
    survey_date: date
    big_job_slug: str
    big_job_name: str
    little_job_slug: str
    little_job_name: str
    outcome_slug: str
    outcome_name: str
    importance: float
    satisfaction: float
    opportunity_score: float


@dataclass(frozen=True)
class OutcomeResultFilters:
    survey_codes: tuple[str, ...] = field(default_factory=tuple)
    big_job_slugs: tuple[str, ...] = field(default_factory=tuple)
    little_job_slugs: tuple[str, ...] = field(default_factory=tuple)
    outcome_slugs: tuple[str, ...] = field(default_factory=tuple)
