"""
app/repositories/hierarchy_repository.py

Persistence for Big Jobs, Little Jobs and Outcomes of one organization.

Slugs are resolved to primary keys through ``SlugLookup`` instances owned by
the repository. A lookup holds nothing until ``refresh()`` is called; writes
keep it in step (``remember`` / ``forget``) and cascading deletes invalidate
the lower levels.

Nothing here commits; the service owns the transaction.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.domain.hierarchy import NodeKind
from app.errors import HierarchyConflictError, HierarchyNotFoundError, StaleLookupError
from app.logging_utils import log_event
from app.repositories.change_log_repository import ChangeLogRepository
from db.models.change_log import ChangeAction
from db.models.hierarchy import BigJob, EntityStatus, LittleJob, Outcome

logger = logging.getLogger(__name__)

HierarchyModel = BigJob | LittleJob | Outcome

_MODELS: dict[str, type[HierarchyModel]] = {
    NodeKind.BIG_JOB: BigJob,
    NodeKind.LITTLE_JOB: LittleJob,
    NodeKind.OUTCOME: Outcome,
}
PARENT_COLUMNS: dict[str, tuple[str, str]] = {
    NodeKind.LITTLE_JOB: (NodeKind.BIG_JOB, "big_job_id"),
    NodeKind.OUTCOME: (NodeKind.LITTLE_JOB, "little_job_id"),
}
_EDITABLE_FIELDS: dict[str, frozenset[str]] = {
    NodeKind.BIG_JOB: frozenset({"slug", "name", "description", "tags", "order_index"}),
    NodeKind.LITTLE_JOB: frozenset({"slug", "name", "description", "order_index"}),
    NodeKind.OUTCOME: frozenset({"slug", "name", "description", "tags", "order_index"}),
}


class SlugLookup:
    """
    Slug -> id map that must be refreshed explicitly before use.
    """

    def __init__(self, loader: Callable[[], Mapping[str, uuid.UUID]]) -> None:
        self._loader = loader
        self._entries: dict[str, uuid.UUID] | None = None

    @property
    def is_fresh(self) -> bool:
        return self._entries is not None

    def refresh(self) -> None:
        self._entries = dict(self._loader())

    def invalidate(self) -> None:
        self._entries = None

    def resolve(self, slug: str) -> uuid.UUID | None:
        if self._entries is None:
            raise StaleLookupError("Slug lookup used before refresh().")
        return self._entries.get(slug)

    def remember(self, slug: str, entity_id: uuid.UUID) -> None:
        if self._entries is not None:
            self._entries[slug] = entity_id

    def forget(self, slug: str) -> None:
        if self._entries is not None:
            self._entries.pop(slug, None)


def snapshot(node: HierarchyModel) -> dict[str, Any]:
    """
    JSON-safe view of a node for change-log before/after columns.
    """

    data: dict[str, Any] = {
        "slug": node.slug,
        "name": node.name,
        "description": node.description,
        "status": node.status,
        "order_index": node.order_index,
    }
    if hasattr(node, "tags"):
        data["tags"] = list(node.tags or [])
    return data


class HierarchyRepository:
    """
    Hierarchy reads and writes scoped to one organization.
    """

    def __init__(self, session: Session, *, org_id: uuid.UUID, actor: str | None = None) -> None:
        self._session = session
        self._org_id = org_id
        self._actor = actor
        self._change_log = ChangeLogRepository(session)
        self._lookups: dict[str, SlugLookup] = {
            kind: SlugLookup(self._slug_loader(model)) for kind, model in _MODELS.items()
        }

    def lookup(self, kind: str) -> SlugLookup:
        return self._lookups[kind]

    def refresh_lookups(self) -> None:
        for lookup in self._lookups.values():
            lookup.refresh()

    def require_id(self, kind: str, slug: str) -> uuid.UUID:
        """
        Resolve ``slug`` through the kind's lookup. Raises
        ``StaleLookupError`` unless ``refresh_lookups()`` ran first.
        """

        entity_id = self._lookups[kind].resolve(slug)
        if entity_id is None:
            raise HierarchyNotFoundError(kind, slug)
        return entity_id

    def list_nodes(
        self,
        *,
        status: str | None = EntityStatus.ACTIVE,
    ) -> tuple[list[BigJob], list[LittleJob], list[Outcome]]:
        """
        Return every node of the organization ordered by ``order_index``
        then name; ``status=None`` includes archived nodes.
        """

        results: list[list[Any]] = []
        for model in (BigJob, LittleJob, Outcome):
            stmt = select(model).where(model.org_id == self._org_id)
            if status is not None:
                stmt = stmt.where(model.status == status)
            stmt = stmt.order_by(model.order_index, model.name)
            results.append(list(self._session.scalars(stmt).all()))
        big_jobs, little_jobs, outcomes = results
        return big_jobs, little_jobs, outcomes

    def get_node(self, kind: str, slug: str) -> HierarchyModel:
        node = self._session.get(_MODELS[kind], self.require_id(kind, slug))
        if node is None:
            self._lookups[kind].forget(slug)
            raise HierarchyNotFoundError(kind, slug)
        return node

    def create_node(
        self,
        kind: str,
        *,
        values: Mapping[str, Any],
        parent_slug: str | None = None,
    ) -> HierarchyModel:
        fields = self._editable(kind, values)
        model = _MODELS[kind]
        node = model(org_id=self._org_id, status=EntityStatus.ACTIVE, **fields)
        if kind in PARENT_COLUMNS:
            parent_kind, parent_column = PARENT_COLUMNS[kind]
            if not parent_slug:
                raise HierarchyNotFoundError(parent_kind, parent_slug or "")
            setattr(node, parent_column, self.require_id(parent_kind, parent_slug))

        self._flush_unique(kind, node.slug, lambda: self._session.add(node))
        self._lookups[kind].remember(node.slug, node.id)
        self._change_log.record(
            org_id=self._org_id,
            entity=kind,
            entity_id=node.slug,
            action=ChangeAction.CREATE,
            after=snapshot(node),
            actor=self._actor,
        )
        log_event(logger, logging.INFO, "hierarchy_node_created", kind=kind, slug=node.slug)
        return node

    def update_node(
        self,
        kind: str,
        slug: str,
        *,
        changes: Mapping[str, Any],
        parent_slug: str | None = None,
    ) -> HierarchyModel:
        """
        Apply editable field changes; ``parent_slug`` re-parents the node.

        Status is never touched here; use ``archive_node``.
        """

        node = self.get_node(kind, slug)
        before = snapshot(node)
        fields = self._editable(kind, changes)

        def apply() -> None:
            for name, value in fields.items():
                setattr(node, name, value)
            if parent_slug is not None and kind in PARENT_COLUMNS:
                parent_kind, parent_column = PARENT_COLUMNS[kind]
                setattr(node, parent_column, self.require_id(parent_kind, parent_slug))

        self._flush_unique(kind, fields.get("slug", slug), apply)
        if node.slug != slug:
            self._lookups[kind].forget(slug)
            self._lookups[kind].remember(node.slug, node.id)
        self._change_log.record(
            org_id=self._org_id,
            entity=kind,
            entity_id=node.slug,
            action=ChangeAction.UPDATE,
            before=before,
            after=snapshot(node),
            actor=self._actor,
        )
        return node

    def archive_node(self, kind: str, slug: str) -> HierarchyModel:
        """
        Mark the node archived. ``order_index`` is left as it was.
        """

        node = self.get_node(kind, slug)
        before = snapshot(node)
        node.status = EntityStatus.ARCHIVED
        self._session.flush()
        self._change_log.record(
            org_id=self._org_id,
            entity=kind,
            entity_id=slug,
            action=ChangeAction.ARCHIVE,
            before=before,
            after=snapshot(node),
            actor=self._actor,
        )
        log_event(logger, logging.INFO, "hierarchy_node_archived", kind=kind, slug=slug)
        return node

    def delete_node(self, kind: str, slug: str) -> None:
        """
        Delete the node; descendants and their results cascade.
        """

        node = self.get_node(kind, slug)
        before = snapshot(node)
        self._session.delete(node)
        self._session.flush()
        self._lookups[kind].forget(slug)
        for lower_kind in NodeKind.ORDERED[NodeKind.ORDERED.index(kind) + 1 :]:
            self._lookups[lower_kind].invalidate()
        self._change_log.record(
            org_id=self._org_id,
            entity=kind,
            entity_id=slug,
            action=ChangeAction.DELETE,
            before=before,
            actor=self._actor,
        )
        log_event(logger, logging.INFO, "hierarchy_node_deleted", kind=kind, slug=slug)

    def _flush_unique(self, kind: str, slug: str, mutate: Callable[[], None]) -> None:
        try:
            with self._session.begin_nested():
                mutate()
        except IntegrityError as exc:
            raise HierarchyConflictError(f"{kind} '{slug}' already exists") from exc

    def _slug_loader(self, model: type[HierarchyModel]) -> Callable[[], dict[str, uuid.UUID]]:
        def load() -> dict[str, uuid.UUID]:
            rows = self._session.execute(
                select(model.slug, model.id).where(model.org_id == self._org_id)
            ).all()
            return {slug: entity_id for slug, entity_id in rows}

        return load

    @staticmethod
    def _editable(kind: str, values: Mapping[str, Any]) -> dict[str, Any]:
        allowed = _EDITABLE_FIELDS[kind]
        return {name: value for name, value in values.items() if name in allowed and value is not None}
