# ltcfund/services/webflow/projects.py
"""
Project catalog sourced from the Webflow CMS.

Published projects are cached in the KV store for PROJECTS_CACHE_TTL
seconds; the cache holds the public JSON shape so API responses can be
served straight from it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from flask import current_app

from ltcfund.services.kv import get_kv

from .client import WebflowConfigError, create_webflow_client
from .types import Contributor, Project

log = logging.getLogger(__name__)

PROJECTS_CACHE_KEY = "webflow:projects:published"
CONTRIBUTORS_CACHE_KEY = "webflow:contributors"

OPEN_STATUSES = {"open"}
BOUNTY_STATUSES = {"bounty open"}
PAST_STATUSES = {"completed", "closed", "bounty closed", "bounty completed"}


def _ttl() -> int:
    return int(current_app.config.get("PROJECTS_CACHE_TTL", 259200))


def get_all_published_projects(*, use_cache: bool = True) -> List[Project]:
    collection_id = (current_app.config.get("WEBFLOW_COLLECTION_ID_PROJECTS") or "").strip()
    if not collection_id or not (current_app.config.get("WEBFLOW_API_TOKEN") or "").strip():
        raise WebflowConfigError()

    kv = get_kv()
    if use_cache:
        cached = kv.get(PROJECTS_CACHE_KEY)
        if cached:
            return [Project.from_dict(p) for p in cached]

    client = create_webflow_client()
    items = client.list_collection_items(collection_id)
    projects = [
        Project.from_webflow(item)
        for item in items
        if not item.get("isDraft") and not item.get("isArchived")
    ]
    log.info("Fetched %d published projects (%d items) from Webflow", len(projects), len(items))

    kv.set(PROJECTS_CACHE_KEY, [p.as_dict() for p in projects], ex=_ttl())
    return projects


def get_project_by_slug(slug: str) -> Optional[Project]:
    for project in get_all_published_projects():
        if project.slug == slug:
            return project
    return None


def get_project_summaries() -> List[Dict]:
    return [p.summary_dict() for p in get_all_published_projects()]


# ─────────────────────────────────────────────────────────────
# Catalog grouping
# ─────────────────────────────────────────────────────────────
@dataclass
class ProjectCatalog:
    open_projects: List[Project] = field(default_factory=list)
    open_bounties: List[Project] = field(default_factory=list)
    past_projects: List[Project] = field(default_factory=list)


def _status_key(project: Project) -> str:
    return (project.status or "").strip().lower()


def sort_by_display_order(projects: Iterable[Project], order: List[str]) -> List[Project]:
    rank = {name: i for i, name in enumerate(order)}
    return sorted(
        projects,
        key=lambda p: (0, rank[p.name], "") if p.name in rank else (1, 0, p.name.lower()),
    )


def build_catalog(projects: Iterable[Project], order: Optional[List[str]] = None) -> ProjectCatalog:
    visible = [p for p in projects if not p.hidden]

    open_projects = [p for p in visible if _status_key(p) in OPEN_STATUSES]
    bounties = [p for p in visible if _status_key(p) in BOUNTY_STATUSES]
    past = [p for p in visible if _status_key(p) in PAST_STATUSES]

    if not (open_projects or bounties or past) and visible:
        log.warning("No projects matched a status group; listing all %d as open", len(visible))
        open_projects = visible

    return ProjectCatalog(
        open_projects=sort_by_display_order(open_projects, order or []),
        open_bounties=bounties,
        past_projects=past,
    )


# ─────────────────────────────────────────────────────────────
# Contributors
# ─────────────────────────────────────────────────────────────
def _contributors_by_id() -> Dict[str, Contributor]:
    collection_id = (current_app.config.get("WEBFLOW_COLLECTION_ID_CONTRIBUTORS") or "").strip()
    if not collection_id:
        return {}

    kv = get_kv()
    cached = kv.get(CONTRIBUTORS_CACHE_KEY)
    if cached:
        contributors = [Contributor.from_dict(c) for c in cached]
    else:
        items = create_webflow_client().list_collection_items(collection_id)
        contributors = [
            Contributor.from_webflow(item)
            for item in items
            if not item.get("isDraft") and not item.get("isArchived")
        ]
        kv.set(CONTRIBUTORS_CACHE_KEY, [c.as_dict() for c in contributors], ex=_ttl())
    return {c.id: c for c in contributors}


def get_project_contributors(project: Project) -> List[Contributor]:
    """Contributors and advocates of a project, de-duplicated, in listing order."""
    ids = project.contributor_ids
    if not ids:
        return []
    by_id = _contributors_by_id()
    return [by_id[cid] for cid in ids if cid in by_id]
