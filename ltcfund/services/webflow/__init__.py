from .client import WebflowClient, WebflowConfigError, WebflowError
from .projects import (
    ProjectCatalog,
    build_catalog,
    get_all_published_projects,
    get_project_by_slug,
    get_project_contributors,
    get_project_summaries,
)
from .types import Contributor, Project

__all__ = [
    "Contributor",
    "Project",
    "ProjectCatalog",
    "WebflowClient",
    "WebflowConfigError",
    "WebflowError",
    "build_catalog",
    "get_all_published_projects",
    "get_project_by_slug",
    "get_project_contributors",
    "get_project_summaries",
]
