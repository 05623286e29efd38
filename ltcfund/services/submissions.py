# ltcfund/services/submissions.py
"""
Project submissions are filed as GitHub issues on the submissions repo.

The payload is the three-section structure produced by the submission form:
  project_overview, project_budget, applicant_information
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from flask import current_app

from ltcfund.services.errors import NotConfiguredError, PledgeValidationError, ServiceError

log = logging.getLogger(__name__)

SECTIONS = (
    ("project_overview", "Project Overview"),
    ("project_budget", "Project Budget"),
    ("applicant_information", "Applicant Information"),
)

ISSUE_LABELS = ["project-submission"]


class SubmissionError(ServiceError):
    pass


def _label(key: str) -> str:
    return key.replace("_", " ").capitalize()


def _fmt(value: Any) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if value is None or value == "":
        return "_not provided_"
    return str(value).strip()


def render_issue_body(submission: Dict[str, Any]) -> str:
    lines: List[str] = []
    for key, title in SECTIONS:
        section = submission.get(key) or {}
        lines.append(f"## {title}")
        lines.append("")
        for field, value in section.items():
            lines.append(f"**{_label(field)}:** {_fmt(value)}")
            lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def issue_title(submission: Dict[str, Any]) -> str:
    name = str((submission.get("project_overview") or {}).get("project_name") or "").strip()
    return f"Project Submission: {name}" if name else "Project Submission"


def create_submission_issue(submission: Dict[str, Any], session: Optional[requests.Session] = None) -> Dict[str, Any]:
    if not isinstance(submission, dict) or not submission.get("project_overview"):
        raise PledgeValidationError("Missing required fields: project_overview")
    malformed = [
        key for key, _ in SECTIONS if submission.get(key) is not None and not isinstance(submission[key], dict)
    ]
    if malformed:
        raise PledgeValidationError(f"Invalid sections: {', '.join(malformed)}")

    token = (current_app.config.get("GITHUB_ACCESS_TOKEN") or "").strip()
    repo = (current_app.config.get("GITHUB_SUBMISSIONS_REPO") or "").strip()
    if not token or not repo:
        raise NotConfiguredError("GitHub submissions are not configured")

    base = str(current_app.config.get("GITHUB_API_BASE") or "https://api.github.com").rstrip("/")
    http = session or requests.Session()
    try:
        resp = http.post(
            f"{base}/repos/{repo}/issues",
            json={
                "title": issue_title(submission),
                "body": render_issue_body(submission),
                "labels": ISSUE_LABELS,
            },
            headers={
                "Authorization": f"token {token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=15,
        )
        resp.raise_for_status()
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        log.error("GitHub issue creation failed (%s): %s", status, e)
        raise SubmissionError("Failed to submit project", status=status or 502) from e
    except requests.RequestException as e:
        log.error("GitHub issue creation failed: %s", e)
        raise SubmissionError("Failed to submit project", status=502) from e

    try:
        issue = resp.json()
    except ValueError:
        issue = {}
    log.info("Project submission filed as issue #%s", issue.get("number"))
    return issue
