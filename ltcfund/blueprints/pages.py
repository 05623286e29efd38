from __future__ import annotations

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for

from ltcfund.config import SITE_METADATA
from ltcfund.forms import DonationForm, ProjectSubmissionForm
from ltcfund.services import donations
from ltcfund.services.errors import ServiceError
from ltcfund.services.stats import get_site_stats
from ltcfund.services.submissions import create_submission_issue
from ltcfund.services.webflow import (
    build_catalog,
    get_all_published_projects,
    get_project_by_slug,
    get_project_contributors,
)

pages_bp = Blueprint("pages", __name__)

FEATURED_COUNT = 3


def _catalog():
    try:
        projects = get_all_published_projects()
    except ServiceError as e:
        current_app.logger.error("Project catalog unavailable: %s", e.message)
        projects = []
    return build_catalog(projects, current_app.config.get("PROJECT_DISPLAY_ORDER") or [])


# --- Home ---
@pages_bp.get("/")
def home():
    try:
        site_stats = get_site_stats()
    except Exception:
        current_app.logger.exception("Stats unavailable for home page")
        site_stats = None
    catalog = _catalog()
    return render_template(
        "index.html",
        stats=site_stats,
        featured=catalog.open_projects[:FEATURED_COUNT],
    )


# --- Projects ---
@pages_bp.get("/projects")
def projects():
    return render_template("projects/list.html", catalog=_catalog())


@pages_bp.route("/projects/submit", methods=["GET", "POST"])
def submit_project():
    form = ProjectSubmissionForm()
    if not form.validate_on_submit():
        status = 400 if request.method == "POST" else 200
        return render_template("projects/submit.html", form=form), status

    try:
        create_submission_issue(form.to_submission())
    except ServiceError as e:
        current_app.logger.error("Project submission failed: %s", e.message)
        flash("Submission failed. Please try again.", "error")
        return render_template("projects/submit.html", form=form), e.status_code

    return redirect(url_for("pages.project_submitted"))


@pages_bp.get("/projects/submitted")
def project_submitted():
    return render_template("projects/submitted.html")


@pages_bp.get("/projects/<slug>")
def project_detail(slug: str):
    try:
        project = get_project_by_slug(slug)
    except ServiceError as e:
        current_app.logger.error("Error fetching project %s: %s", slug, e.message)
        abort(503)
    if project is None or project.hidden:
        abort(404)

    try:
        contributors = get_project_contributors(project)
    except ServiceError as e:
        current_app.logger.warning("Contributors unavailable for %s: %s", slug, e.message)
        contributors = []

    return render_template("projects/detail.html", project=project, contributors=contributors)


# --- Donate (GET shows form, POST records the pledge) ---
@pages_bp.route("/donate", methods=["GET", "POST"])
def donate():
    form = DonationForm()
    slug = request.args.get("project") or SITE_METADATA["foundation_project"]["slug"]
    if request.method == "GET":
        form.project_slug.data = slug

    project = None
    try:
        project = get_project_by_slug(form.project_slug.data or slug)
    except ServiceError as e:
        current_app.logger.warning("Donate page without project details: %s", e.message)

    if not form.validate_on_submit():
        status = 400 if request.method == "POST" else 200
        return render_template("donate/form.html", form=form, project=project), status

    pledge = form.to_pledge(current_app.config.get("TGB_ORGANIZATION_ID"))
    try:
        if form.is_fiat:
            result = donations.create_fiat_pledge(pledge)
        else:
            result = donations.create_deposit_address(pledge)
    except ServiceError as e:
        current_app.logger.error("Pledge from donate page failed: %s", e.message)
        flash(e.message, "error")
        return render_template("donate/form.html", form=form, project=project), e.status_code

    return render_template("donate/thank_you.html", pledge=pledge, result=result, project=project)
