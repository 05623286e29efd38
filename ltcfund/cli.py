# ltcfund/cli.py
# =============================================================================
# `flask fund ...` maintenance commands
# Token inspection/refresh, cache housekeeping and local demo data.
# =============================================================================

import random
from datetime import datetime, timedelta
from decimal import Decimal

import click
from faker import Faker
from flask.cli import AppGroup
from sqlalchemy.exc import SQLAlchemyError

from ltcfund.extensions import db
from ltcfund.models import Donation, DonationPledge, MatchingDonationLog, Token
from ltcfund.services.errors import ServiceError
from ltcfund.services.kv import get_kv
from ltcfund.services.stats import STATS_CACHE_KEY
from ltcfund.services.tgb import login_and_save_tokens
from ltcfund.services.webflow import get_all_published_projects
from ltcfund.services.webflow.projects import CONTRIBUTORS_CACHE_KEY, PROJECTS_CACHE_KEY

fund = AppGroup("fund", help="Open-Source Fund maintenance commands.")
tokens = AppGroup("tokens", help="The Giving Block service token.")
cache = AppGroup("cache", help="KV cache housekeeping.")
projects = AppGroup("projects", help="Webflow project catalog.")

fund.add_command(tokens)
fund.add_command(cache)
fund.add_command(projects)

fake = Faker()


# -------------------------------------------------------------------
# Tokens
# -------------------------------------------------------------------
@tokens.command("status")
def tokens_status() -> None:
    """Show the stored token and when it expires."""
    token = Token.latest()
    if token is None:
        click.secho("No token stored; the next API call will log in.", fg="yellow")
        return
    state = "valid" if token.is_valid() else "expired"
    click.echo(f"refreshed_at: {token.refreshed_at:%Y-%m-%d %H:%M:%S} UTC")
    click.echo(f"expires_at:   {token.expires_at:%Y-%m-%d %H:%M:%S} UTC")
    click.secho(f"state:        {state}", fg="green" if state == "valid" else "red")


@tokens.command("refresh")
def tokens_refresh() -> None:
    """Log in again and store a fresh token pair."""
    try:
        login_and_save_tokens()
    except ServiceError as e:
        click.secho(f"Token refresh failed: {e.message}", fg="red", bold=True)
        raise SystemExit(1)
    click.secho("Token refreshed.", fg="bright_green")


# -------------------------------------------------------------------
# Cache
# -------------------------------------------------------------------
@cache.command("clear")
@click.option("--all", "clear_all", is_flag=True, help="Also drop per-project donation info.")
def cache_clear(clear_all: bool) -> None:
    """Drop cached projects, contributors and stats."""
    kv = get_kv()
    keys = [PROJECTS_CACHE_KEY, CONTRIBUTORS_CACHE_KEY, STATS_CACHE_KEY]
    if clear_all:
        keys += kv.keys("tgb-info-*")
    removed = kv.delete(*keys)
    click.secho(f"Removed {removed} cache entr{'y' if removed == 1 else 'ies'}.", fg="yellow")


# -------------------------------------------------------------------
# Projects
# -------------------------------------------------------------------
@projects.command("warm")
def projects_warm() -> None:
    """Fetch published projects from Webflow and prime the cache."""
    try:
        found = get_all_published_projects(use_cache=False)
    except ServiceError as e:
        click.secho(f"Webflow fetch failed: {e.message}", fg="red", bold=True)
        raise SystemExit(1)
    click.secho(f"Cached {len(found)} published projects.", fg="bright_green")


# -------------------------------------------------------------------
# Demo data
# -------------------------------------------------------------------
@fund.command("seed-demo")
@click.option("--donations", "n_donations", default=20, show_default=True, help="Legacy donation rows.")
@click.option("--pledges", "n_pledges", default=10, show_default=True, help="Crypto/fiat pledge rows.")
@click.option("--slug", "slugs", multiple=True, help="Project slug(s) to attach rows to.")
@click.option("--clear", is_flag=True, help="Delete existing donation data first.")
def seed_demo(n_donations: int, n_pledges: int, slugs, clear: bool) -> None:
    """Seed Faker-generated donations, pledges and matching rows for local development."""
    slugs = list(slugs) or ["litecoin-foundation", "mweb", "litewallet"]

    try:
        if clear:
            _clear_donation_data()
        created = _seed_donations(n_donations, slugs)
        _seed_matching(created)
        _seed_pledges(n_pledges, slugs)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        click.secho(f"Seeding failed: {e}", fg="red", bold=True)
        raise SystemExit(1)

    click.secho(
        f"Seeded {n_donations} donations and {n_pledges} pledges across {len(slugs)} projects.",
        fg="bright_green",
        bold=True,
    )


def _clear_donation_data() -> None:
    click.secho("Clearing donation data...", fg="yellow")
    for model in (MatchingDonationLog, DonationPledge, Donation):
        deleted = db.session.query(model).delete()
        click.secho(f"  {deleted} {model.__name__} removed", fg="yellow")


def _donor_fields(anonymous: bool) -> dict:
    return {
        "first_name": None if anonymous else fake.first_name(),
        "last_name": None if anonymous else fake.last_name(),
        "is_anonymous": anonymous,
        "join_mailing_list": random.random() < 0.3,
        "social_x": None if anonymous or random.random() < 0.5 else fake.user_name(),
    }


def _seed_donations(n: int, slugs) -> list:
    rows = []
    for _ in range(n):
        anonymous = random.random() < 0.25
        usd = Decimal(str(round(random.uniform(5, 2500), 2)))
        completed = random.random() < 0.7
        row = Donation(
            project_slug=random.choice(slugs),
            organization_id=1189132,
            donation_type=random.choice(["fiat", "crypto"]),
            asset_symbol="USD",
            pledge_amount=usd,
            donor_email=None if anonymous else fake.email(),
            pledge_id=fake.uuid4(),
            success=completed,
            processed=completed,
            status="Complete" if completed else None,
            value_at_donation_time_usd=usd if completed else None,
            created_at=datetime.utcnow() - timedelta(days=random.randint(0, 365)),
            **_donor_fields(anonymous),
        )
        db.session.add(row)
        rows.append(row)
    db.session.flush()
    return rows


def _seed_matching(donations_: list) -> None:
    for d in donations_:
        if d.status == "Complete" and random.random() < 0.3:
            db.session.add(
                MatchingDonationLog(
                    project_slug=d.project_slug,
                    donation_id=d.id,
                    matched_amount=d.value_at_donation_time_usd,
                )
            )


def _seed_pledges(n: int, slugs) -> None:
    for _ in range(n):
        currency = random.choice(["USD", "LTC", "BTC"])
        db.session.add(
            DonationPledge(
                project_slug=random.choice(slugs),
                organization_id=1189132,
                donation_type="fiat" if currency == "USD" else "crypto",
                pledge_currency=currency,
                pledge_amount=Decimal(str(round(random.uniform(0.1, 500), 2))),
                receipt_email=fake.email(),
                pledge_id=fake.uuid4(),
                deposit_address=None if currency == "USD" else fake.sha1()[:34],
                **_donor_fields(random.random() < 0.25),
            )
        )


def init_cli(app) -> None:
    app.cli.add_command(fund)
