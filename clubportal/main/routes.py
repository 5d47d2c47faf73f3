"""Routes for the public site."""

from __future__ import annotations

from flask import current_app, flash, g, redirect, render_template, session, url_for

from clubportal.applications import ApplicationService, ApplicationSubmission
from clubportal.competition import CompetitionService
from clubportal.content import EventService, NewsService, ProjectService
from clubportal.core import constants
from clubportal.errors import AppError
from clubportal.groups import GroupService
from clubportal.store import get_db
from clubportal.utils import load_or_flash

from . import bp
from .forms import ApplyForm
from .services import TeamService


@bp.route("/")
def index():
    """Home page. The welcome popup is shown once per browser session."""
    show_welcome = not session.get(constants.SESSION_WELCOME_SHOWN)
    session[constants.SESSION_WELCOME_SHOWN] = True
    return render_template("main/index.html", show_welcome=show_welcome)


@bp.route("/about")
def about():
    return render_template("main/about.html")


@bp.route("/projects")
def projects():
    db = get_db()
    items = load_or_flash(
        "load projects", lambda: ProjectService.list_projects(db), []
    )
    return render_template("main/projects.html", projects=items)


@bp.route("/competition")
def competition():
    db = get_db()
    robots = load_or_flash(
        "load robots", lambda: CompetitionService.list_robots(db), []
    )
    return render_template("main/competition.html", robots=robots)


@bp.route("/events")
def events():
    db = get_db()
    items = load_or_flash("load events", lambda: EventService.list_events(db), [])
    return render_template("main/events.html", events=items)


@bp.route("/news")
def news():
    db = get_db()
    items = load_or_flash("load news", lambda: NewsService.list_news(db), [])
    return render_template("main/news.html", news=items)


@bp.route("/team")
def team():
    """Team page; the roster is only shown to signed-in visitors."""
    sections = None
    if g.session_ctx.is_authenticated:
        db = get_db()
        sections = load_or_flash(
            "load the team", lambda: TeamService.team_sections(db), None
        )
    return render_template("main/team.html", sections=sections)


@bp.route("/groups")
def groups():
    """Group listing with member names, for signed-in visitors."""
    items = None
    if g.session_ctx.is_authenticated:
        db = get_db()
        items = load_or_flash(
            "load groups", lambda: GroupService.list_groups_with_members(db), []
        )
    return render_template("main/groups.html", groups=items)


@bp.route("/apply", methods=["GET", "POST"])
def apply():
    """Send a membership application, creating the account if needed."""
    ctx = g.session_ctx
    form = ApplyForm()
    if ctx.is_authenticated and not form.is_submitted():
        form.email.data = ctx.user.email
        if ctx.profile is not None:
            form.name.data = ctx.profile.name
            form.major.data = ctx.profile.major

    if form.validate_on_submit():
        submission = ApplicationSubmission(
            name=form.name.data,
            email=form.email.data,
            reason=form.reason.data,
            major=form.major.data or None,
        )
        try:
            submission.validate()
        except ValueError as e:
            flash(str(e), "danger")
            return render_template("main/apply.html", form=form)

        db = get_db()
        new_account = False
        try:
            if ctx.is_authenticated:
                user_id = ctx.user.uid
            else:
                if not form.password.data:
                    flash("Please choose a password for your account.", "danger")
                    return render_template("main/apply.html", form=form)
                user_id = ctx.sign_up(
                    submission.email,
                    form.password.data,
                    submission.name,
                    major=submission.major,
                ).uid
                new_account = True
            ApplicationService.submit_application(
                db,
                user_id,
                submission,
                grant_member_role=current_app.config["GRANT_ROLE_ON_SUBMISSION"],
            )
        except AppError as e:
            if new_account:
                # Without a profile the account could neither sign in nor re-apply.
                try:
                    ctx.cancel_sign_up(user_id)
                except AppError as cleanup_error:
                    current_app.logger.error(
                        f"Account {user_id} left without an application: "
                        f"{cleanup_error.message}"
                    )
            flash(e.message, "danger")
            return redirect(url_for(".apply"))

        flash(
            "Application sent! We will get back to you after reviewing it.", "success"
        )
        return redirect(url_for(".index"))

    return render_template("main/apply.html", form=form)
