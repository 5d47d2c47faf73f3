"""Routes for the member dashboard."""

from __future__ import annotations

import datetime

from flask import (
    Response,
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    request,
    stream_with_context,
    url_for,
)

from clubportal.applications import ApplicationService
from clubportal.auth.decorators import login_required
from clubportal.chat import ChatFeed, ChatService
from clubportal.competition import CompetitionService
from clubportal.content import AnnouncementService
from clubportal.core import constants
from clubportal.errors import AccessDenied, AppError, StoreError
from clubportal.groups import GroupService
from clubportal.member.services import CertificateService, PresenceService, TaskService
from clubportal.profiles import ProfileService
from clubportal.roles.services import RoleService
from clubportal.store import get_db
from clubportal.utils import load_or_flash

from . import bp
from .forms import MessageForm, ProfileForm


@bp.route("/")
@login_required(approval_required=True)
def dashboard():
    """Member overview: application, groups, tasks, certificates, attendance."""
    ctx = g.session_ctx
    db = get_db()
    uid = ctx.user.uid

    def load():
        return {
            "application": ApplicationService.get_application(db, uid),
            "groups": GroupService.groups_of_user(db, uid),
            "tasks": TaskService.list_tasks(db, uid),
            "certificates": CertificateService.list_certificates(db, uid),
            "presences": PresenceService.list_presences(db, uid),
            "announcements": AnnouncementService.list_announcements(db),
            "unread": ChatService.unread_count(db, uid),
        }

    data = load_or_flash(
        "load your dashboard",
        load,
        {
            "application": None,
            "groups": [],
            "tasks": [],
            "certificates": [],
            "presences": [],
            "announcements": [],
            "unread": 0,
        },
    )
    return render_template(
        "member/dashboard.html", primary_role=ctx.primary_role, **data
    )


@bp.route("/tasks/<string:task_id>/toggle", methods=["POST"])
@login_required(approval_required=True)
def toggle_task(task_id):
    """Mark one of the member's own tasks done or not done."""
    try:
        TaskService.toggle_task(get_db(), task_id, g.session_ctx.user.uid)
    except AppError as e:
        flash(e.message, "danger")
    return redirect(url_for(".dashboard"))


@bp.route("/profile", methods=["GET", "POST"])
@login_required(approval_required=True)
def edit_profile():
    """Edit the member's own name, major and bio."""
    ctx = g.session_ctx
    form = ProfileForm(obj=ctx.profile)
    if form.validate_on_submit():
        try:
            ProfileService.update_own_profile(
                get_db(),
                ctx.user.uid,
                {
                    "name": form.name.data,
                    "major": form.major.data,
                    "bio": form.bio.data,
                },
            )
        except AppError as e:
            flash(e.message, "danger")
            return redirect(url_for(".edit_profile"))
        flash("Profile updated.", "success")
        return redirect(url_for(".dashboard"))
    return render_template("member/profile.html", form=form)


@bp.route("/competition")
@login_required(approval_required=True)
def competition():
    """Robots with free slots and the member's own signups."""
    db = get_db()
    uid = g.session_ctx.user.uid
    robots = load_or_flash(
        "load robots", lambda: CompetitionService.list_robots(db), []
    )
    joined = load_or_flash(
        "load your signups",
        lambda: CompetitionService.signed_up_robot_ids(db, uid),
        set(),
    )
    return render_template("member/competition.html", robots=robots, joined=joined)


@bp.route("/competition/<string:robot_id>/toggle", methods=["POST"])
@login_required(approval_required=True)
def toggle_signup(robot_id):
    """Join a robot team, or leave it."""
    try:
        joined = CompetitionService.toggle_signup(
            get_db(), robot_id, g.session_ctx.user.uid
        )
    except AppError as e:
        flash(e.message, "warning")
    else:
        flash("You joined the team!" if joined else "You left the team.", "success")
    return redirect(url_for(".competition"))


def _contacts(db):
    """Who the current user can talk to."""
    ctx = g.session_ctx
    if ctx.is_admin:
        return [
            (t.other_id, t.other_name or t.other_id, t.unread)
            for t in ChatService.threads(db, ctx.user.uid, include_admin_channel=True)
        ]
    contacts = [(constants.ADMIN_CHANNEL, "All admins", 0)]
    contacts.extend(
        (p.id, p.name, 0)
        for p in ChatService.list_admins(db)
        if p.id != ctx.user.uid
    )
    return contacts


def _check_recipient(db, recipient):
    ctx = g.session_ctx
    if ctx.is_admin or recipient == constants.ADMIN_CHANNEL:
        return
    if recipient not in RoleService.list_admin_ids(db):
        raise AccessDenied("Members can only message admins.")


@bp.route("/chat")
@login_required(approval_required=True)
def chat():
    """Chat page; ``?with=`` selects the conversation."""
    ctx = g.session_ctx
    db = get_db()
    uid = ctx.user.uid
    contacts = load_or_flash("load contacts", lambda: _contacts(db), [])
    other = request.args.get("with") or (contacts[0][0] if contacts else None)

    messages = []
    if other:
        try:
            if ctx.is_admin:
                messages = ChatService.admin_conversation(db, uid, other)
                ChatService.mark_read(db, constants.ADMIN_CHANNEL, other)
            else:
                messages = ChatService.conversation(db, uid, other)
            ChatService.mark_read(db, uid, other)
        except StoreError as e:
            current_app.logger.error(f"Failed to load conversation: {e.detail}")
            flash(e.message, "danger")

    form = MessageForm(recipient=other)
    return render_template(
        "member/chat.html",
        contacts=contacts,
        other=other,
        messages=messages,
        form=form,
        poll_interval_ms=current_app.config["CHAT_POLL_INTERVAL_MS"],
    )


@bp.route("/chat/send", methods=["POST"])
@login_required(approval_required=True)
def chat_send():
    form = MessageForm()
    if not form.validate_on_submit():
        flash("Message cannot be empty.", "danger")
        return redirect(url_for(".chat", **{"with": form.recipient.data or ""}))
    db = get_db()
    try:
        _check_recipient(db, form.recipient.data)
        ChatService.send_message(
            db, g.session_ctx.user.uid, form.recipient.data, form.content.data
        )
    except AppError as e:
        flash(e.message, "danger")
    return redirect(url_for(".chat", **{"with": form.recipient.data}))


@bp.route("/chat/poll")
@login_required(approval_required=True)
def chat_poll():
    """Polling fallback: messages newer than ``?since=`` (ISO timestamp)."""
    ctx = g.session_ctx
    since = request.args.get("since")
    try:
        since_dt = datetime.datetime.fromisoformat(since) if since else None
    except ValueError:
        return jsonify({"status": "error", "message": "Invalid 'since'."}), 400
    if since_dt is not None and since_dt.tzinfo is None:
        since_dt = since_dt.replace(tzinfo=datetime.timezone.utc)

    try:
        messages = ChatService.messages_since(
            get_db(), ctx.user.uid, since_dt, include_admin_channel=ctx.is_admin
        )
    except StoreError as e:
        current_app.logger.error(f"Chat poll failed: {e.detail}")
        return jsonify({"status": "error", "message": e.message}), e.status_code
    return jsonify(
        {
            "status": "success",
            "messages": [m.to_json() for m in messages],
            "poll_interval_ms": current_app.config["CHAT_POLL_INTERVAL_MS"],
        }
    )


@bp.route("/chat/stream")
@login_required(approval_required=True)
def chat_stream():
    """Push feed of incoming messages as server-sent events."""
    ctx = g.session_ctx
    feed = ChatFeed(get_db(), ctx.user.uid, include_admin_channel=ctx.is_admin).open()
    current_app.logger.debug(f"Chat stream opened for {ctx.user.uid}")
    response = Response(
        stream_with_context(
            feed.events(retry_ms=current_app.config["CHAT_POLL_INTERVAL_MS"])
        ),
        mimetype="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
    # The generator never starts if the client leaves before the first frame.
    response.call_on_close(feed.close)
    return response
