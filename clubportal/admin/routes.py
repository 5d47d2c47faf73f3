"""Admin routes for the application."""

from flask import (
    current_app,
    flash,
    g,
    redirect,
    render_template,
    request,
    url_for,
)

from clubportal.applications import ApplicationService, ApplicationUpdate
from clubportal.auth.decorators import login_required
from clubportal.competition import CompetitionService
from clubportal.content import (
    AnnouncementService,
    EventService,
    NewsService,
    ProjectService,
    ProjectStatus,
    SettingsService,
)
from clubportal.errors import AppError
from clubportal.groups import GroupService
from clubportal.member.services import CertificateService, PresenceService, TaskService
from clubportal.profiles import ApplicationStatus, ProfileService
from clubportal.roles import Role, RoleService
from clubportal.store import get_db
from clubportal.utils import load_or_flash

from . import bp
from .forms import (
    AccountForm,
    AnnouncementForm,
    ApplicationForm,
    CertificateForm,
    ChangeRoleForm,
    DisplayFieldsForm,
    EventForm,
    GroupForm,
    GroupMemberForm,
    NewsForm,
    PresenceForm,
    ProjectForm,
    RobotForm,
    RoleForm,
    SettingsForm,
    ShuffleForm,
    TaskForm,
)
from .services import AdminService


def _back(default_endpoint, **values):
    return redirect(request.referrer or url_for(default_endpoint, **values))


def _run(action, success_message, default_endpoint, **values):
    """Run an admin action, flash its outcome and go back."""
    try:
        action()
    except AppError as e:
        current_app.logger.warning(f"Admin action failed: {e.message}")
        flash(e.message, "danger")
    else:
        flash(success_message, "success")
    return _back(default_endpoint, **values)


def _flash_form_errors(form):
    for field, errors in form.errors.items():
        for error in errors:
            flash(f"{getattr(form, field).label.text}: {error}", "danger")


def _parse_role(value):
    try:
        return Role(value)
    except ValueError:
        raise AppError(f"Unknown role '{value}'.") from None


def _approved_member_ids(db):
    return sorted({a.user_id for a in RoleService.list_assignments(db)})


@bp.route("/")
@login_required(admin_required=True)
def dashboard():
    """Render the admin overview."""
    db = get_db()
    stats = load_or_flash("load overview", lambda: AdminService.get_overview_stats(db), {})
    pending = load_or_flash(
        "load applications",
        lambda: ApplicationService.list_applications(db, ApplicationStatus.PENDING),
        [],
    )
    return render_template("admin/dashboard.html", stats=stats, pending=pending)


# -- applications ------------------------------------------------------------


@bp.route("/applications")
@login_required(admin_required=True)
def applications():
    db = get_db()
    status = request.args.get("status")
    try:
        status_filter = ApplicationStatus(status) if status else None
    except ValueError:
        flash(f"Unknown status '{status}'.", "warning")
        status_filter = None
    items = load_or_flash(
        "load applications",
        lambda: ApplicationService.list_applications(db, status_filter),
        [],
    )
    return render_template(
        "admin/applications.html", applications=items, status=status_filter
    )


@bp.route("/applications/<string:user_id>", methods=["GET", "POST"])
@login_required(admin_required=True)
def application(user_id):
    """Review one application: interview details, notes and status."""
    db = get_db()
    profile = ProfileService.require_profile(db, user_id)
    form = ApplicationForm()
    if not form.is_submitted():
        form.status.data = profile.application_status.value
        form.interview_date.data = profile.application_interview_date
        form.interview_location.data = profile.application_interview_location
        form.notes.data = profile.application_notes

    if form.validate_on_submit():
        update = ApplicationUpdate(
            status=ApplicationStatus(form.status.data),
            interview_date=form.interview_date.data or None,
            interview_location=form.interview_location.data or None,
            notes=form.notes.data or None,
        )
        try:
            ApplicationService.update_application(db, user_id, update)
        except AppError as e:
            flash(e.message, "danger")
            return redirect(url_for(".application", user_id=user_id))
        flash("Application updated.", "success")
        return redirect(url_for(".applications"))

    return render_template("admin/application.html", profile=profile, form=form)


@bp.route("/applications/<string:user_id>/accept", methods=["POST"])
@login_required(admin_required=True)
def accept_application(user_id):
    return _run(
        lambda: ApplicationService.accept(get_db(), user_id),
        "Application accepted.",
        ".applications",
    )


@bp.route("/applications/<string:user_id>/reject", methods=["POST"])
@login_required(admin_required=True)
def reject_application(user_id):
    return _run(
        lambda: ApplicationService.reject(get_db(), user_id),
        "Application rejected.",
        ".applications",
    )


# -- members -----------------------------------------------------------------


@bp.route("/members")
@login_required(admin_required=True)
def members():
    db = get_db()

    def load():
        roles = {}
        for assignment in RoleService.list_assignments(db):
            roles.setdefault(assignment.user_id, []).append(assignment.role)
        profiles = ProfileService.list_profiles(db)
        return [(p, roles.get(p.id, [])) for p in profiles if p.id in roles]

    rows = load_or_flash("load members", load, [])
    return render_template(
        "admin/members.html",
        rows=rows,
        member_form=AccountForm(prefix="member"),
        admin_form=AccountForm(prefix="admin"),
    )


def _create_account(prefix, role):
    form = AccountForm(prefix=prefix)
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".members"))
    return _run(
        lambda: AdminService.create_account(
            get_db(),
            g.session_ctx.identity,
            name=form.name.data,
            email=form.email.data,
            password=form.password.data,
            role=role,
        ),
        f"{role.value.capitalize()} account created.",
        ".members",
    )


@bp.route("/members/add", methods=["POST"])
@login_required(admin_required=True)
def add_member():
    return _create_account("member", Role.MEMBER)


@bp.route("/admins/add", methods=["POST"])
@login_required(admin_required=True)
def add_admin():
    return _create_account("admin", Role.ADMIN)


@bp.route("/members/<string:user_id>")
@login_required(admin_required=True)
def manage_member(user_id):
    """A member's display fields, tasks, certificates and attendance."""
    db = get_db()
    profile = ProfileService.require_profile(db, user_id)

    def load():
        return {
            "roles": RoleService.get_roles(db, user_id),
            "tasks": TaskService.list_tasks(db, user_id),
            "certificates": CertificateService.list_certificates(db, user_id),
            "presences": PresenceService.list_presences(db, user_id),
        }

    data = load_or_flash(
        "load member",
        load,
        {"roles": [], "tasks": [], "certificates": [], "presences": []},
    )
    return render_template(
        "admin/member.html",
        profile=profile,
        display_form=DisplayFieldsForm(obj=profile),
        task_form=TaskForm(),
        certificate_form=CertificateForm(),
        presence_form=PresenceForm(),
        **data,
    )


@bp.route("/members/<string:user_id>/display", methods=["POST"])
@login_required(admin_required=True)
def update_display(user_id):
    form = DisplayFieldsForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".manage_member", user_id=user_id))
    changes = {
        "image": form.image.data,
        "description": form.description.data,
        "linkedin_url": form.linkedin_url.data,
        "instagram_url": form.instagram_url.data,
    }
    return _run(
        lambda: ProfileService.update_display_fields(get_db(), user_id, changes),
        "Profile updated.",
        ".manage_member",
        user_id=user_id,
    )


@bp.route("/members/<string:user_id>/remove", methods=["POST"])
@login_required(admin_required=True)
def remove_member(user_id):
    try:
        ApplicationService.remove_member(get_db(), user_id)
    except AppError as e:
        flash(e.message, "danger")
        return redirect(url_for(".manage_member", user_id=user_id))
    flash("Member removed.", "success")
    return redirect(url_for(".members"))


@bp.route("/members/<string:user_id>/tasks", methods=["POST"])
@login_required(admin_required=True)
def add_task(user_id):
    form = TaskForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".manage_member", user_id=user_id))
    return _run(
        lambda: TaskService.create_task(get_db(), user_id, form.text.data),
        "Task added.",
        ".manage_member",
        user_id=user_id,
    )


@bp.route("/tasks/<string:task_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_task(task_id):
    return _run(
        lambda: TaskService.delete_task(get_db(), task_id), "Task deleted.", ".members"
    )


@bp.route("/members/<string:user_id>/certificates", methods=["POST"])
@login_required(admin_required=True)
def add_certificate(user_id):
    form = CertificateForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".manage_member", user_id=user_id))
    return _run(
        lambda: CertificateService.issue_certificate(get_db(), user_id, form.name.data),
        "Certificate issued.",
        ".manage_member",
        user_id=user_id,
    )


@bp.route("/certificates/<string:certificate_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_certificate(certificate_id):
    return _run(
        lambda: CertificateService.delete_certificate(get_db(), certificate_id),
        "Certificate deleted.",
        ".members",
    )


@bp.route("/members/<string:user_id>/presences", methods=["POST"])
@login_required(admin_required=True)
def add_presence(user_id):
    form = PresenceForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".manage_member", user_id=user_id))
    return _run(
        lambda: PresenceService.add_presence(
            get_db(), user_id, form.week_date.data.isoformat(), form.present.data
        ),
        "Presence recorded.",
        ".manage_member",
        user_id=user_id,
    )


@bp.route("/presences/<string:presence_id>/toggle", methods=["POST"])
@login_required(admin_required=True)
def toggle_presence(presence_id):
    return _run(
        lambda: PresenceService.toggle_presence(get_db(), presence_id),
        "Presence updated.",
        ".members",
    )


@bp.route("/presences/<string:presence_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_presence(presence_id):
    return _run(
        lambda: PresenceService.delete_presence(get_db(), presence_id),
        "Presence deleted.",
        ".members",
    )


# -- roles -------------------------------------------------------------------


@bp.route("/roles")
@login_required(admin_required=True)
def roles():
    db = get_db()

    def load():
        profiles = ProfileService.list_profiles(db)
        names = {p.id: p.name for p in profiles}
        return profiles, [
            (a, names.get(a.user_id, a.user_id)) for a in RoleService.list_assignments(db)
        ]

    profiles, assignments = load_or_flash("load roles", load, ([], []))
    form = RoleForm()
    form.user_id.choices = [(p.id, p.name) for p in profiles]
    return render_template(
        "admin/roles.html",
        assignments=assignments,
        form=form,
        change_form=ChangeRoleForm(),
    )


@bp.route("/roles/assign", methods=["POST"])
@login_required(admin_required=True)
def assign_role():
    user_id = request.form.get("user_id", "")
    role = request.form.get("role", "")

    def action():
        ProfileService.require_profile(get_db(), user_id)
        if not RoleService.assign_role(get_db(), user_id, _parse_role(role)):
            raise AppError("That member already holds this role.", 409)

    return _run(action, "Role assigned.", ".roles")


@bp.route("/roles/remove", methods=["POST"])
@login_required(admin_required=True)
def remove_role():
    user_id = request.form.get("user_id", "")
    role = request.form.get("role", "")
    return _run(
        lambda: RoleService.remove_role(get_db(), user_id, _parse_role(role)),
        "Role removed.",
        ".roles",
    )


@bp.route("/roles/change", methods=["POST"])
@login_required(admin_required=True)
def change_role():
    form = ChangeRoleForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".roles"))
    return _run(
        lambda: RoleService.change_role(
            get_db(),
            form.user_id.data,
            _parse_role(form.old_role.data),
            _parse_role(form.new_role.data),
        ),
        "Role changed.",
        ".roles",
    )


# -- groups ------------------------------------------------------------------


@bp.route("/groups", methods=["GET", "POST"])
@login_required(admin_required=True)
def groups():
    db = get_db()
    form = GroupForm()
    if form.validate_on_submit():
        try:
            GroupService.create_group(db, form.name.data, form.description.data)
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Group created.", "success")
        return redirect(url_for(".groups"))

    items = load_or_flash(
        "load groups", lambda: GroupService.list_groups_with_members(db), []
    )
    candidates = load_or_flash(
        "load members",
        lambda: ProfileService.get_profiles(db, _approved_member_ids(db)),
        [],
    )
    member_form = GroupMemberForm()
    member_form.user_id.choices = [(p.id, p.name) for p in candidates]
    return render_template(
        "admin/groups.html",
        groups=items,
        form=form,
        member_form=member_form,
        shuffle_form=ShuffleForm(),
    )


@bp.route("/groups/<string:group_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_group(group_id):
    return _run(
        lambda: GroupService.delete_group(get_db(), group_id),
        "Group deleted.",
        ".groups",
    )


@bp.route("/groups/<string:group_id>/members", methods=["POST"])
@login_required(admin_required=True)
def add_group_member(group_id):
    user_id = request.form.get("user_id", "")
    return _run(
        lambda: GroupService.add_member(get_db(), group_id, user_id),
        "Member added to group.",
        ".groups",
    )


@bp.route("/groups/shuffle", methods=["POST"])
@login_required(admin_required=True)
def shuffle_groups():
    form = ShuffleForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".groups"))
    db = get_db()
    return _run(
        lambda: GroupService.shuffle_members(
            db, _approved_member_ids(db), form.group_count.data
        ),
        "Members shuffled into groups.",
        ".groups",
    )


# -- competition ---------------------------------------------------------------


@bp.route("/competition", methods=["GET", "POST"])
@login_required(admin_required=True)
def competition():
    db = get_db()
    form = RobotForm()
    if form.validate_on_submit():
        try:
            CompetitionService.create_robot(
                db, form.name.data, form.slots.data, form.description.data, form.image.data
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Robot added.", "success")
        return redirect(url_for(".competition"))

    robots = load_or_flash("load robots", lambda: CompetitionService.list_robots(db), [])
    return render_template("admin/competition.html", robots=robots, form=form)


@bp.route("/competition/<string:robot_id>/edit", methods=["POST"])
@login_required(admin_required=True)
def edit_robot(robot_id):
    form = RobotForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".competition"))
    return _run(
        lambda: CompetitionService.update_robot(
            get_db(),
            robot_id,
            form.name.data,
            form.slots.data,
            form.description.data,
            form.image.data,
        ),
        "Robot updated.",
        ".competition",
    )


@bp.route("/competition/<string:robot_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_robot(robot_id):
    return _run(
        lambda: CompetitionService.delete_robot(get_db(), robot_id),
        "Robot deleted.",
        ".competition",
    )


# -- content -----------------------------------------------------------------


@bp.route("/news", methods=["GET", "POST"])
@login_required(admin_required=True)
def news():
    db = get_db()
    form = NewsForm()
    if form.validate_on_submit():
        try:
            NewsService.create_news(
                db,
                form.title.data,
                form.content.data,
                published=form.published.data,
                image_url=form.image_url.data,
                created_by=g.session_ctx.user.uid,
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("News post saved.", "success")
        return redirect(url_for(".news"))

    items = load_or_flash(
        "load news", lambda: NewsService.list_news(db, published_only=False), []
    )
    return render_template("admin/news.html", news=items, form=form)


@bp.route("/news/<string:news_id>/publish", methods=["POST"])
@login_required(admin_required=True)
def publish_news(news_id):
    published = request.form.get("published") == "true"
    return _run(
        lambda: NewsService.set_published(get_db(), news_id, published),
        "News post published." if published else "News post hidden.",
        ".news",
    )


@bp.route("/news/<string:news_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_news(news_id):
    return _run(
        lambda: NewsService.delete_news(get_db(), news_id),
        "News post deleted.",
        ".news",
    )


@bp.route("/events", methods=["GET", "POST"])
@login_required(admin_required=True)
def events():
    db = get_db()
    form = EventForm()
    if form.validate_on_submit():
        try:
            EventService.create_event(
                db,
                form.title.data,
                form.event_date.data.isoformat(),
                description=form.description.data,
                location=form.location.data,
                created_by=g.session_ctx.user.uid,
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Event saved.", "success")
        return redirect(url_for(".events"))

    items = load_or_flash("load events", lambda: EventService.list_events(db), [])
    return render_template("admin/events.html", events=items, form=form)


@bp.route("/events/<string:event_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_event(event_id):
    return _run(
        lambda: EventService.delete_event(get_db(), event_id),
        "Event deleted.",
        ".events",
    )


@bp.route("/projects", methods=["GET", "POST"])
@login_required(admin_required=True)
def projects():
    db = get_db()
    form = ProjectForm()
    if form.validate_on_submit():
        try:
            ProjectService.create_project(
                db,
                form.title.data,
                form.description.data,
                ProjectStatus(form.status.data),
                form.image.data,
            )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Project saved.", "success")
        return redirect(url_for(".projects"))

    items = load_or_flash("load projects", lambda: ProjectService.list_projects(db), [])
    return render_template("admin/projects.html", projects=items, form=form)


@bp.route("/projects/<string:project_id>/status", methods=["POST"])
@login_required(admin_required=True)
def project_status(project_id):
    try:
        status = ProjectStatus(request.form.get("status", ""))
    except ValueError:
        flash("Unknown project status.", "danger")
        return redirect(url_for(".projects"))
    return _run(
        lambda: ProjectService.set_status(get_db(), project_id, status),
        "Project updated.",
        ".projects",
    )


@bp.route("/projects/<string:project_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_project(project_id):
    return _run(
        lambda: ProjectService.delete_project(get_db(), project_id),
        "Project deleted.",
        ".projects",
    )


# -- settings & announcements ------------------------------------------------


@bp.route("/settings", methods=["GET", "POST"])
@login_required(admin_required=True)
def settings():
    db = get_db()
    form = SettingsForm()
    if form.validate_on_submit():
        try:
            for key in (
                "show_apply_btn",
                "show_interview_btn",
                "show_result_btn",
                "welcome_popup_text",
                "video_background_type",
                "video_background_url",
            ):
                value = getattr(form, key).data
                SettingsService.update_setting(
                    db, key, value if isinstance(value, bool) else (value or "")
                )
        except AppError as e:
            flash(e.message, "danger")
        else:
            flash("Settings saved.", "success")
        return redirect(url_for(".settings"))

    if not form.is_submitted():
        current = load_or_flash("load settings", lambda: SettingsService.get_settings(db), {})
        for key, value in current.items():
            if key in form:
                form[key].data = value
    announcements = load_or_flash(
        "load announcements", lambda: AnnouncementService.list_announcements(db), []
    )
    return render_template(
        "admin/settings.html",
        form=form,
        announcements=announcements,
        announcement_form=AnnouncementForm(),
    )


@bp.route("/announcements", methods=["POST"])
@login_required(admin_required=True)
def add_announcement():
    form = AnnouncementForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for(".settings"))
    return _run(
        lambda: AnnouncementService.create_announcement(get_db(), form.content.data),
        "Announcement posted.",
        ".settings",
    )


@bp.route("/announcements/<string:announcement_id>/delete", methods=["POST"])
@login_required(admin_required=True)
def delete_announcement(announcement_id):
    return _run(
        lambda: AnnouncementService.delete_announcement(get_db(), announcement_id),
        "Announcement deleted.",
        ".settings",
    )


@bp.route("/chat")
@login_required(admin_required=True)
def chat():
    return redirect(url_for("member.chat", **request.args))
