"""Forms for the admin dashboard."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import (
    BooleanField,
    DateField,
    HiddenField,
    IntegerField,
    PasswordField,
    SelectField,
    StringField,
    SubmitField,
    TextAreaField,
)
from wtforms.validators import (
    URL,
    DataRequired,
    Email,
    Length,
    NumberRange,
    Optional,
)

from clubportal.content.models import ProjectStatus
from clubportal.content.services import VIDEO_BACKGROUND_TYPES
from clubportal.core import constants
from clubportal.profiles.models import ApplicationStatus
from clubportal.roles.models import Role

ROLE_CHOICES = [(r.value, r.value.capitalize()) for r in Role]


class ApplicationForm(FlaskForm):
    """Review an application."""

    status = SelectField(
        "Status",
        choices=[(s.value, s.value.capitalize()) for s in ApplicationStatus],
    )
    interview_date = StringField(
        "Interview Date",
        validators=[Optional()],
        render_kw={"type": "datetime-local"},
    )
    interview_location = StringField(
        "Interview Location",
        validators=[Optional(), Length(max=constants.INTERVIEW_LOCATION_MAX_LENGTH)],
    )
    notes = TextAreaField(
        "Internal Notes",
        validators=[Optional(), Length(max=constants.NOTES_MAX_LENGTH)],
    )
    submit = SubmitField("Save")


class AccountForm(FlaskForm):
    """Create a member or admin account."""

    name = StringField(
        "Name",
        validators=[DataRequired(), Length(min=1, max=constants.NAME_MAX_LENGTH)],
    )
    email = StringField(
        "Email",
        validators=[DataRequired(), Email(), Length(max=constants.EMAIL_MAX_LENGTH)],
    )
    password = PasswordField(
        "Password",
        validators=[
            DataRequired(),
            Length(
                min=constants.PASSWORD_MIN_LENGTH, max=constants.PASSWORD_MAX_LENGTH
            ),
        ],
    )
    submit = SubmitField("Create")


class RoleForm(FlaskForm):
    """Grant a role to a user."""

    user_id = SelectField("Member", validators=[DataRequired()])
    role = SelectField("Role", choices=ROLE_CHOICES)
    submit = SubmitField("Assign")


class ChangeRoleForm(FlaskForm):
    """Replace or revoke one role assignment."""

    user_id = HiddenField(validators=[DataRequired()])
    old_role = HiddenField(validators=[DataRequired()])
    new_role = SelectField("New Role", choices=ROLE_CHOICES)
    submit = SubmitField("Change")


class DisplayFieldsForm(FlaskForm):
    """Public display fields of a member."""

    image = StringField("Image URL", validators=[Optional(), URL()])
    description = TextAreaField("Description", validators=[Optional(), Length(max=1000)])
    linkedin_url = StringField("LinkedIn", validators=[Optional(), URL()])
    instagram_url = StringField("Instagram", validators=[Optional(), URL()])
    submit = SubmitField("Save")


class TaskForm(FlaskForm):
    text = StringField("Task", validators=[DataRequired(), Length(max=500)])
    submit = SubmitField("Add Task")


class CertificateForm(FlaskForm):
    name = StringField("Certificate", validators=[DataRequired(), Length(max=200)])
    submit = SubmitField("Issue")


class PresenceForm(FlaskForm):
    week_date = DateField("Week", validators=[DataRequired()])
    present = BooleanField("Present", default=True)
    submit = SubmitField("Record")


class GroupForm(FlaskForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=100)])
    description = TextAreaField("Description", validators=[Optional(), Length(max=500)])
    submit = SubmitField("Create Group")


class GroupMemberForm(FlaskForm):
    user_id = SelectField("Member", validators=[DataRequired()])
    submit = SubmitField("Add")


class ShuffleForm(FlaskForm):
    """Deal approved members across the first N groups."""

    group_count = IntegerField(
        "Number of groups", validators=[Optional(), NumberRange(min=2)]
    )
    submit = SubmitField("Shuffle")


class RobotForm(FlaskForm):
    name = StringField("Name", validators=[DataRequired(), Length(max=100)])
    description = TextAreaField("Description", validators=[Optional(), Length(max=1000)])
    slots = IntegerField("Slots", validators=[DataRequired(), NumberRange(min=1)])
    image = StringField("Image URL", validators=[Optional(), URL()])
    submit = SubmitField("Save")


class NewsForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    content = TextAreaField("Content", validators=[DataRequired()])
    image_url = StringField("Image URL", validators=[Optional(), URL()])
    published = BooleanField("Published")
    submit = SubmitField("Save")


class EventForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    event_date = DateField("Date", validators=[DataRequired()])
    location = StringField("Location", validators=[Optional(), Length(max=200)])
    description = TextAreaField("Description", validators=[Optional()])
    submit = SubmitField("Save")


class ProjectForm(FlaskForm):
    title = StringField("Title", validators=[DataRequired(), Length(max=200)])
    description = TextAreaField("Description", validators=[DataRequired()])
    status = SelectField("Status", choices=[(s.value, s.value) for s in ProjectStatus])
    image = StringField("Image URL", validators=[Optional(), URL()])
    submit = SubmitField("Save")


class AnnouncementForm(FlaskForm):
    content = TextAreaField("Announcement", validators=[DataRequired()])
    submit = SubmitField("Post")


class SettingsForm(FlaskForm):
    """Site-wide toggles and texts."""

    show_apply_btn = BooleanField("Show apply button")
    show_interview_btn = BooleanField("Show interview button")
    show_result_btn = BooleanField("Show result button")
    welcome_popup_text = TextAreaField("Welcome popup text", validators=[Optional()])
    video_background_type = SelectField(
        "Video background", choices=[(t, t.capitalize()) for t in VIDEO_BACKGROUND_TYPES]
    )
    video_background_url = StringField("Video URL or file", validators=[Optional()])
    submit = SubmitField("Save Settings")
