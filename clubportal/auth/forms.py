"""Forms for the auth blueprint."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import PasswordField, StringField, SubmitField
from wtforms.validators import DataRequired, Email, EqualTo, Length

from clubportal.core import constants


class LoginForm(FlaskForm):
    """Login form."""

    email = StringField(
        "Email",
        validators=[DataRequired(), Email()],
        render_kw={"autocomplete": "username"},
    )
    password = PasswordField(
        "Password",
        validators=[DataRequired()],
        render_kw={"autocomplete": "current-password"},
    )
    submit = SubmitField("Login")


class ResetPasswordForm(FlaskForm):
    """Request a password reset email."""

    email = StringField("Email", validators=[DataRequired(), Email()])
    submit = SubmitField("Send Reset Link")


class UpdatePasswordForm(FlaskForm):
    """Set a new password for the signed-in user."""

    password = PasswordField(
        "New Password",
        validators=[
            DataRequired(),
            Length(
                min=constants.PASSWORD_MIN_LENGTH, max=constants.PASSWORD_MAX_LENGTH
            ),
            EqualTo("confirm_password", message="Passwords must match."),
        ],
        render_kw={"autocomplete": "new-password"},
    )
    confirm_password = PasswordField(
        "Confirm Password",
        validators=[DataRequired()],
        render_kw={"autocomplete": "new-password"},
    )
    submit = SubmitField("Update Password")


class InstallForm(FlaskForm):
    """Create the first admin account."""

    name = StringField(
        "Name", validators=[DataRequired(), Length(max=constants.NAME_MAX_LENGTH)]
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
    submit = SubmitField("Create Admin")
