"""Forms for the public site."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import PasswordField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Email, EqualTo, Length, Optional

from clubportal.core import constants


class ApplyForm(FlaskForm):
    """Membership application; creates the account on first submission."""

    name = StringField(
        "Full Name",
        validators=[DataRequired(), Length(max=constants.NAME_MAX_LENGTH)],
    )
    email = StringField(
        "Email",
        validators=[DataRequired(), Email(), Length(max=constants.EMAIL_MAX_LENGTH)],
        render_kw={"autocomplete": "email"},
    )
    major = StringField("Major", validators=[Optional(), Length(max=100)])
    reason = TextAreaField(
        "Why do you want to join?",
        validators=[DataRequired(), Length(max=constants.NOTES_MAX_LENGTH)],
    )
    password = PasswordField(
        "Password",
        validators=[
            Optional(),
            Length(
                min=constants.PASSWORD_MIN_LENGTH, max=constants.PASSWORD_MAX_LENGTH
            ),
            EqualTo("confirm_password", message="Passwords must match."),
        ],
        render_kw={"autocomplete": "new-password"},
    )
    confirm_password = PasswordField(
        "Confirm Password", render_kw={"autocomplete": "new-password"}
    )
    submit = SubmitField("Send Application")
