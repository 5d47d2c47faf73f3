"""Forms for the member dashboard."""

from flask_wtf import FlaskForm  # type: ignore
from wtforms import HiddenField, StringField, SubmitField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from clubportal.core import constants


class ProfileForm(FlaskForm):
    """A member's edit of their own profile."""

    name = StringField(
        "Name", validators=[DataRequired(), Length(max=constants.NAME_MAX_LENGTH)]
    )
    major = StringField("Major", validators=[Optional(), Length(max=100)])
    bio = TextAreaField("Bio", validators=[Optional(), Length(max=1000)])
    submit = SubmitField("Save")


class MessageForm(FlaskForm):
    """Send a chat message."""

    recipient = HiddenField(validators=[DataRequired()])
    content = TextAreaField(
        "Message", validators=[DataRequired(), Length(max=2000)]
    )
    submit = SubmitField("Send")
