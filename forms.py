import re

from flask import request
from flask_wtf import FlaskForm
from wtforms import IntegerField, PasswordField, StringField, TextAreaField
from wtforms.utils import unset_value
from wtforms.validators import AnyOf, DataRequired, Email, Length, Regexp

from errors import ValidationError
from reports import RECOGNIZED_STATUSES

MAX_MESSAGE_LENGTH = 2000

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def as_text(value):
    if value is None or isinstance(value, str):
        return value
    return str(value)


def stripped(value):
    return value.strip() if isinstance(value, str) else value


def snake_keys(payload):
    return {_CAMEL_BOUNDARY.sub("_", key).lower(): value for key, value in payload.items()}


class WholeNumberField(IntegerField):
    """IntegerField that refuses JSON booleans and floats instead of truncating them."""

    def process_data(self, value):
        if value is None or value is unset_value:
            return super().process_data(value)
        is_int = isinstance(value, int) and not isinstance(value, bool)
        is_digits = isinstance(value, str) and value.strip().isdigit()
        if not (is_int or is_digits):
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value."))
        return super().process_data(value)


class JsonForm(FlaskForm):
    """Form fed from a decoded JSON object instead of request.form."""

    class Meta:
        csrf = False


def load_form(form_cls, payload=None, message="Invalid input"):
    if payload is None:
        payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError(message)

    form = form_cls(formdata=None, data=snake_keys(payload))
    if not form.validate():
        raise ValidationError(message, errors=form.errors)
    return form


# --------------------
# FORMS
# --------------------
class RegisterForm(JsonForm):
    username = StringField(
        "Username",
        filters=[as_text, stripped],
        validators=[
            DataRequired(),
            Length(min=3, max=30),
            Regexp(
                r"^[A-Za-z0-9_]+$",
                message="Username can only use letters, numbers, and underscore.",
            ),
        ],
    )
    email = StringField(filters=[as_text, stripped], validators=[Email(), DataRequired()])
    password = PasswordField(filters=[as_text], validators=[DataRequired(), Length(min=8)])


class LoginForm(JsonForm):
    username = StringField("Username", filters=[as_text, stripped], validators=[DataRequired()])
    password = PasswordField("Password", filters=[as_text], validators=[DataRequired()])


class MessageForm(JsonForm):
    recipient_id = WholeNumberField(validators=[DataRequired()])
    content = TextAreaField(
        filters=[as_text, stripped],
        validators=[DataRequired(), Length(max=MAX_MESSAGE_LENGTH)],
    )
    sender_info = StringField(filters=[as_text, stripped], validators=[Length(max=100)])


class ChatMessageForm(JsonForm):
    content = TextAreaField(
        filters=[as_text, stripped],
        validators=[DataRequired(), Length(max=MAX_MESSAGE_LENGTH)],
    )


class ReportForm(JsonForm):
    message_id = WholeNumberField()
    chat_message_id = WholeNumberField()
    reason = TextAreaField(
        filters=[as_text, stripped],
        validators=[DataRequired(), Length(max=500)],
    )


class ReportStatusForm(JsonForm):
    status = StringField(
        filters=[as_text, stripped],
        validators=[DataRequired(), AnyOf(RECOGNIZED_STATUSES)],
    )


class SiteSettingsForm(JsonForm):
    site_name = StringField(filters=[as_text, stripped], validators=[DataRequired(), Length(max=100)])
    footer_text = TextAreaField(filters=[as_text, stripped], validators=[DataRequired()])
    logo_url = StringField(filters=[as_text, stripped], validators=[Length(max=255)])
