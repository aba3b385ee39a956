"""Session Authenticator.

Identities come in three shapes: ``AnonymousIdentity`` (nobody logged in),
a ``models.User`` row, and ``SyntheticAdmin``, the administrator that logs in
with the static credential pair and has no row behind it. Routes resolve
``current_user`` once and hand it to the operations below.
"""
import logging
import secrets
from datetime import datetime
from functools import wraps

from flask import current_app, session
from flask_login import (
    AnonymousUserMixin, LoginManager, UserMixin,
    current_user, login_user, logout_user,
)
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

import storage
from errors import AuthRequiredError, ConflictError, ForbiddenError, InvalidCredentialsError
from models import db

logger = logging.getLogger(__name__)

TIER_ANONYMOUS = "anonymous"
TIER_USER = "user"
TIER_ADMIN = "admin"

ADMIN_SESSION_ID = "admin"
ADMIN_CREATED_AT = datetime.utcnow()


class AnonymousIdentity(AnonymousUserMixin):
    user_id = None
    username = None
    is_admin = False


class SyntheticAdmin(UserMixin):
    id = 0
    user_id = None
    username = "Administrator"
    email = "admin@edwardsanonymous.com"
    is_admin = True
    created_at = ADMIN_CREATED_AT

    def get_id(self):
        return ADMIN_SESSION_ID

    def to_dict(self, include_email=True):
        data = {
            "id": self.id,
            "username": self.username,
            "isAdmin": True,
            "createdAt": self.created_at.isoformat(),
        }
        if include_email:
            data["email"] = self.email
        return data


def tier_of(identity):
    if not identity.is_authenticated:
        return TIER_ANONYMOUS
    return TIER_ADMIN if identity.is_admin else TIER_USER


# --------------------
# LOGIN MANAGER
# --------------------
login_manager = LoginManager()
login_manager.anonymous_user = AnonymousIdentity


@login_manager.user_loader
def load_identity(session_id):
    if session_id == ADMIN_SESSION_ID:
        return SyntheticAdmin()
    try:
        return storage.get_user(int(session_id))
    except (ValueError, TypeError):
        return None


# --------------------
# AUTHORIZATION GATES
# --------------------
def require_authenticated(identity):
    if identity is None or not identity.is_authenticated:
        raise AuthRequiredError()
    return identity


def require_admin(identity):
    require_authenticated(identity)
    if not identity.is_admin:
        raise ForbiddenError()
    return identity


def login_required_json(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        require_authenticated(current_user)
        return view(*args, **kwargs)
    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        require_admin(current_user)
        return view(*args, **kwargs)
    return wrapper


# --------------------
# SESSION OPERATIONS
# --------------------
def _establish(identity):
    session.permanent = True
    login_user(identity)
    return identity


def normalize_email(value):
    return (value or "").strip().lower()


def register(username, email, password):
    email = normalize_email(email)

    if username.lower() == SyntheticAdmin.username.lower():
        raise ConflictError("Username already exists")
    if storage.get_user_by_username(username):
        raise ConflictError("Username already exists")
    if storage.get_user_by_email(email):
        raise ConflictError("Email already exists")

    try:
        user = storage.create_user(username, email, generate_password_hash(password))
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Username or email already exists")

    logger.info("Registered user %s (id=%s)", user.username, user.id)
    return _establish(user)


def is_admin_credentials(username, password):
    expected_user = current_app.config["ADMIN_USERNAME"]
    expected_password = current_app.config["ADMIN_PASSWORD"]
    user_ok = secrets.compare_digest(username.encode(), expected_user.encode())
    password_ok = secrets.compare_digest(password.encode(), expected_password.encode())
    return user_ok and password_ok


def login(username, password):
    if is_admin_credentials(username, password):
        logger.info("Administrator logged in")
        return _establish(SyntheticAdmin())

    user = storage.get_user_by_username(username)
    if user is None or not check_password_hash(user.password_hash, password):
        logger.info("Failed login for %r", username)
        raise InvalidCredentialsError()

    logger.info("User %s logged in", user.username)
    return _establish(user)


def logout():
    logout_user()


def current_session():
    return current_user._get_current_object()
