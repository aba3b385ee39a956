import os
import logging
from datetime import timedelta

from dotenv import load_dotenv
from flask import Flask, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

import admin
import auth
import inbox
import reports
import storage
from auth import admin_required, login_required_json
from errors import AppError, AuthRequiredError, UnexpectedError
from forms import (
    LoginForm, MessageForm, RegisterForm, ReportForm,
    ReportStatusForm, SiteSettingsForm, load_form,
)
from models import db
from relay import socketio

# --------------------
# BASIC SETUP
# --------------------
BASE_DIR = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(BASE_DIR, ".env"))

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)

app = Flask(__name__)
app.config["SECRET_KEY"] = os.getenv("SECRET_KEY", "dev-secret")
app.config["ADMIN_USERNAME"] = os.getenv("ADMIN_USERNAME", "Adegboyega")
app.config["ADMIN_PASSWORD"] = os.getenv("ADMIN_PASSWORD", "ibukun")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///anonymous.db")

if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

app.config["SQLALCHEMY_DATABASE_URI"] = DATABASE_URL
app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

app.config.update(
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
    SESSION_COOKIE_SECURE=not app.debug,
    PERMANENT_SESSION_LIFETIME=timedelta(hours=24),
)

app.logger.info("Database backend: %s", DATABASE_URL.split(":", 1)[0])


db.init_app(app)
auth.login_manager.init_app(app)
socketio.init_app(app, cors_allowed_origins=os.getenv("CORS_ORIGINS", "*"))


def ensure_database_schema():
    db.create_all()


with app.app_context():
    ensure_database_schema()


# --------------------
# ERRORS
# --------------------
@app.errorhandler(AppError)
def handle_app_error(exc):
    return jsonify(exc.to_dict()), exc.status_code


@app.errorhandler(HTTPException)
def handle_http_error(exc):
    return jsonify({"message": exc.description or exc.name}), exc.code


@app.errorhandler(Exception)
def handle_unexpected_error(exc):
    if isinstance(exc, SQLAlchemyError):
        db.session.rollback()
    app.logger.exception("Unhandled error on %s %s", request.method, request.path)
    return handle_app_error(UnexpectedError())


@app.after_request
def add_security_headers(response):
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if request.path.startswith("/api/"):
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
    return response


# --------------------
# AUTH ROUTES
# --------------------
@app.route("/api/auth/register", methods=["POST"])
def register():
    form = load_form(RegisterForm, message="Registration failed")
    user = auth.register(form.username.data, form.email.data, form.password.data)
    return jsonify({"user": user.to_dict()})


@app.route("/api/auth/login", methods=["POST"])
def login():
    form = load_form(LoginForm, message="Login failed")
    identity = auth.login(form.username.data, form.password.data)
    return jsonify({"user": identity.to_dict()})


@app.route("/api/auth/logout", methods=["POST"])
def logout():
    auth.logout()
    return jsonify({"message": "Logged out successfully"})


@app.route("/api/auth/me", methods=["GET"])
def me():
    identity = auth.current_session()
    if not identity.is_authenticated:
        raise AuthRequiredError("Not authenticated")
    return jsonify({"user": identity.to_dict(), "tier": auth.tier_of(identity)})


# --------------------
# USERS & MESSAGES
# --------------------
@app.route("/api/users/<username>", methods=["GET"])
def get_user(username):
    user = inbox.public_profile(username)
    return jsonify({"user": user.to_dict(include_email=False)})


@app.route("/api/messages", methods=["POST"])
def create_message():
    form = load_form(MessageForm, message="Failed to create message")
    msg = inbox.send_message(
        form.recipient_id.data, form.content.data, form.sender_info.data
    )
    return jsonify({"message": msg.to_dict()})


@app.route("/api/messages", methods=["GET"])
@login_required_json
def list_messages():
    messages = inbox.list_inbox(auth.current_session())
    return jsonify({"messages": [msg.to_dict() for msg in messages]})


@app.route("/api/messages/<int:message_id>", methods=["DELETE"])
@login_required_json
def delete_message(message_id):
    inbox.delete_message(auth.current_session(), message_id)
    return jsonify({"message": "Message deleted"})


@app.route("/api/messages/<int:message_id>/read", methods=["PATCH"])
@login_required_json
def mark_message_read(message_id):
    inbox.mark_read(auth.current_session(), message_id)
    return jsonify({"message": "Message marked as read"})


@app.route("/api/chat/messages", methods=["GET"])
def list_chat_messages():
    messages = storage.recent_chat_messages()
    return jsonify({"messages": [chat.to_dict() for chat in messages]})


# --------------------
# REPORTS
# --------------------
@app.route("/api/reports", methods=["POST"])
@login_required_json
def create_report():
    form = load_form(ReportForm, message="Failed to create report")
    report = reports.create_report(
        auth.current_session(),
        form.reason.data,
        message_id=form.message_id.data,
        chat_message_id=form.chat_message_id.data,
    )
    return jsonify({"report": report.to_dict()})


@app.route("/api/site-settings", methods=["GET"])
def get_site_settings():
    return jsonify({"settings": admin.get_site_settings()})


# --------------------
# ADMIN
# --------------------
@app.route("/api/admin/stats", methods=["GET"])
@admin_required
def admin_stats():
    return jsonify({"stats": admin.get_stats(auth.current_session())})


@app.route("/api/admin/users", methods=["GET"])
@admin_required
def admin_users():
    users = admin.list_users(auth.current_session())
    return jsonify({"users": [user.to_dict() for user in users]})


@app.route("/api/admin/users/<int:user_id>", methods=["DELETE"])
@admin_required
def admin_delete_user(user_id):
    admin.delete_user(auth.current_session(), user_id)
    return jsonify({"message": "User deleted"})


@app.route("/api/admin/messages/<int:message_id>", methods=["DELETE"])
@admin_required
def admin_delete_message(message_id):
    admin.delete_message(auth.current_session(), message_id)
    return jsonify({"message": "Message deleted"})


@app.route("/api/admin/reports", methods=["GET"])
@admin_required
def admin_reports():
    details = reports.list_reports_with_details(auth.current_session())
    return jsonify({"reports": details})


@app.route("/api/admin/reports/<int:report_id>", methods=["PATCH"])
@admin_required
def admin_update_report(report_id):
    form = load_form(ReportStatusForm, message="Invalid report status")
    report = reports.set_status(auth.current_session(), report_id, form.status.data)
    return jsonify({"report": report.to_dict()})


@app.route("/api/admin/site-settings", methods=["PUT"])
@admin_required
def admin_update_site_settings():
    form = load_form(SiteSettingsForm, message="Failed to update site settings")
    settings = admin.update_site_settings(
        auth.current_session(),
        form.site_name.data,
        form.footer_text.data,
        form.logo_url.data,
    )
    return jsonify({"settings": settings.to_dict()})


# --------------------
# INIT DB
# --------------------
@app.cli.command("init-db")
def init_db():
    """Initialize database tables."""
    with app.app_context():
        db.create_all()
    print("Database initialized.")


if __name__ == "__main__":
    socketio.run(app)
