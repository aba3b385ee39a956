from datetime import datetime
from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

REPORT_PENDING = "pending"
REPORT_APPROVED = "approved"
REPORT_REJECTED = "rejected"

DEFAULT_SITE_NAME = "My Site"
DEFAULT_FOOTER_TEXT = "© 2024 My Site. All rights reserved."


def isoformat(value):
    return value.isoformat() if value else None


def initials_for(username):
    return (username or "")[:2].upper()


class User(UserMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def user_id(self):
        return self.id

    def to_dict(self, include_email=True):
        data = {
            "id": self.id,
            "username": self.username,
            "isAdmin": bool(self.is_admin),
            "createdAt": isoformat(self.created_at),
        }
        if include_email:
            data["email"] = self.email
        return data


class Message(db.Model):
    __tablename__ = "messages"

    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    sender_info = db.Column(db.String(100), nullable=True)
    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "recipientId": self.recipient_id,
            "content": self.content,
            "senderInfo": self.sender_info,
            "isRead": bool(self.is_read),
            "createdAt": isoformat(self.created_at),
        }


class ChatMessage(db.Model):
    __tablename__ = "chat_messages"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    author = db.relationship("User", lazy="joined")

    def to_dict(self):
        username = self.author.username if self.author else None
        return {
            "id": self.id,
            "userId": self.user_id,
            "username": username,
            "content": self.content,
            "createdAt": isoformat(self.created_at),
            "initials": initials_for(username),
        }


class Report(db.Model):
    __tablename__ = "reports"

    id = db.Column(db.Integer, primary_key=True)
    reporter_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    message_id = db.Column(db.Integer, db.ForeignKey("messages.id"), nullable=True)
    chat_message_id = db.Column(db.Integer, db.ForeignKey("chat_messages.id"), nullable=True)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default=REPORT_PENDING, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "reporterId": self.reporter_id,
            "messageId": self.message_id,
            "chatMessageId": self.chat_message_id,
            "reason": self.reason,
            "status": self.status,
            "createdAt": isoformat(self.created_at),
        }


class SiteSettings(db.Model):
    __tablename__ = "site_settings"

    id = db.Column(db.Integer, primary_key=True)
    site_name = db.Column(db.String(100), nullable=False, default=DEFAULT_SITE_NAME)
    footer_text = db.Column(db.Text, nullable=False, default=DEFAULT_FOOTER_TEXT)
    logo_url = db.Column(db.String(255), nullable=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "siteName": self.site_name,
            "footerText": self.footer_text,
            "logoUrl": self.logo_url,
            "updatedAt": isoformat(self.updated_at),
        }
