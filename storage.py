"""Identity Store: every query the application issues lives here.

Functions commit their own single-row writes; nothing here spans a
transaction across calls.
"""
from datetime import datetime

from sqlalchemy import or_, select

from models import (
    db, User, Message, ChatMessage, Report, SiteSettings,
    DEFAULT_SITE_NAME, DEFAULT_FOOTER_TEXT,
)

RECENT_CHAT_LIMIT = 50


# --------------------
# USERS
# --------------------
def get_user(user_id):
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def get_user_by_username(username):
    return User.query.filter_by(username=username).first()


def get_user_by_email(email):
    return User.query.filter_by(email=email).first()


def create_user(username, email, password_hash):
    user = User(username=username, email=email, password_hash=password_hash)
    db.session.add(user)
    db.session.commit()
    return user


def list_users():
    return User.query.order_by(User.created_at.desc(), User.id.desc()).all()


def delete_user(user):
    inbox_ids = select(Message.id).where(Message.recipient_id == user.id)
    chat_ids = select(ChatMessage.id).where(ChatMessage.user_id == user.id)

    # Reports against content that is about to disappear go with it.
    Report.query.filter(
        or_(Report.message_id.in_(inbox_ids), Report.chat_message_id.in_(chat_ids))
    ).delete(synchronize_session=False)
    Report.query.filter_by(reporter_id=user.id).update(
        {"reporter_id": None}, synchronize_session=False
    )
    Message.query.filter_by(recipient_id=user.id).delete(synchronize_session=False)
    ChatMessage.query.filter_by(user_id=user.id).delete(synchronize_session=False)

    db.session.delete(user)
    db.session.commit()


def count_users():
    return User.query.count()


# --------------------
# ANONYMOUS MESSAGES
# --------------------
def create_message(recipient_id, content, sender_info=None):
    msg = Message(recipient_id=recipient_id, content=content, sender_info=sender_info)
    db.session.add(msg)
    db.session.commit()
    return msg


def get_message(message_id):
    return db.session.get(Message, message_id)


def messages_for_recipient(recipient_id):
    return Message.query.filter_by(recipient_id=recipient_id).order_by(
        Message.created_at.desc(), Message.id.desc()
    ).all()


def get_message_for_recipient(message_id, recipient_id):
    return Message.query.filter_by(id=message_id, recipient_id=recipient_id).first()


def delete_message(msg):
    Report.query.filter_by(message_id=msg.id).delete(synchronize_session=False)
    db.session.delete(msg)
    db.session.commit()


def mark_message_read(msg):
    if not msg.is_read:
        msg.is_read = True
        db.session.commit()
    return msg


def count_messages():
    return Message.query.count()


# --------------------
# CHAT
# --------------------
def create_chat_message(user_id, content):
    chat = ChatMessage(user_id=user_id, content=content)
    db.session.add(chat)
    db.session.commit()
    return chat


def get_chat_message(chat_message_id):
    return db.session.get(ChatMessage, chat_message_id)


def recent_chat_messages(limit=RECENT_CHAT_LIMIT):
    return ChatMessage.query.order_by(
        ChatMessage.created_at.desc(), ChatMessage.id.desc()
    ).limit(limit).all()


def count_chat_messages():
    return ChatMessage.query.count()


# --------------------
# REPORTS
# --------------------
def create_report(reporter_id, message_id, chat_message_id, reason):
    report = Report(
        reporter_id=reporter_id,
        message_id=message_id,
        chat_message_id=chat_message_id,
        reason=reason,
    )
    db.session.add(report)
    db.session.commit()
    return report


def get_report(report_id):
    return db.session.get(Report, report_id)


def update_report_status(report, status):
    report.status = status
    db.session.commit()
    return report


def reports_with_details():
    rows = (
        db.session.query(
            Report,
            User.username.label("reporter_username"),
            User.email.label("reporter_email"),
            Message.content.label("message_content"),
            ChatMessage.content.label("chat_message_content"),
        )
        .outerjoin(User, Report.reporter_id == User.id)
        .outerjoin(Message, Report.message_id == Message.id)
        .outerjoin(ChatMessage, Report.chat_message_id == ChatMessage.id)
        .order_by(Report.created_at.desc(), Report.id.desc())
        .all()
    )

    details = []
    for row in rows:
        item = row.Report.to_dict()
        item.update(
            reporterUsername=row.reporter_username,
            reporterEmail=row.reporter_email,
            messageContent=row.message_content,
            chatMessageContent=row.chat_message_content,
        )
        details.append(item)
    return details


# --------------------
# SITE SETTINGS
# --------------------
def get_site_settings():
    return SiteSettings.query.order_by(SiteSettings.id.asc()).first()


def default_site_settings():
    return {
        "id": None,
        "siteName": DEFAULT_SITE_NAME,
        "footerText": DEFAULT_FOOTER_TEXT,
        "logoUrl": None,
        "updatedAt": None,
    }


def upsert_site_settings(site_name, footer_text, logo_url=None):
    settings = get_site_settings()
    if settings is None:
        settings = SiteSettings()
        db.session.add(settings)

    settings.site_name = site_name
    settings.footer_text = footer_text
    settings.logo_url = logo_url
    settings.updated_at = datetime.utcnow()
    db.session.commit()
    return settings
