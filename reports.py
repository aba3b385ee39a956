"""Report Lifecycle Manager.

pending -> approved | rejected. ``reviewed`` is what the admin dashboard
sends for an accepted report and is stored as ``approved``.
"""
import logging

import storage
from auth import require_admin, require_authenticated
from errors import InvalidTransitionError, NotFoundError, ValidationError
from models import REPORT_APPROVED, REPORT_PENDING, REPORT_REJECTED

logger = logging.getLogger(__name__)

STATUS_ALIASES = {"reviewed": REPORT_APPROVED}
RECOGNIZED_STATUSES = (REPORT_PENDING, REPORT_APPROVED, "reviewed", REPORT_REJECTED)
TERMINAL_STATUSES = {REPORT_APPROVED, REPORT_REJECTED}


def normalize_status(status):
    status = STATUS_ALIASES.get(status, status)
    if status not in (REPORT_PENDING, REPORT_APPROVED, REPORT_REJECTED):
        raise ValidationError("Invalid report status")
    return status


def create_report(identity, reason, message_id=None, chat_message_id=None):
    require_authenticated(identity)

    if (message_id is None) == (chat_message_id is None):
        raise ValidationError("A report must reference exactly one message or chat message")

    if message_id is not None and storage.get_message(message_id) is None:
        raise NotFoundError("Message not found")
    if chat_message_id is not None and storage.get_chat_message(chat_message_id) is None:
        raise NotFoundError("Chat message not found")

    report = storage.create_report(identity.user_id, message_id, chat_message_id, reason)
    logger.info(
        "Report %s filed by %s (message=%s, chat_message=%s)",
        report.id, identity.username, message_id, chat_message_id,
    )
    return report


def list_reports_with_details(identity):
    require_admin(identity)
    return storage.reports_with_details()


def set_status(identity, report_id, status):
    require_admin(identity)
    status = normalize_status(status)

    report = storage.get_report(report_id)
    if report is None:
        raise NotFoundError("Report not found")

    if report.status == status:
        return report
    if report.status in TERMINAL_STATUSES:
        raise InvalidTransitionError(
            f"Report is already {report.status} and cannot become {status}"
        )

    storage.update_report_status(report, status)
    logger.info("Report %s marked %s", report.id, status)
    return report
