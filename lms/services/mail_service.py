from __future__ import annotations

from typing import Optional, Tuple

from flask import current_app
from flask_mail import Message

from lms.extensions import mail
from lms.models.notification_log import NotificationLog
from lms.repositories.notification_repo import NotificationRepo


class MailService:
    @staticmethod
    def send_email(to_email: str, subject: str, body: str) -> Tuple[bool, Optional[str]]:
        """
        return: (success, error_text)
        """
        try:
            msg = Message(subject=subject, recipients=[to_email], body=body)
            mail.send(msg)
            return True, None
        except Exception as e:
            current_app.logger.warning(f"[mail] could not send to {to_email}: {e}")
            return False, str(e)

    @staticmethod
    def log_notification(
        borrow,
        kind: str,
        amount,
        to_email: Optional[str],
        body: Optional[str],
        delivered: bool,
        error: Optional[str] = None,
    ) -> NotificationLog:
        row = NotificationLog(
            borrow_id=borrow.id,
            kind=kind,
            amount=amount,
            recipient=to_email,
            body=body,
            delivered=delivered,
            error=error,
        )
        return NotificationRepo.log(row)

    @staticmethod
    def _notify(borrow, kind: str, amount, subject: str, body: str) -> bool:
        user = getattr(borrow, "user", None)
        to_email = getattr(user, "email", None) if user else None

        if not to_email:
            MailService.log_notification(borrow, kind, amount, None, None, False, error="missing_email")
            return False

        ok, err = MailService.send_email(to_email, subject, body)
        MailService.log_notification(borrow, kind, amount, to_email, body, ok, error=err)
        return ok

    @staticmethod
    def _labels(borrow):
        user = getattr(borrow, "user", None)
        book = getattr(borrow, "book", None)
        name = getattr(user, "name", "Reader") if user else "Reader"
        title = getattr(book, "title", f"Book #{borrow.book_id}") if book else f"Book #{borrow.book_id}"
        return name, title

    @staticmethod
    def send_fine_charged_mail(borrow, overdue_days: int) -> bool:
        name, title = MailService._labels(borrow)
        body = (
            f"Hello {name},\n\n"
            f"'{title}' was due on {borrow.due_date:%Y-%m-%d} and is {overdue_days} day(s) overdue.\n"
            f"A fine of {borrow.fine} has been deducted from your balance.\n\n"
            "Please return the book as soon as possible.\n"
        )
        return MailService._notify(borrow, NotificationLog.FINE_CHARGED, borrow.fine, "Library: overdue fine charged", body)

    @staticmethod
    def send_fine_skipped_mail(borrow, fine, balance) -> bool:
        """Tells the patron the fine could not be taken; it is retried on the next run."""
        name, title = MailService._labels(borrow)
        body = (
            f"Hello {name},\n\n"
            f"'{title}' was due on {borrow.due_date:%Y-%m-%d}.\n"
            f"An overdue fine of {fine} is due but your balance is {balance}.\n\n"
            "Please add funds and return the book.\n"
        )
        return MailService._notify(borrow, NotificationLog.FINE_SKIPPED, fine, "Library: please add funds", body)
