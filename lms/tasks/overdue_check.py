# lms/tasks/overdue_check.py
from datetime import datetime
from decimal import Decimal

from flask import current_app

from lms.extensions import db
from lms.models.borrow import ReturnStatus
from lms.repositories.borrow_repo import BorrowRepo
from lms.repositories.user_repo import UserRepo
from lms.services.mail_service import MailService
from lms.utils.transaction import run_atomic

FINED = "fined"
SKIPPED_FUNDS = "insufficient_balance"
SKIPPED_NO_USER = "user_missing"
SKIPPED_NOT_DUE = "not_a_full_day"
SKIPPED_STALE = "stale"


def compute_fine(overdue_days: int, daily_fine) -> Decimal:
    return (Decimal(daily_fine) * Decimal(overdue_days)).quantize(Decimal("0.01"))


def _charge_one(borrow_id: int, now: datetime, daily_fine):
    """
    One record, one transaction. Returns (outcome, overdue_days, fine, balance).

    The record is re-read under lock: it may have been approved or charged by
    someone else since the candidate list was built.
    """
    borrow = BorrowRepo.get_for_update(borrow_id)
    if not borrow or borrow.return_status != ReturnStatus.BORROWED or borrow.due_date >= now:
        return SKIPPED_STALE, 0, Decimal("0.00"), None

    overdue_days = borrow.overdue_days(now)
    if overdue_days < 1:
        return SKIPPED_NOT_DUE, 0, Decimal("0.00"), None

    fine = compute_fine(overdue_days, daily_fine)

    user = UserRepo.get_for_update(borrow.user_id)
    if not user:
        return SKIPPED_NO_USER, overdue_days, fine, None

    if not user.can_afford(fine):
        return SKIPPED_FUNDS, overdue_days, fine, Decimal(user.balance)

    user.debit(fine)
    borrow.mark_overdue(fine)
    return FINED, overdue_days, fine, Decimal(user.balance)


def _notify(send, borrow_id: int, *args):
    # mail is best effort: the ledger change is already committed
    try:
        send(BorrowRepo.get(borrow_id), *args)
    except Exception as e:
        db.session.rollback()
        current_app.logger.exception(f"[overdue_check] notification failed: {e}")


def run_overdue_check_job(app, now: datetime = None) -> dict:
    """
    Daily overdue scan.
    - selects borrows past due that are still BORROWED (OVERDUE/RETURNED are not re-selected)
    - fine = whole overdue days * DAILY_FINE, taken from the balance only if it covers all of it
    - every record is its own transaction; one failing record does not stop the rest
    """
    with app.app_context():
        now = now or datetime.utcnow()
        daily_fine = current_app.config.get("DAILY_FINE", 10)

        summary = {"selected": 0, "fined": 0, "skipped": 0, "failed": 0, "total_fines": Decimal("0.00")}

        try:
            candidate_ids = BorrowRepo.find_fine_candidate_ids(now)
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"[overdue_check] candidate query failed: {e}")
            raise

        summary["selected"] = len(candidate_ids)

        for borrow_id in candidate_ids:
            try:
                outcome, days, fine, balance = run_atomic(
                    lambda: _charge_one(borrow_id, now, daily_fine), label="overdue_check"
                )
            except Exception as e:
                summary["failed"] += 1
                current_app.logger.exception(f"[overdue_check] borrow={borrow_id} failed: {e}")
                continue

            if outcome == FINED:
                summary["fined"] += 1
                summary["total_fines"] += fine
                current_app.logger.info(
                    f"[overdue_check] borrow={borrow_id} days={days} fine={fine} balance_left={balance}"
                )
                _notify(MailService.send_fine_charged_mail, borrow_id, days)
                continue

            summary["skipped"] += 1
            if outcome == SKIPPED_FUNDS:
                current_app.logger.info(
                    f"[overdue_check] borrow={borrow_id} insufficient balance {balance} for fine {fine}, retry next run"
                )
                _notify(MailService.send_fine_skipped_mail, borrow_id, fine, balance)
            elif outcome == SKIPPED_NO_USER:
                current_app.logger.warning(f"[overdue_check] borrow={borrow_id} user not found")
            else:
                current_app.logger.info(f"[overdue_check] borrow={borrow_id} skipped: {outcome}")

        current_app.logger.info(
            f"[overdue_check] selected={summary['selected']} fined={summary['fined']} "
            f"skipped={summary['skipped']} failed={summary['failed']} total_fines={summary['total_fines']}"
        )
        return summary
