from flask import current_app
from sqlalchemy.orm.exc import StaleDataError

from lms.errors import ConcurrencyConflict
from lms.extensions import db


def run_atomic(work, label: str = "tx", retries: int = None):
    """
    Runs `work()` as one all-or-nothing unit on the current session.

    Commit when it returns, rollback when it raises. A StaleDataError means a
    concurrent transaction changed one of the version-checked rows first; the
    unit is rolled back and replayed against fresh rows, up to `retries` times.
    """
    attempts = retries or current_app.config.get("TX_MAX_RETRIES", 3)

    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.session.commit()
            return result
        except StaleDataError as e:
            db.session.rollback()
            current_app.logger.warning(
                f"[{label}] concurrent update detected, retry {attempt}/{attempts}: {e}"
            )
        except Exception:
            db.session.rollback()
            raise

    raise ConcurrencyConflict(f"[{label}] gave up after {attempts} conflicting attempts")
