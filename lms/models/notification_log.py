from datetime import datetime

from lms.extensions import db


class NotificationLog(db.Model):
    """One row per fine notice the overdue scan tried to deliver."""

    __tablename__ = "fine_notices"

    FINE_CHARGED = "fine_charged"
    FINE_SKIPPED = "fine_skipped"

    id = db.Column(db.Integer, primary_key=True)
    borrow_id = db.Column(db.Integer, db.ForeignKey("borrows.id"), nullable=False, index=True)

    kind = db.Column(db.String(20), nullable=False)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    recipient = db.Column(db.String(255), nullable=True)
    body = db.Column(db.Text, nullable=True)

    delivered = db.Column(db.Boolean, nullable=False, default=False)
    error = db.Column(db.String(500), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    borrow = db.relationship("Borrow", backref="notifications")
