from lms.extensions import db
from lms.models.notification_log import NotificationLog


class NotificationRepo:
    @staticmethod
    def log(entry: NotificationLog) -> NotificationLog:
        db.session.add(entry)
        db.session.commit()
        return entry
