from lms.models.user import User
from lms.extensions import db

class UserRepo:
    @staticmethod
    def get_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def get_for_update(user_id: int):
        return db.session.get(User, user_id, with_for_update=True, populate_existing=True)
