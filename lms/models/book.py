from datetime import datetime
from lms.extensions import db

class Book(db.Model):
    __tablename__ = "books"
    __table_args__ = (
        db.CheckConstraint("available_copies >= 0", name="ck_books_available_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)
    author = db.Column(db.String(200), nullable=False, index=True)
    genre = db.Column(db.String(100), nullable=True)

    available_copies = db.Column(db.Integer, nullable=False, default=1)
    version_id = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    def take_copy(self):
        if self.available_copies is None or self.available_copies < 1:
            raise ValueError(f'The book "{self.title}" is out of stock!')
        self.available_copies -= 1

    def restore_copy(self):
        self.available_copies = (self.available_copies or 0) + 1
