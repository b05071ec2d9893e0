from lms.models.book import Book
from lms.extensions import db

class BookRepo:
    @staticmethod
    def get(book_id: int):
        return db.session.get(Book, book_id)

    @staticmethod
    def get_for_update(book_id: int):
        return db.session.get(Book, book_id, with_for_update=True, populate_existing=True)
