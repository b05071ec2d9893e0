from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.errors import ConcurrencyConflict, NotFoundError
from lms.services.borrow_service import BorrowService
from lms.utils.decorators import current_identity, role_required

borrow_bp = Blueprint("borrow", __name__)


def _iso(dt):
    return dt.isoformat() if dt else None


def _borrow_json(b):
    return {
        "id": b.id,
        "user_id": b.user_id,
        "book_id": b.book_id,
        "book_title": b.book.title if b.book else None,
        "user_name": b.user.name if b.user else None,
        "issue_date": _iso(b.issue_date),
        "due_date": _iso(b.due_date),
        "return_date": _iso(b.return_date),
        "fine": float(b.fine or 0),
        "return_status": b.return_status.value,
        "return_request_status": b.return_request_status.value,
    }


def _result_json(result):
    body = {"success": result.success, "message": result.message, "code": result.code}
    if result.borrow is not None:
        body["borrow_id"] = result.borrow.id
    return jsonify(body)


def _run(operation, *args):
    """Calls an engine operation and maps its errors to HTTP answers."""
    try:
        return _result_json(operation(*args))
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except ConcurrencyConflict:
        return jsonify({"success": False, "message": "The record is busy, please retry"}), 409


@borrow_bp.post("/")
@jwt_required()
def borrow_book():
    data = request.get_json(silent=True) or {}
    user_id, role = current_identity()
    try:
        book_id = int(data["book_id"])
        # staff may check a copy out on behalf of a patron
        if role == "admin" and data.get("user_id") is not None:
            user_id = int(data["user_id"])
    except KeyError:
        return jsonify({"success": False, "message": "book_id is required"}), 400
    except (TypeError, ValueError):
        return jsonify({"success": False, "message": "book_id/user_id must be integers"}), 400

    return _run(BorrowService.borrow_book, user_id, book_id)


@borrow_bp.put("/request-return/<int:borrow_id>")
@jwt_required()
def request_return(borrow_id):
    user_id, role = current_identity()
    try:
        b = BorrowService.get_borrow(borrow_id)
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404

    if role != "admin" and b.user_id != user_id:
        return jsonify({"success": False, "message": "Forbidden"}), 403

    return _run(BorrowService.request_return, borrow_id)


@borrow_bp.put("/admin/approve-return/<int:borrow_id>")
@role_required("admin")
def approve_return(borrow_id):
    return _run(BorrowService.approve_return, borrow_id)


@borrow_bp.put("/admin/reject-return/<int:borrow_id>")
@role_required("admin")
def reject_return(borrow_id):
    return _run(BorrowService.reject_return, borrow_id)


@borrow_bp.get("/admin/pending-returns")
@role_required("admin")
def pending_returns():
    return jsonify({"success": True, "data": BorrowService.list_pending_returns()})


@borrow_bp.get("/admin/summary")
@role_required("admin")
def summary():
    return jsonify({"success": True, "data": {
        "unreturned": BorrowService.count_unreturned(),
        "overdue": BorrowService.count_overdue(),
    }})


@borrow_bp.get("/overdue-books")
@role_required("admin")
def overdue_books():
    return jsonify({"success": True, "data": [_borrow_json(b) for b in BorrowService.list_overdue()]})


@borrow_bp.get("/")
@role_required("admin")
def all_borrows():
    return jsonify({"success": True, "data": [_borrow_json(b) for b in BorrowService.list_all()]})


@borrow_bp.get("/my")
@jwt_required()
def my_borrows():
    user_id, _role = current_identity()
    try:
        rows = BorrowService.history_for_user(user_id)
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    return jsonify({"success": True, "data": [_borrow_json(b) for b in rows]})


@borrow_bp.get("/user/<int:user_id>")
@jwt_required()
def user_history(user_id):
    me, role = current_identity()
    if role != "admin" and me != user_id:
        return jsonify({"success": False, "message": "Forbidden"}), 403
    try:
        rows = BorrowService.history_for_user(user_id)
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    return jsonify({"success": True, "data": [_borrow_json(b) for b in rows]})


@borrow_bp.get("/book/<int:book_id>")
@role_required("admin")
def book_history(book_id):
    try:
        rows = BorrowService.history_for_book(book_id)
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    return jsonify({"success": True, "data": [_borrow_json(b) for b in rows]})
