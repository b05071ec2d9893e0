from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required

from lms.errors import ConcurrencyConflict, NotFoundError
from lms.services.ledger_service import LedgerService
from lms.utils.decorators import current_identity, role_required

account_bp = Blueprint("accounts", __name__)


@account_bp.get("/me")
@jwt_required()
def my_balance():
    user_id, _role = current_identity()
    try:
        balance = LedgerService.get_balance(user_id)
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    return jsonify({"success": True, "user_id": user_id, "balance": float(balance)})


@account_bp.put("/<int:user_id>/add-balance")
@role_required("admin")
def add_balance(user_id: int):
    data = request.get_json(silent=True) or {}
    amount = data.get("amount", request.args.get("amount"))
    if amount is None:
        return jsonify({"success": False, "message": "amount is required"}), 400

    try:
        balance = LedgerService.add_balance(user_id, amount)
    except NotFoundError as e:
        return jsonify({"success": False, "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"success": False, "message": str(e)}), 400
    except ConcurrencyConflict:
        return jsonify({"success": False, "message": "The account is busy, please retry"}), 409

    return jsonify({"success": True, "user_id": user_id, "balance": float(balance)})
