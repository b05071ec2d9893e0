from flask import Blueprint, current_app, jsonify

from lms.tasks.overdue_check import run_overdue_check_job
from lms.utils.decorators import role_required

notif_bp = Blueprint("notifications", __name__)

@notif_bp.post("/run-overdue-check")
@role_required("admin")
def run_overdue_check():
    summary = run_overdue_check_job(current_app._get_current_object())
    return jsonify({
        "success": True,
        "message": "Overdue check finished",
        "data": {
            "selected": summary["selected"],
            "fined": summary["fined"],
            "skipped": summary["skipped"],
            "failed": summary["failed"],
            "total_fines": float(summary["total_fines"]),
        },
    })
