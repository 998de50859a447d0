from flask import Blueprint, jsonify
from ...services import ledger
from ..auth.decorators import login_required

bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


@bp.get("/stats")
@login_required
def stats():
    return jsonify(ledger.get_dashboard_stats()), 200
