# backend/routes/user.py
from flask import Blueprint, g, jsonify

from auth_guard import auth_service, require_auth

user_bp = Blueprint("user", __name__, url_prefix="/api/user")


@user_bp.route("/data", methods=["GET"])
@require_auth
def user_data():
    return jsonify(success=True, userData=auth_service().get_user_data(g.user_id))
