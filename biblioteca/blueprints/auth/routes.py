from flask import Blueprint, request, jsonify, session

from ...extensions import db
from ...models import User

bp = Blueprint("auth", __name__, url_prefix="/auth")


# ---------- LOGIN ----------
@bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}

    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    if not email or not password:
        return jsonify(
            error="missing_fields",
            required=["email", "password"]
        ), 400

    user = User.query.filter_by(email=email).first()

    if not user or not user.check_password(password):
        return jsonify(error="invalid_credentials"), 401

    if not user.is_active:
        return jsonify(error="user_inactive"), 403

    session.clear()
    session["user_id"] = user.id
    session["role"] = user.role

    return jsonify(
        message="ok",
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role
    ), 200


# ---------- LOGOUT ----------
@bp.post("/logout")
def logout():
    session.clear()
    return jsonify(message="logged_out"), 200


# ---------- WHO AM I ----------
@bp.get("/me")
def me():
    user_id = session.get("user_id")

    if not user_id:
        return jsonify(authenticated=False), 200

    user = db.session.get(User, user_id)

    if not user:
        session.clear()
        return jsonify(authenticated=False), 200

    return jsonify(
        authenticated=True,
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        is_privileged=user.is_privileged,
    ), 200
