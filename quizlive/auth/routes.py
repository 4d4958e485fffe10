from flask import current_app, jsonify, request
from flask_login import login_user, logout_user, current_user
from sqlalchemy.exc import IntegrityError

from quizlive import db
from quizlive.auth import auth_bp
from quizlive.auth.models import User
from quizlive.auth.utils import (
    hash_password,
    is_valid_email,
    validate_password,
    verify_password,
)
from quizlive.common.decorators import api_login_required
from quizlive.security import SecurityLogger


@auth_bp.route("/", methods=["GET"])
def auth_root():
    """Simple health/info endpoint for auth API."""
    base_path = auth_bp.url_prefix
    return jsonify(
        {
            "status": "ok",
            "message": "Auth API is running",
            "endpoints": [
                f"{base_path}/register",
                f"{base_path}/login",
                f"{base_path}/logout",
                f"{base_path}/me",
            ],
        }
    ), 200


@auth_bp.route("/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    first_name = (data.get("first_name") or "").strip()
    last_name = (data.get("last_name") or "").strip()
    role = (data.get("role") or current_app.config["DEFAULT_USER_TYPE"]).strip().lower()

    if not email or not password or not first_name:
        return jsonify({"message": "email, password and first_name are required"}), 400

    if not is_valid_email(email):
        return jsonify({"message": "Please provide a valid email address"}), 400

    ok, error = validate_password(password)
    if not ok:
        return jsonify({"message": error}), 400

    # Admin accounts are never self-registered
    valid_roles = [r for r in current_app.config["VALID_USER_TYPES"] if r != "admin"]
    if role not in valid_roles:
        return jsonify({"message": f"role must be one of: {', '.join(valid_roles)}"}), 400

    if User.query.filter_by(email=email).first():
        return jsonify({"message": "An account with this email already exists"}), 409

    user = User(
        email=email,
        password_hash=hash_password(password),
        first_name=first_name,
        last_name=last_name,
        role=role,
        student_number=(data.get("student_number") or None) if role == "student" else None,
    )
    try:
        db.session.add(user)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({"message": "An account with these details already exists"}), 409

    current_app.logger.info(f"Registered {role} account {user.id} ({email})")
    return jsonify({"message": "Registration successful", "user": user.to_dict()}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    remember = data.get("remember", False)

    if not email or not password:
        return jsonify({"message": "Email and password are required"}), 400

    if not is_valid_email(email):
        return jsonify({"message": "Please provide a valid email address"}), 400

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        SecurityLogger.log_failed_login(email)
        return jsonify({"message": "Invalid email or password"}), 401

    if not user.is_active:
        SecurityLogger.log_failed_login(email, reason="Account disabled")
        return jsonify({"message": "This account has been disabled"}), 403

    login_user(user, remember=remember)
    SecurityLogger.log_successful_login(user.id, user.email)

    return jsonify({"message": "Login successful", "user": user.to_dict()}), 200


@auth_bp.route("/logout", methods=["POST"])
@api_login_required
def logout_route():
    """Logout route."""
    logout_user()
    return jsonify({"message": "Logged out"}), 200


@auth_bp.route("/me", methods=["GET"])
@api_login_required
def me():
    return jsonify({"user": current_user.to_dict()}), 200
