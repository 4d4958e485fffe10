from functools import wraps
from flask import jsonify, request
from flask_login import current_user

from quizlive.security import SecurityLogger


def _role_required(role: str):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                SecurityLogger.log_unauthorized_access(request.path)
                return jsonify({'success': False, 'error': 'Authentication required'}), 401
            if current_user.role != role:
                SecurityLogger.log_unauthorized_access(request.path, current_user.id)
                return jsonify({'success': False, 'error': f'Only {role}s can access this resource'}), 403
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def professor_required(f):
    """Decorator to require professor role for an API route."""
    return _role_required('professor')(f)


def student_required(f):
    """Decorator to require student role for an API route."""
    return _role_required('student')(f)


def api_login_required(f):
    """Like flask_login.login_required, but always answers with JSON."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            SecurityLogger.log_unauthorized_access(request.path)
            return jsonify({'success': False, 'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function
