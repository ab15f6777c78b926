"""
인증 및 권한 관련 데코레이터
"""
from functools import wraps
from flask import current_app, g, jsonify, session


def get_store():
    """앱 시작 시 선택된 저장소 (SqlDataStore 또는 LocalDataStore)"""
    return current_app.extensions['datastore']


def _get_current_user():
    """현재 세션의 사용자 레코드 반환"""
    if 'user_id' not in session:
        return None

    # g 객체에 사용자 정보를 저장하여 요청 내에서 재사용
    if 'user' not in g:
        g.user = get_store().users.find_by_id(session['user_id'])
        if not g.user:
            session.clear() # 유효하지 않은 세션 정리
    return g.user


def login_required(f):
    """로그인이 필요한 API에 적용하는 데코레이터"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _get_current_user():
            return jsonify({'success': False, 'message': '로그인이 필요합니다.'}), 401
        return f(*args, **kwargs)
    return decorated_function


def admin_required(f):
    """관리자 권한이 필요한 API에 적용하는 데코레이터"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = _get_current_user()
        if not user:
            return jsonify({'success': False, 'message': '로그인이 필요합니다.'}), 401
        if user.get('role') != 'admin':
            return jsonify({'success': False, 'message': '관리자 권한이 필요합니다.'}), 403
        return f(*args, **kwargs)
    return decorated_function
