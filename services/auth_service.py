"""
회원 서비스
가입, 로그인, 프로필 수정, 보안 질문을 통한 비밀번호 재설정
"""
import logging
import re

from werkzeug.security import check_password_hash, generate_password_hash

from utils.constants import DEFAULT_ROLE, MIN_PASSWORD_LENGTH
from .errors import NotFound, ServiceError
from .validators import optional_text

logger = logging.getLogger(__name__)

SESSION_FIELDS = ('id', 'username', 'name', 'email', 'role', 'registrationDate')


def hash_password(password):
    return generate_password_hash(password, method='pbkdf2:sha256')


def session_user(user):
    """세션/응답에 담을 사용자 정보 (비밀번호, 보안 답변 제외)"""
    return {key: user.get(key) for key in SESSION_FIELDS}


def is_admin(user):
    return bool(user) and user.get('role') == 'admin'


def user_summary(store, user_id, fields=('name',)):
    """작성자/리더 표시용 {id, name, ...}. 탈퇴한 사용자면 None"""
    user = store.users.find_by_id(user_id) if user_id else None
    if not user:
        return None
    summary = {'id': user['id']}
    summary.update({field: user.get(field) for field in fields})
    return summary


def _get_by_username(store, username):
    user = store.users.find_one({'username': username})
    if not user:
        raise NotFound('존재하지 않는 사용자입니다.')
    return user


def register_user(store, username, password, name, email=None,
                  security_question=None, security_answer=None):
    if not all(isinstance(v, str) and v for v in (username, password, name)):
        raise ServiceError('모든 필드를 입력해주세요.')
    for value in (email, security_question, security_answer):
        optional_text(value, '입력 형식이 올바르지 않습니다.')

    existing = store.users.find_one({'$or': [{'username': username}, {'name': name}]})
    if existing:
        if existing.get('username') == username:
            raise ServiceError('이미 사용 중인 아이디입니다.')
        raise ServiceError('이미 사용 중인 이름입니다.')

    user = store.users.create({
        'username': username,
        'password': hash_password(password),
        'name': name,
        'email': email,
        'role': DEFAULT_ROLE,
        'securityQuestion': security_question,
        'securityAnswer': security_answer,
    })
    logger.info("회원가입 완료: %s (id=%s)", username, user['id'])
    return user


def authenticate(store, username, password):
    user = store.users.find_one({'username': username}) if username else None
    if not user:
        raise ServiceError('사용자를 찾을 수 없습니다.')
    if not password or not check_password_hash(user['password'], password):
        raise ServiceError('비밀번호가 일치하지 않습니다.')
    return user


def update_profile(store, user_id, data):
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        raise ServiceError('이름을 입력해주세요.')

    user = store.users.find_by_id(user_id)
    if not user:
        raise NotFound('사용자를 찾을 수 없습니다.')

    patch = {'name': name}
    new_password = data.get('newPassword')
    if new_password:
        optional_text(new_password, '입력 형식이 올바르지 않습니다.')
        current_password = data.get('currentPassword')
        if not isinstance(current_password, str) or not current_password:
            raise ServiceError('현재 비밀번호를 입력해주세요.')
        if not check_password_hash(user['password'], current_password):
            raise ServiceError('현재 비밀번호가 일치하지 않습니다.')
        patch['password'] = hash_password(new_password)

    for key in ('email', 'securityQuestion', 'securityAnswer'):
        if data.get(key) is not None:
            patch[key] = optional_text(data[key], '입력 형식이 올바르지 않습니다.')

    return store.users.update(user_id, patch)


def get_security_question(store, username):
    if not username:
        raise ServiceError('아이디를 입력해주세요.')
    user = _get_by_username(store, username)
    if not user.get('securityQuestion') or not user.get('securityAnswer'):
        raise ServiceError('보안 질문이 설정되지 않았습니다. 관리자에게 문의하세요.')
    return user['securityQuestion']


def _normalize_answer(answer):
    return re.sub(r'\s+', '', answer).lower()


def verify_security_answer(store, username, answer):
    if not isinstance(username, str) or not isinstance(answer, str) or not username or not answer:
        raise ServiceError('아이디와 답변을 모두 입력해주세요.')
    user = _get_by_username(store, username)
    if not user.get('securityAnswer') or \
            _normalize_answer(user['securityAnswer']) != _normalize_answer(answer):
        raise ServiceError('보안 답변이 일치하지 않습니다.')
    return user


def reset_password(store, username, answer, new_password):
    if not isinstance(new_password, str) or not username or not new_password:
        raise ServiceError('아이디와 새 비밀번호를 모두 입력해주세요.')
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ServiceError(f'비밀번호는 {MIN_PASSWORD_LENGTH}자 이상이어야 합니다.')
    user = verify_security_answer(store, username, answer)
    store.users.update(user['id'], {'password': hash_password(new_password)})
    logger.info("비밀번호 재설정: %s", username)


def promote_admin(store, username):
    user = _get_by_username(store, username)
    return store.users.update(user['id'], {'role': 'admin'})


def reset_users(store):
    """모든 사용자 삭제. 삭제된 수 반환"""
    removed = store.users.delete_many({})
    logger.info("삭제된 사용자 수: %d", removed)
    return removed
