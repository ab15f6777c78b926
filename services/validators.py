"""
요청 값 검증
검색 대상 필드(제목, 설명, 내용 등)는 항상 문자열로 저장되어야 한다.
"""
from .errors import ServiceError

TRUE_STRINGS = ('true', '1', 'yes', 'on')
FALSE_STRINGS = ('false', '0', 'no', 'off', '')


def require_text(value, message):
    """비어 있지 않은 문자열만 허용"""
    if not isinstance(value, str) or not value.strip():
        raise ServiceError(message)
    return value


def optional_text(value, message):
    """None 또는 문자열"""
    if value is not None and not isinstance(value, str):
        raise ServiceError(message)
    return value


def parse_bool(value, message='참/거짓 값이 올바르지 않습니다.'):
    """폼에서 온 'false' 같은 문자열도 올바르게 해석"""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ServiceError(message)
