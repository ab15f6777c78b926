"""
유틸리티 헬퍼 함수
"""
import math
from datetime import datetime, timezone

import pytz

from .constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TIMEZONE_NAME

KST = pytz.timezone(TIMEZONE_NAME)


def utcnow():
    """DB 저장용 naive UTC datetime"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(value):
    """datetime -> '2024-05-01T09:00:00.000Z' (naive 값은 UTC로 간주)"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def utcnow_iso():
    return format_timestamp(datetime.now(timezone.utc))


def parse_timestamp(value):
    """ISO 문자열 -> naive UTC datetime. 시간대가 없으면 UTC로 간주"""
    if value is None or isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        if text[-1:] in ('Z', 'z'):
            text = text[:-1] + '+00:00'
        dt = datetime.fromisoformat(text)
    if dt is not None and dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def parse_client_datetime(value):
    """
    클라이언트가 보낸 날짜 문자열을 UTC ISO 문자열로 변환
    '2024-05-01' 처럼 시간대가 없는 값은 한국 시간(KST) 기준으로 해석한다.
    """
    if not value:
        return None
    text = str(value).strip()
    if text[-1:] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = KST.localize(dt)
    return format_timestamp(dt)


def get_page_params(args):
    """?page=&limit= 쿼리 파라미터 파싱 (잘못된 값은 기본값)"""
    try:
        page = max(int(args.get('page', 1)), 1)
    except (TypeError, ValueError):
        page = 1
    try:
        limit = int(args.get('limit', DEFAULT_PAGE_SIZE))
    except (TypeError, ValueError):
        limit = DEFAULT_PAGE_SIZE
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    return page, limit


def total_pages(count, limit):
    return math.ceil(count / limit) if limit else 0


def allowed_file(filename, allowed_extensions):
    """파일 확장자 검증"""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in allowed_extensions
