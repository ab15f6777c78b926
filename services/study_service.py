"""
모임(스터디) 서비스
모임 생성/목록/참가/탈퇴/삭제와 모집 상태 자동 갱신
"""
import logging
from datetime import datetime, timedelta, timezone

from store.query import to_timestamp
from utils.constants import (
    MEETING_TYPES,
    STUDY_MAX_DURATION_WEEKS,
    STUDY_MAX_MEMBERS,
    STUDY_MIN_DURATION_WEEKS,
    STUDY_MIN_MEMBERS,
    STUDY_STATUSES,
)
from utils.helpers import parse_client_datetime, total_pages
from .auth_service import user_summary
from .errors import Forbidden, NotFound, ServiceError
from .validators import optional_text, require_text

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'title', 'description', 'category', 'maxMembers', 'deadline', 'startDate',
    'duration', 'meetingType', 'location', 'tags', 'imageUrl',
)
DATE_FIELDS = ('deadline', 'startDate')
# 검색 대상이거나 화면에 그대로 표시되는 문자열 필드
TEXT_FIELDS = {
    'title': '제목을 입력해주세요.',
    'description': '설명을 입력해주세요.',
    'category': '카테고리를 입력해주세요.',
}
OPTIONAL_TEXT_FIELDS = ('location', 'imageUrl')
WEEK_MS = timedelta(weeks=1).total_seconds() * 1000


def _int_in_range(value, low, high, message):
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ServiceError(message)
    if not low <= number <= high:
        raise ServiceError(message)
    return number


def _clean_study_fields(data):
    """요청 데이터에서 수정 가능한 필드만 골라 형식 검증"""
    fields = {key: data[key] for key in EDITABLE_FIELDS if key in data}

    for key, message in TEXT_FIELDS.items():
        if key in fields:
            fields[key] = require_text(fields[key], message)
    for key in OPTIONAL_TEXT_FIELDS:
        if key in fields:
            fields[key] = optional_text(fields[key], '입력 형식이 올바르지 않습니다.')

    if 'maxMembers' in fields:
        fields['maxMembers'] = _int_in_range(
            fields['maxMembers'], STUDY_MIN_MEMBERS, STUDY_MAX_MEMBERS,
            f'최대 인원은 {STUDY_MIN_MEMBERS}~{STUDY_MAX_MEMBERS}명이어야 합니다.')
    if fields.get('duration') is not None:
        fields['duration'] = _int_in_range(
            fields['duration'], STUDY_MIN_DURATION_WEEKS, STUDY_MAX_DURATION_WEEKS,
            f'진행 기간은 {STUDY_MIN_DURATION_WEEKS}~{STUDY_MAX_DURATION_WEEKS}주여야 합니다.')
    if fields.get('meetingType') and fields['meetingType'] not in MEETING_TYPES:
        raise ServiceError('모임 방식이 올바르지 않습니다.')

    if 'tags' in fields:
        tags = fields['tags'] or []
        if isinstance(tags, str):
            tags = tags.split(',')
        elif not isinstance(tags, (list, tuple)):
            raise ServiceError('태그 형식이 올바르지 않습니다.')
        fields['tags'] = [str(tag).strip() for tag in tags if str(tag).strip()]

    for key in DATE_FIELDS:
        if key in fields:
            try:
                fields[key] = parse_client_datetime(fields[key])
            except ValueError:
                raise ServiceError('날짜 형식이 올바르지 않습니다.')
    return fields


def _get_study(store, study_id):
    study = store.studies.find_by_id(study_id)
    if not study:
        raise NotFound('모임을 찾을 수 없습니다.')
    return study


def _check_capacity(members, max_members, message='최대 인원에 도달하여 참여할 수 없습니다.'):
    if len(members) > max_members:
        raise ServiceError(message)


def create_study(store, user_id, data):
    if not store.users.find_by_id(user_id):
        raise NotFound('사용자를 찾을 수 없습니다.')

    fields = _clean_study_fields(data)
    missing = [key for key in ('title', 'description', 'category', 'maxMembers') if not fields.get(key)]
    if missing:
        raise ServiceError('제목, 설명, 카테고리, 최대 인원은 필수입니다.')

    fields.update({
        'leader': str(user_id),
        'currentMembers': [str(user_id)],
        'status': 'recruiting',
    })
    fields.setdefault('tags', [])
    study = store.studies.create(fields)
    logger.info("모임 생성: %s (id=%s, leader=%s)", study['title'], study['id'], user_id)
    return study


def list_studies(store, category=None, status=None, search=None, page=1, limit=10):
    query = {}
    if category:
        query['category'] = category
    if status:
        query['status'] = status
    if search:
        query['$or'] = [
            {'title': {'$regex': search, '$options': 'i'}},
            {'description': {'$regex': search, '$options': 'i'}},
            {'tags': {'$in': [search]}},
        ]

    studies = store.studies.find(query, {
        'sort': {'createdAt': -1},
        'skip': (page - 1) * limit,
        'limit': limit,
    })
    for study in studies:
        study['leader'] = user_summary(store, study.get('leader')) or study.get('leader')
    count = store.studies.count(query)
    return {
        'studies': studies,
        'totalPages': total_pages(count, limit),
        'currentPage': page,
    }


def get_study(store, study_id):
    study = _get_study(store, study_id)
    study['leader'] = user_summary(store, study.get('leader')) or study.get('leader')
    study['currentMembers'] = [user_summary(store, member_id) or {'id': member_id}
                               for member_id in study.get('currentMembers') or []]
    return study


def update_study(store, study_id, user_id, data):
    """리더만 수정 가능. 현재 인원보다 작은 최대 인원으로는 바꿀 수 없다."""
    fields = _clean_study_fields(data)
    if 'status' in data:
        if data['status'] not in STUDY_STATUSES:
            raise ServiceError('모임 상태가 올바르지 않습니다.')
        fields['status'] = data['status']

    with store.transaction():
        study = _get_study(store, study_id)
        if study.get('leader') != str(user_id):
            raise Forbidden('모임 리더만 수정할 수 있습니다.')

        members = study.get('currentMembers') or []
        _check_capacity(members, fields.get('maxMembers', study['maxMembers']),
                        '현재 인원보다 적은 최대 인원으로 변경할 수 없습니다.')
        return store.studies.update(study_id, fields)


def join_study(store, study_id, user_id):
    user_id = str(user_id)
    # 동시에 들어온 참가 요청이 서로의 멤버 목록을 덮어쓰지 않도록 읽기부터 쓰기까지 한 번에
    with store.transaction():
        study = _get_study(store, study_id)
        members = study.get('currentMembers') or []

        if user_id in members:
            raise ServiceError('이미 참여 중인 모임입니다.')
        if study.get('status', 'recruiting') != 'recruiting':
            raise ServiceError('모집이 마감된 모임입니다.')
        _check_capacity(members + [user_id], study['maxMembers'])

        return store.studies.update(study_id, {'currentMembers': members + [user_id]})


def leave_study(store, study_id, user_id):
    user_id = str(user_id)
    with store.transaction():
        study = _get_study(store, study_id)
        members = study.get('currentMembers') or []

        if user_id not in members:
            raise ServiceError('참가하지 않은 모임입니다.')
        if study.get('leader') == user_id:
            raise ServiceError('모임 리더는 탈퇴할 수 없습니다.')

        return store.studies.update(study_id, {'currentMembers': [m for m in members if m != user_id]})


def delete_study(store, study_id, user_id):
    with store.transaction():
        study = _get_study(store, study_id)
        if study.get('leader') != str(user_id):
            raise Forbidden('모임 리더만 삭제할 수 있습니다.')
        store.studies.delete(study_id)
    logger.info("모임 삭제: id=%s", study_id)


def refresh_study_statuses(store, now=None):
    """
    모집 마감일이 지난 모임은 진행 중으로,
    시작일 + 진행 기간(주)이 지난 모임은 완료로 바꾼다.
    """
    now_ms = to_timestamp(now or datetime.now(timezone.utc))
    changed = {'in_progress': 0, 'completed': 0}

    with store.transaction():
        for study in store.studies.find({'status': 'recruiting'}):
            if not study.get('deadline'):
                continue
            if to_timestamp(study.get('deadline')) <= now_ms:
                store.studies.update(study['id'], {'status': 'in_progress'})
                changed['in_progress'] += 1

        for study in store.studies.find({'status': 'in_progress'}):
            if not study.get('duration') or not study.get('startDate'):
                continue
            ends_at = to_timestamp(study.get('startDate')) + int(study['duration']) * WEEK_MS
            if ends_at <= now_ms:
                store.studies.update(study['id'], {'status': 'completed'})
                changed['completed'] += 1

    return changed


def refresh_study_statuses_job(app):
    """스케줄러에서 호출하는 모임 상태 갱신 작업"""
    with app.app_context():
        logger.info("모임 상태 갱신 작업 시작")
        try:
            changed = refresh_study_statuses(app.extensions['datastore'])
            logger.info("모임 상태 갱신 작업 완료: %s", changed)
        except Exception:
            logger.exception("모임 상태 갱신 작업 오류")
