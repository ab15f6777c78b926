"""
컬렉션 단위 생성/조회/수정/삭제

모든 변경은 새 목록을 만들어 파일에 먼저 저장하고,
저장에 성공한 경우에만 메모리 목록을 교체한다.
"""
import copy
from datetime import date, datetime

from utils.helpers import format_timestamp, utcnow_iso

from . import query as query_engine

# 패치로 덮어쓸 수 없는 필드
PROTECTED_FIELDS = ('id', 'createdAt')


def to_json_value(value):
    """날짜 값을 ISO 문자열로 바꿔 메모리와 파일의 레코드가 같도록 한다."""
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_json_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_value(v) for v in value]
    return value


def clone(record):
    return copy.deepcopy(record)


class Collection:
    """레코드 목록 하나와 그 파일을 관리하는 기본 컬렉션"""

    def __init__(self, name, persistence, ids, lock):
        self.name = name
        self.persistence = persistence
        self.ids = ids
        self._lock = lock
        self.records = [r for r in persistence.load(name) if isinstance(r, dict)]
        ids.reconcile(name, self.records)

    def __len__(self):
        return len(self.records)

    def _commit(self, records):
        self.persistence.save(self.name, records)
        self.records = records

    def _index_of(self, record_id):
        record_id = str(record_id)
        for index, record in enumerate(self.records):
            if record.get('id') == record_id:
                return index
        return None

    def _clean(self, data):
        return {k: v for k, v in to_json_value(dict(data)).items() if k not in PROTECTED_FIELDS}

    def _new_record(self, record_id, data, now):
        record = {'id': record_id}
        record.update(self._clean(data))
        record['createdAt'] = now
        record['updatedAt'] = now
        return record

    def create(self, data):
        with self._lock:
            record = self._new_record(self.ids.peek(self.name), data, utcnow_iso())
            self._commit(self.records + [record])
            # 레코드 저장이 성공한 경우에만 ID 소모
            self.ids.advance(self.name, record['id'])
            return clone(record)

    def find_by_id(self, record_id):
        with self._lock:
            index = self._index_of(record_id)
            return None if index is None else clone(self.records[index])

    def find_one(self, query=None):
        with self._lock:
            expression = query_engine.parse_filter(query)
            for record in self.records:
                if expression.matches(record):
                    return clone(record)
            return None

    def find(self, query=None, options=None):
        with self._lock:
            return [clone(r) for r in query_engine.find(self.records, query, options)]

    def count(self, query=None):
        return len(self.find(query))

    def update(self, record_id, patch):
        """부분 필드를 병합하고 updatedAt 갱신. 없으면 None"""
        with self._lock:
            index = self._index_of(record_id)
            if index is None:
                return None
            updated = {**self.records[index], **self._clean(patch), 'updatedAt': utcnow_iso()}
            records = list(self.records)
            records[index] = updated
            self._commit(records)
            return clone(updated)

    def delete(self, record_id):
        with self._lock:
            index = self._index_of(record_id)
            if index is None:
                return False
            self._commit(self.records[:index] + self.records[index + 1:])
            return True

    def delete_many(self, query=None):
        """조건에 맞는 레코드를 한 번의 저장으로 모두 삭제하고 삭제 수 반환"""
        with self._lock:
            expression = query_engine.parse_filter(query)
            remaining = [r for r in self.records if not expression.matches(r)]
            removed = len(self.records) - len(remaining)
            if removed:
                self._commit(remaining)
            return removed


class UserCollection(Collection):

    def _new_record(self, record_id, data, now):
        record = super()._new_record(record_id, data, now)
        record.setdefault('registrationDate', now)
        return record


class CommentCollection(Collection):

    def delete_by_post(self, post_id):
        return self.delete_many({'post': str(post_id)})
