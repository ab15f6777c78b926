"""
컬렉션별 순차 ID 발급기
카운터는 counters.json 에 저장되어 재시작 후에도 이어서 증가한다.
"""
import logging

from .errors import PersistenceError

logger = logging.getLogger(__name__)

COUNTERS_COLLECTION = 'counters'


def _numeric_id(record):
    try:
        return int(record.get('id'))
    except (TypeError, ValueError):
        return 0


class IdGenerator:
    """peek() 로 다음 ID를 정하고, 레코드 저장 후 advance() 로 카운터를 올린다."""

    def __init__(self, persistence, collections):
        self.persistence = persistence
        self.counters = {name: 0 for name in collections}
        loaded = persistence.load(COUNTERS_COLLECTION, default={})
        for name, value in loaded.items():
            try:
                self.counters[name] = int(value)
            except (TypeError, ValueError):
                logger.error("counters.json 의 %s 값이 올바르지 않습니다: %r", name, value)

    def reconcile(self, collection, records):
        """카운터가 이미 존재하는 가장 큰 ID보다 작지 않도록 맞춘다."""
        highest = max((_numeric_id(r) for r in records), default=0)
        if highest > self.counters.get(collection, 0):
            logger.warning("%s 카운터를 %d -> %d 로 보정합니다.",
                           collection, self.counters.get(collection, 0), highest)
            self.counters[collection] = highest

    def peek(self, collection):
        """다음에 발급될 ID. 카운터는 advance() 전까지 그대로"""
        return str(self.counters.get(collection, 0) + 1)

    def advance(self, collection, record_id):
        """
        레코드 저장이 끝난 뒤 호출한다.
        counters.json 저장에 실패해도 레코드는 이미 저장되었으므로 예외를 올리지 않고,
        다음 로드 때 reconcile() 이 카운터를 맞춘다.
        """
        value = int(record_id)
        self.counters[collection] = max(self.counters.get(collection, 0), value)
        try:
            self.persistence.save(COUNTERS_COLLECTION, dict(self.counters))
        except PersistenceError as e:
            logger.warning("%s 카운터 저장 실패 (다음 로드 때 보정): %s", collection, e)
