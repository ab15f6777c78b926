"""
SQLAlchemy 기반 저장소
LocalDataStore 와 같은 메서드/레코드 모양을 제공해서 라우트와 서비스는
어느 저장소를 쓰는지 신경 쓰지 않는다.
"""
import logging
import threading
from contextlib import contextmanager

from sqlalchemy import and_, false, or_, text, true
from sqlalchemy.exc import SQLAlchemyError

from models import db, User, Study, Notice, CommunityPost, Comment
from store.collections import PROTECTED_FIELDS, to_json_value
from store.query import And, AnyIn, Eq, FindOptions, Or, Regex, parse_filter
from utils.helpers import utcnow

logger = logging.getLogger(__name__)


def _like_pattern(value):
    escaped = value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
    return f"%{escaped}%"


class SqlCollection:
    """모델 하나에 대한 생성/조회/수정/삭제"""

    def __init__(self, model):
        self.model = model

    # --- 조건 변환 ---
    def _clause(self, expression):
        model = self.model
        if isinstance(expression, And):
            terms = [self._clause(t) for t in expression.terms]
            return and_(*terms) if terms else true()
        if isinstance(expression, Or):
            branches = [self._clause(b) for b in expression.branches]
            return or_(*branches) if branches else false()
        if isinstance(expression, Eq):
            column = model.column_for(expression.field)
            if column is None:
                return false()
            try:
                value = model.coerce_value(expression.field, expression.value)
            except (TypeError, ValueError):
                return false()
            return column.is_(None) if value is None else column == value
        if isinstance(expression, Regex):
            column = model.column_for(expression.field)
            if column is None:
                raise KeyError(expression.field)
            return db.cast(column, db.Text).ilike(_like_pattern(expression.pattern), escape='\\')
        if isinstance(expression, AnyIn):
            column = model.column_for(expression.field)
            if column is None or not expression.candidates:
                return false()
            return or_(*[db.cast(column, db.Text).ilike(_like_pattern(c), escape='\\')
                         for c in expression.candidates])
        raise TypeError(f"알 수 없는 조건식: {expression!r}")

    def _query(self, query=None):
        return self.model.query.filter(self._clause(parse_filter(query)))

    def _get(self, record_id):
        try:
            pk = int(record_id)
        except (TypeError, ValueError):
            return None
        return db.session.get(self.model, pk)

    def _commit(self):
        try:
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error("%s 저장 오류: %s", self.model.__tablename__, e)
            raise

    def _clean(self, data):
        return {k: v for k, v in to_json_value(dict(data)).items() if k not in PROTECTED_FIELDS}

    # --- 공개 메서드 ---
    def create(self, data):
        obj = self.model()
        obj.apply_record(self._clean(data))
        now = utcnow()
        obj.created_at = now
        obj.updated_at = now
        db.session.add(obj)
        self._commit()
        return obj.to_dict()

    def find_by_id(self, record_id):
        obj = self._get(record_id)
        return obj.to_dict() if obj else None

    def find_one(self, query=None):
        obj = self._query(query).order_by(self.model.id).first()
        return obj.to_dict() if obj else None

    def find(self, query=None, options=None):
        opts = FindOptions.coerce(options)
        q = self._query(query)
        if opts.sort:
            sort_key, direction = next(iter(opts.sort.items()))
            column = self.model.column_for(sort_key)
            if column is not None:
                q = q.order_by(column.desc() if direction == -1 else column.asc())
        q = q.order_by(self.model.id)
        if opts.skip:
            q = q.offset(opts.skip)
        if opts.limit:
            q = q.limit(opts.limit)
        return [obj.to_dict() for obj in q.all()]

    def count(self, query=None):
        return self._query(query).count()

    def update(self, record_id, patch):
        obj = self._get(record_id)
        if obj is None:
            return None
        obj.apply_record(self._clean(patch))
        obj.updated_at = utcnow()
        self._commit()
        return obj.to_dict()

    def delete(self, record_id):
        obj = self._get(record_id)
        if obj is None:
            return False
        db.session.delete(obj)
        self._commit()
        return True

    def delete_many(self, query=None):
        objs = self._query(query).all()
        for obj in objs:
            db.session.delete(obj)
        if objs:
            self._commit()
        return len(objs)


class SqlUserCollection(SqlCollection):

    def create(self, data):
        data = dict(data)
        data.setdefault('registrationDate', utcnow())
        return super().create(data)


class SqlCommentCollection(SqlCollection):

    def delete_by_post(self, post_id):
        return self.delete_many({'post': str(post_id)})


class SqlDataStore:
    """Flask-SQLAlchemy 세션을 사용하는 주 저장소 (앱 컨텍스트 안에서 사용)"""

    backend = 'database'

    def __init__(self):
        self.users = SqlUserCollection(User)
        self.studies = SqlCollection(Study)
        self.notices = SqlCollection(Notice)
        self.community_posts = SqlCollection(CommunityPost)
        self.comments = SqlCommentCollection(Comment)
        # 한 프로세스 안의 요청 스레드끼리 읽기-확인-쓰기 직렬화
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self):
        with self._lock:
            yield self

    def ping(self):
        db.session.execute(text('SELECT 1'))
        return True
