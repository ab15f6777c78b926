"""
검색 조건 해석 및 적용

문서형 DB 스타일의 조건(dict)을 한 번만 해석해서 표현식 객체로 바꾼 뒤
메모리의 레코드 목록에 적용한다.

    {"category": "study",
     "$or": [{"title": {"$regex": "파이썬", "$options": "i"}},
             {"tags": {"$in": ["python"]}}]}

    -> And((Eq("category", "study"),
            Or((And((Regex("title", "파이썬"),)),
                And((AnyIn("tags", ("python",)),))))))

Regex 는 이름과 달리 정규식이 아니라 대소문자를 무시하는 부분 문자열 검색이다.
"""
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from functools import cmp_to_key

from .errors import InvalidFilter

_MISSING = object()


def _strict_equal(left, right):
    # True == 1 이 참이 되지 않도록 bool 은 bool 끼리만 비교
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


@dataclass(frozen=True)
class Eq:
    field: str
    value: object

    def matches(self, record):
        actual = record.get(self.field, _MISSING)
        if actual is _MISSING:
            return False
        return _strict_equal(actual, self.value)


@dataclass(frozen=True)
class Regex:
    field: str
    pattern: str

    def matches(self, record):
        # 필드가 없으면 KeyError 가 그대로 호출자에게 전달된다
        return self.pattern.lower() in record[self.field].lower()


@dataclass(frozen=True)
class AnyIn:
    field: str
    candidates: tuple

    def matches(self, record):
        values = record.get(self.field)
        if not values:
            return False
        if isinstance(values, str):
            values = [values]
        needles = [c.lower() for c in self.candidates]
        return any(needle in str(value).lower() for value in values for needle in needles)


@dataclass(frozen=True)
class And:
    terms: tuple = ()

    def matches(self, record):
        return all(term.matches(record) for term in self.terms)


@dataclass(frozen=True)
class Or:
    branches: tuple

    def matches(self, record):
        return any(branch.matches(record) for branch in self.branches)


EXPRESSION_TYPES = (Eq, Regex, AnyIn, And, Or)


def _pattern_text(value, operator):
    if isinstance(value, re.Pattern):
        return value.pattern
    if isinstance(value, str):
        return value
    raise InvalidFilter(f"{operator} 값은 문자열이어야 합니다: {value!r}")


def _parse_field(name, value):
    if not isinstance(value, Mapping) or not any(str(k).startswith('$') for k in value):
        return Eq(name, value)

    operators = set(value)
    if '$regex' in operators:
        if operators - {'$regex', '$options'}:
            raise InvalidFilter(f"{name}: $regex 와 함께 쓸 수 없는 키 {sorted(operators)}")
        return Regex(name, _pattern_text(value['$regex'], '$regex'))

    if operators == {'$in'}:
        candidates = value['$in']
        if isinstance(candidates, (str, bytes)) or not isinstance(candidates, (list, tuple)):
            raise InvalidFilter(f"{name}: $in 값은 목록이어야 합니다")
        return AnyIn(name, tuple(_pattern_text(c, '$in') for c in candidates))

    raise InvalidFilter(f"{name}: 지원하지 않는 연산자 {sorted(operators)}")


def parse_filter(query):
    """dict 조건을 표현식으로 변환. 이미 표현식이면 그대로 반환"""
    if query is None:
        return And()
    if isinstance(query, EXPRESSION_TYPES):
        return query
    if not isinstance(query, Mapping):
        raise InvalidFilter(f"검색 조건은 dict 여야 합니다: {type(query).__name__}")

    terms = []
    for key, value in query.items():
        if key == '$or':
            if isinstance(value, (str, bytes, Mapping)) or not isinstance(value, (list, tuple)):
                raise InvalidFilter("$or 값은 조건 목록이어야 합니다")
            terms.append(Or(tuple(parse_filter(sub) for sub in value)))
        elif str(key).startswith('$'):
            raise InvalidFilter(f"지원하지 않는 연산자: {key}")
        else:
            terms.append(_parse_field(key, value))
    return And(tuple(terms))


@dataclass
class FindOptions:
    sort: dict = None
    skip: int = 0
    limit: int = 0

    @classmethod
    def coerce(cls, options):
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if not isinstance(options, Mapping):
            raise InvalidFilter(f"검색 옵션은 dict 여야 합니다: {type(options).__name__}")
        return cls(sort=options.get('sort'),
                   skip=int(options.get('skip') or 0),
                   limit=int(options.get('limit') or 0))


def to_timestamp(value):
    """
    값을 밀리초 타임스탬프로 읽는다. 날짜로 읽을 수 없으면 NaN.
    숫자는 epoch 밀리초, None 은 0, 시간대 없는 날짜는 UTC 로 본다.
    """
    if value is _MISSING:
        return math.nan
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp() * 1000
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp() * 1000
    if isinstance(value, str):
        text = value.strip()
        if text[-1:] in ('Z', 'z'):
            text = text[:-1] + '+00:00'
        try:
            return to_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return math.nan
    return math.nan


def _comparator(field, direction):
    def compare(a, b):
        if direction == -1:
            diff = to_timestamp(b.get(field, _MISSING)) - to_timestamp(a.get(field, _MISSING))
        else:
            diff = to_timestamp(a.get(field, _MISSING)) - to_timestamp(b.get(field, _MISSING))
        # 날짜로 읽을 수 없는 값끼리는 같은 것으로 취급 (순서 유지)
        if math.isnan(diff):
            return 0
        return (diff > 0) - (diff < 0)
    return compare


def find(records, query=None, options=None):
    """조건 -> 정렬 -> skip/limit 순서로 적용한 새 목록 반환 (레코드 자체는 복사하지 않음)"""
    expression = parse_filter(query)
    opts = FindOptions.coerce(options)

    results = [record for record in records if expression.matches(record)]

    if opts.sort:
        sort_key, direction = next(iter(opts.sort.items()))
        results.sort(key=cmp_to_key(_comparator(sort_key, direction)))

    if opts.skip:
        results = results[opts.skip:]
    if opts.limit:
        results = results[:opts.limit]
    return results
