"""
모델 <-> 레코드(dict) 변환 믹스인
로컬 저장소와 같은 모양의 레코드(id 는 문자열, 날짜는 ISO 문자열)를 주고받는다.
"""
import copy

from utils.helpers import format_timestamp, parse_timestamp


class RecordMixin:
    # 레코드 키 -> 컬럼 속성
    FIELD_MAP = {}
    # 다른 레코드의 id 를 담는 정수 컬럼 (레코드에서는 문자열)
    REFERENCE_FIELDS = ()
    DATE_FIELDS = ('createdAt', 'updatedAt')

    @classmethod
    def column_for(cls, key):
        if key == 'id':
            return cls.id
        attr = cls.FIELD_MAP.get(key)
        return getattr(cls, attr) if attr else None

    @classmethod
    def coerce_value(cls, key, value):
        """레코드 값 -> 컬럼 값. 변환할 수 없으면 ValueError"""
        if value is None:
            return None
        if key == 'id' or key in cls.REFERENCE_FIELDS:
            return int(value)
        if key in cls.DATE_FIELDS:
            return parse_timestamp(value)
        return value

    def apply_record(self, data):
        for key, value in data.items():
            attr = self.FIELD_MAP.get(key)
            if attr is not None:
                setattr(self, attr, self.coerce_value(key, value))

    def to_dict(self):
        data = {'id': str(self.id)}
        for key, attr in self.FIELD_MAP.items():
            value = getattr(self, attr)
            if value is not None and key in self.REFERENCE_FIELDS:
                value = str(value)
            elif value is not None and key in self.DATE_FIELDS:
                value = format_timestamp(value)
            elif isinstance(value, (list, dict)):
                # JSON 컬럼 값은 세션의 객체와 분리
                value = copy.deepcopy(value)
            data[key] = value
        return data
