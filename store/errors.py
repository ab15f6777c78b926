"""
로컬 데이터 저장소 예외
"""


class StoreError(Exception):
    """로컬 저장소 예외의 기본 클래스"""


class PersistenceError(StoreError):
    """컬렉션 파일 저장 실패 (디스크 용량, 권한 등)"""

    def __init__(self, collection, cause):
        super().__init__(f"{collection} 데이터 저장 오류: {cause}")
        self.collection = collection
        self.cause = cause


class InvalidFilter(StoreError, TypeError):
    """해석할 수 없는 형태의 검색 조건"""


class InvalidRecord(StoreError, TypeError):
    """JSON 으로 저장할 수 없는 값이 들어 있는 레코드"""
