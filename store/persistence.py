"""
컬렉션 파일 입출력
컬렉션 하나당 JSON 파일 하나 (data/users.json, data/studies.json ...)
"""
import json
import logging
import os
import tempfile

from .errors import InvalidRecord, PersistenceError

logger = logging.getLogger(__name__)


class JsonPersistence:
    """데이터 디렉터리 아래 컬렉션별 JSON 파일을 읽고 쓴다."""

    def __init__(self, data_dir):
        self.data_dir = os.fspath(data_dir)
        self.ensure_data_directory()

    def ensure_data_directory(self):
        os.makedirs(self.data_dir, exist_ok=True)

    def path_for(self, collection):
        return os.path.join(self.data_dir, f"{collection}.json")

    def load(self, collection, default=None):
        """파일 전체를 읽어 반환. 파일이 없거나 손상되었으면 default (기본값 [])"""
        if default is None:
            default = []
        path = self.path_for(collection)
        if not os.path.exists(path):
            return default

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("%s 데이터 로드 오류: %s", collection, e)
            return default

        if not isinstance(data, type(default)):
            logger.error("%s 데이터 형식 오류: %s 대신 %s",
                         collection, type(default).__name__, type(data).__name__)
            return default
        return data

    def save(self, collection, data):
        """
        컬렉션 전체를 다시 쓴다.
        같은 디렉터리의 임시 파일에 먼저 쓰고 fsync 후 rename 하므로
        실패해도 기존 파일은 그대로 남는다.
        """
        try:
            text = json.dumps(data, ensure_ascii=False, indent=2)
        except (TypeError, ValueError) as e:
            logger.error("%s 데이터 직렬화 오류: %s", collection, e)
            raise InvalidRecord(f"{collection} 데이터를 JSON 으로 저장할 수 없습니다: {e}") from e

        path = self.path_for(collection)
        tmp_path = None
        try:
            self.ensure_data_directory()
            fd, tmp_path = tempfile.mkstemp(prefix=f".{collection}.", suffix=".tmp", dir=self.data_dir)
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error("%s 데이터 저장 오류: %s", collection, e)
            if tmp_path and os.path.exists(tmp_path):
                try:
                    os.remove(tmp_path)
                except OSError:
                    logger.warning("임시 파일 삭제 실패: %s", tmp_path)
            raise PersistenceError(collection, e) from e
