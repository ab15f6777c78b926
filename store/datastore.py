"""
로컬 JSON 데이터 저장소
주 데이터베이스에 연결할 수 없을 때 같은 인터페이스로 대신 사용한다.
"""
import logging
import threading
from contextlib import contextmanager

from .collections import Collection, CommentCollection, UserCollection
from .ids import IdGenerator
from .persistence import JsonPersistence

logger = logging.getLogger(__name__)

USERS = 'users'
STUDIES = 'studies'
NOTICES = 'notices'
COMMUNITY_POSTS = 'communityPosts'
COMMENTS = 'comments'

COLLECTIONS = (USERS, STUDIES, NOTICES, COMMUNITY_POSTS, COMMENTS)


class LocalDataStore:
    """data_dir 아래 컬렉션별 JSON 파일을 사용하는 저장소"""

    backend = 'local'

    def __init__(self, data_dir):
        self.persistence = JsonPersistence(data_dir)
        self.ids = IdGenerator(self.persistence, COLLECTIONS)
        # Flask 요청 스레드 간에 한 번에 하나의 읽기-수정-쓰기만 수행
        self._lock = threading.RLock()

        self.users = UserCollection(USERS, self.persistence, self.ids, self._lock)
        self.studies = Collection(STUDIES, self.persistence, self.ids, self._lock)
        self.notices = Collection(NOTICES, self.persistence, self.ids, self._lock)
        self.community_posts = Collection(COMMUNITY_POSTS, self.persistence, self.ids, self._lock)
        self.comments = CommentCollection(COMMENTS, self.persistence, self.ids, self._lock)

        logger.info("로컬 데이터 로드 완료 (%s) - 사용자 %d, 모임 %d, 공지사항 %d, 게시글 %d, 댓글 %d",
                    self.data_dir, len(self.users), len(self.studies), len(self.notices),
                    len(self.community_posts), len(self.comments))

    @property
    def data_dir(self):
        return self.persistence.data_dir

    @contextmanager
    def transaction(self):
        """여러 호출을 하나의 읽기-확인-쓰기로 묶는다. 블록 안에서는 다른 스레드가 저장소를 바꿀 수 없다."""
        with self._lock:
            yield self

    def ping(self):
        return True
