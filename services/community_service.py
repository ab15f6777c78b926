"""
공지사항 / 커뮤니티 게시글 / 댓글 서비스
"""
import logging

from utils.constants import NOTICE_CATEGORIES, POST_CATEGORIES
from utils.helpers import total_pages
from .auth_service import is_admin, user_summary
from .errors import Forbidden, NotFound, ServiceError
from .validators import parse_bool, require_text

logger = logging.getLogger(__name__)

ARTICLE_FIELDS = (
    ('title', '제목을 입력해주세요.'),
    ('content', '내용을 입력해주세요.'),
    ('category', '카테고리를 입력해주세요.'),
)


def _search_query(category=None, search=None):
    query = {}
    if category:
        query['category'] = category
    if search:
        query['$or'] = [
            {'title': {'$regex': search, '$options': 'i'}},
            {'content': {'$regex': search, '$options': 'i'}},
        ]
    return query


def _paginate(collection, query, page, limit):
    records = collection.find(query, {
        'sort': {'createdAt': -1},
        'skip': (page - 1) * limit,
        'limit': limit,
    })
    return records, total_pages(collection.count(query), limit)


def _with_author(store, record, fields=('name',)):
    record['author'] = user_summary(store, record.get('author'), fields) or record.get('author')
    return record


def _can_modify(user, record):
    return record.get('author') == str(user['id']) or is_admin(user)


def _clean_article(data, categories, partial=False):
    """제목/내용/카테고리 검증. partial 이면 들어온 필드만 검사"""
    fields = {}
    for key, message in ARTICLE_FIELDS:
        if partial and data.get(key) is None:
            continue
        if not partial and not data.get(key):
            raise ServiceError('제목, 내용, 카테고리는 필수입니다.')
        fields[key] = require_text(data[key], message)

    if 'category' in fields and fields['category'] not in categories:
        raise ServiceError('카테고리가 올바르지 않습니다.')
    return fields


def _increment_views(store, collection, record_id, message):
    with store.transaction():
        record = collection.find_by_id(record_id)
        if not record:
            raise NotFound(message)
        return collection.update(record_id, {'views': int(record.get('views') or 0) + 1})


# --- 공지사항 ---
def create_notice(store, author_id, data):
    notice = _clean_article(data, NOTICE_CATEGORIES)
    notice.update({
        'isPinned': parse_bool(data.get('isPinned', False)),
        'author': str(author_id),
        'views': 0,
    })
    return store.notices.create(notice)


def list_notices(store, category=None, search=None, page=1, limit=10):
    query = _search_query(category, search)
    notices, pages = _paginate(store.notices, query, page, limit)
    return {
        'notices': [_with_author(store, notice) for notice in notices],
        'totalPages': pages,
        'currentPage': page,
    }


def get_notice(store, notice_id):
    notice = _increment_views(store, store.notices, notice_id, '공지사항을 찾을 수 없습니다.')
    return _with_author(store, notice)


# --- 커뮤니티 게시글 ---
def create_post(store, author_id, data):
    if not store.users.find_by_id(author_id):
        raise NotFound('사용자를 찾을 수 없습니다.')

    post = _clean_article(data, POST_CATEGORIES)
    post.update({
        'author': str(author_id),
        'views': 0,
        'likes': 0,
    })
    post = store.community_posts.create(post)
    logger.info("게시글 작성: id=%s author=%s", post['id'], author_id)
    return post


def list_posts(store, category=None, search=None, page=1, limit=10):
    query = _search_query(category, search)
    posts, pages = _paginate(store.community_posts, query, page, limit)
    for post in posts:
        _with_author(store, post)
        post['commentCount'] = store.comments.count({'post': post['id']})
    return {
        'posts': posts,
        'totalPages': pages,
        'currentPage': page,
    }


def _get_post(store, post_id):
    post = store.community_posts.find_by_id(post_id)
    if not post:
        raise NotFound('게시글을 찾을 수 없습니다.')
    return post


def get_post(store, post_id):
    post = _increment_views(store, store.community_posts, post_id, '게시글을 찾을 수 없습니다.')
    return _with_author(store, post)


def update_post(store, post_id, user, data):
    patch = _clean_article(data, POST_CATEGORIES, partial=True)
    with store.transaction():
        post = _get_post(store, post_id)
        if not _can_modify(user, post):
            raise Forbidden('수정 권한이 없습니다.')
        return store.community_posts.update(post_id, patch)


def delete_post(store, post_id, user):
    """게시글과 그 게시글의 댓글을 함께 삭제"""
    with store.transaction():
        post = _get_post(store, post_id)
        if not _can_modify(user, post):
            raise Forbidden('삭제 권한이 없습니다.')

        removed = store.comments.delete_by_post(post_id)
        store.community_posts.delete(post_id)
    logger.info("게시글 삭제: id=%s (댓글 %d개 함께 삭제)", post_id, removed)
    return removed


# --- 댓글 ---
def list_comments(store, post_id):
    comments = store.comments.find({'post': str(post_id)}, {'sort': {'createdAt': 1}})
    return [_with_author(store, comment, ('name', 'username')) for comment in comments]


def add_comment(store, post_id, author_id, content):
    if not isinstance(content, str) or not content.strip():
        raise ServiceError('댓글 내용을 입력해주세요.')

    with store.transaction():
        _get_post(store, post_id)
        comment = store.comments.create({
            'content': content.strip(),
            'author': str(author_id),
            'post': str(post_id),
        })
    return _with_author(store, comment, ('name', 'username'))


def delete_comment(store, comment_id, user):
    with store.transaction():
        comment = store.comments.find_by_id(comment_id)
        if not comment:
            raise NotFound('댓글을 찾을 수 없습니다.')
        if not _can_modify(user, comment):
            raise Forbidden('삭제 권한이 없습니다.')
        store.comments.delete(comment_id)
