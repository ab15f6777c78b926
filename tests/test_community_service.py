"""
공지사항 / 게시글 / 댓글 / 회원 서비스 테스트
"""
import threading
import time

import pytest

from conftest import make_user
from services import (
    Forbidden,
    NotFound,
    ServiceError,
    add_comment,
    authenticate,
    create_notice,
    create_post,
    delete_comment,
    delete_post,
    get_notice,
    get_post,
    get_security_question,
    list_comments,
    list_notices,
    list_posts,
    register_user,
    reset_password,
    update_post,
    update_profile,
)


def post_data(**overrides):
    data = {'title': '질문 있습니다', 'content': '파이썬 설치가 안돼요', 'category': 'question'}
    data.update(overrides)
    return data


def test_register_rejects_duplicate_username_and_name(store):
    make_user(store, 'alice', '앨리스')
    with pytest.raises(ServiceError) as exc:
        register_user(store, 'alice', 'pw123456', '다른이름')
    assert exc.value.message == '이미 사용 중인 아이디입니다.'
    with pytest.raises(ServiceError) as exc:
        register_user(store, 'alice2', 'pw123456', '앨리스')
    assert exc.value.message == '이미 사용 중인 이름입니다.'


def test_password_is_hashed_and_authenticates(store):
    user = make_user(store)
    assert user['password'] != 'password123'
    assert authenticate(store, 'alice', 'password123')['id'] == user['id']
    with pytest.raises(ServiceError):
        authenticate(store, 'alice', 'wrong')
    with pytest.raises(ServiceError):
        authenticate(store, 'nobody', 'password123')


def test_update_profile_requires_current_password(store):
    user = make_user(store)
    with pytest.raises(ServiceError):
        update_profile(store, user['id'], {'name': '새이름', 'newPassword': 'newpass1'})
    with pytest.raises(ServiceError):
        update_profile(store, user['id'], {'name': '새이름', 'newPassword': 'newpass1',
                                           'currentPassword': 'wrong'})

    updated = update_profile(store, user['id'], {'name': '새이름', 'newPassword': 'newpass1',
                                                  'currentPassword': 'password123'})
    assert updated['name'] == '새이름'
    assert authenticate(store, 'alice', 'newpass1')


def test_reset_password_with_security_answer(store):
    make_user(store)
    assert get_security_question(store, 'alice') == '첫 반려동물 이름은?'

    with pytest.raises(ServiceError):
        reset_password(store, 'alice', '틀린 답', 'newpass1')
    with pytest.raises(ServiceError):
        reset_password(store, 'alice', 'happydog', '123')

    # 공백과 대소문자는 무시
    reset_password(store, 'alice', ' happy  DOG ', 'newpass1')
    assert authenticate(store, 'alice', 'newpass1')


def test_notice_category_and_views(store):
    admin = make_user(store, 'admin', '관리자', role='admin')
    with pytest.raises(ServiceError):
        create_notice(store, admin['id'], {'title': 't', 'content': 'c', 'category': 'unknown'})

    notice = create_notice(store, admin['id'], {'title': '점검 안내', 'content': '내일 점검',
                                                'category': 'maintenance'})
    assert get_notice(store, notice['id'])['views'] == 1
    detail = get_notice(store, notice['id'])
    assert detail['views'] == 2
    assert detail['author'] == {'id': admin['id'], 'name': '관리자'}

    listing = list_notices(store, search='점검')
    assert [n['id'] for n in listing['notices']] == [notice['id']]
    with pytest.raises(NotFound):
        get_notice(store, '404')


def test_posts_list_with_comment_count(store):
    user = make_user(store)
    post = create_post(store, user['id'], post_data())
    create_post(store, user['id'], post_data(title='자유글', category='free'))
    add_comment(store, post['id'], user['id'], '저도 궁금해요')

    listing = list_posts(store, category='question')
    assert listing['totalPages'] == 1
    assert [p['id'] for p in listing['posts']] == [post['id']]
    assert listing['posts'][0]['commentCount'] == 1
    assert get_post(store, post['id'])['views'] == 1


def test_only_author_or_admin_can_modify_post(store):
    author = make_user(store)
    other = make_user(store, 'bob', '밥')
    admin = make_user(store, 'admin', '관리자', role='admin')
    post = create_post(store, author['id'], post_data())

    with pytest.raises(Forbidden):
        update_post(store, post['id'], other, {'title': '해킹'})
    assert update_post(store, post['id'], author, {'title': '수정'})['title'] == '수정'
    assert update_post(store, post['id'], admin, {'content': '관리자 수정'})['content'] == '관리자 수정'
    with pytest.raises(Forbidden):
        delete_post(store, post['id'], other)


def test_delete_post_cascades_comments(store):
    user = make_user(store)
    post = create_post(store, user['id'], post_data())
    other_post = create_post(store, user['id'], post_data(title='다른 글'))
    add_comment(store, post['id'], user['id'], '하나')
    add_comment(store, post['id'], user['id'], '둘')
    kept = add_comment(store, other_post['id'], user['id'], '남는 댓글')

    assert delete_post(store, post['id'], user) == 2
    assert store.community_posts.find_by_id(post['id']) is None
    assert [c['id'] for c in store.comments.find()] == [kept['id']]


def test_comments(store):
    user = make_user(store)
    other = make_user(store, 'bob', '밥')
    post = create_post(store, user['id'], post_data())

    with pytest.raises(ServiceError):
        add_comment(store, post['id'], user['id'], '   ')
    with pytest.raises(NotFound):
        add_comment(store, '404', user['id'], '내용')

    first = add_comment(store, post['id'], user['id'], '첫 댓글')
    add_comment(store, post['id'], other['id'], '두번째 댓글')
    comments = list_comments(store, post['id'])
    assert [c['content'] for c in comments] == ['첫 댓글', '두번째 댓글']
    assert comments[0]['author'] == {'id': user['id'], 'name': '앨리스', 'username': 'alice'}

    with pytest.raises(Forbidden):
        delete_comment(store, first['id'], other)
    delete_comment(store, first['id'], user)
    assert len(list_comments(store, post['id'])) == 1


@pytest.mark.parametrize('value, expected', [
    ('false', False), ('False', False), ('0', False), ('', False), (False, False),
    ('true', True), ('on', True), ('1', True), (True, True),
])
def test_notice_is_pinned_parses_form_values(store, value, expected):
    admin = make_user(store, 'admin', '관리자', role='admin')
    notice = create_notice(store, admin['id'], {'title': '공지', 'content': '내용',
                                                'category': 'general', 'isPinned': value})
    assert notice['isPinned'] is expected


def test_notice_is_pinned_rejects_garbage(store):
    admin = make_user(store, 'admin', '관리자', role='admin')
    with pytest.raises(ServiceError):
        create_notice(store, admin['id'], {'title': '공지', 'content': '내용',
                                           'category': 'general', 'isPinned': 'maybe'})


def test_non_text_fields_are_rejected(store):
    user = make_user(store)
    admin = make_user(store, 'admin', '관리자', role='admin')
    post = create_post(store, user['id'], post_data())

    with pytest.raises(ServiceError):
        create_post(store, user['id'], post_data(content=123))
    with pytest.raises(ServiceError):
        create_notice(store, admin['id'], {'title': ['x'], 'content': '내용', 'category': 'general'})
    with pytest.raises(ServiceError):
        update_post(store, post['id'], user, {'content': 42})
    with pytest.raises(ServiceError):
        add_comment(store, post['id'], user['id'], {'text': 'hi'})

    # 검색은 계속 동작한다
    assert [p['id'] for p in list_posts(store, search='파이썬')['posts']] == [post['id']]
    assert list_notices(store, search='내용')['notices'] == []


def test_concurrent_views_are_all_counted(store, monkeypatch):
    user = make_user(store)
    post = create_post(store, user['id'], post_data())
    real_find_by_id = store.community_posts.find_by_id

    def slow_find_by_id(record_id):
        record = real_find_by_id(record_id)
        time.sleep(0.02)
        return record

    monkeypatch.setattr(store.community_posts, 'find_by_id', slow_find_by_id)
    threads = [threading.Thread(target=get_post, args=(store, post['id'])) for _ in range(5)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert real_find_by_id(post['id'])['views'] == 5
