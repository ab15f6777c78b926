"""
로컬 데이터 저장소 테스트
"""
import json

from store import LocalDataStore


def test_create_assigns_id_and_timestamps(store):
    notice = store.notices.create({'title': '공지', 'content': '내용', 'category': 'general'})

    assert notice['id'] == '1'
    assert notice['createdAt'] == notice['updatedAt']
    assert notice['createdAt'].endswith('Z')
    assert store.notices.find_by_id('1') == notice
    assert store.notices.find_by_id(1) == notice


def test_user_gets_registration_date(store):
    user = store.users.create({'username': 'bob', 'name': '밥'})
    assert user['registrationDate'] == user['createdAt']


def test_create_ignores_client_id_and_created_at(store):
    notice = store.notices.create({'id': '99', 'createdAt': '2000-01-01T00:00:00.000Z', 'title': 'x'})
    assert notice['id'] == '1'
    assert notice['createdAt'] != '2000-01-01T00:00:00.000Z'


def test_records_survive_restart(tmp_path):
    data_dir = tmp_path / "data"
    first = LocalDataStore(data_dir)
    a = first.studies.create({'title': 'A', 'tags': ['x']})
    b = first.studies.create({'title': 'B'})

    second = LocalDataStore(data_dir)
    assert second.studies.find() == [a, b]
    # 재시작 후에도 ID는 이어서 증가
    assert second.studies.create({'title': 'C'})['id'] == '3'


def test_ids_are_never_reused_after_delete(store):
    store.comments.create({'content': '1'})
    second = store.comments.create({'content': '2'})
    store.comments.delete(second['id'])
    assert store.comments.create({'content': '3'})['id'] == '3'


def test_counter_is_raised_to_existing_ids(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "notices.json").write_text(json.dumps([{'id': '7', 'title': 'old'}]), encoding="utf-8")

    store = LocalDataStore(data_dir)
    assert store.notices.create({'title': 'new'})['id'] == '8'


def test_returned_records_are_copies(store):
    study = store.studies.create({'title': 'A', 'currentMembers': ['1']})
    study['currentMembers'].append('2')

    found = store.studies.find_by_id(study['id'])
    found['title'] = 'changed'
    assert store.studies.find_by_id(study['id']) == {**found, 'title': 'A', 'currentMembers': ['1']}


def test_update_merges_and_touches_updated_at(store):
    notice = store.notices.create({'title': '공지', 'views': 0})
    updated = store.notices.update(notice['id'], {'views': 1, 'createdAt': 'bogus', 'id': '42'})

    assert updated['id'] == notice['id']
    assert updated['title'] == '공지'
    assert updated['views'] == 1
    assert updated['createdAt'] == notice['createdAt']
    assert updated['updatedAt'] >= notice['updatedAt']


def test_update_and_delete_missing_record(store):
    assert store.notices.update('404', {'title': 'x'}) is None
    assert store.notices.delete('404') is False


def test_delete_is_idempotent(store):
    notice = store.notices.create({'title': 'x'})
    assert store.notices.delete(notice['id']) is True
    assert store.notices.delete(notice['id']) is False
    assert store.notices.find() == []


def test_find_one_and_conjunction(store):
    store.users.create({'username': 'a', 'name': '가', 'role': 'user'})
    store.users.create({'username': 'b', 'name': '나', 'role': 'admin'})

    assert store.users.find_one({'role': 'admin'})['username'] == 'b'
    assert store.users.find_one({'role': 'admin', 'username': 'a'}) is None
    assert store.users.find_one({'$or': [{'username': 'zzz'}, {'name': '가'}]})['username'] == 'a'


def test_find_with_or_regex_sort_and_pagination(store):
    for i in range(1, 11):
        store.community_posts.create({
            'title': f'Post {i}', 'content': 'hello' if i % 2 else 'bye',
            'createdAt': 'ignored',
        })

    page = store.community_posts.find({}, {'sort': {'createdAt': 1}, 'skip': 3, 'limit': 4})
    assert [p['title'] for p in page] == ['Post 4', 'Post 5', 'Post 6', 'Post 7']

    query = {'$or': [{'title': {'$regex': 'post 1'}}, {'content': {'$regex': 'BYE'}}]}
    titles = {p['title'] for p in store.community_posts.find(query)}
    assert titles == {'Post 1', 'Post 10', 'Post 2', 'Post 4', 'Post 6', 'Post 8'}
    assert store.community_posts.count(query) == 6


def test_delete_by_post_removes_only_that_posts_comments(store):
    store.comments.create({'post': '1', 'content': 'a'})
    store.comments.create({'post': '2', 'content': 'b'})
    store.comments.create({'post': '1', 'content': 'c'})

    assert store.comments.delete_by_post(1) == 2
    assert [c['content'] for c in store.comments.find()] == ['b']
    assert store.comments.delete_by_post('1') == 0


def test_files_on_disk_match_memory(store):
    store.notices.create({'title': '공지'})
    with open(store.persistence.path_for('notices'), encoding='utf-8') as f:
        assert json.load(f) == store.notices.find()
