"""
SQLAlchemy 저장소 테스트 (SQLite 메모리 DB)
로컬 저장소와 같은 레코드 모양을 돌려주는지 확인한다.
"""
import pytest

from app import create_app
from conftest import make_user
from models import db
from repositories import SqlDataStore
from services import add_comment, create_post, create_study, delete_post, join_study, list_studies


@pytest.fixture
def sql_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'STORE_BACKEND': 'database',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'UPLOAD_FOLDER': str(tmp_path / "uploads"),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def sql_store(sql_app):
    return sql_app.extensions['datastore']


def test_database_backend_is_selected(sql_store):
    assert isinstance(sql_store, SqlDataStore)
    assert sql_store.backend == 'database'
    assert sql_store.ping() is True


def test_record_shape_matches_local_store(sql_store):
    user = make_user(sql_store)

    assert user['id'] == '1'
    assert user['username'] == 'alice'
    assert user['role'] == 'user'
    assert user['createdAt'].endswith('Z')
    assert user['registrationDate'].endswith('Z')
    assert sql_store.users.find_by_id(1) == sql_store.users.find_by_id('1')
    assert sql_store.users.find_by_id('abc') is None


def test_update_delete_and_missing_records(sql_store):
    user = make_user(sql_store)
    updated = sql_store.users.update(user['id'], {'name': '새이름', 'createdAt': '2000-01-01T00:00:00Z'})

    assert updated['name'] == '새이름'
    assert updated['createdAt'] == user['createdAt']
    assert sql_store.users.update('404', {'name': 'x'}) is None
    assert sql_store.users.delete('404') is False


def test_queries_translate_to_sql(sql_store):
    leader = make_user(sql_store)
    for i in range(5):
        create_study(sql_store, leader['id'], {
            'title': f'Study {i}', 'description': 'weekly meetup', 'category': 'hobby' if i < 2 else 'dev',
            'maxMembers': 4, 'tags': ['hiking'] if i == 3 else ['python'],
        })

    assert sql_store.studies.count({'category': 'hobby'}) == 2
    assert sql_store.studies.count({'category': 'dev', 'status': 'recruiting'}) == 3
    assert sql_store.studies.find_one({'title': {'$regex': 'STUDY 4'}})['title'] == 'Study 4'
    assert sql_store.studies.count({'leader': leader['id']}) == 5
    assert sql_store.studies.count({'id': 'not-a-number'}) == 0

    found = list_studies(sql_store, search='hiking')
    assert [s['title'] for s in found['studies']] == ['Study 3']

    page = sql_store.studies.find({}, {'sort': {'id': 1}, 'skip': 1, 'limit': 2})
    assert [s['title'] for s in page] == ['Study 1', 'Study 2']


def test_regex_on_unknown_field_raises(sql_store):
    with pytest.raises(KeyError):
        sql_store.studies.find({'nope': {'$regex': 'x'}})


def test_json_members_round_trip(sql_store):
    leader = make_user(sql_store)
    member = make_user(sql_store, 'bob', '밥')
    study = create_study(sql_store, leader['id'], {
        'title': 'T', 'description': 'D', 'category': 'c', 'maxMembers': 3,
    })

    joined = join_study(sql_store, study['id'], member['id'])
    assert joined['currentMembers'] == [leader['id'], member['id']]
    assert sql_store.studies.find_by_id(study['id'])['currentMembers'] == [leader['id'], member['id']]


def test_delete_post_cascades_comments(sql_store):
    user = make_user(sql_store)
    post = create_post(sql_store, user['id'], {'title': 'T', 'content': 'C', 'category': 'free'})
    other = create_post(sql_store, user['id'], {'title': 'T2', 'content': 'C2', 'category': 'free'})
    add_comment(sql_store, post['id'], user['id'], 'one')
    add_comment(sql_store, post['id'], user['id'], 'two')
    add_comment(sql_store, other['id'], user['id'], 'kept')

    assert delete_post(sql_store, post['id'], user) == 2
    assert sql_store.community_posts.find_by_id(post['id']) is None
    assert [c['content'] for c in sql_store.comments.find()] == ['kept']
