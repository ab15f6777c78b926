"""
애플리케이션 설정
.env 파일과 환경 변수에서 값을 읽는다.
"""
import json
import os
import urllib.parse
from datetime import timedelta

from dotenv import load_dotenv

from utils.constants import MAX_UPLOAD_BYTES

load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# STORE_BACKEND 값
#   auto     : DB 연결을 시도하고 실패하면 로컬 JSON 저장소 사용
#   database : DB 연결 실패 시 시작 중단
#   local    : 항상 로컬 JSON 저장소 사용
STORE_BACKENDS = ('auto', 'database', 'local')


def _json_dumps(obj):
    # JSON 컬럼(태그 등)의 한글이 \uXXXX 로 저장되지 않도록 해야 ILIKE 검색이 된다
    return json.dumps(obj, ensure_ascii=False)


def build_database_uri():
    """DATABASE_URL 또는 DB_* 환경 변수로 PostgreSQL URI 구성. 설정이 없으면 None"""
    url = os.getenv('DATABASE_URL')
    if url:
        return url

    db_host = os.getenv('DB_HOST')
    if not db_host:
        return None
    db_user = os.getenv('DB_USER', '')
    db_password = urllib.parse.quote_plus(os.getenv('DB_PASSWORD', ''))
    db_port = os.getenv('DB_PORT', '5432')
    db_name = os.getenv('DB_NAME', 'hongcheon_academy')
    return f'postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}'


def engine_options(uri):
    options = {'json_serializer': _json_dumps}
    if uri and uri.startswith('postgresql'):
        # DB가 응답하지 않으면 5초 후 로컬 저장소로 전환
        options['connect_args'] = {'connect_timeout': 5}
        options['pool_pre_ping'] = True
    return options


def load_config():
    uri = build_database_uri()
    return {
        'SECRET_KEY': os.getenv('FLASK_SECRET_KEY'),
        'PERMANENT_SESSION_LIFETIME': timedelta(days=1),
        'SESSION_COOKIE_HTTPONLY': True,
        'SQLALCHEMY_DATABASE_URI': uri,
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SQLALCHEMY_ENGINE_OPTIONS': engine_options(uri),
        'STORE_BACKEND': os.getenv('STORE_BACKEND', 'auto').lower(),
        'DATA_DIR': os.getenv('DATA_DIR', os.path.join(BASE_DIR, 'data')),
        'UPLOAD_FOLDER': os.getenv('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'uploads')),
        'MAX_CONTENT_LENGTH': MAX_UPLOAD_BYTES,
        'SCHEDULER_ENABLED': os.getenv('SCHEDULER_ENABLED', 'true').lower() == 'true',
        'PORT': int(os.getenv('PORT', 10000)),
    }
