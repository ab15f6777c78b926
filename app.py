# app.py - 홍천 아카데미 커뮤니티 Flask 애플리케이션
from flask import Flask, Blueprint, jsonify, request, session, current_app, send_from_directory, g
import atexit
import logging
import os
import secrets
import time

import click
from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.utils import secure_filename

# 모듈 import
from config import STORE_BACKENDS, engine_options, load_config
from models import db
from repositories import SqlDataStore
from store import InvalidRecord, LocalDataStore, StoreError
from utils.constants import ALLOWED_EXTENSIONS, UPLOAD_FILENAME_PREFIX
from utils.decorators import get_store, login_required, admin_required
from utils.helpers import KST, allowed_file, get_page_params
from services import (
    ServiceError,
    register_user,
    authenticate,
    update_profile,
    get_security_question,
    verify_security_answer,
    reset_password,
    promote_admin,
    reset_users,
    session_user,
    create_study,
    list_studies,
    get_study,
    update_study,
    join_study,
    leave_study,
    delete_study,
    refresh_study_statuses_job,
    create_notice,
    list_notices,
    get_notice,
    create_post,
    list_posts,
    get_post,
    update_post,
    delete_post,
    list_comments,
    add_comment,
    delete_comment
)

logger = logging.getLogger(__name__)

api = Blueprint('api', __name__)


# --- 앱 생성 ---
def create_app(test_config=None):
    app = Flask(__name__)
    app.config.update(load_config())
    if test_config:
        app.config.update(test_config)
        if 'SQLALCHEMY_ENGINE_OPTIONS' not in test_config:
            app.config['SQLALCHEMY_ENGINE_OPTIONS'] = engine_options(app.config.get('SQLALCHEMY_DATABASE_URI'))

    if not app.config.get('SECRET_KEY'):
        raise RuntimeError("FLASK_SECRET_KEY environment variable must be set for security")
    if app.config['STORE_BACKEND'] not in STORE_BACKENDS:
        raise RuntimeError(f"STORE_BACKEND must be one of {STORE_BACKENDS}")

    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)

    app.extensions['datastore'] = select_store(app)
    app.register_blueprint(api)
    register_commands(app)

    # 실행 방식(python app.py, flask run, WSGI 서버)과 관계없이 시작
    if app.config['SCHEDULER_ENABLED'] and not app.testing and _is_serving_process(app):
        app.extensions['scheduler'] = start_scheduler(app)
    return app


def _is_serving_process(app):
    # 디버그 리로더의 감시 프로세스에서는 시작하지 않는다
    return not app.debug or os.environ.get('WERKZEUG_RUN_MAIN') == 'true'


def select_store(app):
    """
    주 데이터베이스에 연결해 보고, 실패하면 로컬 JSON 저장소를 사용한다.
    STORE_BACKEND=local 이거나 DB 설정이 없으면 바로 로컬 저장소를 사용한다.
    """
    backend = app.config['STORE_BACKEND']
    uri = app.config.get('SQLALCHEMY_DATABASE_URI')

    if backend != 'local' and uri:
        try:
            db.init_app(app)
            with app.app_context():
                store = SqlDataStore()
                store.ping()
            logger.info("데이터베이스에 성공적으로 연결되었습니다.")
            return store
        except (SQLAlchemyError, ImportError) as e:
            if backend == 'database':
                raise
            logger.error("데이터베이스 연결 오류: %s", e)
            logger.warning("데이터베이스 연결에 실패하여 로컬 데이터 저장소를 사용합니다.")
    elif backend == 'database':
        raise RuntimeError("STORE_BACKEND=database 이지만 데이터베이스 설정이 없습니다.")

    return LocalDataStore(app.config['DATA_DIR'])


# --- 에러 처리 ---
@api.errorhandler(ServiceError)
def handle_service_error(e):
    return jsonify({'success': False, 'message': e.message}), e.status_code


@api.errorhandler(InvalidRecord)
def handle_invalid_record(e):
    logger.warning("저장할 수 없는 요청 데이터: %s", e)
    return jsonify({'success': False, 'message': '요청 데이터 형식이 올바르지 않습니다.'}), 400


@api.errorhandler(StoreError)
@api.errorhandler(SQLAlchemyError)
def handle_storage_error(e):
    logger.exception("저장소 오류: %s", e)
    return jsonify({'success': False, 'message': '서버 오류가 발생했습니다.'}), 500


def _payload():
    """JSON 또는 폼 데이터"""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    return data if isinstance(data, dict) else {}


def _login(user):
    session.clear() # 기존 세션 정리
    session['user_id'] = user['id']
    session.permanent = True


# --- 회원 ---
@api.route('/api/register', methods=['POST'])
def register():
    data = _payload()
    logger.info("회원가입 요청: username=%s name=%s", data.get('username'), data.get('name'))
    user = register_user(
        get_store(),
        data.get('username'),
        data.get('password'),
        data.get('name'),
        email=data.get('email'),
        security_question=data.get('securityQuestion'),
        security_answer=data.get('securityAnswer'),
    )
    # 자동 로그인
    _login(user)
    return jsonify({'success': True, 'user': session_user(user)})


@api.route('/api/login', methods=['POST'])
def login():
    data = _payload()
    user = authenticate(get_store(), data.get('username'), data.get('password'))
    _login(user)
    return jsonify({'success': True, 'user': session_user(user)})


@api.route('/api/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'success': True, 'message': '로그아웃되었습니다.'})


@api.route('/api/current-user')
def current_user():
    user = None
    if 'user_id' in session:
        user = get_store().users.find_by_id(session['user_id'])
        if not user:
            session.clear()
    if user:
        return jsonify({'isAuthenticated': True, 'user': session_user(user)})
    return jsonify({'isAuthenticated': False})


@api.route('/api/profile', methods=['PUT'])
@login_required
def profile():
    user = update_profile(get_store(), g.user['id'], _payload())
    return jsonify({
        'success': True,
        'message': '프로필이 성공적으로 업데이트되었습니다.',
        'user': session_user(user)
    })


@api.route('/api/check-security-question', methods=['POST'])
def check_security_question():
    question = get_security_question(get_store(), _payload().get('username'))
    return jsonify({'success': True, 'securityQuestion': question})


@api.route('/api/verify-security-answer', methods=['POST'])
def verify_answer():
    data = _payload()
    verify_security_answer(get_store(), data.get('username'), data.get('answer'))
    return jsonify({'success': True})


@api.route('/api/reset-password', methods=['POST'])
def reset_password_route():
    data = _payload()
    reset_password(get_store(), data.get('username'), data.get('answer'), data.get('newPassword'))
    return jsonify({'success': True, 'message': '비밀번호가 성공적으로 변경되었습니다.'})


# --- 이미지 업로드 ---
@api.route('/api/upload-image', methods=['POST'])
@login_required
def upload_image():
    file = request.files.get('image')
    if not file or not file.filename:
        return jsonify({'message': '이미지 파일이 필요합니다.'}), 400
    if not allowed_file(file.filename, ALLOWED_EXTENSIONS):
        return jsonify({'message': '이미지 파일만 업로드 가능합니다.'}), 400

    extension = secure_filename(file.filename).rsplit('.', 1)[-1].lower()
    filename = f"{UPLOAD_FILENAME_PREFIX}{int(time.time() * 1000)}-{secrets.randbelow(10**9)}.{extension}"
    try:
        file.save(os.path.join(current_app.config['UPLOAD_FOLDER'], filename))
    except OSError as e:
        logger.error("이미지 업로드 오류: %s", e)
        return jsonify({'message': '이미지 업로드 중 오류가 발생했습니다.'}), 500
    return jsonify({'imageUrl': f'/uploads/{filename}'})


@api.route('/uploads/<path:filename>')
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


# --- 모임 ---
@api.route('/api/studies', methods=['POST'])
@login_required
def create_study_route():
    study = create_study(get_store(), g.user['id'], _payload())
    return jsonify({'message': '스터디가 성공적으로 생성되었습니다.', 'studyId': study['id']}), 201


@api.route('/api/studies', methods=['GET'])
def list_studies_route():
    page, limit = get_page_params(request.args)
    return jsonify(list_studies(
        get_store(),
        category=request.args.get('category'),
        status=request.args.get('status'),
        search=request.args.get('search'),
        page=page,
        limit=limit,
    ))


@api.route('/api/studies/<study_id>', methods=['GET'])
def get_study_route(study_id):
    return jsonify(get_study(get_store(), study_id))


@api.route('/api/studies/<study_id>', methods=['PUT'])
@login_required
def update_study_route(study_id):
    study = update_study(get_store(), study_id, g.user['id'], _payload())
    return jsonify({'message': '모임 정보가 수정되었습니다.', 'study': study})


@api.route('/api/studies/<study_id>', methods=['DELETE'])
@login_required
def delete_study_route(study_id):
    delete_study(get_store(), study_id, g.user['id'])
    return jsonify({'message': '모임이 성공적으로 삭제되었습니다.'})


@api.route('/api/studies/<study_id>/join', methods=['POST'])
@login_required
def join_study_route(study_id):
    join_study(get_store(), study_id, g.user['id'])
    return jsonify({'message': '스터디에 성공적으로 참여했습니다.'})


@api.route('/api/studies/<study_id>/leave', methods=['POST'])
@login_required
def leave_study_route(study_id):
    leave_study(get_store(), study_id, g.user['id'])
    return jsonify({'message': '모임에서 성공적으로 탈퇴했습니다.'})


# --- 공지사항 ---
@api.route('/api/notices', methods=['GET'])
def list_notices_route():
    page, limit = get_page_params(request.args)
    return jsonify(list_notices(
        get_store(),
        category=request.args.get('category'),
        search=request.args.get('search'),
        page=page,
        limit=limit,
    ))


@api.route('/api/notices', methods=['POST'])
@admin_required
def create_notice_route():
    notice = create_notice(get_store(), g.user['id'], _payload())
    return jsonify({'success': True, 'notice': notice})


@api.route('/api/notices/<notice_id>', methods=['GET'])
def get_notice_route(notice_id):
    return jsonify(get_notice(get_store(), notice_id))


# --- 커뮤니티 ---
@api.route('/api/community/posts', methods=['GET'])
def list_posts_route():
    page, limit = get_page_params(request.args)
    return jsonify(list_posts(
        get_store(),
        category=request.args.get('category'),
        search=request.args.get('search'),
        page=page,
        limit=limit,
    ))


@api.route('/api/community/posts', methods=['POST'])
@login_required
def create_post_route():
    post = create_post(get_store(), g.user['id'], _payload())
    return jsonify({'message': '게시글이 성공적으로 작성되었습니다.', 'postId': post['id']}), 201


@api.route('/api/community/posts/<post_id>', methods=['GET'])
def get_post_route(post_id):
    return jsonify(get_post(get_store(), post_id))


@api.route('/api/community/posts/<post_id>', methods=['PUT'])
@login_required
def update_post_route(post_id):
    post = update_post(get_store(), post_id, g.user, _payload())
    return jsonify({'message': '게시글이 성공적으로 수정되었습니다.', 'post': post})


@api.route('/api/community/posts/<post_id>', methods=['DELETE'])
@login_required
def delete_post_route(post_id):
    delete_post(get_store(), post_id, g.user)
    return jsonify({'message': '게시글이 성공적으로 삭제되었습니다.'})


@api.route('/api/community/posts/<post_id>/comments', methods=['GET'])
def list_comments_route(post_id):
    return jsonify({'comments': list_comments(get_store(), post_id)})


@api.route('/api/community/posts/<post_id>/comments', methods=['POST'])
@login_required
def add_comment_route(post_id):
    comment = add_comment(get_store(), post_id, g.user['id'], _payload().get('content'))
    return jsonify({'message': '댓글이 성공적으로 작성되었습니다.', 'comment': comment}), 201


@api.route('/api/community/comments/<comment_id>', methods=['DELETE'])
@login_required
def delete_comment_route(comment_id):
    delete_comment(get_store(), comment_id, g.user)
    return jsonify({'message': '댓글이 성공적으로 삭제되었습니다.'})


# --- 상태 확인 ---
@api.route('/api/health')
def health():
    store = get_store()
    try:
        store.ping()
        status = 'ok'
    except SQLAlchemyError as e:
        logger.error("저장소 상태 확인 실패: %s", e)
        status = 'error'
    return jsonify({'status': status, 'backend': store.backend}), 200 if status == 'ok' else 503


# --- Flask CLI 명령어 ---
def register_commands(app):

    @app.cli.command("init-db")
    def init_db_command():
        """Creates the database tables (or the local data directory)."""
        store = app.extensions['datastore']
        if store.backend == 'database':
            db.create_all()
            click.echo("Database initialized.")
        else:
            click.echo(f"Local data store ready: {store.data_dir}")

    @app.cli.command("reset-users")
    def reset_users_command():
        """Deletes every user."""
        removed = reset_users(app.extensions['datastore'])
        click.echo(f"삭제된 사용자 수: {removed}")

    @app.cli.command("promote-admin")
    @click.argument("username")
    def promote_admin_command(username):
        """Grants the admin role to USERNAME."""
        try:
            user = promote_admin(app.extensions['datastore'], username)
        except ServiceError as e:
            raise click.ClickException(e.message)
        click.echo(f"업데이트된 사용자: {user['username']} (role={user['role']})")


# --- 스케줄러 ---
def start_scheduler(app):
    scheduler = BackgroundScheduler(timezone=KST)
    # 매일 00:10 (KST) 모집 마감/완료된 모임 상태 갱신
    scheduler.add_job(lambda: refresh_study_statuses_job(app), 'cron', hour=0, minute=10,
                      id='study_status_job')
    scheduler.start()
    # 앱 종료 시 스케줄러 종료 등록
    def shutdown():
        if scheduler.running:
            scheduler.shutdown()

    atexit.register(shutdown)
    logger.info("Scheduler started")
    return scheduler


# --- 앱 실행 부분 ---
if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = create_app()

    if app.extensions['datastore'].backend == 'database':
        with app.app_context():
            try:
                logger.info("--- Checking database tables... ---")
                db.create_all()
            except SQLAlchemyError as e:
                logger.error("--- CRITICAL: Error during DB initialization: %s ---", e)

    port = app.config['PORT']
    app.run(host='0.0.0.0', port=port, debug=os.getenv('FLASK_DEBUG', 'false').lower() == 'true')
