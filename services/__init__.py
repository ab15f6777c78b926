"""
서비스 계층 모듈
비즈니스 로직을 처리하는 서비스 함수들
저장소(store)는 항상 인자로 받는다 (LocalDataStore 또는 SqlDataStore)
"""
from .errors import ServiceError, NotFound, Forbidden
from .auth_service import (
    register_user,
    authenticate,
    update_profile,
    get_security_question,
    verify_security_answer,
    reset_password,
    promote_admin,
    reset_users,
    session_user,
    is_admin
)
from .study_service import (
    create_study,
    list_studies,
    get_study,
    update_study,
    join_study,
    leave_study,
    delete_study,
    refresh_study_statuses,
    refresh_study_statuses_job
)
from .community_service import (
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

__all__ = [
    'ServiceError',
    'NotFound',
    'Forbidden',
    'register_user',
    'authenticate',
    'update_profile',
    'get_security_question',
    'verify_security_answer',
    'reset_password',
    'promote_admin',
    'reset_users',
    'session_user',
    'is_admin',
    'create_study',
    'list_studies',
    'get_study',
    'update_study',
    'join_study',
    'leave_study',
    'delete_study',
    'refresh_study_statuses',
    'refresh_study_statuses_job',
    'create_notice',
    'list_notices',
    'get_notice',
    'create_post',
    'list_posts',
    'get_post',
    'update_post',
    'delete_post',
    'list_comments',
    'add_comment',
    'delete_comment'
]
