"""
공통 상수
"""

# --- 사용자 ---
USER_ROLES = ('user', 'admin')
DEFAULT_ROLE = 'user'
MIN_PASSWORD_LENGTH = 6

# --- 모임 ---
STUDY_STATUSES = ('recruiting', 'in_progress', 'completed')
MEETING_TYPES = ('online', 'offline', 'both')
STUDY_MIN_MEMBERS = 2
STUDY_MAX_MEMBERS = 20
STUDY_MIN_DURATION_WEEKS = 1
STUDY_MAX_DURATION_WEEKS = 52

# --- 공지사항 / 커뮤니티 ---
NOTICE_CATEGORIES = ('important', 'general', 'event', 'maintenance')
POST_CATEGORIES = ('question', 'discussion', 'share', 'free')

# --- 목록 ---
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# --- 이미지 업로드 ---
ALLOWED_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
UPLOAD_FILENAME_PREFIX = 'meeting-'

# --- 시간대 ---
TIMEZONE_NAME = 'Asia/Seoul'
