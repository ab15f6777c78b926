"""
데이터베이스 모델 패키지
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .user import User
from .study import Study
from .notice import Notice
from .community import CommunityPost, Comment

__all__ = [
    'db', 'User', 'Study', 'Notice', 'CommunityPost', 'Comment'
]
