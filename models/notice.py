"""
공지사항 모델
"""
from utils.helpers import utcnow
from . import db
from .base import RecordMixin


class Notice(RecordMixin, db.Model):
    __tablename__ = 'notices'

    FIELD_MAP = {
        'title': 'title',
        'content': 'content',
        'category': 'category',
        'author': 'author_id',
        'isPinned': 'is_pinned',
        'views': 'views',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }
    REFERENCE_FIELDS = ('author',)

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), default='general', nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    is_pinned = db.Column(db.Boolean, default=False, nullable=False)
    views = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)
