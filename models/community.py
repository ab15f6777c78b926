"""
커뮤니티 모델 (게시글, 댓글)
"""
from utils.helpers import utcnow
from . import db
from .base import RecordMixin


class CommunityPost(RecordMixin, db.Model):
    __tablename__ = 'community_posts'

    FIELD_MAP = {
        'title': 'title',
        'content': 'content',
        'category': 'category',
        'author': 'author_id',
        'views': 'views',
        'likes': 'likes',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }
    REFERENCE_FIELDS = ('author',)

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(20), nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    views = db.Column(db.Integer, default=0, nullable=False)
    likes = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    # 게시글 삭제 시 댓글도 함께 삭제
    comments = db.relationship('Comment', back_populates='post', lazy='dynamic', cascade="all, delete-orphan")


class Comment(RecordMixin, db.Model):
    __tablename__ = 'comments'

    FIELD_MAP = {
        'content': 'content',
        'author': 'author_id',
        'post': 'post_id',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }
    REFERENCE_FIELDS = ('author', 'post')

    id = db.Column(db.Integer, primary_key=True)
    content = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    post_id = db.Column(db.Integer, db.ForeignKey('community_posts.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    post = db.relationship('CommunityPost', back_populates='comments')
