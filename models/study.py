"""
모임(스터디) 모델
"""
from utils.helpers import utcnow
from . import db
from .base import RecordMixin


class Study(RecordMixin, db.Model):
    __tablename__ = 'studies'

    FIELD_MAP = {
        'title': 'title',
        'description': 'description',
        'category': 'category',
        'maxMembers': 'max_members',
        'currentMembers': 'current_members',
        'leader': 'leader_id',
        'deadline': 'deadline',
        'startDate': 'start_date',
        'duration': 'duration',
        'meetingType': 'meeting_type',
        'location': 'location',
        'tags': 'tags',
        'imageUrl': 'image_url',
        'status': 'status',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }
    REFERENCE_FIELDS = ('leader',)
    DATE_FIELDS = ('deadline', 'startDate', 'createdAt', 'updatedAt')

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(50), nullable=False)
    max_members = db.Column(db.Integer, nullable=False)
    current_members = db.Column(db.JSON, default=list, nullable=False)  # 사용자 id 문자열 목록
    leader_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    deadline = db.Column(db.DateTime, nullable=True)
    start_date = db.Column(db.DateTime, nullable=True)
    duration = db.Column(db.Integer, nullable=True)  # 주 단위
    meeting_type = db.Column(db.String(20), nullable=True)
    location = db.Column(db.String(200), nullable=True)
    tags = db.Column(db.JSON, default=list, nullable=True)
    image_url = db.Column(db.String(300), nullable=True)
    status = db.Column(db.String(20), default='recruiting', nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    leader = db.relationship('User')
