"""
사용자 모델
"""
from utils.constants import DEFAULT_ROLE
from utils.helpers import utcnow
from . import db
from .base import RecordMixin


class User(RecordMixin, db.Model):
    __tablename__ = 'users'

    FIELD_MAP = {
        'username': 'username',
        'password': 'password',
        'name': 'name',
        'email': 'email',
        'location': 'location',
        'role': 'role',
        'securityQuestion': 'security_question',
        'securityAnswer': 'security_answer',
        'registrationDate': 'registration_date',
        'createdAt': 'created_at',
        'updatedAt': 'updated_at',
    }
    DATE_FIELDS = ('registrationDate', 'createdAt', 'updatedAt')

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False, index=True)
    password = db.Column(db.String(256), nullable=False)
    name = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    location = db.Column(db.String(100), nullable=True)
    role = db.Column(db.String(20), default=DEFAULT_ROLE, nullable=False)
    security_question = db.Column(db.String(200), nullable=True)
    security_answer = db.Column(db.String(200), nullable=True)
    registration_date = db.Column(db.DateTime, default=utcnow, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)
