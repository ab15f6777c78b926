"""
주 데이터베이스(SQLAlchemy) 저장소 패키지
"""
from .sql_store import SqlCollection, SqlCommentCollection, SqlDataStore

__all__ = ['SqlDataStore', 'SqlCollection', 'SqlCommentCollection']
