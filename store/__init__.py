"""
로컬 데이터 저장소 패키지
"""
from .collections import Collection, CommentCollection, UserCollection, utcnow_iso
from .datastore import COLLECTIONS, LocalDataStore
from .errors import InvalidFilter, InvalidRecord, PersistenceError, StoreError
from .ids import IdGenerator
from .persistence import JsonPersistence
from .query import And, AnyIn, Eq, FindOptions, Or, Regex, find, parse_filter

__all__ = [
    'LocalDataStore', 'COLLECTIONS',
    'Collection', 'UserCollection', 'CommentCollection', 'utcnow_iso',
    'JsonPersistence', 'IdGenerator',
    'Eq', 'Regex', 'AnyIn', 'And', 'Or', 'FindOptions', 'find', 'parse_filter',
    'StoreError', 'PersistenceError', 'InvalidFilter', 'InvalidRecord',
]
