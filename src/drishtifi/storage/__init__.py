from .kv import InMemoryStorage, KeyValueStorage, SqliteStorage
from .preferences import PreferenceStore
from .reports import ReportStore
from .users import CredentialStore

__all__ = [
    "CredentialStore",
    "InMemoryStorage",
    "KeyValueStorage",
    "PreferenceStore",
    "ReportStore",
    "SqliteStorage",
]
