"""Offline-tolerant session client: device cache, merge engine and autosave."""
from helf.client.autosave import AutosaveScheduler
from helf.client.cache_store import SessionCacheEntry, SessionCacheStore
from helf.client.gateway import HttpSessionGateway, LocalSessionGateway, SessionGateway
from helf.client.merge import CacheOrigin, LoadedSession, SessionCacheEngine, merge_exercises
from helf.client.workspace import CompletionResult, SessionWorkspace

__all__ = [
    "AutosaveScheduler",
    "CacheOrigin",
    "CompletionResult",
    "HttpSessionGateway",
    "LoadedSession",
    "LocalSessionGateway",
    "SessionCacheEngine",
    "SessionCacheEntry",
    "SessionCacheStore",
    "SessionGateway",
    "SessionWorkspace",
    "merge_exercises",
]
