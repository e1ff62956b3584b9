#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
История анализов и бэкенды хранения
"""

from .backends import JSONFileBackend, MemoryBackend, StorageBackend
from .preferences import PreferencesStore
from .store import HistoryStore

__all__ = ["HistoryStore", "PreferencesStore", "StorageBackend", "JSONFileBackend", "MemoryBackend"]
