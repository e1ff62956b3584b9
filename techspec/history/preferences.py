#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Хранение пользовательских настроек (тема, флаг обучения)
"""

import logging

from ..config import UserPreferences
from .backends import StorageBackend

logger = logging.getLogger(__name__)


class PreferencesStore:
    def __init__(self, backend: StorageBackend):
        self.backend = backend

    async def load(self) -> UserPreferences:
        return UserPreferences.from_stored(await self.backend.read_preferences())

    async def save(self, preferences: UserPreferences) -> None:
        await self.backend.write_preferences(preferences.model_dump())
        logger.debug(f"Настройки сохранены: {preferences.model_dump()}")
