#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модуль истории анализов

Версионное хранение результатов:
- Сохранение с увеличением версии для того же проекта (по имени файла)
- Список в порядке последнего сохранения
- Удаление
- Однократный перенос из хранилища старого формата
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ValidationError

from ..models import AnalysisResult, generate_id, utc_now_iso
from .backends import StorageBackend

logger = logging.getLogger(__name__)


def _sort_key(result: AnalysisResult) -> datetime:
    try:
        parsed = datetime.fromisoformat(result.timestamp.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return datetime.min.replace(tzinfo=timezone.utc)
    # Метки без часового пояса из старых записей считаем UTC
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class HistoryStore:
    """
    История анализов поверх абстрактного бэкенда
    """

    def __init__(self, backend: StorageBackend):
        self.backend = backend
        self._lock = asyncio.Lock()

    async def _load_all(self) -> List[AnalysisResult]:
        results = []
        for record in await self.backend.get_all():
            try:
                results.append(AnalysisResult.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Пропущена некорректная запись истории {record.get('id')}: {e}")
        return results

    async def list_all(self) -> List[AnalysisResult]:
        """Все записи, последние сохраненные - первыми"""
        results = await self._load_all()
        results.sort(key=_sort_key, reverse=True)
        return results

    async def recent(self, limit: int = 3) -> List[AnalysisResult]:
        return (await self.list_all())[:limit]

    async def get(self, result_id: str) -> Optional[AnalysisResult]:
        for result in await self._load_all():
            if result.id == result_id:
                return result
        return None

    async def save(self, result: AnalysisResult) -> AnalysisResult:
        """
        Сохранение результата

        Если в истории есть другая запись с тем же именем файла - это
        обновление проекта: берется ее id, версия увеличивается на 1.
        Иначе - новый проект с версией 1 и собственным id.

        Args:
            result: Результат для сохранения (не изменяется)

        Returns:
            Сохраненная копия с итоговыми id, version и timestamp
        """
        async with self._lock:
            stored = await self._load_all()
            same_project = [item for item in stored if item.file_name == result.file_name]
            # Повторное сохранение загруженной записи обновляет ее саму
            existing = next(
                (item for item in same_project if result.id and item.id == result.id),
                same_project[0] if same_project else None,
            )

            to_save = result.model_copy(deep=True)
            to_save.timestamp = utc_now_iso()

            if existing is not None:
                to_save.id = existing.id
                to_save.version = existing.version + 1
                logger.info(f"Обновление проекта '{to_save.file_name}': v{to_save.version}")
            else:
                to_save.version = 1
                # id, занятый другим проектом, не переиспользуется
                if not to_save.id or any(item.id == to_save.id for item in stored):
                    to_save.id = generate_id()
                logger.info(f"Новый проект '{to_save.file_name}' ({to_save.id})")

            await self.backend.put(to_save.id, to_save.to_dict())
            return to_save

    async def delete(self, result_id: str) -> None:
        """Удаление записи. Отсутствующий id - не ошибка."""
        async with self._lock:
            await self.backend.delete(result_id)
        logger.info(f"Запись истории {result_id} удалена")

    async def migrate_legacy(self) -> int:
        """
        Перенос записей из хранилища старого формата

        Повторный запуск ничего не дублирует: слот старого формата
        очищается после переноса, а уже существующие записи пропускаются.

        Returns:
            Количество перенесенных записей
        """
        legacy = await self.backend.read_legacy()
        if legacy is None:
            return 0

        items: List[Any] = legacy if isinstance(legacy, list) else [legacy]
        migrated = 0

        async with self._lock:
            stored = await self._load_all()
            for item in items:
                try:
                    result = AnalysisResult.model_validate(item)
                except ValidationError as e:
                    logger.warning(f"Запись старого формата пропущена: {e}")
                    continue

                if any(self._is_equivalent(result, existing) for existing in stored):
                    logger.debug(f"Запись '{result.file_name}' уже перенесена")
                    continue

                if not result.id:
                    result.id = generate_id()
                await self.backend.put(result.id, result.to_dict())
                stored.append(result)
                migrated += 1

            await self.backend.clear_legacy()

        logger.info(f"Перенос истории старого формата: {migrated} записей")
        return migrated

    @staticmethod
    def _is_equivalent(candidate: AnalysisResult, existing: AnalysisResult) -> bool:
        if candidate.id and candidate.id == existing.id:
            return True
        return (
            candidate.file_name == existing.file_name
            and candidate.timestamp == existing.timestamp
        )
