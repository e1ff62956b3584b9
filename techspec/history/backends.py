#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Бэкенды хранения истории анализов

Бэкенд - абстрактное key-value хранилище записей по id, плюс отдельный
слот старого формата (одна запись или список) и слот пользовательских
настроек.
"""

import asyncio
import hashlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


class StorageBackend(ABC):
    """Базовый класс бэкенда хранилища"""

    @abstractmethod
    async def get_all(self) -> List[Record]:
        pass

    @abstractmethod
    async def put(self, record_id: str, record: Record) -> None:
        pass

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        pass

    @abstractmethod
    async def read_legacy(self) -> Optional[Any]:
        """Содержимое слота старого формата или None"""

    @abstractmethod
    async def clear_legacy(self) -> None:
        pass

    @abstractmethod
    async def read_preferences(self) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def write_preferences(self, preferences: Dict[str, Any]) -> None:
        pass


class MemoryBackend(StorageBackend):
    """Хранилище в памяти процесса"""

    def __init__(self, legacy: Optional[Any] = None):
        self.records: Dict[str, Record] = {}
        self.legacy = deepcopy(legacy)
        self.preferences: Optional[Dict[str, Any]] = None

    async def get_all(self) -> List[Record]:
        return [deepcopy(record) for record in self.records.values()]

    async def put(self, record_id: str, record: Record) -> None:
        self.records[record_id] = deepcopy(record)

    async def delete(self, record_id: str) -> None:
        self.records.pop(record_id, None)

    async def read_legacy(self) -> Optional[Any]:
        return deepcopy(self.legacy)

    async def clear_legacy(self) -> None:
        self.legacy = None

    async def read_preferences(self) -> Optional[Dict[str, Any]]:
        return deepcopy(self.preferences)

    async def write_preferences(self, preferences: Dict[str, Any]) -> None:
        self.preferences = deepcopy(preferences)


class JSONFileBackend(StorageBackend):
    """
    Хранилище на файловой системе

    Структура каталога:
        records/<sha256(id)>.json - записи истории
        legacy.json               - запись(и) старого формата
        preferences.json          - пользовательские настройки

    Запись выполняется во временный файл с последующим переименованием,
    поэтому прерванная запись не портит существующий файл.
    """

    LEGACY_FILE = "legacy.json"
    PREFERENCES_FILE = "preferences.json"

    def __init__(self, storage_path: Optional[str] = None):
        self.storage_path = Path(storage_path or "./storage/history")
        self.records_path = self.storage_path / "records"
        self.records_path.mkdir(parents=True, exist_ok=True)

    def _record_file(self, record_id: str) -> Path:
        # Имя файла - хэш id: любой id соответствует ровно одному файлу
        id_hash = hashlib.sha256(str(record_id).encode("utf-8")).hexdigest()
        return self.records_path / f"{id_hash}.json"

    @staticmethod
    def _write_atomic(path: Path, data: Any) -> None:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    @staticmethod
    def _read_json(path: Path) -> Optional[Any]:
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _read_records(self) -> List[Record]:
        records = []
        for record_file in sorted(self.records_path.glob("*.json")):
            try:
                data = self._read_json(record_file)
            except json.JSONDecodeError as e:
                logger.error(f"Поврежденная запись истории {record_file.name}: {e}")
                continue
            if isinstance(data, dict):
                records.append(data)
        return records

    async def get_all(self) -> List[Record]:
        return await asyncio.to_thread(self._read_records)

    async def put(self, record_id: str, record: Record) -> None:
        await asyncio.to_thread(self._write_atomic, self._record_file(record_id), record)

    async def delete(self, record_id: str) -> None:
        await asyncio.to_thread(self._record_file(record_id).unlink, missing_ok=True)

    async def read_legacy(self) -> Optional[Any]:
        return await asyncio.to_thread(self._read_json, self.storage_path / self.LEGACY_FILE)

    async def clear_legacy(self) -> None:
        await asyncio.to_thread((self.storage_path / self.LEGACY_FILE).unlink, missing_ok=True)

    async def read_preferences(self) -> Optional[Dict[str, Any]]:
        data = await asyncio.to_thread(self._read_json, self.storage_path / self.PREFERENCES_FILE)
        return data if isinstance(data, dict) else None

    async def write_preferences(self, preferences: Dict[str, Any]) -> None:
        await asyncio.to_thread(
            self._write_atomic, self.storage_path / self.PREFERENCES_FILE, preferences
        )
