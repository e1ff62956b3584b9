#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модели входящего файла и параметров анализа.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel, Field


class IngestKind(str, Enum):
    """Классификация входящего файла (вычисляется один раз)"""

    RESTORE_PROJECT = "restore_project"
    ANALYZE_DOCUMENT = "analyze_document"
    UNSUPPORTED = "unsupported"


class AnalysisOptions(BaseModel):
    """Параметры запуска анализа"""

    page_range: Optional[str] = None
    is_iterative: bool = False
    iteration_count: int = Field(default=1, ge=1)

    @property
    def effective_iterations(self) -> int:
        """Количество проходов с учетом флага итеративного режима"""
        return self.iteration_count if self.is_iterative else 1

    @property
    def normalized_page_range(self) -> Optional[str]:
        if self.page_range is None:
            return None
        value = self.page_range.strip()
        return value or None


@dataclass
class SubmittedFile:
    """
    Загруженный пользователем файл

    Attributes:
        name: Имя файла
        media_type: Заявленный MIME-тип (может быть пустым)
        size: Размер в байтах
        reader: Асинхронная функция чтения содержимого
    """

    name: str
    media_type: str
    size: int
    reader: Callable[[], Awaitable[bytes]] = field(repr=False)

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    async def read(self) -> bytes:
        return await self.reader()

    @classmethod
    def from_bytes(cls, name: str, data: bytes, media_type: str = "") -> "SubmittedFile":
        async def _read() -> bytes:
            return data

        return cls(name=name, media_type=media_type or "", size=len(data), reader=_read)

    @classmethod
    def from_path(cls, file_path: Path, media_type: str = "") -> "SubmittedFile":
        """Файл с диска, чтение выполняется в отдельном потоке"""
        file_path = Path(file_path)

        async def _read() -> bytes:
            return await asyncio.to_thread(file_path.read_bytes)

        return cls(
            name=file_path.name,
            media_type=media_type,
            size=file_path.stat().st_size,
            reader=_read,
        )
