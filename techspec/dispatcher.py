#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модуль приема файлов

Определяет, что пришло на вход:
- файл проекта (.sart / JSON) - восстанавливается сохраненный результат
- документ (PDF / DOCX) - передается на анализ
- прочее - отклоняется до начала анализа
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from .exceptions import FileReadFailure, FileTooLarge, MalformedProject, UnsupportedFileType
from .models import AnalysisResult, IngestKind, SubmittedFile
from .preview import PreviewHandle, PreviewRegistry

logger = logging.getLogger(__name__)

MEDIA_TYPE_PDF = "application/pdf"
MEDIA_TYPE_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MEDIA_TYPE_JSON = "application/json"

PROJECT_EXTENSIONS = (".sart", ".json")
EXTENSION_MEDIA_TYPES = {
    ".pdf": MEDIA_TYPE_PDF,
    ".docx": MEDIA_TYPE_DOCX,
}
DOCUMENT_MEDIA_TYPES = (MEDIA_TYPE_PDF, MEDIA_TYPE_DOCX)
DEFAULT_MEDIA_TYPE = MEDIA_TYPE_PDF


@dataclass
class PreparedDocument:
    """Документ, готовый к передаче движку анализа"""

    file_name: str
    content: str
    media_type: str
    page_range: Optional[str] = None
    preview: Optional[PreviewHandle] = None


class IngestionDispatcher:
    """
    Прием загруженных файлов
    """

    def __init__(self, preview_registry: PreviewRegistry, max_file_size_bytes: Optional[int] = None):
        """
        Args:
            preview_registry: Реестр ссылок предпросмотра
            max_file_size_bytes: Лимит размера файла (None - без лимита)
        """
        self.preview_registry = preview_registry
        self.max_file_size_bytes = max_file_size_bytes

    def classify(self, file: SubmittedFile) -> IngestKind:
        """Классификация файла по расширению и заявленному MIME-типу"""
        extension = file.extension
        media_type = (file.media_type or "").lower()

        if extension in PROJECT_EXTENSIONS or media_type == MEDIA_TYPE_JSON:
            kind = IngestKind.RESTORE_PROJECT
        elif extension in EXTENSION_MEDIA_TYPES or media_type in DOCUMENT_MEDIA_TYPES:
            kind = IngestKind.ANALYZE_DOCUMENT
        else:
            kind = IngestKind.UNSUPPORTED

        logger.debug(f"Файл {file.name} ({media_type or 'тип не указан'}): {kind.value}")
        return kind

    def validate(self, file: SubmittedFile) -> IngestKind:
        """
        Проверка файла до начала анализа

        Returns:
            Классификация файла

        Raises:
            UnsupportedFileType: Если формат не поддерживается
            FileTooLarge: Если превышен лимит размера
        """
        kind = self.classify(file)
        if kind is IngestKind.UNSUPPORTED:
            raise UnsupportedFileType(f"Неподдерживаемый формат файла: {file.name}")

        self._check_size(file.size)
        return kind

    def _check_size(self, size: int) -> None:
        if self.max_file_size_bytes is not None and size > self.max_file_size_bytes:
            raise FileTooLarge(size, self.max_file_size_bytes // (1024 * 1024))

    async def _read(self, file: SubmittedFile) -> bytes:
        try:
            raw = await file.read()
        except OSError as e:
            logger.error(f"Ошибка чтения файла {file.name}: {e}")
            raise FileReadFailure(str(e)) from e
        # Заявленный размер может отсутствовать или не совпадать с содержимым
        self._check_size(len(raw))
        return raw

    async def restore(self, file: SubmittedFile) -> AnalysisResult:
        """
        Восстановление результата из файла проекта

        Отдельные позиции не проверяются: поля проекта принимаются как есть.

        Raises:
            FileReadFailure: Ошибка чтения файла
            FileTooLarge: Прочитанное содержимое превышает лимит
            MalformedProject: Файл не разобран или не содержит списка products
        """
        raw = await self._read(file)

        try:
            content = raw.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise MalformedProject("файл не является текстом в кодировке UTF-8.") from e

        if not content.strip():
            raise MalformedProject("файл пуст.")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedProject(f"некорректный JSON ({e.msg}, строка {e.lineno}).") from e

        if not isinstance(data, dict):
            raise MalformedProject("некорректная структура JSON.")

        if not isinstance(data.get("products"), list):
            raise MalformedProject(
                "в файле не найден список 'products'. Возможно, файл поврежден или в старом формате."
            )

        if not data.get("fileName"):
            data["fileName"] = file.name
        try:
            result = AnalysisResult.model_validate(data)
        except ValidationError as e:
            raise MalformedProject(f"некорректные поля проекта: {e.error_count()} ошибок.") from e

        logger.info(f"Проект восстановлен из {file.name}: позиций {result.product_count}")
        return result

    @staticmethod
    def effective_media_type(file: SubmittedFile) -> str:
        """Заявленный тип, иначе тип по расширению, иначе PDF"""
        if file.media_type:
            return file.media_type
        return EXTENSION_MEDIA_TYPES.get(file.extension, DEFAULT_MEDIA_TYPE)

    async def prepare(self, file: SubmittedFile, page_range: Optional[str] = None) -> PreparedDocument:
        """
        Подготовка документа к анализу: чтение и кодирование в base64

        Для PDF дополнительно создается ссылка предпросмотра.

        Raises:
            FileReadFailure: Ошибка чтения файла
            FileTooLarge: Прочитанное содержимое превышает лимит
        """
        raw = await self._read(file)
        media_type = self.effective_media_type(file)

        preview = None
        if media_type == MEDIA_TYPE_PDF or file.extension == ".pdf":
            preview = self.preview_registry.create(raw, MEDIA_TYPE_PDF, file.name)

        return PreparedDocument(
            file_name=file.name,
            content=base64.b64encode(raw).decode("ascii"),
            media_type=media_type,
            page_range=page_range,
            preview=preview,
        )
