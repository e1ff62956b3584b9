#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модели результата анализа технической документации.

Внешний (экспортный) формат использует имена полей fileName и
generalProvisions, внутри пакета используются snake_case-атрибуты.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def generate_id() -> str:
    """Новый непрозрачный идентификатор результата"""
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# Позиция (товар) из документа. Структура задается движком анализа и
# представлением, здесь записи не валидируются.
Product = Any


class EngineResponse(BaseModel):
    """Ответ движка анализа: products, summary, generalProvisions."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    products: List[Product] = Field(default_factory=list)
    summary: Any = ""
    general_provisions: Any = Field(default="", alias="generalProvisions")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class AnalysisResult(BaseModel):
    """
    Результат анализа

    Attributes:
        id: Стабильный идентификатор проекта
        version: Номер версии, начиная с 1
        file_name: Имя файла, ключ логической идентичности проекта
        timestamp: Время последнего сохранения (ISO-8601)
        products: Позиции в порядке документа
        summary: Краткое содержание
        general_provisions: Общие положения, не относящиеся к позициям
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: Optional[str] = None
    version: int = Field(default=1, ge=1)
    file_name: str = Field(default="", alias="fileName")
    timestamp: str = Field(default_factory=utc_now_iso)
    products: List[Product]
    summary: Any = ""
    general_provisions: Any = Field(default="", alias="generalProvisions")

    @field_validator("version", mode="before")
    @classmethod
    def _default_version(cls, value: Any) -> Any:
        # Старые экспорты могут не содержать версию или содержать null
        return 1 if value in (None, 0) else value

    @field_validator("file_name", mode="before")
    @classmethod
    def _file_name_default(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp_default(cls, value: Any) -> Any:
        # null в файле проекта -> текущее время
        return utc_now_iso() if value is None else value

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_string(cls, value: Any) -> Any:
        if value is None or value == "":
            return None
        return str(value) if isinstance(value, (int, float)) else value

    @property
    def product_count(self) -> int:
        return len(self.products)

    @classmethod
    def from_engine(cls, response: EngineResponse, file_name: str) -> "AnalysisResult":
        """Новый результат из ответа движка: свежий id, version=1, timestamp=now"""
        return cls(
            id=generate_id(),
            version=1,
            file_name=file_name,
            timestamp=utc_now_iso(),
            products=response.products,
            summary=response.summary,
            general_provisions=response.general_provisions,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Сериализация в экспортный формат"""
        return self.model_dump(by_alias=True, mode="json")
