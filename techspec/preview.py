#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Временные ссылки на исходный документ для предпросмотра

Ссылка (PreviewHandle) живет до явного освобождения. Рабочий процесс
держит не более одной живой ссылки и освобождает ее при загрузке
нового файла и при сбросе.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

logger = logging.getLogger(__name__)


@dataclass
class PreviewHandle:
    token: str
    media_type: str
    file_name: str
    _registry: "PreviewRegistry" = field(repr=False, compare=False)

    @property
    def url(self) -> str:
        return f"/api/v1/preview/{self.token}"

    @property
    def is_live(self) -> bool:
        return self._registry.get(self.token) is not None

    def release(self) -> None:
        self._registry.revoke(self.token)


class PreviewRegistry:
    """Реестр живых ссылок предпросмотра"""

    def __init__(self):
        self._items: Dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._items)

    def create(self, data: bytes, media_type: str, file_name: str) -> PreviewHandle:
        token = uuid.uuid4().hex
        self._items[token] = data
        logger.debug(f"Создана ссылка предпросмотра {token} для {file_name}")
        return PreviewHandle(token=token, media_type=media_type, file_name=file_name, _registry=self)

    def get(self, token: str) -> Optional[bytes]:
        return self._items.get(token)

    def revoke(self, token: str) -> None:
        if self._items.pop(token, None) is not None:
            logger.debug(f"Ссылка предпросмотра {token} освобождена")
