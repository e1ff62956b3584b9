#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Тестовые заглушки: движок анализа с заранее заданными ответами
"""

from typing import List, Optional

from techspec.llm import BaseAnalysisEngine
from techspec.models import EngineResponse


class ScriptedEngine(BaseAnalysisEngine):
    """
    Движок, возвращающий ответы по порядку

    Args:
        responses: Ответы на проходы (последний повторяется)
        error: Исключение для прохода fail_on_pass
        fail_on_pass: Номер прохода (с 1), на котором выбросить error
    """

    def __init__(
        self,
        responses: Optional[List[EngineResponse]] = None,
        error: Optional[BaseException] = None,
        fail_on_pass: Optional[int] = None,
    ):
        super().__init__()
        self.responses = responses or [
            EngineResponse(products=[{"name": "Болт"}], summary="Кратко", general_provisions="Гарантия 12 мес.")
        ]
        self.error = error
        self.fail_on_pass = fail_on_pass if fail_on_pass is not None else (1 if error else None)
        self.calls = []

    async def analyze_once(self, content, media_type, page_range=None, previous=None):
        self.calls.append(
            {
                "content": content,
                "media_type": media_type,
                "page_range": page_range,
                "previous": previous,
            }
        )
        if self.fail_on_pass is not None and len(self.calls) == self.fail_on_pass:
            raise self.error
        return self.responses[min(len(self.calls), len(self.responses)) - 1]
