#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Базовый класс движка анализа

Движок выполняет один проход (analyze_once) и умеет уточнять результат
несколькими последовательными проходами (analyze_iterative).
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..models import EngineResponse
from ..utils import ProductDeduplicator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


class BaseAnalysisEngine(ABC):
    """Базовый класс движков анализа документов"""

    def __init__(self, deduplicator: Optional[ProductDeduplicator] = None):
        self.deduplicator = deduplicator or ProductDeduplicator()

    @abstractmethod
    async def analyze_once(
        self,
        content: str,
        media_type: str,
        page_range: Optional[str] = None,
        previous: Optional[EngineResponse] = None,
    ) -> EngineResponse:
        """
        Один проход анализа

        Args:
            content: Содержимое документа в base64
            media_type: MIME-тип документа
            page_range: Ограничение по страницам (например, "1-5, 8")
            previous: Результат предыдущего прохода для уточнения

        Returns:
            Ответ движка
        """

    async def analyze_iterative(
        self,
        content: str,
        media_type: str,
        iteration_count: int,
        page_range: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EngineResponse:
        """
        Многопроходный анализ

        Проходы выполняются строго последовательно: каждый следующий получает
        результат предыдущего. Первая ошибка прерывает анализ, частичные
        результаты не сохраняются.
        """
        passes: List[EngineResponse] = []
        previous: Optional[EngineResponse] = None

        for index in range(1, iteration_count + 1):
            if on_progress:
                on_progress(f"Проход анализа {index} из {iteration_count}...")
            logger.info(f"Итеративный анализ: проход {index}/{iteration_count}")
            previous = await self.analyze_once(content, media_type, page_range, previous)
            passes.append(previous)

        if on_progress:
            on_progress("Объединение результатов проходов...")
        return self.merge(passes)

    def merge(self, passes: List[EngineResponse]) -> EngineResponse:
        """
        Объединение результатов проходов

        Последний проход приоритетен: его позиции идут первыми, затем
        позиции более ранних проходов, не найденные в нем (по названию).
        summary и generalProvisions берутся из последнего непустого прохода.
        """
        if not passes:
            raise ValueError("Нет результатов для объединения")

        products = self.deduplicator.deduplicate(passes[-1].products)
        for response in reversed(passes[:-1]):
            products = self.deduplicator.merge(products, response.products)

        summary = next((p.summary for p in reversed(passes) if p.summary), passes[-1].summary)
        provisions = next(
            (p.general_provisions for p in reversed(passes) if p.general_provisions),
            passes[-1].general_provisions,
        )

        logger.info(f"Объединено проходов: {len(passes)}, позиций: {len(products)}")
        return EngineResponse(products=products, summary=summary, general_provisions=provisions)
