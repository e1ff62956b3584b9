#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модуль дедупликации позиций (товаров)
"""

import re
from typing import Any, List, Optional, Sequence
import logging
from difflib import SequenceMatcher

logger = logging.getLogger(__name__)


class ProductDeduplicator:
    """
    Дедупликатор для удаления повторяющихся позиций по названию
    """

    NAME_KEYS = ("name", "productName", "title")

    def __init__(self, similarity_threshold: float = 0.85):
        """
        Args:
            similarity_threshold: Порог схожести (0-1)
        """
        self.similarity_threshold = similarity_threshold

    def deduplicate(self, products: Sequence[Any]) -> List[Any]:
        """
        Удаление дубликатов из списка позиций с сохранением порядка

        Позиции без названия (или не словари) не сравниваются и
        сохраняются как есть.

        Args:
            products: Список позиций

        Returns:
            Уникальные позиции
        """
        return self.merge(products, [])

    def merge(self, primary: Sequence[Any], secondary: Sequence[Any]) -> List[Any]:
        """
        Объединение двух списков по ключу (названию)

        Сначала идут позиции primary, затем позиции secondary, которых
        нет в primary. При совпадении остается запись из primary.

        Args:
            primary: Приоритетный список (например, последний проход)
            secondary: Дополняющий список

        Returns:
            Объединенный список
        """
        unique: List[Any] = []
        seen_names: List[str] = []

        for from_primary, items in ((True, primary), (False, secondary)):
            for product in items:
                name = self._product_name(product)
                if name is None:
                    # Безымянные записи вторичного списка сопоставить нельзя
                    if from_primary:
                        unique.append(product)
                    continue

                if self._is_duplicate(name, seen_names):
                    logger.debug(f"Удален дубликат позиции: {name}")
                    continue

                unique.append(product)
                seen_names.append(name)

        removed_count = len(primary) + len(secondary) - len(unique)
        if removed_count > 0:
            logger.info(f"Объединение позиций: удалено повторов {removed_count}")

        return unique

    def _is_duplicate(self, name: str, seen_names: List[str]) -> bool:
        if name in seen_names:
            return True
        for existing_name in seen_names:
            similarity = self._calculate_similarity(name, existing_name)
            if similarity >= self.similarity_threshold:
                logger.debug(f"Похожие позиции: '{name}' ~ '{existing_name}' ({similarity:.2%})")
                return True
        return False

    def _product_name(self, product: Any) -> Optional[str]:
        if not isinstance(product, dict):
            return None
        for key in self.NAME_KEYS:
            value = product.get(key)
            if isinstance(value, str):
                normalized = self._normalize_name(value)
                if normalized:
                    return normalized
        return None

    def _normalize_name(self, name: str) -> str:
        """
        Нормализация названия позиции

        Args:
            name: Исходное название

        Returns:
            Нормализованное название
        """
        name = name.lower().strip()
        name = re.sub(r'\s+', ' ', name)
        name = re.sub(r'[^\w\s]', '', name)
        return name.strip()

    def _calculate_similarity(self, str1: str, str2: str) -> float:
        return SequenceMatcher(None, str1, str2).ratio()
