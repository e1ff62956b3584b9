#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Движок анализа технических спецификаций на базе LLM

Документ передается модели целиком (base64) через OpenAI-совместимый API.
Модель возвращает JSON с полями products, summary, generalProvisions.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models import EngineResponse
from ..utils import ProductDeduplicator
from .base_engine import BaseAnalysisEngine
from .client import OpenAILikeClient

logger = logging.getLogger(__name__)


class LLMAnalysisEngine(BaseAnalysisEngine):
    """
    Анализатор технической документации с использованием LLM
    """

    GENERATION_PARAMS = {
        "temperature": 0.2,
        "top_p": 0.95,
        "max_tokens": 16384,
    }

    def __init__(
        self,
        llm_client: Optional[OpenAILikeClient] = None,
        deduplicator: Optional[ProductDeduplicator] = None,
    ):
        """
        Args:
            llm_client: Клиент LLM (по умолчанию OpenAILikeClient из окружения)
            deduplicator: Дедупликатор позиций
        """
        super().__init__(deduplicator)
        self.llm_client = llm_client or OpenAILikeClient()
        self.system_prompt = self._load_prompt()

    def _load_prompt(self) -> str:
        """Загрузка системного промпта"""
        prompt_path = Path(__file__).parent.parent / "prompts" / "system_prompt_v1.md"

        if prompt_path.exists():
            return prompt_path.read_text(encoding="utf-8")

        logger.warning(f"Промпт не найден по пути {prompt_path}, используется базовый")
        return (
            "Ты - система анализа технических спецификаций. Верни JSON с полями "
            "products, summary, generalProvisions."
        )

    def _build_messages(
        self,
        content: str,
        media_type: str,
        page_range: Optional[str],
        previous: Optional[EngineResponse],
    ) -> List[Dict[str, Any]]:
        instruction = "Выполни полный анализ документа и предоставь результат в указанном JSON формате."
        if page_range:
            instruction += f"\nАнализируй только страницы: {page_range}."
        if previous is not None:
            instruction += (
                "\n\nНиже результат предыдущего прохода. Проверь его по документу, "
                "исправь ошибки, добавь пропущенные позиции и верни полный уточненный результат:\n"
                + json.dumps(previous.to_dict(), ensure_ascii=False)
            )

        return [
            {"role": "system", "content": self.system_prompt},
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": instruction},
                    {
                        "type": "file",
                        "file": {
                            "filename": "document",
                            "file_data": f"data:{media_type};base64,{content}",
                        },
                    },
                ],
            },
        ]

    async def analyze_once(
        self,
        content: str,
        media_type: str,
        page_range: Optional[str] = None,
        previous: Optional[EngineResponse] = None,
    ) -> EngineResponse:
        messages = self._build_messages(content, media_type, page_range, previous)
        logger.info(
            f"Запрос к LLM: {media_type}, {len(content)} символов base64"
            + (f", страницы {page_range}" if page_range else "")
        )

        result_text = await self.llm_client.chat_completion(
            messages=messages,
            response_format={"type": "json_object"},
            **self.GENERATION_PARAMS,
        )
        return self.parse_response(result_text)

    def parse_response(self, result_text: str) -> EngineResponse:
        """
        Извлечение JSON из ответа модели

        Raises:
            ValueError: Если JSON не найден или в нем нет списка products
        """
        json_start = result_text.find('{')
        json_end = result_text.rfind('}') + 1

        if json_start < 0 or json_end <= json_start:
            raise ValueError("JSON не найден в ответе модели")

        data = json.loads(result_text[json_start:json_end])
        if not isinstance(data.get("products"), list):
            raise ValueError("В ответе модели нет списка products")

        response = EngineResponse.model_validate(data)
        response.products = self.deduplicator.deduplicate(response.products)
        logger.info(f"Ответ LLM разобран: позиций {len(response.products)}")
        return response
