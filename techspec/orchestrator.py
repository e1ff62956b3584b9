#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модуль управления анализом

Запускает однопроходный или многопроходный анализ, сообщает о ходе
выполнения и классифицирует ошибки движка.
"""

import logging
from typing import Optional

import httpx

from .exceptions import EngineFailure, TechSpecError, TransportFailure
from .llm import BaseAnalysisEngine, ProgressCallback
from .models import AnalysisResult

logger = logging.getLogger(__name__)

# Подстроки сообщений об ошибках транспорта (слишком большой запрос, обрыв связи)
TRANSPORT_ERROR_MARKERS = (
    "rpc failed",
    "xhr error",
    "request entity too large",
    "payload too large",
    "connection reset",
    "connection aborted",
)


def is_transport_error(error: BaseException) -> bool:
    """Ошибка транспорта: лечится уменьшением файла или диапазона страниц"""
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 413:
        return True
    message = str(error).lower()
    return any(marker in message for marker in TRANSPORT_ERROR_MARKERS)


class _ProgressGate:
    """Передает сообщения о ходе выполнения до завершения запуска"""

    def __init__(self, callback: Optional[ProgressCallback]):
        self.callback = callback
        self.closed = False

    def __call__(self, message: str) -> None:
        if self.closed or self.callback is None:
            return
        self.callback(message)

    def close(self) -> None:
        self.closed = True


class AnalysisOrchestrator:
    """
    Управление запуском движка анализа
    """

    def __init__(self, engine: BaseAnalysisEngine):
        self.engine = engine

    async def run(
        self,
        content: str,
        media_type: str,
        page_range: Optional[str] = None,
        iteration_count: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        file_name: str = "",
    ) -> AnalysisResult:
        """
        Анализ документа

        Args:
            content: Документ в base64
            media_type: MIME-тип документа
            page_range: Ограничение по страницам
            iteration_count: Количество проходов (None или <= 1 - один проход)
            on_progress: Обработчик сообщений о ходе выполнения
            file_name: Имя исходного файла для результата

        Returns:
            Новый результат с version=1

        Raises:
            TransportFailure: Слишком большой запрос или обрыв соединения
            EngineFailure: Прочие ошибки движка
        """
        progress = _ProgressGate(on_progress)
        progress("Документ отправлен на анализ...")

        try:
            if iteration_count is not None and iteration_count >= 2:
                logger.info(f"Итеративный анализ {file_name}: {iteration_count} проходов")
                response = await self.engine.analyze_iterative(
                    content,
                    media_type,
                    iteration_count,
                    page_range=page_range,
                    on_progress=progress,
                )
            else:
                logger.info(f"Анализ {file_name} в один проход")
                progress("Модель анализирует документ...")
                response = await self.engine.analyze_once(content, media_type, page_range)
        except TechSpecError:
            raise
        except Exception as e:
            logger.error(f"Ошибка движка анализа: {e}", exc_info=True)
            if is_transport_error(e):
                raise TransportFailure(str(e)) from e
            raise EngineFailure(str(e)) from e
        finally:
            progress.close()

        result = AnalysisResult.from_engine(response, file_name)
        logger.info(f"Анализ завершен: позиций {result.product_count}")
        return result
