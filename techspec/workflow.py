#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модуль рабочего процесса анализа

Состояния: IDLE -> ANALYZING -> SUCCESS | ERROR.
Из SUCCESS и ERROR в IDLE - только явным сбросом (reset).
Загрузка записи из истории переводит сразу в SUCCESS, минуя анализ.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from .config import Settings, Theme, UserPreferences
from .dispatcher import IngestionDispatcher
from .exceptions import (
    HistoryUnavailable,
    InvalidTransition,
    SubmissionRejected,
    TechSpecError,
    UnexpectedFailure,
)
from .history import HistoryStore, PreferencesStore
from .models import AnalysisOptions, AnalysisResult, IngestKind, SubmittedFile
from .orchestrator import AnalysisOrchestrator
from .preview import PreviewHandle

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    SUCCESS = "success"
    ERROR = "error"


class AnalysisWorkflow:
    """
    Управление рабочим процессом: прием файла, анализ, история

    Одновременно выполняется не более одного анализа: перейти в
    ANALYZING можно только из IDLE.
    """

    def __init__(
        self,
        dispatcher: IngestionDispatcher,
        orchestrator: AnalysisOrchestrator,
        history: HistoryStore,
        preferences_store: Optional[PreferencesStore] = None,
        settings: Optional[Settings] = None,
    ):
        self.dispatcher = dispatcher
        self.orchestrator = orchestrator
        self.history = history
        self.preferences_store = preferences_store
        self.settings = settings or Settings()

        self.state = WorkflowState.IDLE
        self.result: Optional[AnalysisResult] = None
        self.error_message: Optional[str] = None
        self.progress_message = ""
        self.preview: Optional[PreviewHandle] = None
        self.history_items: List[AnalysisResult] = []
        self.history_error: Optional[str] = None
        self.preferences = UserPreferences()
        self.tutorial_visible = False

    # ===================== Запуск =====================

    async def start(self) -> None:
        """
        Инициализация при старте процесса: перенос старой истории,
        загрузка списка и настроек. Ошибки не блокируют работу.
        """
        try:
            await self.history.migrate_legacy()
        except Exception as e:
            logger.error(f"Не удалось перенести историю старого формата: {e}", exc_info=True)

        await self.refresh_history()

        if self.preferences_store is not None:
            try:
                self.preferences = await self.preferences_store.load()
            except Exception as e:
                logger.error(f"Не удалось загрузить настройки: {e}", exc_info=True)
        self.tutorial_visible = not self.preferences.tutorial_seen

    async def refresh_history(self) -> List[AnalysisResult]:
        try:
            self.history_items = await self.history.list_all()
        except Exception as e:
            logger.error(f"История недоступна: {e}", exc_info=True)
            self.history_items = []
        return self.history_items

    # ===================== Переходы =====================

    def _require(self, *states: WorkflowState) -> None:
        if self.state not in states:
            if self.state is WorkflowState.ANALYZING:
                raise InvalidTransition(
                    f"Действие недоступно в состоянии {self.state.value}",
                    "Анализ уже выполняется.",
                )
            raise InvalidTransition(f"Действие недоступно в состоянии {self.state.value}")

    def _release_preview(self) -> None:
        if self.preview is not None:
            self.preview.release()
            self.preview = None

    def _on_progress(self, message: str) -> None:
        self.progress_message = message
        logger.info(f"Ход анализа: {message}")

    def _enter_analyzing(self) -> None:
        self.state = WorkflowState.ANALYZING
        self.result = None
        self.error_message = None
        self.progress_message = "Файл подготавливается..."

    def _enter_success(self, result: AnalysisResult) -> None:
        self.result = result
        self.error_message = None
        self.state = WorkflowState.SUCCESS
        logger.info(f"Успех: {result.file_name}, позиций {result.product_count}")

    def _enter_error(self, message: str) -> None:
        self.result = None
        self.error_message = message
        self.state = WorkflowState.ERROR
        logger.info(f"Ошибка рабочего процесса: {message}")

    def validate_options(self, options: AnalysisOptions) -> None:
        if options.effective_iterations > self.settings.max_iterations:
            raise SubmissionRejected(
                f"Запрошено проходов: {options.effective_iterations}",
                f"Слишком много проходов анализа (максимум {self.settings.max_iterations}).",
            )

    async def submit(self, file: SubmittedFile, options: Optional[AnalysisOptions] = None) -> WorkflowState:
        """
        Прием файла: восстановление проекта или новый анализ

        Args:
            file: Загруженный файл
            options: Параметры анализа

        Returns:
            Итоговое состояние (SUCCESS или ERROR)

        Raises:
            InvalidTransition: Если рабочий процесс не в состоянии IDLE
            SubmissionRejected: Если файл отклонен до начала анализа
        """
        options = options or AnalysisOptions()
        self._require(WorkflowState.IDLE)
        kind = self.dispatcher.validate(file)
        self.validate_options(options)

        self._release_preview()
        self._enter_analyzing()
        logger.info(f"Прием файла {file.name} ({file.size} байт): {kind.value}")

        try:
            if kind is IngestKind.RESTORE_PROJECT:
                result = await self.dispatcher.restore(file)
            else:
                self._on_progress("Документ подготавливается...")
                document = await self.dispatcher.prepare(file, options.normalized_page_range)
                self.preview = document.preview
                result = await self.orchestrator.run(
                    document.content,
                    document.media_type,
                    page_range=document.page_range,
                    iteration_count=options.effective_iterations,
                    on_progress=self._on_progress,
                    file_name=document.file_name,
                )
        except TechSpecError as e:
            logger.error(f"Ошибка обработки {file.name}: {e}")
            self._enter_error(e.user_message)
        except Exception as e:
            logger.error(f"Непредвиденная ошибка обработки {file.name}: {e}", exc_info=True)
            self._enter_error(UnexpectedFailure.user_message)
        else:
            self._enter_success(result)

        return self.state

    def reset(self) -> None:
        """Возврат в IDLE с освобождением ссылки предпросмотра"""
        self._require(WorkflowState.IDLE, WorkflowState.SUCCESS, WorkflowState.ERROR)
        self._release_preview()
        self.state = WorkflowState.IDLE
        self.result = None
        self.error_message = None
        self.progress_message = ""

    # ===================== История =====================

    def _history_failed(self, action: str, error: Exception) -> None:
        # Состояние рабочего процесса не меняется, текущий результат сохраняется
        logger.error(f"Ошибка истории при выполнении {action}: {error}", exc_info=True)
        self.history_error = HistoryUnavailable.user_message

    async def save_to_history(self) -> Optional[AnalysisResult]:
        """
        Сохранение текущего результата в историю

        Returns:
            Сохраненная запись или None, если сохранять нечего или
            хранилище недоступно (см. history_error)
        """
        self._require(WorkflowState.IDLE, WorkflowState.SUCCESS)
        self.history_error = None
        if self.result is None:
            logger.warning("Нет результата для сохранения")
            return None

        try:
            saved = await self.history.save(self.result)
        except Exception as e:
            self._history_failed("сохранения", e)
            return None

        self.result = saved
        await self.refresh_history()
        logger.info(f"Анализ (v{saved.version}) сохранен в историю")
        return saved

    async def delete_history_item(self, result_id: str, confirmed: bool = False) -> bool:
        """
        Удаление записи истории

        Returns:
            True если запись удалена, False если удаление не подтверждено
            или хранилище недоступно (см. history_error)
        """
        self._require(WorkflowState.IDLE, WorkflowState.SUCCESS)
        self.history_error = None
        if not confirmed:
            return False
        try:
            await self.history.delete(result_id)
        except Exception as e:
            self._history_failed("удаления", e)
            return False
        await self.refresh_history()
        return True

    async def load_history_item(self, result_id: str) -> Optional[AnalysisResult]:
        """Открытие записи истории: сразу SUCCESS, без анализа"""
        self._require(WorkflowState.IDLE, WorkflowState.SUCCESS)
        self.history_error = None
        try:
            item = await self.history.get(result_id)
        except Exception as e:
            self._history_failed("загрузки", e)
            return None
        if item is None:
            return None
        self._release_preview()
        self.progress_message = ""
        self._enter_success(item)
        return item

    def export_project(self) -> Optional[Dict[str, Any]]:
        """Текущий результат в формате файла проекта (.sart)"""
        if self.result is None:
            return None
        return self.result.to_dict()

    # ===================== Настройки =====================

    async def _save_preferences(self) -> None:
        if self.preferences_store is None:
            return
        try:
            await self.preferences_store.save(self.preferences)
        except Exception as e:
            logger.error(f"Не удалось сохранить настройки: {e}", exc_info=True)

    async def set_theme(self, theme: Theme) -> UserPreferences:
        self.preferences = self.preferences.model_copy(update={"theme": theme})
        await self._save_preferences()
        return self.preferences

    async def close_tutorial(self, dont_show_again: bool = False) -> None:
        self.tutorial_visible = False
        if dont_show_again:
            self.preferences = self.preferences.model_copy(update={"tutorial_seen": True})
            await self._save_preferences()

    # ===================== Представление =====================

    def snapshot(self, recent_limit: int = 3) -> Dict[str, Any]:
        """Состояние для слоя представления"""
        return {
            "state": self.state.value,
            "result": self.result.to_dict() if self.result else None,
            "error_message": self.error_message,
            "progress_message": self.progress_message,
            "preview_url": self.preview.url if self.preview else None,
            "recent": [item.to_dict() for item in self.history_items[:recent_limit]],
            "history_error": self.history_error,
            "tutorial_visible": self.tutorial_visible,
            "preferences": self.preferences.model_dump(),
        }
