# -*- coding: utf-8 -*-
"""
TechSpec Analyzer - анализ технических спецификаций

Версия 1.0.0 включает:
- Прием файлов: документ (PDF, DOCX) на анализ или файл проекта (.sart) для восстановления
- Однопроходный и многопроходный (итеративный) анализ с помощью LLM
- Версионную историю анализов с переносом из старого формата хранения
- Экспорт результата в файл проекта
- Веб-API (FastAPI)
"""

__version__ = "1.0.0"

from .dispatcher import IngestionDispatcher
from .orchestrator import AnalysisOrchestrator
from .history import HistoryStore, JSONFileBackend, MemoryBackend, PreferencesStore
from .workflow import AnalysisWorkflow, WorkflowState
from .models import AnalysisOptions, AnalysisResult, SubmittedFile

__all__ = [
    "IngestionDispatcher",
    "AnalysisOrchestrator",
    "HistoryStore",
    "JSONFileBackend",
    "MemoryBackend",
    "PreferencesStore",
    "AnalysisWorkflow",
    "WorkflowState",
    "AnalysisOptions",
    "AnalysisResult",
    "SubmittedFile",
]
