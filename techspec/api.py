#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
API сервер для анализа технических спецификаций

FastAPI приложение поверх рабочего процесса анализа: прием файла,
состояние, история, экспорт проекта, предпросмотр, настройки.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional
from urllib.parse import quote

from fastapi import FastAPI, File, Form, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from . import __version__
from .config import Settings, Theme
from .dispatcher import IngestionDispatcher
from .exceptions import InvalidTransition, SubmissionRejected
from .history import HistoryStore, JSONFileBackend, PreferencesStore
from .llm import LLMAnalysisEngine, OpenAILikeClient
from .models import AnalysisOptions, SubmittedFile
from .orchestrator import AnalysisOrchestrator
from .preview import PreviewRegistry
from .workflow import AnalysisWorkflow

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def build_workflow(settings: Optional[Settings] = None) -> AnalysisWorkflow:
    """Сборка рабочего процесса из настроек окружения"""
    settings = settings or Settings.from_env()

    llm_client = OpenAILikeClient(
        base_url=settings.llm_base_url,
        api_key=settings.llm_api_key,
        model=settings.llm_model,
        timeout=settings.llm_timeout,
    )
    backend = JSONFileBackend(settings.storage_dir)

    return AnalysisWorkflow(
        dispatcher=IngestionDispatcher(PreviewRegistry(), settings.max_file_size_bytes),
        orchestrator=AnalysisOrchestrator(LLMAnalysisEngine(llm_client)),
        history=HistoryStore(backend),
        preferences_store=PreferencesStore(backend),
        settings=settings,
    )


# ===================== Pydantic Models =====================

class ThemeUpdate(BaseModel):
    """Смена темы оформления"""
    theme: Theme


class TutorialClose(BaseModel):
    """Закрытие обучения"""
    dont_show_again: bool = False


def create_app(workflow: Optional[AnalysisWorkflow] = None) -> FastAPI:
    """
    Создание приложения

    Args:
        workflow: Готовый рабочий процесс (по умолчанию собирается из окружения)
    """
    workflow = workflow or build_workflow()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await workflow.start()
        yield

    app = FastAPI(
        title="TechSpec Analyzer API",
        description="API для анализа технических спецификаций",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )
    app.state.workflow = workflow

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(InvalidTransition)
    async def invalid_transition_handler(request, exc: InvalidTransition):
        return JSONResponse(status_code=409, content={"detail": exc.user_message})

    @app.exception_handler(SubmissionRejected)
    async def submission_rejected_handler(request, exc: SubmissionRejected):
        return JSONResponse(status_code=400, content={"detail": exc.user_message})

    @app.get("/health")
    async def health_check():
        """Проверка работоспособности"""
        return {
            "status": "healthy",
            "service": "TechSpec Analyzer",
            "version": __version__,
            "workflow_state": workflow.state.value,
        }

    # ===================== Рабочий процесс =====================

    @app.get("/api/v1/workflow")
    async def get_workflow():
        """Текущее состояние рабочего процесса"""
        return workflow.snapshot()

    @app.post("/api/v1/workflow/submit")
    async def submit_file(
        file: UploadFile = File(...),
        page_range: Optional[str] = Form(None),
        is_iterative: bool = Form(False),
        iteration_count: int = Form(1),
    ):
        """
        Загрузка файла: PDF/DOCX на анализ или .sart/JSON для восстановления
        """
        logger.info(f"Получен файл: {file.filename}")
        options = AnalysisOptions(
            page_range=page_range,
            is_iterative=is_iterative,
            iteration_count=max(iteration_count, 1),
        )
        name = file.filename or "document"
        if file.size is None:
            # Размер неизвестен: читаем заранее, чтобы лимит проверился до анализа
            submitted = SubmittedFile.from_bytes(name, await file.read(), file.content_type or "")
        else:
            submitted = SubmittedFile(
                name=name,
                media_type=file.content_type or "",
                size=file.size,
                reader=file.read,
            )
        await workflow.submit(submitted, options)
        return workflow.snapshot()

    @app.post("/api/v1/workflow/reset")
    async def reset_workflow():
        workflow.reset()
        return workflow.snapshot()

    @app.post("/api/v1/workflow/save")
    async def save_result():
        """Сохранить текущий результат в историю"""
        saved = await workflow.save_to_history()
        if saved is None and workflow.history_error:
            raise HTTPException(status_code=503, detail=workflow.history_error)
        if saved is None:
            raise HTTPException(status_code=400, detail="Нет результата для сохранения")
        return {"id": saved.id, "version": saved.version, "message": f"Анализ (v{saved.version}) сохранен"}

    @app.get("/api/v1/workflow/export")
    async def export_project():
        """Скачать текущий результат как файл проекта .sart"""
        project = workflow.export_project()
        if project is None:
            raise HTTPException(status_code=404, detail="Нет результата для экспорта")
        base_name = (project.get("fileName") or "analysis").rsplit(".", 1)[0]
        return JSONResponse(
            content=project,
            headers={
                "Content-Disposition": f"attachment; filename*=UTF-8''{quote(base_name)}.sart"
            },
        )

    # ===================== История =====================

    @app.get("/api/v1/history")
    async def list_history():
        items = await workflow.refresh_history()
        return {"items": [item.to_dict() for item in items], "total": len(items)}

    @app.post("/api/v1/history/{result_id}/load")
    async def load_history_item(result_id: str):
        item = await workflow.load_history_item(result_id)
        if item is None and workflow.history_error:
            raise HTTPException(status_code=503, detail=workflow.history_error)
        if item is None:
            raise HTTPException(status_code=404, detail="Запись не найдена")
        return workflow.snapshot()

    @app.delete("/api/v1/history/{result_id}")
    async def delete_history_item(result_id: str, confirm: bool = Query(False)):
        """Удалить запись истории (требуется confirm=true)"""
        deleted = await workflow.delete_history_item(result_id, confirmed=confirm)
        if not deleted and workflow.history_error:
            raise HTTPException(status_code=503, detail=workflow.history_error)
        if not deleted:
            raise HTTPException(status_code=400, detail="Удаление не подтверждено")
        return {"status": "deleted", "id": result_id}

    # ===================== Предпросмотр =====================

    @app.get("/api/v1/preview/{token}")
    async def get_preview(token: str):
        handle = workflow.preview
        data = workflow.dispatcher.preview_registry.get(token)
        if handle is None or handle.token != token or data is None:
            raise HTTPException(status_code=404, detail="Предпросмотр недоступен")
        return Response(content=data, media_type=handle.media_type)

    # ===================== Настройки =====================

    @app.get("/api/v1/preferences")
    async def get_preferences():
        return workflow.preferences.model_dump()

    @app.put("/api/v1/preferences")
    async def update_preferences(update: ThemeUpdate):
        preferences = await workflow.set_theme(update.theme)
        return preferences.model_dump()

    @app.post("/api/v1/preferences/tutorial")
    async def close_tutorial(request: TutorialClose):
        await workflow.close_tutorial(request.dont_show_again)
        return {"tutorial_visible": workflow.tutorial_visible}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(build_workflow(settings)), host=settings.api_host, port=settings.api_port)
