#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Конфигурация процесса и пользовательские настройки

Settings читаются из окружения один раз при старте и передаются
компонентам явно. UserPreferences (тема, флаг обучения) хранятся
через бэкенд хранилища.
"""

import os
from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, field_validator

Theme = Literal["light", "dark", "contrast"]
THEMES = ("light", "dark", "contrast")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass
class Settings:
    """
    Настройки процесса

    Базовые параметры LLM берутся из тех же переменных, что и у
    OpenAI-совместимого клиента (OPENAI_BASE_URL, OPENAI_API_KEY, OPENAI_MODEL).
    """

    llm_base_url: str = "http://localhost:8000/v1"
    llm_api_key: str = ""
    llm_model: str = "local-vllm-model"
    llm_timeout: float = 300.0
    storage_dir: str = "./storage/history"
    max_file_size_mb: int = 20
    default_iterations: int = 3
    max_iterations: int = 10
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            llm_base_url=os.getenv("OPENAI_BASE_URL", cls.llm_base_url),
            llm_api_key=os.getenv("OPENAI_API_KEY", cls.llm_api_key),
            llm_model=os.getenv("OPENAI_MODEL", cls.llm_model),
            llm_timeout=_env_float("TECHSPEC_LLM_TIMEOUT", cls.llm_timeout),
            storage_dir=os.getenv("TECHSPEC_STORAGE_DIR", cls.storage_dir),
            max_file_size_mb=_env_int("TECHSPEC_MAX_FILE_SIZE_MB", cls.max_file_size_mb),
            default_iterations=_env_int("TECHSPEC_DEFAULT_ITERATIONS", cls.default_iterations),
            max_iterations=_env_int("TECHSPEC_MAX_ITERATIONS", cls.max_iterations),
            api_host=os.getenv("API_HOST", cls.api_host),
            api_port=_env_int("API_PORT", cls.api_port),
        )


class UserPreferences(BaseModel):
    """Пользовательские настройки интерфейса"""

    theme: Theme = "dark"
    tutorial_seen: bool = False

    @field_validator("theme", mode="before")
    @classmethod
    def _fallback_theme(cls, value: Any) -> Any:
        # Неизвестная тема из старого хранилища -> тема по умолчанию
        return value if value in THEMES else "dark"

    @classmethod
    def from_stored(cls, data: Optional[Dict[str, Any]]) -> "UserPreferences":
        if not data:
            return cls()
        return cls.model_validate(data)
