#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модуль LLM интеграции techspec
"""

from .base_engine import BaseAnalysisEngine, ProgressCallback
from .client import OpenAILikeClient
from .engine import LLMAnalysisEngine

__all__ = ["BaseAnalysisEngine", "LLMAnalysisEngine", "OpenAILikeClient", "ProgressCallback"]
