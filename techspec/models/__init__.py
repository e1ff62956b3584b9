#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Модели данных techspec
"""

from .analysis import AnalysisResult, EngineResponse, Product, generate_id, utc_now_iso
from .submission import AnalysisOptions, IngestKind, SubmittedFile

__all__ = [
    "AnalysisResult",
    "EngineResponse",
    "Product",
    "AnalysisOptions",
    "IngestKind",
    "SubmittedFile",
    "generate_id",
    "utc_now_iso",
]
