#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Вспомогательные утилиты
"""

from .deduplicator import ProductDeduplicator

__all__ = [
    "ProductDeduplicator",
]
