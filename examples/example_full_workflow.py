#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Пример полного рабочего процесса анализа технической спецификации

Демонстрирует:
1. Загрузку документа и итеративный анализ с помощью LLM
2. Сохранение результата в историю с версионированием
3. Экспорт проекта (.sart) и его восстановление

Использование:
    python examples/example_full_workflow.py spec.pdf [диапазон страниц]
"""

import asyncio
import json
import sys
from pathlib import Path

from techspec.api import build_workflow
from techspec.config import Settings
from techspec.models import AnalysisOptions, SubmittedFile
from techspec.workflow import WorkflowState


async def main(doc_file: Path, page_range=None):
    """
    Полный цикл обработки спецификации
    """
    print("=" * 70)
    print("АНАЛИЗ ТЕХНИЧЕСКОЙ СПЕЦИФИКАЦИИ")
    print("=" * 70)
    print()

    if not doc_file.exists():
        print(f"⚠️  Файл {doc_file} не найден")
        return

    settings = Settings.from_env()
    workflow = build_workflow(settings)
    await workflow.start()
    print(f"📚 Записей в истории: {len(workflow.history_items)}")
    print()

    # Шаг 1: Анализ
    print("🤖 ШАГ 1: Анализ документа")
    print("-" * 70)

    options = AnalysisOptions(
        page_range=page_range,
        is_iterative=settings.default_iterations > 1,
        iteration_count=settings.default_iterations,
    )
    state = await workflow.submit(SubmittedFile.from_path(doc_file), options)

    if state is WorkflowState.ERROR:
        print(f"❌ {workflow.error_message}")
        return

    result = workflow.result
    print(f"✅ Анализ завершен: позиций {result.product_count}")
    for i, product in enumerate(result.products[:5], 1):
        name = product.get("name") if isinstance(product, dict) else product
        print(f"   {i}. {name}")
    print()

    # Шаг 2: История
    print("💾 ШАГ 2: Сохранение в историю")
    print("-" * 70)

    saved = await workflow.save_to_history()
    print(f"✅ Анализ (v{saved.version}) сохранен, id {saved.id}")
    print()

    # Шаг 3: Экспорт и восстановление
    print("📦 ШАГ 3: Экспорт проекта")
    print("-" * 70)

    output_dir = Path("output")
    output_dir.mkdir(exist_ok=True)
    project_file = output_dir / f"{doc_file.stem}.sart"
    project_file.write_text(
        json.dumps(workflow.export_project(), ensure_ascii=False, indent=2), encoding="utf-8"
    )
    print(f"✅ Проект сохранен: {project_file}")

    workflow.reset()
    state = await workflow.submit(SubmittedFile.from_path(project_file))
    print(f"✅ Проект восстановлен: {state.value}, позиций {workflow.result.product_count}")
    print()
    print("=" * 70)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)
    asyncio.run(main(Path(sys.argv[1]), sys.argv[2] if len(sys.argv) > 2 else None))
