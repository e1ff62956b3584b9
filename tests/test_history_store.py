#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Тесты истории анализов

Покрывает:
- Версионирование при сохранении
- Порядок списка
- Удаление
- Перенос из хранилища старого формата
- Файловый бэкенд
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from techspec.config import UserPreferences
from techspec.history import HistoryStore, JSONFileBackend, MemoryBackend, PreferencesStore
from techspec.models import AnalysisResult


def _result(file_name="spec.pdf", products=None, **kwargs):
    return AnalysisResult(
        file_name=file_name,
        products=products if products is not None else [{"name": "Болт"}],
        **kwargs,
    )


class TestSave(unittest.IsolatedAsyncioTestCase):
    """Тесты сохранения с версионированием"""

    def setUp(self):
        self.backend = MemoryBackend()
        self.store = HistoryStore(self.backend)

    async def test_new_project(self):
        """Новое имя файла - версия 1 и новый id"""
        saved = await self.store.save(_result(version=5))

        self.assertEqual(saved.version, 1)
        self.assertTrue(saved.id)
        self.assertIn(saved.id, self.backend.records)

    async def test_update_same_file_name(self):
        """То же имя файла - версия +1, id сохраняется"""
        first = await self.store.save(_result(id="a1"))
        second = await self.store.save(_result(id="b2", products=[{"name": "Гайка"}]))

        self.assertEqual(second.id, first.id)
        self.assertEqual(second.version, first.version + 1)
        self.assertEqual(len(await self.store.list_all()), 1)
        stored = await self.store.get(first.id)
        self.assertEqual(stored.products, [{"name": "Гайка"}])

    async def test_resave_loaded_record(self):
        """Повторное сохранение загруженной записи увеличивает ее версию"""
        first = await self.store.save(_result())
        loaded = await self.store.get(first.id)

        second = await self.store.save(loaded)
        third = await self.store.save(second)

        self.assertEqual(second.version, 2)
        self.assertEqual(third.version, 3)
        self.assertEqual(third.id, first.id)

    async def test_novel_file_name(self):
        """Другое имя файла - отдельный проект"""
        first = await self.store.save(_result("a.pdf"))
        second = await self.store.save(_result("b.pdf"))

        self.assertNotEqual(first.id, second.id)
        self.assertEqual(second.version, 1)
        self.assertEqual(len(await self.store.list_all()), 2)

    async def test_input_not_mutated(self):
        original = _result(id="orig")
        await self.store.save(_result(id="first"))

        saved = await self.store.save(original)

        self.assertEqual(original.id, "orig")
        self.assertEqual(original.version, 1)
        self.assertEqual(saved.version, 2)

    async def test_timestamp_refreshed(self):
        result = _result(timestamp="2020-01-01T00:00:00+00:00")
        saved = await self.store.save(result)
        self.assertNotEqual(saved.timestamp, "2020-01-01T00:00:00+00:00")

    async def test_id_of_other_project_not_reused(self):
        """id, принадлежащий другому проекту, заменяется новым"""
        first = await self.store.save(_result("a.pdf", id="X"))
        second = await self.store.save(_result("b.pdf", id="X"))

        self.assertEqual(first.id, "X")
        self.assertNotEqual(second.id, "X")
        self.assertEqual(second.version, 1)
        stored = {item.id: item.file_name for item in await self.store.list_all()}
        self.assertEqual(stored, {"X": "a.pdf", second.id: "b.pdf"})


class TestListAndDelete(unittest.IsolatedAsyncioTestCase):
    """Тесты списка и удаления"""

    def setUp(self):
        self.backend = MemoryBackend()
        self.store = HistoryStore(self.backend)

    async def test_most_recent_first(self):
        """Последние сохраненные - первыми"""
        for record_id, timestamp in (
            ("old", "2024-01-01T10:00:00+00:00"),
            ("new", "2024-03-01T10:00:00Z"),
            ("mid", "2024-02-01T10:00:00"),
        ):
            await self.backend.put(record_id, _result(record_id, id=record_id, timestamp=timestamp).to_dict())

        ids = [item.id for item in await self.store.list_all()]

        self.assertEqual(ids, ["new", "mid", "old"])
        self.assertEqual([item.id for item in await self.store.recent(2)], ["new", "mid"])

    async def test_invalid_records_skipped(self):
        await self.backend.put("broken", {"id": "broken", "summary": "нет products"})
        await self.store.save(_result())

        self.assertEqual(len(await self.store.list_all()), 1)

    async def test_delete(self):
        saved = await self.store.save(_result())
        await self.store.delete(saved.id)
        self.assertEqual(await self.store.list_all(), [])

    async def test_delete_missing(self):
        """Удаление отсутствующего id не является ошибкой"""
        saved = await self.store.save(_result())

        await self.store.delete("missing")

        self.assertEqual([item.id for item in await self.store.list_all()], [saved.id])


class TestMigration(unittest.IsolatedAsyncioTestCase):
    """Тесты переноса из хранилища старого формата"""

    async def test_single_record(self):
        legacy = {"id": "1700000000000", "fileName": "old.pdf", "timestamp": "2023-11-14T22:13:20Z",
                  "products": [{"name": "Труба"}]}
        backend = MemoryBackend(legacy=legacy)
        store = HistoryStore(backend)

        self.assertEqual(await store.migrate_legacy(), 1)
        self.assertIsNone(backend.legacy)
        items = await store.list_all()
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].id, "1700000000000")

    async def test_twice(self):
        """Повторный запуск не создает дубликатов"""
        backend = MemoryBackend(legacy={"fileName": "old.pdf", "products": []})
        store = HistoryStore(backend)

        await store.migrate_legacy()
        second = await store.migrate_legacy()

        self.assertEqual(second, 0)
        self.assertEqual(len(await store.list_all()), 1)

    async def test_already_present(self):
        """Запись уже есть в новом хранилище - не копируется повторно"""
        legacy = {"id": "x1", "fileName": "old.pdf", "products": []}
        backend = MemoryBackend(legacy=legacy)
        await backend.put("x1", _result("old.pdf", id="x1").to_dict())
        store = HistoryStore(backend)

        self.assertEqual(await store.migrate_legacy(), 0)
        self.assertEqual(len(await store.list_all()), 1)
        self.assertIsNone(backend.legacy)

    async def test_list_and_invalid_entries(self):
        legacy = [
            {"id": "a", "fileName": "a.pdf", "products": []},
            {"id": "b", "fileName": "b.pdf"},
            {"id": "c", "fileName": "c.pdf", "products": [{"name": "Кран"}]},
        ]
        store = HistoryStore(MemoryBackend(legacy=legacy))

        self.assertEqual(await store.migrate_legacy(), 2)

    async def test_no_legacy(self):
        store = HistoryStore(MemoryBackend())
        self.assertEqual(await store.migrate_legacy(), 0)


class TestJSONFileBackend(unittest.IsolatedAsyncioTestCase):
    """Тесты файлового бэкенда"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    async def test_persisted_between_instances(self):
        """Записи доступны новому экземпляру хранилища"""
        saved = await HistoryStore(JSONFileBackend(self.temp_dir)).save(_result("ТЗ.pdf"))

        reopened = HistoryStore(JSONFileBackend(self.temp_dir))
        items = await reopened.list_all()

        self.assertEqual(len(items), 1)
        self.assertEqual(items[0].id, saved.id)
        self.assertEqual(items[0].file_name, "ТЗ.pdf")
        self.assertEqual(list(Path(self.temp_dir, "records").glob("*.tmp")), [])

    async def test_legacy_file_migrated(self):
        legacy_path = Path(self.temp_dir) / JSONFileBackend.LEGACY_FILE
        legacy_path.write_text(
            json.dumps({"id": "42", "fileName": "old.docx", "products": [{"name": "Щит"}]}),
            encoding="utf-8",
        )
        store = HistoryStore(JSONFileBackend(self.temp_dir))

        self.assertEqual(await store.migrate_legacy(), 1)
        self.assertFalse(legacy_path.exists())
        self.assertEqual(await store.migrate_legacy(), 0)
        self.assertEqual(len(await store.list_all()), 1)

    async def test_corrupted_record_skipped(self):
        backend = JSONFileBackend(self.temp_dir)
        (backend.records_path / "bad.json").write_text("{не json", encoding="utf-8")
        await HistoryStore(backend).save(_result())

        self.assertEqual(len(await HistoryStore(backend).list_all()), 1)

    async def test_delete_missing(self):
        backend = JSONFileBackend(self.temp_dir)
        await backend.delete("nothing")
        await HistoryStore(backend).delete("...")
        await HistoryStore(backend).delete("")

    async def test_similar_ids_kept_apart(self):
        """Разные id не попадают в один файл"""
        backend = JSONFileBackend(self.temp_dir)
        store = HistoryStore(backend)
        await backend.put("1.5", _result("a.pdf", id="1.5").to_dict())
        await backend.put("15", _result("b.pdf", id="15").to_dict())

        await store.delete("15")

        self.assertEqual([item.id for item in await store.list_all()], ["1.5"])

    async def test_preferences(self):
        preferences_store = PreferencesStore(JSONFileBackend(self.temp_dir))
        self.assertEqual(await preferences_store.load(), UserPreferences())

        await preferences_store.save(UserPreferences(theme="contrast", tutorial_seen=True))

        loaded = await PreferencesStore(JSONFileBackend(self.temp_dir)).load()
        self.assertEqual(loaded.theme, "contrast")
        self.assertTrue(loaded.tutorial_seen)


if __name__ == "__main__":
    unittest.main(verbosity=2)
