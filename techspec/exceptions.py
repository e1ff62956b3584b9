#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Исключения techspec

Каждая категория ошибки несет сообщение для пользователя (user_message),
которое рабочий процесс показывает в состоянии ERROR.
"""


class TechSpecError(Exception):
    """Базовое исключение"""

    user_message = "Непредвиденная ошибка."

    def __init__(self, message: str = "", user_message: str = ""):
        super().__init__(message or self.user_message)
        if user_message:
            self.user_message = user_message


class MalformedProject(TechSpecError):
    """Файл проекта не разобран или не содержит списка products"""

    def __init__(self, message: str):
        super().__init__(message, f"Не удалось прочитать файл проекта: {message}")


class FileReadFailure(TechSpecError):
    """Ошибка ввода-вывода при чтении загруженного файла"""

    user_message = "Ошибка при чтении файла."


class TransportFailure(TechSpecError):
    """Слишком большой запрос или обрыв соединения во время анализа"""

    user_message = (
        "Ошибка соединения: файл может быть слишком большим или соединение "
        "было прервано. Попробуйте файл меньшего размера или укажите диапазон страниц."
    )


class EngineFailure(TechSpecError):
    """Любая другая ошибка движка анализа, в т.ч. неподдерживаемый документ"""

    def __init__(self, message: str):
        super().__init__(message, f"Документ не удалось проанализировать: {message or 'ошибка API'}")


class UnexpectedFailure(TechSpecError):
    """Прочие ошибки"""

    user_message = "Произошла непредвиденная ошибка."


class SubmissionRejected(TechSpecError):
    """Файл отклонен до начала анализа"""


class UnsupportedFileType(SubmissionRejected):
    user_message = "Неподдерживаемый формат файла. Загрузите PDF, DOCX или файл проекта .SART."


class FileTooLarge(SubmissionRejected):
    def __init__(self, size: int, limit_mb: int):
        super().__init__(
            f"Размер файла {size} байт превышает лимит {limit_mb} МБ",
            f"Слишком большой файл (максимум {limit_mb} МБ).",
        )


class InvalidTransition(TechSpecError):
    """Действие недоступно в текущем состоянии рабочего процесса"""

    user_message = "Действие недоступно в текущем состоянии."


class HistoryUnavailable(TechSpecError):
    """Хранилище истории недоступно (ошибка чтения или записи)"""

    user_message = "История недоступна: не удалось выполнить операцию с хранилищем. Текущий результат не потерян."
