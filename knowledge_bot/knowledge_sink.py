#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Хранилище базы знаний для подтвержденных пользователем предложений.

Сохранение выполняется только по явной команде пользователя, система
памяти никогда не вызывает его автоматически.
"""

import os
import json
import logging
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

from knowledge_bot.memory.models import KnowledgeUpdateSuggestion


class KnowledgeSaveError(Exception):
    """
    Ошибка сохранения в базу знаний.

    Attributes:
        saved: Предложения, успешно сохраненные до ошибки
    """

    def __init__(self, message: str, saved: List[KnowledgeUpdateSuggestion]):
        super().__init__(message)
        self.saved = saved


class KnowledgeSink(ABC):
    """
    Абстрактное хранилище базы знаний.
    """

    def __init__(self):
        self.logger = logging.getLogger(f"knowledge_sink.{self.__class__.__name__}")

    @abstractmethod
    def save(self, user_id: int, suggestion: KnowledgeUpdateSuggestion) -> None:
        """
        Сохраняет предложение в базу знаний.

        Args:
            user_id: ID пользователя, подтвердившего сохранение
            suggestion: Предложение для сохранения

        Raises:
            OSError: При ошибке ввода-вывода
            ValueError: Если существующие данные нельзя прочитать
        """
        pass

    def save_all(self, user_id: int, suggestions: Iterable[KnowledgeUpdateSuggestion]) -> int:
        """
        Сохраняет предложения по очереди.

        Args:
            user_id: ID пользователя
            suggestions: Предложения для сохранения

        Returns:
            int: Количество сохраненных предложений

        Raises:
            KnowledgeSaveError: Если одно из предложений не удалось сохранить;
                уже сохраненные предложения доступны в атрибуте saved
        """
        saved: List[KnowledgeUpdateSuggestion] = []
        for suggestion in suggestions:
            try:
                self.save(user_id, suggestion)
            except (OSError, ValueError) as e:
                raise KnowledgeSaveError(
                    f"Не удалось сохранить запись в {suggestion.target_file}: {e}", saved
                ) from e
            saved.append(suggestion)
        return len(saved)


class JsonKnowledgeSink(KnowledgeSink):
    """
    Хранит записи базы знаний в JSON-файлах, по файлу на тему.

    Структура: <directory>/<user_id>/<target_file>, каждый файл - список записей.
    Файл перезаписывается атомарно: сначала временный файл, затем os.replace.
    """

    def __init__(self, directory: str = "data/knowledge"):
        super().__init__()
        self.directory = directory

    def _path(self, user_id: int, target_file: str) -> str:
        # Имя файла берется из таблицы тем, но путь все равно нормализуется
        return os.path.join(self.directory, str(user_id), os.path.basename(target_file))

    def load(self, user_id: int, target_file: str) -> List[Dict[str, Any]]:
        """
        Загружает записи из файла базы знаний.

        Args:
            user_id: ID пользователя
            target_file: Имя файла

        Returns:
            List[Dict[str, Any]]: Записи (пустой список, если файла нет)

        Raises:
            ValueError: Если файл поврежден или не содержит список записей
        """
        path = self._path(user_id, target_file)
        if not os.path.exists(path):
            return []

        with open(path, "r", encoding="utf-8") as f:
            entries = json.load(f)

        if not isinstance(entries, list):
            raise ValueError(f"Файл {path} не содержит список записей")
        return entries

    def _quarantine(self, path: str) -> str:
        corrupt_path = f"{path}.corrupt"
        os.replace(path, corrupt_path)
        return corrupt_path

    def _write(self, path: str, entries: List[Dict[str, Any]]) -> None:
        directory = os.path.dirname(path)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(entries, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def save(self, user_id: int, suggestion: KnowledgeUpdateSuggestion) -> None:
        path = self._path(user_id, suggestion.target_file)
        os.makedirs(os.path.dirname(path), exist_ok=True)

        try:
            entries = self.load(user_id, suggestion.target_file)
        except ValueError as e:
            # Поврежденный файл откладывается в сторону, а не перезаписывается
            corrupt_path = self._quarantine(path)
            self.logger.error(f"Файл базы знаний {path} поврежден ({e}), перемещен в {corrupt_path}")
            entries = []

        entries.append({
            "update_type": suggestion.update_type,
            "data": suggestion.data,
            "reason": suggestion.reason,
            "confidence": suggestion.confidence
        })

        self._write(path, entries)

        self.logger.info(f"Запись сохранена в {path}")
