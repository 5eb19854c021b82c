"""
Клиент для взаимодействия с DeepSeek API через HTTP
"""

import asyncio
import json
import logging
from typing import Dict, Any, List, Optional

import aiohttp

logger = logging.getLogger(__name__)


# Типы ошибок при обращении к модели
class CompletionError(Exception):
    """Базовый класс ошибок генерации ответа."""
    pass


class CompletionNetworkError(CompletionError):
    """Ошибка соединения с API или таймаут."""
    pass


class CompletionQuotaError(CompletionError):
    """Превышен лимит запросов или исчерпан баланс."""
    pass


class CompletionResponseError(CompletionError):
    """API вернул ошибку или ответ неожиданного формата."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


QUOTA_STATUSES = (402, 429)


class CompletionResult:
    """Ответ модели."""

    def __init__(self, content: str, finish_reason: Optional[str] = None, usage: Optional[Dict[str, int]] = None):
        self.content = content
        self.finish_reason = finish_reason
        self.usage = usage


class DeepSeekClient:
    """
    Клиент для OpenAI-совместимого API DeepSeek.

    Ошибки не повторяются и не подавляются: решение о повторе
    принимает вызывающий код.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.deepseek.com/v1/chat/completions",
        model: str = "deepseek-chat",
        timeout: int = 60,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Инициализация клиента

        Args:
            api_key: Ключ API DeepSeek
            api_url: URL эндпоинта chat/completions
            model: Название модели
            timeout: Таймаут запросов в секундах
            session: Внешняя HTTP-сессия (если не задана, создается своя)
        """
        if not api_key:
            raise ValueError("Не задан ключ DeepSeek API")

        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

        logger.info(f'Инициализирован клиент DeepSeek API: {api_url}, модель {model}')

    @classmethod
    def from_config(cls, config) -> 'DeepSeekClient':
        return cls(
            api_key=config.DEEPSEEK_API_KEY,
            api_url=config.DEEPSEEK_API_URL,
            model=config.DEEPSEEK_MODEL,
            timeout=config.REQUEST_TIMEOUT
        )

    def build_request(self, messages: List[Dict[str, str]], temperature: float = 0.7,
                      max_tokens: int = 1000) -> Dict[str, Any]:
        """
        Формирует тело запроса к API.

        Args:
            messages: Сообщения в формате [{role: "", content: ""}, ...]
            temperature: Температура генерации
            max_tokens: Максимальное количество токенов в ответе

        Returns:
            Dict[str, Any]: Тело запроса
        """
        return {
            "model": self.model,
            "messages": [
                {"role": message["role"], "content": message["content"]}
                for message in messages
                if message.get("content") is not None
            ],
            "max_tokens": max_tokens,
            "temperature": temperature
        }

    def parse_response(self, data: Any) -> CompletionResult:
        """
        Извлекает ответ модели из тела ответа API.

        Args:
            data: Декодированный JSON ответа

        Returns:
            CompletionResult: Текст ответа, причина завершения и расход токенов

        Raises:
            CompletionResponseError: Если ответ не содержит текста или текст пустой
        """
        try:
            choice = data["choices"][0]
            content = choice["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionResponseError(f"Неожиданный формат ответа: {e}") from e

        if not isinstance(content, str) or not content.strip():
            raise CompletionResponseError("Ответ модели не содержит текста")

        usage = data.get("usage")
        if not isinstance(usage, dict):
            if usage is not None:
                logger.warning(f"Некорректное поле usage в ответе: {usage!r}")
            usage = None
        if usage:
            logger.info(
                f"Расход токенов - запрос: {usage.get('prompt_tokens')}, "
                f"ответ: {usage.get('completion_tokens')}, всего: {usage.get('total_tokens')}"
            )

        return CompletionResult(
            content=content.strip(),
            finish_reason=choice.get("finish_reason"),
            usage=usage
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def _post(self, payload: Dict[str, Any]) -> Any:
        session = await self._get_session()
        headers = {"Authorization": f"Bearer {self.api_key}"}

        try:
            async with session.post(
                self.api_url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                text = await response.text()
                logger.info(f"Статус ответа DeepSeek API: {response.status}")

                if response.status in QUOTA_STATUSES:
                    logger.error(f'Превышен лимит DeepSeek API: {response.status}, {text[:200]}')
                    raise CompletionQuotaError(f"Лимит API исчерпан (код {response.status})")

                if response.status != 200:
                    logger.error(f'Ошибка DeepSeek API: {response.status}, {text[:200]}')
                    raise CompletionResponseError(f"Ошибка API (код {response.status})", status=response.status)

        except asyncio.TimeoutError as e:
            logger.error(f'Таймаут запроса после {self.timeout} секунд')
            raise CompletionNetworkError(f"Таймаут запроса после {self.timeout} секунд") from e
        except aiohttp.ClientError as e:
            logger.error(f'Ошибка соединения с DeepSeek API: {e}')
            raise CompletionNetworkError(str(e)) from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CompletionResponseError(f"Некорректный JSON в ответе: {e}") from e

    async def complete(self, messages: List[Dict[str, str]], temperature: float = 0.7,
                       max_tokens: int = 1000) -> CompletionResult:
        """
        Запрашивает ответ модели.

        Args:
            messages: Окно сообщений
            temperature: Температура генерации
            max_tokens: Максимальное количество токенов в ответе

        Returns:
            CompletionResult: Ответ модели

        Raises:
            CompletionError: При сетевой ошибке, превышении лимита или некорректном ответе
        """
        payload = self.build_request(messages, temperature, max_tokens)
        logger.info(f"Отправка запроса к DeepSeek API с {len(payload['messages'])} сообщениями")
        logger.debug(f"Отправляемый payload: {json.dumps(payload, ensure_ascii=False)[:500]}")

        data = await self._post(payload)
        result = self.parse_response(data)

        logger.info(f"Ответ модели получен, длина: {len(result.content)}")
        return result

    async def generate_chat_response(self, messages: List[Dict[str, str]], temperature: float = 0.7,
                                     max_tokens: int = 1000) -> str:
        """
        Асинхронная генерация ответа на основе окна сообщений
        """
        result = await self.complete(messages, temperature, max_tokens)
        return result.content

    async def close(self) -> None:
        """
        Закрывает HTTP-сессию клиента
        """
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        logger.info("Клиент DeepSeek API закрыт")
