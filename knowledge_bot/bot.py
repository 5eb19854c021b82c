"""
Telegram бот для управления персональными знаниями.

Обрабатывает сообщения пользователей: собирает окно контекста из памяти
диалогов, запрашивает ответ модели DeepSeek, сохраняет обмен в память
и отправляет ответ пользователю.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from telegram import Update
from telegram.ext import Application, CommandHandler, ContextTypes, MessageHandler, filters

from knowledge_bot.config import (
    Config,
    WELCOME_MESSAGE,
    HELP_MESSAGE,
    RESET_MESSAGE,
    NO_SUGGESTIONS_MESSAGE,
    SAVED_MESSAGE,
    ERROR_MESSAGE,
    NETWORK_ERROR_MESSAGE,
    QUOTA_ERROR_MESSAGE,
    RESPONSE_ERROR_MESSAGE
)
from knowledge_bot.deepseek_client import (
    DeepSeekClient,
    CompletionError,
    CompletionNetworkError,
    CompletionQuotaError
)
from knowledge_bot.knowledge_sink import KnowledgeSink, KnowledgeSaveError, JsonKnowledgeSink
from knowledge_bot.memory import ConversationService, KnowledgeUpdateSuggestion
from knowledge_bot.telegram_notifier import TelegramNotifier, NotifierError

logger = logging.getLogger(__name__)


def completion_error_message(error: CompletionError) -> str:
    """Текст для пользователя по типу ошибки модели."""
    if isinstance(error, CompletionQuotaError):
        return QUOTA_ERROR_MESSAGE
    if isinstance(error, CompletionNetworkError):
        return NETWORK_ERROR_MESSAGE
    return RESPONSE_ERROR_MESSAGE


def format_suggestions(suggestions: List[KnowledgeUpdateSuggestion]) -> str:
    lines = ["📌 Можно сохранить в базу знаний:"]
    for index, suggestion in enumerate(suggestions, 1):
        content = suggestion.data.get("content") or ""
        if len(content) > 80:
            content = content[:80] + "..."
        lines.append(
            f"{index}. {suggestion.target_file} ({suggestion.reason}, "
            f"уверенность {suggestion.confidence:.2f}): {content}"
        )
    lines.append("\nЧтобы сохранить, отправьте /save")
    return "\n".join(lines)


class KnowledgeBot:
    """
    Обработчики команд и сообщений Telegram.
    """

    def __init__(
        self,
        conversations: ConversationService,
        completion_client: DeepSeekClient,
        notifier: TelegramNotifier,
        knowledge_sink: Optional[KnowledgeSink] = None,
        temperature: float = 0.7,
        max_tokens: int = 1000
    ):
        """
        Args:
            conversations: Сервис памяти диалогов
            completion_client: Клиент языковой модели
            notifier: Отправитель сообщений в Telegram
            knowledge_sink: Хранилище базы знаний для команды /save
            temperature: Температура генерации
            max_tokens: Максимальное количество токенов в ответе
        """
        self.conversations = conversations
        self.completion_client = completion_client
        self.notifier = notifier
        self.knowledge_sink = knowledge_sink
        self.temperature = temperature
        self.max_tokens = max_tokens
        # Уже сохраненные записи: user_id -> {(файл, время сообщения)}
        self._saved: Dict[int, Set[Tuple[str, str]]] = {}

    @staticmethod
    def _user_id(update: Update) -> int:
        if update.effective_user:
            return update.effective_user.id
        return update.effective_chat.id

    def _pending_suggestions(self, user_id: int) -> List[KnowledgeUpdateSuggestion]:
        saved = self._saved.get(user_id, set())
        return [
            suggestion for suggestion in self.conversations.get_suggestions(user_id)
            if (suggestion.target_file, suggestion.data["timestamp"]) not in saved
        ]

    def _mark_saved(self, user_id: int, suggestions: List[KnowledgeUpdateSuggestion]) -> None:
        saved = self._saved.setdefault(user_id, set())
        saved.update((s.target_file, s.data["timestamp"]) for s in suggestions)

    async def start_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик команды /start
        """
        if not update.message:
            return

        self.conversations.get_context(self._user_id(update))
        await update.message.reply_text(WELCOME_MESSAGE)

    async def help_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик команды /help
        """
        if not update.message:
            return

        await update.message.reply_text(HELP_MESSAGE)

    async def reset_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик команды /reset - очищает историю диалога
        """
        if not update.message:
            return

        user_id = self._user_id(update)
        self.conversations.reset_conversation(user_id)
        self._saved.pop(user_id, None)
        await update.message.reply_text(RESET_MESSAGE)

    async def suggest_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик команды /suggest - показывает предложения по сохранению
        """
        if not update.message:
            return

        suggestions = self._pending_suggestions(self._user_id(update))
        if not suggestions:
            await update.message.reply_text(NO_SUGGESTIONS_MESSAGE)
            return

        await update.message.reply_text(format_suggestions(suggestions))

    async def save_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик команды /save - сохраняет предложения, подтвержденные пользователем
        """
        if not update.message:
            return

        user_id = self._user_id(update)
        suggestions = self._pending_suggestions(user_id)
        if not suggestions or self.knowledge_sink is None:
            await update.message.reply_text(NO_SUGGESTIONS_MESSAGE)
            return

        try:
            count = self.knowledge_sink.save_all(user_id, suggestions)
        except KnowledgeSaveError as e:
            # Записи, сохраненные до ошибки, не должны предлагаться повторно
            self._mark_saved(user_id, e.saved)
            logger.error(
                f"Не удалось сохранить базу знаний пользователя {user_id} "
                f"(сохранено {len(e.saved)} из {len(suggestions)}): {e}",
                exc_info=True
            )
            await update.message.reply_text(ERROR_MESSAGE)
            return
        except (OSError, ValueError) as e:
            logger.error(f"Не удалось сохранить базу знаний пользователя {user_id}: {e}", exc_info=True)
            await update.message.reply_text(ERROR_MESSAGE)
            return

        self._mark_saved(user_id, suggestions)

        logger.info(f"Пользователь {user_id} сохранил {count} записей в базу знаний")
        await update.message.reply_text(SAVED_MESSAGE.format(count=count))

    async def handle_message(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик текстовых сообщений
        """
        if not update.message or not update.message.text or not update.effective_chat:
            logger.info("Обновление без текстового сообщения пропущено")
            return

        user_id = self._user_id(update)
        chat_id = update.effective_chat.id
        user_text = update.message.text

        logger.info(f"Обработка сообщения от пользователя {user_id}: {user_text[:50]}")

        window = self.conversations.build_window(user_id, user_text)

        try:
            response = await self.completion_client.generate_chat_response(
                messages=window,
                temperature=self.temperature,
                max_tokens=self.max_tokens
            )
        except CompletionError as e:
            logger.error(f"Ошибка генерации ответа для пользователя {user_id}: {e}", exc_info=True)
            await update.message.reply_text(completion_error_message(e))
            return

        turn = self.conversations.record_turn(user_id, user_text, response)
        if turn.compressed:
            logger.info(f"История пользователя {user_id} сжата до {turn.message_count} сообщений")

        try:
            await self.notifier.send_message(chat_id, response)
        except NotifierError as e:
            logger.error(f"Не удалось доставить ответ пользователю {user_id}: {e}")
            return

        logger.info(f"Сообщение пользователя {user_id} успешно обработано")

    async def error_handler(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        """
        Обработчик непредвиденных ошибок
        """
        logger.error(f"Ошибка при обработке обновления: {context.error}", exc_info=context.error)

        if isinstance(update, Update) and update.message:
            await update.message.reply_text(ERROR_MESSAGE)

    def register(self, application: Application) -> None:
        """
        Добавляет обработчики в приложение
        """
        application.add_handler(CommandHandler("start", self.start_command))
        application.add_handler(CommandHandler("help", self.help_command))
        application.add_handler(CommandHandler("reset", self.reset_command))
        application.add_handler(CommandHandler("suggest", self.suggest_command))
        application.add_handler(CommandHandler("save", self.save_command))
        application.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, self.handle_message))
        application.add_error_handler(self.error_handler)


def create_application(config: Config) -> Application:
    """
    Создает и настраивает приложение бота
    """
    completion_client = DeepSeekClient.from_config(config)

    async def close_client(app: Application) -> None:
        await completion_client.close()

    application = (
        Application.builder()
        .token(config.TELEGRAM_BOT_TOKEN)
        .post_shutdown(close_client)
        .build()
    )

    bot = KnowledgeBot(
        conversations=ConversationService.from_config(config),
        completion_client=completion_client,
        notifier=TelegramNotifier(application.bot, max_message_length=config.MAX_MESSAGE_LENGTH),
        knowledge_sink=JsonKnowledgeSink(config.KNOWLEDGE_DIR),
        temperature=config.DEFAULT_TEMPERATURE,
        max_tokens=config.DEFAULT_MAX_TOKENS
    )
    bot.register(application)
    application.bot_data["knowledge_bot"] = bot

    logger.info("Приложение бота создано")
    return application
