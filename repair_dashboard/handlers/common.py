"""
Общие вспомогательные функции обработчиков и обработчик ошибок.
"""

import logging

from telegram import Update
from telegram.ext import ContextTypes

from repair_dashboard.models.dashboard import Notification
from repair_dashboard.services.dashboard import DashboardController
from repair_dashboard.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

DEFAULT_ALERT_DURATION = 3.0
UNEXPECTED_ERROR_MESSAGE = "❌ Ocurrió un error inesperado. Intenta de nuevo."


def get_controller(context: ContextTypes.DEFAULT_TYPE) -> DashboardController:
    return context.application.bot_data["dashboard"]


async def show_alert(
    context: ContextTypes.DEFAULT_TYPE, chat_id: int, notification: Notification | None
) -> None:
    """Показывает уведомление, если оно есть, с длительностью из настроек."""
    if notification is None:
        return
    settings = context.application.bot_data.get("settings")
    duration = (
        settings.alert_duration_seconds if settings else DEFAULT_ALERT_DURATION
    )
    await NotificationService.send_alert(
        bot=context.bot,
        chat_id=chat_id,
        notification=notification,
        job_queue=context.job_queue,
        duration=duration,
    )


async def error_handler(update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Логирует непредвиденные ошибки и сообщает о них пользователю.
    """
    logger.error("Exception while handling an update:", exc_info=context.error)

    if isinstance(update, Update) and update.effective_chat:
        await show_alert(
            context,
            update.effective_chat.id,
            Notification(message=UNEXPECTED_ERROR_MESSAGE, type="error"),
        )
