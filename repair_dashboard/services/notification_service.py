"""
Сервис для показа кратковременных уведомлений в чате.

Уведомление отправляется отдельным сообщением и удаляется через заданное время.
"""

import logging

from telegram import Bot
from telegram.error import TelegramError
from telegram.ext import ContextTypes, JobQueue

from repair_dashboard.models.dashboard import Notification

logger = logging.getLogger(__name__)

ALERT_PREFIX = {"success": "🔔", "error": "⚠️"}


async def _dismiss_alert(context: ContextTypes.DEFAULT_TYPE) -> None:
    """Задача JobQueue: удаляет сообщение-уведомление."""
    job = context.job
    try:
        await context.bot.delete_message(chat_id=job.chat_id, message_id=job.data)
    except TelegramError as e:
        logger.warning(f"Failed to dismiss alert {job.data} in chat {job.chat_id}: {e}")


class NotificationService:
    @staticmethod
    def format_alert(notification: Notification) -> str:
        return f"{ALERT_PREFIX[notification.type]} {notification.message}"

    @staticmethod
    async def send_alert(
        bot: Bot,
        chat_id: int,
        notification: Notification,
        job_queue: JobQueue | None,
        duration: float,
    ) -> None:
        """
        Отправляет уведомление и планирует его удаление через duration секунд.
        """
        try:
            message = await bot.send_message(
                chat_id=chat_id, text=NotificationService.format_alert(notification)
            )
        except TelegramError as e:
            logger.error(
                f"Failed to send alert '{notification.message}' to chat {chat_id}: {e}",
                exc_info=True,
            )
            return

        if job_queue is None:
            logger.warning("Job queue is not available, alert will not be dismissed.")
            return

        job_queue.run_once(
            _dismiss_alert,
            when=duration,
            data=message.message_id,
            chat_id=chat_id,
            name=f"dismiss_alert:{chat_id}:{message.message_id}",
        )
        logger.debug(
            f"Alert {message.message_id} scheduled for removal in {duration}s."
        )
