"""
Тесты для NotificationService.
"""

import pytest
from telegram.error import TelegramError

from repair_dashboard.models.dashboard import Notification
from repair_dashboard.services.notification_service import (
    NotificationService,
    _dismiss_alert,
)


@pytest.fixture
def mock_bot(mocker):
    bot = mocker.MagicMock()
    bot.send_message = mocker.AsyncMock(return_value=mocker.MagicMock(message_id=55))
    bot.delete_message = mocker.AsyncMock()
    return bot


def test_format_alert_prefix_depends_on_type():
    assert NotificationService.format_alert(Notification(message="Ok")) == "🔔 Ok"
    assert (
        NotificationService.format_alert(Notification(message="Mal", type="error"))
        == "⚠️ Mal"
    )


@pytest.mark.asyncio
async def test_send_alert_schedules_dismissal(mock_bot, mocker):
    """Тест: Уведомление отправляется и планируется к удалению."""
    job_queue = mocker.MagicMock()

    await NotificationService.send_alert(
        bot=mock_bot,
        chat_id=7,
        notification=Notification(message="Estado actualizado"),
        job_queue=job_queue,
        duration=3.0,
    )

    mock_bot.send_message.assert_awaited_once_with(
        chat_id=7, text="🔔 Estado actualizado"
    )
    job_queue.run_once.assert_called_once()
    kwargs = job_queue.run_once.call_args.kwargs
    assert kwargs["when"] == 3.0
    assert kwargs["data"] == 55
    assert kwargs["chat_id"] == 7


@pytest.mark.asyncio
async def test_send_alert_failure_skips_scheduling(mock_bot, mocker):
    mock_bot.send_message.side_effect = TelegramError("Chat not found")
    job_queue = mocker.MagicMock()

    await NotificationService.send_alert(
        bot=mock_bot,
        chat_id=7,
        notification=Notification(message="x"),
        job_queue=job_queue,
        duration=3.0,
    )

    job_queue.run_once.assert_not_called()


@pytest.mark.asyncio
async def test_send_alert_without_job_queue(mock_bot):
    await NotificationService.send_alert(
        bot=mock_bot,
        chat_id=7,
        notification=Notification(message="x"),
        job_queue=None,
        duration=3.0,
    )

    mock_bot.send_message.assert_awaited_once()


@pytest.mark.asyncio
async def test_dismiss_alert_deletes_message(mock_bot, mocker):
    context = mocker.MagicMock()
    context.bot = mock_bot
    context.job.chat_id = 7
    context.job.data = 55

    await _dismiss_alert(context)

    mock_bot.delete_message.assert_awaited_once_with(chat_id=7, message_id=55)


@pytest.mark.asyncio
async def test_dismiss_alert_tolerates_already_deleted(mock_bot, mocker):
    mock_bot.delete_message.side_effect = TelegramError("Message to delete not found")
    context = mocker.MagicMock()
    context.bot = mock_bot

    await _dismiss_alert(context)
