"""
Основная точка входа в приложение.

Этот файл отвечает за сборку зависимостей и запуск Telegram-бота панели ремонтов.
"""

import logging

import gspread
from google.oauth2.service_account import Credentials
from telegram.ext import Application, CallbackQueryHandler, CommandHandler

from repair_dashboard.core.config import Settings, get_settings
from repair_dashboard.core.logging_config import setup_logging
from repair_dashboard.handlers import common
from repair_dashboard.handlers import dashboard as dashboard_handlers
from repair_dashboard.handlers.repair_form import build_repair_form_handler
from repair_dashboard.models.actions import callback_pattern
from repair_dashboard.services.dashboard import DashboardController
from repair_dashboard.services.record_store import RecordStore

logger = logging.getLogger(__name__)

GOOGLE_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def build_store_client(settings: Settings) -> gspread.Client:
    """Создает клиент Google Sheets из ключа сервисного аккаунта."""
    credentials_path = settings.credentials_path
    if not credentials_path.exists():
        logger.error(f"Credentials file not found at: {credentials_path}")
        raise FileNotFoundError(
            f"Google credentials file not found at {credentials_path}"
        )
    credentials = Credentials.from_service_account_file(
        str(credentials_path), scopes=GOOGLE_SCOPES
    )
    return gspread.authorize(credentials)


def build_application(
    settings: Settings, controller: DashboardController
) -> Application:
    """Собирает приложение бота и регистрирует обработчики."""
    application = Application.builder().token(settings.bot_token).build()

    # Сохраняем зависимости в bot_data для доступа из обработчиков
    application.bot_data["dashboard"] = controller
    application.bot_data["settings"] = settings

    # Форма регистрируется первой: ее кнопки не должны попасть в обработчик панели
    application.add_handler(build_repair_form_handler())

    application.add_handler(
        CommandHandler(["start", "dashboard"], dashboard_handlers.show_dashboard)
    )
    application.add_handler(
        CallbackQueryHandler(
            dashboard_handlers.dashboard_callback,
            pattern=callback_pattern(*dashboard_handlers.ACTION_HANDLERS),
        )
    )
    application.add_error_handler(common.error_handler)
    return application


def main() -> None:
    """Основная функция для запуска бота."""
    settings = get_settings()
    setup_logging(settings.log_level)

    logger.info("Initializing services...")
    store = RecordStore(
        client=build_store_client(settings),
        spreadsheet_id=settings.google_sheet_id,
        collection_name=settings.repairs_collection,
        retry_attempts=settings.store_retry_attempts,
    )
    controller = DashboardController(store, timezone_name=settings.display_timezone)

    logger.info("Starting bot...")
    application = build_application(settings, controller)

    logger.info("Bot is running in polling mode.")
    application.run_polling()


if __name__ == "__main__":
    main()
