"""
Модуль конфигурации проекта.

Загружает настройки из переменных окружения с помощью Pydantic Settings.
Обеспечивает централизованный доступ к конфигурационным данным.
"""

from pathlib import Path

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """
    Основные настройки приложения.

    Атрибуты:
        bot_token (str): Секретный токен для доступа к Telegram Bot API.
        google_sheet_id (str): ID Google-таблицы, в которой хранятся ремонты.
        repairs_collection (str): Имя листа (коллекции) с ремонтами.
        credentials_file (str): Путь к JSON-ключу сервисного аккаунта Google.
        alert_duration_seconds (float): Через сколько секунд исчезает уведомление.
        store_retry_attempts (int): Сколько попыток делать при временных ошибках хранилища.
        display_timezone (str): Часовой пояс для отображения дат.
        log_level (str): Уровень логирования.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # --- Telegram Bot Settings ---
    bot_token: str = Field(..., description="Telegram Bot API Token")

    # --- Google Sheets Settings ---
    google_sheet_id: str = Field(..., description="Google Sheet ID for repairs")
    repairs_collection: str = Field(
        default="reparaciones", description="Worksheet used as the repairs collection"
    )
    credentials_file: str = Field(
        default="credentials.json",
        description="Service account credentials, relative to the project root",
    )
    store_retry_attempts: int = Field(
        default=1,
        ge=1,
        description="Attempts per store request; 1 disables retries",
    )

    # --- Dashboard Settings ---
    alert_duration_seconds: float = Field(
        default=3.0, gt=0, description="Lifetime of a transient alert message"
    )
    display_timezone: str = Field(
        default="America/Argentina/Buenos_Aires",
        description="Timezone for displaying dates to users",
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @computed_field
    @property
    def credentials_path(self) -> Path:
        """Абсолютный путь к файлу с ключом сервисного аккаунта."""
        path = Path(self.credentials_file)
        return path if path.is_absolute() else PROJECT_ROOT / path


def get_settings() -> Settings:
    """Создает экземпляр настроек из окружения и файла .env."""
    return Settings()
