"""
Модели представления панели: статистика, строки таблицы, уведомления.
"""

from typing import Literal

from pydantic import BaseModel

from repair_dashboard.models.repair import RepairStatus

NotificationType = Literal["success", "error"]


class Notification(BaseModel):
    """Кратковременное уведомление для пользователя."""

    message: str
    type: NotificationType = "success"


class ActionOutcome(BaseModel):
    """
    Итог действия контроллера.

    Атрибуты:
        notification: Уведомление, которое нужно показать (если есть).
        refreshed (bool): Был ли обновлен снимок данных.
        close_form (bool): Нужно ли закрыть форму создания.
    """

    notification: Notification | None = None
    refreshed: bool = False
    close_form: bool = False


class DashboardStats(BaseModel):
    total_income: float = 0.0
    completed_count: int = 0
    pending_count: int = 0
    total_count: int = 0


class RepairRow(BaseModel):
    """Одна строка таблицы ремонтов."""

    id: str
    label: str
    cliente: str
    dispositivo: str
    problema: str
    estado: RepairStatus
    estado_label: str
    precio_text: str
    fecha_text: str


class DashboardView(BaseModel):
    """Полное представление панели, построенное из снимка данных."""

    stats: DashboardStats
    income_text: str
    rows: list[RepairRow]
    empty_message: str | None = None
