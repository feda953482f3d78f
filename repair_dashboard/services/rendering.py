"""
Расчет статистики и построение представления панели из снимка данных.

Все функции чистые: одно и то же состояние всегда дает одно и то же представление.
"""

from datetime import datetime
from typing import Sequence

import pytz

from repair_dashboard.models.dashboard import DashboardStats, DashboardView, RepairRow
from repair_dashboard.models.repair import STATUS_DONE, STATUS_IN_PROGRESS, Repair

DEFAULT_TIMEZONE = "America/Argentina/Buenos_Aires"
EMPTY_MESSAGE = "📱 No hay reparaciones"

STATUS_LABELS = {
    STATUS_DONE: "✅ Realizado",
    STATUS_IN_PROGRESS: "⏳ En Proceso",
}


def compute_stats(repairs: Sequence[Repair]) -> DashboardStats:
    """
    Считает статистику с нуля по текущему снимку.

    Доход учитывает только завершенные ремонты.
    """
    total_income = 0.0
    completed = 0
    pending = 0
    for repair in repairs:
        if repair.estado == STATUS_DONE:
            total_income += repair.precio
            completed += 1
        else:
            pending += 1
    return DashboardStats(
        total_income=total_income,
        completed_count=completed,
        pending_count=pending,
        total_count=len(repairs),
    )


def format_number(value: float) -> str:
    """Форматирует число в стиле es-AR: '.' для тысяч, ',' для дробной части."""
    rounded = round(value, 3)
    integer_part, _, fraction = f"{rounded:.3f}".partition(".")
    sign = ""
    if integer_part.startswith("-"):
        sign, integer_part = "-", integer_part[1:]

    groups = []
    while len(integer_part) > 3:
        groups.insert(0, integer_part[-3:])
        integer_part = integer_part[:-3]
    groups.insert(0, integer_part)

    text = sign + ".".join(groups)
    fraction = fraction.rstrip("0")
    if fraction:
        text += "," + fraction
    return text


def format_price(value: float) -> str:
    return "$" + format_number(value)


def format_fecha(fecha: datetime, timezone_name: str = DEFAULT_TIMEZONE) -> str:
    """Переводит дату создания в часовой пояс отображения."""
    if fecha.tzinfo is None:
        fecha = fecha.replace(tzinfo=pytz.utc)
    local_dt = fecha.astimezone(pytz.timezone(timezone_name))
    return local_dt.strftime("%d/%m/%Y %H:%M")


def build_view(
    repairs: Sequence[Repair], timezone_name: str = DEFAULT_TIMEZONE
) -> DashboardView:
    """Строит представление панели (статистика + строки таблицы)."""
    stats = compute_stats(repairs)
    rows = [
        RepairRow(
            id=repair.id,
            label=f"#{index:03d}",
            cliente=repair.cliente,
            dispositivo=repair.dispositivo,
            problema=repair.problema,
            estado=repair.estado,
            estado_label=STATUS_LABELS[repair.estado],
            precio_text=format_price(repair.precio),
            fecha_text=format_fecha(repair.fecha, timezone_name),
        )
        for index, repair in enumerate(repairs, start=1)
    ]
    return DashboardView(
        stats=stats,
        income_text=format_price(stats.total_income),
        rows=rows,
        empty_message=None if rows else EMPTY_MESSAGE,
    )
