"""
Модели данных, связанные с ремонтом устройства.
"""

import math
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Возможные статусы ремонта
RepairStatus = Literal["en-proceso", "realizado"]

STATUS_IN_PROGRESS: RepairStatus = "en-proceso"
STATUS_DONE: RepairStatus = "realizado"

# Порядок колонок на листе Google-таблицы
REPAIR_FIELDS = (
    "id",
    "cliente",
    "dispositivo",
    "problema",
    "precio",
    "estado",
    "fecha",
)


def toggle_status(estado: RepairStatus) -> RepairStatus:
    """Переключает статус между 'en-proceso' и 'realizado'."""
    return STATUS_DONE if estado == STATUS_IN_PROGRESS else STATUS_IN_PROGRESS


class RepairDraft(BaseModel):
    """
    Данные для создания нового ремонта (все поля, кроме id).

    Строки обрезаются по краям и не могут быть пустыми,
    цена должна быть конечным неотрицательным числом.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    cliente: str = Field(..., min_length=1, description="Customer name")
    dispositivo: str = Field(..., min_length=1, description="Device description")
    problema: str = Field(..., min_length=1, description="Issue description")
    precio: float = Field(..., ge=0, description="Repair price")
    estado: RepairStatus = STATUS_IN_PROGRESS
    fecha: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("precio")
    @classmethod
    def _precio_is_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("precio must be a finite number")
        return value

    @field_validator("fecha")
    @classmethod
    def _fecha_is_aware(cls, value: datetime) -> datetime:
        # Дата без часового пояса считается UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Repair(RepairDraft):
    """
    Модель ремонта, представляющая строку листа 'reparaciones'.

    Атрибуты:
        id (str): Идентификатор, назначаемый хранилищем при создании.
        cliente (str): Имя клиента.
        dispositivo (str): Описание устройства.
        problema (str): Описание неисправности.
        precio (float): Стоимость ремонта.
        estado (RepairStatus): Текущий статус ремонта.
        fecha (datetime): Время создания, не меняется.
    """

    id: str = Field(..., min_length=1, description="Store-assigned identifier")
