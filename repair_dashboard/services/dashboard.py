"""
Контроллер панели ремонтов.

Хранит снимок всех ремонтов и проводит каждое изменение по схеме:
изменение в хранилище -> повторная загрузка -> перерисовка.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Mapping

from pydantic import ValidationError

from repair_dashboard.models.dashboard import (
    ActionOutcome,
    DashboardStats,
    DashboardView,
    Notification,
)
from repair_dashboard.models.repair import Repair, RepairDraft, toggle_status
from repair_dashboard.models.result import StoreResult
from repair_dashboard.services.record_store import RecordStore
from repair_dashboard.services.rendering import (
    DEFAULT_TIMEZONE,
    build_view,
    compute_stats,
)

logger = logging.getLogger(__name__)

# --- Тексты уведомлений ---
STATUS_UPDATED_MESSAGE = "Estado actualizado"
STATUS_UPDATE_FAILED_MESSAGE = "❌ Error al actualizar el estado"
INVALID_FORM_MESSAGE = "Completa todos los campos correctamente"
SAVED_MESSAGE = "✅ Guardado correctamente"
SAVE_FAILED_MESSAGE = "❌ Error al guardar"
DELETED_MESSAGE = "Reparación eliminada"
DELETE_FAILED_MESSAGE = "❌ Error al eliminar"
LOAD_FAILED_MESSAGE = "❌ Error al cargar las reparaciones"


class DashboardController:
    """
    Единственный владелец снимка данных панели.
    """

    def __init__(self, store: RecordStore, timezone_name: str = DEFAULT_TIMEZONE):
        self.store = store
        self.timezone_name = timezone_name
        self._repairs: list[Repair] = []

    @property
    def repairs(self) -> tuple[Repair, ...]:
        return tuple(self._repairs)

    def get_repair(self, repair_id: str) -> Repair | None:
        for repair in self._repairs:
            if repair.id == repair_id:
                return repair
        return None

    def stats(self) -> DashboardStats:
        return compute_stats(self._repairs)

    def view(self) -> DashboardView:
        return build_view(self._repairs, self.timezone_name)

    async def refresh(self) -> StoreResult[list[Repair]]:
        """
        Загружает все ремонты заново и целиком заменяет снимок.

        При ошибке хранилища прежний снимок остается без изменений.
        """
        result = await self.store.list_all()
        if result.ok:
            self._repairs = list(result.value or [])
            logger.debug(f"Snapshot replaced with {len(self._repairs)} repairs.")
        else:
            logger.warning(
                f"Refresh failed ({result.error_kind}), keeping previous snapshot."
            )
        return result

    async def load(self) -> ActionOutcome:
        """Первичная (или ручная) загрузка панели."""
        result = await self.refresh()
        if not result.ok:
            return ActionOutcome(
                notification=Notification(message=LOAD_FAILED_MESSAGE, type="error")
            )
        return ActionOutcome(refreshed=True)

    async def change_status(self, repair_id: str) -> ActionOutcome:
        """Переключает статус ремонта. Неизвестный id молча игнорируется."""
        repair = self.get_repair(repair_id)
        if repair is None:
            logger.debug(f"Repair {repair_id} is not in the snapshot, ignoring.")
            return ActionOutcome()

        new_status = toggle_status(repair.estado)
        result = await self.store.update_status(repair_id, new_status)
        if not result.ok:
            return ActionOutcome(
                notification=Notification(
                    message=STATUS_UPDATE_FAILED_MESSAGE, type="error"
                )
            )

        await self.refresh()
        return ActionOutcome(
            notification=Notification(message=STATUS_UPDATED_MESSAGE),
            refreshed=True,
        )

    async def create_record(self, fields: Mapping[str, Any]) -> ActionOutcome:
        """
        Проверяет поля формы и создает новый ремонт.

        Дата создания проставляется здесь, значение из формы игнорируется.
        """
        data = {
            key: value for key, value in fields.items() if key not in ("id", "fecha")
        }
        try:
            draft = RepairDraft(**data, fecha=datetime.now(timezone.utc))
        except ValidationError as e:
            logger.info(f"Rejected repair form: {e.error_count()} invalid field(s).")
            return ActionOutcome(
                notification=Notification(message=INVALID_FORM_MESSAGE, type="error")
            )

        result = await self.store.create(draft)
        if not result.ok:
            return ActionOutcome(
                notification=Notification(message=SAVE_FAILED_MESSAGE, type="error")
            )

        await self.refresh()
        return ActionOutcome(
            notification=Notification(message=SAVED_MESSAGE),
            refreshed=True,
            close_form=True,
        )

    async def delete_record(self, repair_id: str, confirmed: bool) -> ActionOutcome:
        """Удаляет ремонт только после явного подтверждения пользователя."""
        if not confirmed:
            logger.debug(f"Deletion of repair {repair_id} declined.")
            return ActionOutcome()

        result = await self.store.delete(repair_id)
        if not result.ok:
            return ActionOutcome(
                notification=Notification(message=DELETE_FAILED_MESSAGE, type="error")
            )

        await self.refresh()
        return ActionOutcome(
            notification=Notification(message=DELETED_MESSAGE),
            refreshed=True,
        )
