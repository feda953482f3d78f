"""
Тесты для DashboardController на хранилище в памяти.
"""

from datetime import datetime, timedelta, timezone

import pytest

from repair_dashboard.models.repair import Repair, RepairDraft
from repair_dashboard.models.result import StoreResult
from repair_dashboard.services.dashboard import (
    DELETE_FAILED_MESSAGE,
    DELETED_MESSAGE,
    INVALID_FORM_MESSAGE,
    LOAD_FAILED_MESSAGE,
    SAVE_FAILED_MESSAGE,
    SAVED_MESSAGE,
    STATUS_UPDATE_FAILED_MESSAGE,
    STATUS_UPDATED_MESSAGE,
    DashboardController,
)

ANA_FIELDS = {
    "cliente": "Ana",
    "dispositivo": "iPhone 12",
    "problema": "Pantalla rota",
    "precio": 15000,
    "estado": "en-proceso",
}


class InMemoryRecordStore:
    """Хранилище в памяти с тем же интерфейсом, что и RecordStore."""

    def __init__(self) -> None:
        self.rows: dict[str, Repair] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self._next_id = 1

    def _failed(self, operation: str) -> bool:
        self.calls.append(operation)
        return operation in self.fail_on

    def seed(self, repair_id: str, **fields) -> Repair:
        repair = Repair(id=repair_id, **{**ANA_FIELDS, **fields})
        self.rows[repair_id] = repair
        return repair

    async def list_all(self) -> StoreResult[list[Repair]]:
        if self._failed("list_all"):
            return StoreResult.failure("store_error", "boom")
        repairs = sorted(self.rows.values(), key=lambda r: r.fecha, reverse=True)
        return StoreResult.success(repairs)

    async def create(self, draft: RepairDraft) -> StoreResult[Repair]:
        if self._failed("create"):
            return StoreResult.failure("store_error", "boom")
        repair = Repair(id=f"r{self._next_id}", **draft.model_dump())
        self._next_id += 1
        self.rows[repair.id] = repair
        return StoreResult.success(repair)

    async def update_status(self, repair_id: str, estado: str) -> StoreResult[None]:
        if self._failed("update_status"):
            return StoreResult.failure("store_error", "boom")
        if repair_id not in self.rows:
            return StoreResult.failure("not_found", repair_id)
        self.rows[repair_id] = self.rows[repair_id].model_copy(
            update={"estado": estado}
        )
        return StoreResult.success()

    async def delete(self, repair_id: str) -> StoreResult[None]:
        if self._failed("delete"):
            return StoreResult.failure("store_error", "boom")
        if self.rows.pop(repair_id, None) is None:
            return StoreResult.failure("not_found", repair_id)
        return StoreResult.success()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def controller(store) -> DashboardController:
    return DashboardController(store)


# --- Создание ---


@pytest.mark.asyncio
async def test_create_then_list_round_trip(controller, store):
    """Тест: Созданный ремонт появляется в снимке с назначенным id."""
    outcome = await controller.create_record(ANA_FIELDS)

    assert outcome.close_form
    assert outcome.refreshed
    assert outcome.notification.message == SAVED_MESSAGE
    assert outcome.notification.type == "success"

    result = await store.list_all()
    assert len(result.value) == 1
    assert len(controller.repairs) == 1
    repair = controller.repairs[0]
    assert repair.id
    assert repair.cliente == "Ana"
    assert repair.dispositivo == "iPhone 12"
    assert repair.problema == "Pantalla rota"
    assert repair.precio == 15000
    assert repair.estado == "en-proceso"


@pytest.mark.asyncio
async def test_create_stamps_fecha_ignoring_form_value(controller):
    before = datetime.now(timezone.utc)
    await controller.create_record(
        {**ANA_FIELDS, "fecha": "1999-01-01T00:00:00Z", "id": "forged"}
    )

    repair = controller.repairs[0]
    assert repair.fecha >= before
    assert repair.id != "forged"


@pytest.mark.asyncio
async def test_create_rejects_negative_price_without_store_call(controller, store):
    """Тест: Отрицательная цена отклоняется до обращения к хранилищу."""
    outcome = await controller.create_record({**ANA_FIELDS, "precio": -1})

    assert outcome.notification.message == INVALID_FORM_MESSAGE
    assert outcome.notification.type == "error"
    assert not outcome.close_form
    assert store.calls == []
    assert controller.repairs == ()


@pytest.mark.asyncio
async def test_create_accepts_zero_price(controller):
    outcome = await controller.create_record({**ANA_FIELDS, "precio": 0})

    assert outcome.close_form
    assert controller.repairs[0].precio == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [{"cliente": "  "}, {"dispositivo": ""}, {"problema": ""}, {"precio": "abc"}],
)
async def test_create_rejects_incomplete_form(controller, store, overrides):
    outcome = await controller.create_record({**ANA_FIELDS, **overrides})

    assert outcome.notification.message == INVALID_FORM_MESSAGE
    assert store.calls == []


@pytest.mark.asyncio
async def test_create_store_failure_does_not_refresh(controller, store):
    store.fail_on.add("create")

    outcome = await controller.create_record(ANA_FIELDS)

    assert outcome.notification.message == SAVE_FAILED_MESSAGE
    assert not outcome.close_form
    assert not outcome.refreshed
    assert "list_all" not in store.calls


# --- Смена статуса ---


@pytest.mark.asyncio
async def test_change_status_twice_restores_original(controller, store):
    """Тест: Два переключения статуса возвращают исходное значение."""
    store.seed("r1")
    await controller.refresh()

    first = await controller.change_status("r1")
    assert first.notification.message == STATUS_UPDATED_MESSAGE
    assert controller.repairs[0].estado == "realizado"

    await controller.change_status("r1")
    assert controller.repairs[0].estado == "en-proceso"


@pytest.mark.asyncio
async def test_change_status_unknown_id_is_silent(controller, store):
    outcome = await controller.change_status("missing")

    assert outcome.notification is None
    assert not outcome.refreshed
    assert store.calls == []


@pytest.mark.asyncio
async def test_change_status_store_failure_keeps_snapshot(controller, store):
    store.seed("r1")
    await controller.refresh()
    store.fail_on.add("update_status")

    outcome = await controller.change_status("r1")

    assert outcome.notification.message == STATUS_UPDATE_FAILED_MESSAGE
    assert outcome.notification.type == "error"
    assert controller.repairs[0].estado == "en-proceso"


# --- Удаление ---


@pytest.mark.asyncio
async def test_delete_confirmed_empties_snapshot(controller, store):
    """Тест: Удаление единственного ремонта дает пустой снимок."""
    store.seed("r1")
    await controller.refresh()

    outcome = await controller.delete_record("r1", confirmed=True)

    assert outcome.notification.message == DELETED_MESSAGE
    assert controller.repairs == ()
    assert controller.stats().total_count == 0


@pytest.mark.asyncio
async def test_delete_declined_does_nothing(controller, store):
    store.seed("r1")
    await controller.refresh()
    store.calls.clear()

    outcome = await controller.delete_record("r1", confirmed=False)

    assert outcome.notification is None
    assert store.calls == []
    assert len(controller.repairs) == 1


@pytest.mark.asyncio
async def test_delete_failure_keeps_record_listed(controller, store):
    """Тест: При ошибке удаления снимок не меняется."""
    store.seed("r1")
    await controller.refresh()
    store.fail_on.add("delete")

    outcome = await controller.delete_record("r1", confirmed=True)

    assert outcome.notification.message == DELETE_FAILED_MESSAGE
    assert [repair.id for repair in controller.repairs] == ["r1"]
    result = await store.list_all()
    assert [repair.id for repair in result.value] == ["r1"]


# --- Обновление снимка и статистика ---


@pytest.mark.asyncio
async def test_refresh_is_idempotent(controller, store):
    now = datetime.now(timezone.utc)
    store.seed("r1", fecha=now - timedelta(days=1))
    store.seed("r2", fecha=now, estado="realizado", precio=500)

    await controller.refresh()
    first_snapshot, first_stats = controller.repairs, controller.stats()
    await controller.refresh()

    assert controller.repairs == first_snapshot
    assert controller.stats() == first_stats
    assert [repair.id for repair in controller.repairs] == ["r2", "r1"]


@pytest.mark.asyncio
async def test_refresh_failure_keeps_previous_snapshot(controller, store):
    store.seed("r1")
    await controller.refresh()
    store.fail_on.add("list_all")

    outcome = await controller.load()

    assert outcome.notification.message == LOAD_FAILED_MESSAGE
    assert not outcome.refreshed
    assert [repair.id for repair in controller.repairs] == ["r1"]


@pytest.mark.asyncio
async def test_stats_follow_snapshot(controller, store):
    """Тест: Статистика пересчитывается из снимка после каждого изменения."""
    store.seed("r1", estado="realizado", precio=1000)
    store.seed("r2", estado="realizado", precio=250.5)
    store.seed("r3", estado="en-proceso", precio=9999)
    await controller.refresh()

    stats = controller.stats()
    assert stats.total_income == 1250.5
    assert stats.completed_count == 2
    assert stats.pending_count == 1
    assert stats.pending_count + stats.completed_count == stats.total_count == 3

    await controller.change_status("r3")
    assert controller.stats().total_income == 11249.5
    assert controller.view().stats == controller.stats()
