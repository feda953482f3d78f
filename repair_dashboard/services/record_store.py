"""
Сервисный модуль для работы с коллекцией ремонтов в Google Sheets.

Лист Google-таблицы используется как коллекция документов: первая строка
содержит имена полей, каждая следующая строка - один ремонт.
Все ошибки хранилища перехватываются здесь и превращаются в StoreResult.
Блокирующие запросы gspread выполняются в отдельном потоке.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable

import gspread
import requests.exceptions
from gspread.exceptions import APIError
from gspread.utils import ValueRenderOption
from pydantic import ValidationError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from repair_dashboard.models.repair import (
    REPAIR_FIELDS,
    Repair,
    RepairDraft,
    RepairStatus,
)
from repair_dashboard.models.result import StoreResult

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "reparaciones"


def is_retryable_gspread_error(exception: BaseException) -> bool:
    return isinstance(exception, APIError) and exception.response.status_code >= 500


class RecordStore:
    """
    Класс для CRUD-операций над одной коллекцией ремонтов.
    """

    def __init__(
        self,
        client: gspread.Client,
        spreadsheet_id: str,
        collection_name: str = DEFAULT_COLLECTION,
        retry_attempts: int = 1,
    ) -> None:
        self.client = client
        self.spreadsheet_id = spreadsheet_id
        self.collection_name = collection_name
        self.retry_attempts = retry_attempts
        self.lock = asyncio.Lock()
        logger.info(
            f"Record store initialized for collection '{collection_name}' "
            f"in spreadsheet {spreadsheet_id}."
        )

    def _call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Выполняет запрос к хранилищу с политикой повторов для временных ошибок."""
        retrying = Retrying(
            retry=(
                retry_if_exception_type(requests.exceptions.RequestException)
                | retry_if_exception(is_retryable_gspread_error)
            ),
            wait=wait_exponential(multiplier=2, min=2, max=30),
            stop=stop_after_attempt(self.retry_attempts),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(func, *args, **kwargs)

    def _worksheet(self) -> gspread.Worksheet:
        """Открывает Google-таблицу и возвращает лист коллекции."""
        spreadsheet = self._call(self.client.open_by_key, self.spreadsheet_id)
        return self._call(spreadsheet.worksheet, self.collection_name)

    def _find_row(self, worksheet: gspread.Worksheet, repair_id: str) -> int | None:
        cell = self._call(worksheet.find, repair_id, in_column=1)
        return cell.row if cell else None

    def _read_repairs(self) -> list[Repair]:
        # Числа читаются без форматирования: локаль таблицы не влияет на цену
        worksheet = self._worksheet()
        records = self._call(
            worksheet.get_all_records,
            value_render_option=ValueRenderOption.unformatted,
            numericise_ignore=["all"],
        )
        repairs: list[Repair] = []
        for record in records:
            try:
                repairs.append(Repair(**record))
            except ValidationError as e:
                logger.warning(
                    f"Skipping malformed repair row {record.get('id')!r}: {e}"
                )
        repairs.sort(key=lambda repair: repair.fecha, reverse=True)
        return repairs

    def _append_repair(self, repair: Repair) -> None:
        worksheet = self._worksheet()
        headers = self._call(worksheet.row_values, 1) or list(REPAIR_FIELDS)
        data = repair.model_dump(mode="json")
        row_values = [data.get(header, "") for header in headers]
        self._call(worksheet.append_row, row_values, value_input_option="RAW")

    def _update_status_cell(self, repair_id: str, estado: RepairStatus) -> bool:
        worksheet = self._worksheet()
        row = self._find_row(worksheet, repair_id)
        if row is None:
            return False
        headers = self._call(worksheet.row_values, 1) or list(REPAIR_FIELDS)
        column = headers.index("estado") + 1
        self._call(worksheet.update_cell, row, column, estado)
        return True

    def _delete_row(self, repair_id: str) -> bool:
        worksheet = self._worksheet()
        row = self._find_row(worksheet, repair_id)
        if row is None:
            return False
        self._call(worksheet.delete_rows, row)
        return True

    async def list_all(self) -> StoreResult[list[Repair]]:
        """Возвращает все ремонты, отсортированные по дате (сначала новые)."""
        logger.debug(f"Listing repairs from '{self.collection_name}'.")
        try:
            repairs = await asyncio.to_thread(self._read_repairs)
        except Exception as e:
            logger.error(f"Failed to list repairs: {e}", exc_info=True)
            return StoreResult.failure("store_error", str(e))
        logger.info(f"Fetched {len(repairs)} repairs.")
        return StoreResult.success(repairs)

    async def create(self, draft: RepairDraft) -> StoreResult[Repair]:
        """Создает новую строку и возвращает ремонт с назначенным id."""
        repair = Repair(id=uuid.uuid4().hex, **draft.model_dump())
        logger.info(f"Creating repair {repair.id} for client '{repair.cliente}'.")
        async with self.lock:
            try:
                await asyncio.to_thread(self._append_repair, repair)
            except Exception as e:
                logger.error(f"Failed to create repair: {e}", exc_info=True)
                return StoreResult.failure("store_error", str(e))
        logger.info(f"Repair {repair.id} created successfully.")
        return StoreResult.success(repair)

    async def update_status(
        self, repair_id: str, estado: RepairStatus
    ) -> StoreResult[None]:
        """Обновляет только поле 'estado' у существующего ремонта."""
        logger.info(f"Updating status of repair {repair_id} to '{estado}'.")
        async with self.lock:
            try:
                found = await asyncio.to_thread(
                    self._update_status_cell, repair_id, estado
                )
            except Exception as e:
                logger.error(
                    f"Failed to update status of repair {repair_id}: {e}", exc_info=True
                )
                return StoreResult.failure("store_error", str(e))
        if not found:
            logger.warning(f"Repair {repair_id} not found for status update.")
            return StoreResult.failure("not_found", f"Repair {repair_id} not found")
        logger.info(f"Status of repair {repair_id} updated successfully.")
        return StoreResult.success()

    async def delete(self, repair_id: str) -> StoreResult[None]:
        """Удаляет строку ремонта по его id."""
        logger.info(f"Attempting to delete repair {repair_id}.")
        async with self.lock:
            try:
                found = await asyncio.to_thread(self._delete_row, repair_id)
            except Exception as e:
                logger.error(f"Failed to delete repair {repair_id}: {e}", exc_info=True)
                return StoreResult.failure("store_error", str(e))
        if not found:
            logger.warning(f"Repair {repair_id} not found for deletion.")
            return StoreResult.failure("not_found", f"Repair {repair_id} not found")
        logger.info(f"Repair {repair_id} deleted successfully.")
        return StoreResult.success()
