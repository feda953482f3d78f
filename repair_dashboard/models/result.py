"""
Явный результат операций с хранилищем.

Позволяет отличить "записей нет" от "хранилище недоступно".
"""

from typing import Generic, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

StoreErrorKind = Literal["store_error", "not_found"]


class StoreResult(BaseModel, Generic[T]):
    """
    Результат одной операции RecordStore.

    Атрибуты:
        ok (bool): Успешна ли операция.
        value: Полезная нагрузка при успехе.
        error_kind: Вид ошибки при неудаче.
        error_message: Текст ошибки для логов.
    """

    ok: bool
    value: T | None = None
    error_kind: StoreErrorKind | None = None
    error_message: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "StoreResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: StoreErrorKind, message: str) -> "StoreResult[T]":
        return cls(ok=False, error_kind=kind, error_message=message)
