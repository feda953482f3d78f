"""
Действия, доступные из кнопок панели, и разбор callback_data.
"""

from enum import Enum


class Action(str, Enum):
    """Маркер действия, который несет inline-кнопка."""

    ADD_REPAIR = "add_repair"
    SAVE_REPAIR = "save_repair"
    CLOSE_MODAL = "close_modal"
    CHANGE_STATUS = "change_status"
    DELETE_REPAIR = "delete_repair"
    CONFIRM_DELETE = "confirm_delete"
    CANCEL_DELETE = "cancel_delete"
    REFRESH = "refresh"


# Действия, относящиеся к конкретной записи
ROW_ACTIONS = (
    Action.CHANGE_STATUS,
    Action.DELETE_REPAIR,
    Action.CONFIRM_DELETE,
    Action.CANCEL_DELETE,
)


def make_callback_data(action: Action, repair_id: str | None = None) -> str:
    """Собирает callback_data в формате 'действие[:id]'."""
    if repair_id is None:
        return action.value
    return f"{action.value}:{repair_id}"


def parse_callback_data(data: str) -> tuple[Action, str | None]:
    """
    Разбирает callback_data кнопки.

    Raises:
        ValueError: Если действие неизвестно или у действия над записью нет id.
    """
    action_str, _, repair_id = data.partition(":")
    action = Action(action_str)
    if action in ROW_ACTIONS and not repair_id:
        raise ValueError(f"Action '{action.value}' requires a repair id")
    return action, repair_id or None


def callback_pattern(*actions: Action) -> str:
    """Регулярное выражение для CallbackQueryHandler по набору действий."""
    names = "|".join(action.value for action in actions)
    return rf"^({names})(:|$)"
