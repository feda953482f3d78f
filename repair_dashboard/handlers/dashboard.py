"""
Обработчики панели ремонтов: вывод панели и кнопки над записями.
"""

import html
import logging
from typing import Awaitable, Callable

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, Update
from telegram.constants import ParseMode
from telegram.error import BadRequest
from telegram.ext import ContextTypes

from repair_dashboard.handlers.common import get_controller, show_alert
from repair_dashboard.models.actions import (
    Action,
    make_callback_data,
    parse_callback_data,
)
from repair_dashboard.models.dashboard import ActionOutcome, DashboardView
from repair_dashboard.models.repair import STATUS_DONE

logger = logging.getLogger(__name__)

DASHBOARD_MESSAGE_KEY = "dashboard_message_id"
CONFIRM_DELETE_MESSAGE = "¿Eliminar reparación?"

ActionHandler = Callable[
    [Update, ContextTypes.DEFAULT_TYPE, str | None], Awaitable[None]
]


def render_dashboard(view: DashboardView) -> tuple[str, InlineKeyboardMarkup]:
    """Превращает представление панели в текст сообщения и клавиатуру."""
    stats = view.stats
    lines = [
        "<b>📊 Panel de reparaciones</b>",
        f"💰 Ingresos: <b>{view.income_text}</b>",
        f"🔧 Reparaciones: <b>{stats.total_count}</b>",
        f"⏳ Pendientes: <b>{stats.pending_count}</b>",
        f"✅ Completadas: <b>{stats.completed_count}</b>",
        "",
    ]
    keyboard = []

    if view.empty_message:
        lines.append(view.empty_message)

    for row in view.rows:
        lines.append(
            f"<b>{row.label}</b> · {html.escape(row.cliente)} · "
            f"{html.escape(row.dispositivo)}\n"
            f"   {html.escape(row.problema)} · {row.precio_text} · {row.estado_label}\n"
            f"   🕓 {row.fecha_text}"
        )
        toggle_icon = "⏳" if row.estado == STATUS_DONE else "✅"
        keyboard.append(
            [
                InlineKeyboardButton(
                    f"{toggle_icon} {row.label}",
                    callback_data=make_callback_data(Action.CHANGE_STATUS, row.id),
                ),
                InlineKeyboardButton(
                    f"🗑️ {row.label}",
                    callback_data=make_callback_data(Action.DELETE_REPAIR, row.id),
                ),
            ]
        )

    keyboard.append(
        [
            InlineKeyboardButton(
                "➕ Nueva reparación", callback_data=make_callback_data(Action.ADD_REPAIR)
            ),
            InlineKeyboardButton(
                "🔄 Actualizar", callback_data=make_callback_data(Action.REFRESH)
            ),
        ]
    )
    return "\n".join(lines), InlineKeyboardMarkup(keyboard)


async def redraw_dashboard(context: ContextTypes.DEFAULT_TYPE, chat_id: int) -> None:
    """
    Перерисовывает сообщение панели из текущего снимка.

    Если сообщение панели еще не отправлялось или недоступно, отправляет новое.
    """
    text, reply_markup = render_dashboard(get_controller(context).view())
    message_id = context.chat_data.get(DASHBOARD_MESSAGE_KEY)

    if message_id is not None:
        try:
            await context.bot.edit_message_text(
                chat_id=chat_id,
                message_id=message_id,
                text=text,
                parse_mode=ParseMode.HTML,
                reply_markup=reply_markup,
            )
            return
        except BadRequest as e:
            if "message is not modified" in str(e).lower():
                return
            logger.warning(
                f"Could not edit dashboard message {message_id} in chat {chat_id}: {e}. "
                "Sending a new one."
            )

    message = await context.bot.send_message(
        chat_id=chat_id, text=text, parse_mode=ParseMode.HTML, reply_markup=reply_markup
    )
    context.chat_data[DASHBOARD_MESSAGE_KEY] = message.message_id


async def apply_outcome(
    context: ContextTypes.DEFAULT_TYPE, chat_id: int, outcome: ActionOutcome
) -> None:
    """Перерисовывает панель после обновления снимка и показывает уведомление."""
    if outcome.refreshed:
        await redraw_dashboard(context, chat_id)
    await show_alert(context, chat_id, outcome.notification)


async def show_dashboard(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """
    Обработчик команд /start и /dashboard.

    Загружает ремонты и отправляет новое сообщение панели.
    """
    chat_id = update.effective_chat.id
    logger.info(f"Dashboard requested in chat {chat_id}.")

    outcome = await get_controller(context).load()
    context.chat_data.pop(DASHBOARD_MESSAGE_KEY, None)
    await redraw_dashboard(context, chat_id)
    await show_alert(context, chat_id, outcome.notification)


# --- Обработчики действий над записями ---


async def _change_status(
    update: Update, context: ContextTypes.DEFAULT_TYPE, repair_id: str | None
) -> None:
    outcome = await get_controller(context).change_status(repair_id)
    await apply_outcome(context, update.effective_chat.id, outcome)


async def _ask_delete_confirmation(
    update: Update, context: ContextTypes.DEFAULT_TYPE, repair_id: str | None
) -> None:
    repair = get_controller(context).get_repair(repair_id)
    if repair is None:
        return

    keyboard = [
        [
            InlineKeyboardButton(
                "🗑️ Sí, eliminar",
                callback_data=make_callback_data(Action.CONFIRM_DELETE, repair_id),
            ),
            InlineKeyboardButton(
                "Cancelar",
                callback_data=make_callback_data(Action.CANCEL_DELETE, repair_id),
            ),
        ]
    ]
    await update.effective_message.reply_text(
        f"{CONFIRM_DELETE_MESSAGE}\n\n"
        f"<b>{html.escape(repair.cliente)}</b> · {html.escape(repair.dispositivo)}",
        parse_mode=ParseMode.HTML,
        reply_markup=InlineKeyboardMarkup(keyboard),
    )


async def _resolve_delete_confirmation(
    update: Update,
    context: ContextTypes.DEFAULT_TYPE,
    repair_id: str | None,
    confirmed: bool,
) -> None:
    # Сообщение с вопросом больше не нужно
    try:
        await update.effective_message.delete()
    except BadRequest as e:
        logger.warning(f"Could not delete confirmation message: {e}")

    outcome = await get_controller(context).delete_record(repair_id, confirmed)
    await apply_outcome(context, update.effective_chat.id, outcome)


async def _confirm_delete(
    update: Update, context: ContextTypes.DEFAULT_TYPE, repair_id: str | None
) -> None:
    await _resolve_delete_confirmation(update, context, repair_id, confirmed=True)


async def _cancel_delete(
    update: Update, context: ContextTypes.DEFAULT_TYPE, repair_id: str | None
) -> None:
    await _resolve_delete_confirmation(update, context, repair_id, confirmed=False)


async def _refresh(
    update: Update, context: ContextTypes.DEFAULT_TYPE, repair_id: str | None
) -> None:
    outcome = await get_controller(context).load()
    await redraw_dashboard(context, update.effective_chat.id)
    await show_alert(context, update.effective_chat.id, outcome.notification)


ACTION_HANDLERS: dict[Action, ActionHandler] = {
    Action.CHANGE_STATUS: _change_status,
    Action.DELETE_REPAIR: _ask_delete_confirmation,
    Action.CONFIRM_DELETE: _confirm_delete,
    Action.CANCEL_DELETE: _cancel_delete,
    Action.REFRESH: _refresh,
}


async def dashboard_callback(
    update: Update, context: ContextTypes.DEFAULT_TYPE
) -> None:
    """
    Обрабатывает нажатия на inline-кнопки панели.

    Формат callback_data: "действие[:id_ремонта]".
    """
    query = update.callback_query
    await query.answer()

    try:
        action, repair_id = parse_callback_data(query.data)
    except ValueError:
        logger.warning(f"Ignoring malformed callback data: {query.data!r}")
        return

    handler = ACTION_HANDLERS.get(action)
    if handler is None:
        logger.warning(f"No dashboard handler for action '{action.value}'.")
        return

    # Панель, на которой нажали кнопку, становится текущей
    if query.message and action in (
        Action.CHANGE_STATUS,
        Action.DELETE_REPAIR,
        Action.REFRESH,
    ):
        context.chat_data[DASHBOARD_MESSAGE_KEY] = query.message.message_id

    logger.info(f"Dashboard action '{action.value}' for repair {repair_id}.")
    await handler(update, context, repair_id)
