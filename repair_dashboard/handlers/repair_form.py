"""
Обработчики формы создания нового ремонта.

Форма проходит шаги: клиент -> устройство -> проблема -> цена -> статус,
после чего пользователь сохраняет или закрывает ее кнопками.
"""

import html
import logging

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
    Update,
)
from telegram.constants import ParseMode
from telegram.ext import (
    CallbackQueryHandler,
    CommandHandler,
    ContextTypes,
    ConversationHandler,
    MessageHandler,
    filters,
)

from repair_dashboard.handlers.common import get_controller, show_alert
from repair_dashboard.handlers.dashboard import redraw_dashboard
from repair_dashboard.models.actions import Action, callback_pattern, make_callback_data
from repair_dashboard.models.repair import STATUS_DONE, STATUS_IN_PROGRESS
from repair_dashboard.services.rendering import STATUS_LABELS

logger = logging.getLogger(__name__)

FORM_KEY = "repair_form"
FORM_CLOSED_MESSAGE = "Formulario cerrado."

# Определяем состояния диалога
(CLIENT, DEVICE, PROBLEM, PRICE, STATUS, CONFIRMATION) = range(6)

# Подписи кнопок выбора статуса -> значение статуса
STATUS_CHOICES = {label: status for status, label in STATUS_LABELS.items()}
STATUS_CHOICES.update(
    {STATUS_IN_PROGRESS: STATUS_IN_PROGRESS, STATUS_DONE: STATUS_DONE}
)


async def open_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Открывает форму: команда /new или кнопка 'Nueva reparación'."""
    if update.callback_query:
        await update.callback_query.answer()

    context.user_data[FORM_KEY] = {}
    logger.info(f"Repair form opened in chat {update.effective_chat.id}.")

    await update.effective_message.reply_text(
        "📝 Nueva reparación\n\n"
        "<b>Paso 1/5:</b> Escribe el nombre del cliente.\n"
        "Para cerrar el formulario usa /cancel.",
        parse_mode=ParseMode.HTML,
    )
    return CLIENT


async def get_client(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    message = update.effective_message
    context.user_data[FORM_KEY]["cliente"] = message.text
    await message.reply_text(
        "<b>Paso 2/5:</b> Describe el dispositivo (por ejemplo, 'iPhone 12').",
        parse_mode=ParseMode.HTML,
    )
    return DEVICE


async def get_device(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    message = update.effective_message
    context.user_data[FORM_KEY]["dispositivo"] = message.text
    await message.reply_text(
        "<b>Paso 3/5:</b> Describe el problema.", parse_mode=ParseMode.HTML
    )
    return PROBLEM


async def get_problem(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    message = update.effective_message
    context.user_data[FORM_KEY]["problema"] = message.text
    await message.reply_text(
        "<b>Paso 4/5:</b> Indica el precio (solo números).", parse_mode=ParseMode.HTML
    )
    return PRICE


async def get_price(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Сохраняет цену как есть: проверка выполняется при сохранении формы."""
    message = update.effective_message
    context.user_data[FORM_KEY]["precio"] = message.text.strip()

    keyboard = [[STATUS_LABELS[STATUS_IN_PROGRESS]], [STATUS_LABELS[STATUS_DONE]]]
    await message.reply_text(
        "<b>Paso 5/5:</b> Elige el estado con los botones de abajo.",
        reply_markup=ReplyKeyboardMarkup(
            keyboard, one_time_keyboard=True, resize_keyboard=True
        ),
        parse_mode=ParseMode.HTML,
    )
    return STATUS


async def get_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Получает статус и показывает сводку с кнопками сохранения."""
    message = update.effective_message
    status = STATUS_CHOICES.get(message.text.strip())
    if status is None:
        await message.reply_text("Por favor, elige el estado usando los botones.")
        return STATUS  # Остаемся на том же шаге

    form = context.user_data[FORM_KEY]
    form["estado"] = status

    await message.reply_text(
        f"Estado: <b>{STATUS_LABELS[status]}</b>",
        reply_markup=ReplyKeyboardRemove(),
        parse_mode=ParseMode.HTML,
    )

    keyboard = [
        [
            InlineKeyboardButton(
                "💾 Guardar", callback_data=make_callback_data(Action.SAVE_REPAIR)
            ),
            InlineKeyboardButton(
                "✖️ Cerrar", callback_data=make_callback_data(Action.CLOSE_MODAL)
            ),
        ]
    ]
    await message.reply_text(
        "Revisa los datos:\n\n"
        f"👤 Cliente: <b>{html.escape(form.get('cliente', ''))}</b>\n"
        f"📱 Dispositivo: <b>{html.escape(form.get('dispositivo', ''))}</b>\n"
        f"🔧 Problema: <b>{html.escape(form.get('problema', ''))}</b>\n"
        f"💰 Precio: <b>{html.escape(form.get('precio', ''))}</b>",
        reply_markup=InlineKeyboardMarkup(keyboard),
        parse_mode=ParseMode.HTML,
    )
    return CONFIRMATION


async def save_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """
    Сохраняет ремонт. При ошибке форма остается открытой на шаге подтверждения.
    """
    query = update.callback_query
    await query.answer()
    chat_id = update.effective_chat.id

    form = context.user_data.get(FORM_KEY, {})
    outcome = await get_controller(context).create_record(form)

    if not outcome.close_form:
        await show_alert(context, chat_id, outcome.notification)
        return CONFIRMATION

    context.user_data.pop(FORM_KEY, None)
    await query.edit_message_reply_markup(reply_markup=None)
    await redraw_dashboard(context, chat_id)
    await show_alert(context, chat_id, outcome.notification)
    logger.info(f"Repair form saved in chat {chat_id}.")
    return ConversationHandler.END


async def close_form(update: Update, context: ContextTypes.DEFAULT_TYPE) -> int:
    """Закрывает форму без сохранения (кнопка 'Cerrar' или /cancel)."""
    context.user_data.pop(FORM_KEY, None)

    if update.callback_query:
        await update.callback_query.answer()
        await update.callback_query.edit_message_reply_markup(reply_markup=None)

    await update.effective_message.reply_text(
        FORM_CLOSED_MESSAGE, reply_markup=ReplyKeyboardRemove()
    )
    logger.info(f"Repair form closed in chat {update.effective_chat.id}.")
    return ConversationHandler.END


def build_repair_form_handler() -> ConversationHandler:
    """Собирает ConversationHandler формы создания ремонта."""
    text_input = filters.TEXT & ~filters.COMMAND
    return ConversationHandler(
        entry_points=[
            CommandHandler("new", open_form),
            CallbackQueryHandler(
                open_form, pattern=callback_pattern(Action.ADD_REPAIR)
            ),
        ],
        states={
            CLIENT: [MessageHandler(text_input, get_client)],
            DEVICE: [MessageHandler(text_input, get_device)],
            PROBLEM: [MessageHandler(text_input, get_problem)],
            PRICE: [MessageHandler(text_input, get_price)],
            STATUS: [MessageHandler(text_input, get_status)],
            CONFIRMATION: [
                CallbackQueryHandler(
                    save_form, pattern=callback_pattern(Action.SAVE_REPAIR)
                )
            ],
        },
        fallbacks=[
            CommandHandler("cancel", close_form),
            CallbackQueryHandler(
                close_form, pattern=callback_pattern(Action.CLOSE_MODAL)
            ),
        ],
        # Повторное нажатие 'Nueva reparación' начинает форму заново
        allow_reentry=True,
    )
