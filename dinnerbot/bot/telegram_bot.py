"""
Dinner Rota Bot — Telegram Bot.

Telegram is the only user interface. People ask the bot who is cooking,
when they are up, or to skip a week; the weekly reminder and the rotation
advance run on the application's job queue.

Security-first: unauthorized users are silently ignored.
"""

from __future__ import annotations

import logging
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable, Coroutine
from zoneinfo import ZoneInfo

from telegram import Update
from telegram.constants import ChatType, ParseMode
from telegram.ext import (
    Application,
    ApplicationBuilder,
    CommandHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from dinnerbot.bot.rendering import load_display_names, render_mentions
from dinnerbot.config import settings
from dinnerbot.core.dates import format_date, today_in
from dinnerbot.core.names import mention
from dinnerbot.ports.rotation_store import StoreError

if TYPE_CHECKING:
    from dinnerbot.core.router import IntentRouter
    from dinnerbot.core.rotation import RotationEngine
    from dinnerbot.data.db import UserDB
    from dinnerbot.ports.notification_port import NotificationPort

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I keep track of the weekly dinner rotation. Mention me and ask:\n"
    "• who's on next?\n"
    "• who's on dinner Oct 26th?\n"
    "• when am I on? / when is Dana on?\n"
    "• skip next week / skip dinner on the 2nd\n\n"
    "Commands:\n"
    "/next — Next pair and the discussion lead\n"
    "/rota — The whole rotation\n"
    "/register [name] — Tell me your name so I can find you\n"
    "/help — Show this message"
)

GENERIC_FAILURE = "Sorry, something went wrong. Please try again."


# ---------------------------------------------------------------------------
# Security: silent-ignore decorator
# ---------------------------------------------------------------------------


def authorized_only(
    func: Callable[..., Coroutine[Any, Any, None]],
) -> Callable[..., Coroutine[Any, Any, None]]:
    """Decorator that silently ignores messages from unauthorized users.

    Does NOT send any response to strangers — the bot must not reveal
    its existence to unauthorized users.
    """

    @wraps(func)
    async def wrapper(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        user = update.effective_user
        if user is None or user.id not in settings.ALLOWED_USER_IDS:
            uid = user.id if user else "unknown"
            logger.warning("Unauthorized access attempt from user_id=%s", uid)
            return  # Silent ignore
        return await func(update, context)

    return wrapper


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _reply(update: Update, context: ContextTypes.DEFAULT_TYPE, text: str) -> None:
    """Reply with <@id> mentions rendered as Telegram user links."""
    names = await load_display_names(context.bot_data.get("user_db"))
    await update.message.reply_text(
        render_mentions(text, names), parse_mode=ParseMode.HTML,
    )


def _addresses_bot(update: Update, bot_username: str) -> bool:
    """Private chats always address the bot; groups only when it is mentioned."""
    if update.effective_chat is not None and update.effective_chat.type == ChatType.PRIVATE:
        return True
    if not bot_username:
        return False
    return f"@{bot_username.lower()}" in (update.message.text or "").lower()


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


@authorized_only
async def cmd_start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start — welcome message."""
    await update.message.reply_text(
        "Welcome to the *Dinner Rota*!\n\n"
        "Use /register so I know your name, then ask me who's on next.\n"
        "Type /help for everything I can do.",
        parse_mode="Markdown",
    )


@authorized_only
async def cmd_help(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help — list available commands."""
    await update.message.reply_text(HELP_TEXT)


@authorized_only
async def cmd_register(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /register [name] — add the sender to the user directory."""
    user_db: UserDB = context.bot_data["user_db"]
    tg_user = update.effective_user

    name = " ".join(context.args or []).strip() or tg_user.full_name
    try:
        user_db.add_user(tg_user.id, name)
    except Exception as exc:
        logger.error("/register error: %s", exc)
        await update.message.reply_text(GENERIC_FAILURE)
        return

    await update.message.reply_text(f"Got it, you're registered as {name}.")


@authorized_only
async def cmd_rota(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /rota — list the whole rotation."""
    engine: RotationEngine = context.bot_data["engine"]
    sender = mention(update.effective_user.id)

    try:
        schedule = await engine.schedule()
    except StoreError as exc:
        logger.error("/rota store error: %s", exc)
        await update.message.reply_text("Couldn't load the rotation. Please try again later.")
        return

    if not schedule:
        await update.message.reply_text("The rotation is empty.")
        return

    lines = ["Dinner rotation:"]
    for a in schedule:
        line = f"• {format_date(a.due_date)} — {a.users[0]} & {a.users[1]}"
        if a.includes(sender):
            line += "  ← you"
        lines.append(line)
    await _reply(update, context, "\n".join(lines))


@authorized_only
async def cmd_next(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /next — the next pair and who leads the discussion."""
    engine: RotationEngine = context.bot_data["engine"]

    try:
        upcoming = await engine.get_next()
        follower = await engine.get_follower(upcoming.due_date) if upcoming else None
    except StoreError as exc:
        logger.error("/next store error: %s", exc)
        await update.message.reply_text("Couldn't load the rotation. Please try again later.")
        return

    if upcoming is None:
        await update.message.reply_text("The rotation is empty.")
        return

    lines = [
        f"Week of {format_date(upcoming.due_date)}:",
        f"Dinner: {upcoming.users[0]} & {upcoming.users[1]}",
    ]
    if follower is not None:
        lines.append(f"Discussion: {follower.users[0]} & {follower.users[1]}")
    await _reply(update, context, "\n".join(lines))


# ---------------------------------------------------------------------------
# Message handlers
# ---------------------------------------------------------------------------


@authorized_only
async def handle_text(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle plain text — classify and answer rotation questions."""
    router: IntentRouter = context.bot_data["router"]
    text = update.message.text or ""

    if not _addresses_bot(update, settings.BOT_USERNAME):
        return

    if "help" in text.lower():
        await update.message.reply_text(HELP_TEXT)
        return

    await update.effective_chat.send_action("typing")
    try:
        answer = await router.handle_text(text, mention(update.effective_user.id))
    except Exception as exc:
        logger.error("Unexpected error answering '%s': %s", text[:80], exc)
        await update.message.reply_text(GENERIC_FAILURE)
        return

    await _reply(update, context, answer)


# ---------------------------------------------------------------------------
# Application setup
# ---------------------------------------------------------------------------


def build_app(notifier: NotificationPort | None = None) -> Application:
    """Build and configure the Telegram Application with all handlers.

    Args:
        notifier: Notification port implementation. Defaults to TelegramNotifier
                  (created from the bot instance after app is built).
    """
    from dinnerbot.adapters.user_directory import RegisteredUserDirectory
    from dinnerbot.core.classifier import LLMIntentClassifier
    from dinnerbot.core.names import NameResolver
    from dinnerbot.core.rotation import RotationEngine
    from dinnerbot.core.router import IntentRouter
    from dinnerbot.data.db import RotationDB, UserDB
    from dinnerbot.data.seed import seed_rotation

    app = ApplicationBuilder().token(settings.TELEGRAM_BOT_TOKEN).build()

    def clock():
        return today_in(settings.TIMEZONE)

    store = RotationDB()
    user_db = UserDB()
    seed_rotation(
        store,
        settings.ROTATION_PAIRS,
        settings.ROTATION_START or clock(),
    )

    engine = RotationEngine(store, clock=clock)
    router = IntentRouter(
        engine,
        NameResolver(RegisteredUserDirectory(user_db)),
        LLMIntentClassifier(clock=clock),
        bot_reference=settings.BOT_USERNAME,
        clock=clock,
    )

    if notifier is None:
        from dinnerbot.adapters.telegram_notifier import TelegramNotifier
        notifier = TelegramNotifier(app.bot, user_db=user_db)

    # Store collaborators in bot_data for handler access
    app.bot_data["engine"] = engine
    app.bot_data["router"] = router
    app.bot_data["user_db"] = user_db
    app.bot_data["notifier"] = notifier

    app.add_handler(CommandHandler("start", cmd_start))
    app.add_handler(CommandHandler("help", cmd_help))
    app.add_handler(CommandHandler("register", cmd_register))
    app.add_handler(CommandHandler("rota", cmd_rota))
    app.add_handler(CommandHandler("next", cmd_next))
    app.add_handler(MessageHandler(filters.TEXT & ~filters.COMMAND, handle_text))

    _setup_weekly_jobs(app, engine, notifier)

    logger.info("Telegram bot application built with %d handlers", len(app.handlers[0]))
    return app


def _setup_weekly_jobs(
    app: Application,
    engine: RotationEngine,
    notifier: NotificationPort,
) -> None:
    """Register the weekly reminder and rotation advance on the job queue."""
    from dinnerbot.core.jobs import post_reminder, run_advance

    tz = ZoneInfo(settings.TIMEZONE)

    async def _advance_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await run_advance(engine, engine.today())

    app.job_queue.run_daily(
        _advance_job_callback,
        time=settings.ADVANCE_TIME.replace(tzinfo=tz),
        days=(settings.ADVANCE_DAY,),
        name="advance_rotation",
    )

    if not settings.REMINDER_CHAT_ID:
        logger.info("REMINDER_CHAT_ID not set, weekly reminder disabled")
        return

    async def _reminder_job_callback(context: ContextTypes.DEFAULT_TYPE) -> None:
        await post_reminder(engine, notifier, settings.REMINDER_CHAT_ID)

    app.job_queue.run_daily(
        _reminder_job_callback,
        time=settings.REMINDER_TIME.replace(tzinfo=tz),
        days=(settings.REMINDER_DAY,),
        name="dinner_reminder",
    )

    logger.info(
        "Weekly reminder scheduled on day %d at %s %s",
        settings.REMINDER_DAY,
        settings.REMINDER_TIME.strftime("%H:%M"),
        settings.TIMEZONE,
    )


def main() -> None:
    """Entry point: build the app and start polling."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.info("Starting Dinner Rota bot...")
    app = build_app()
    app.run_polling()


if __name__ == "__main__":
    main()
