# Telegram Bot for Kaiji

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from telegram import Update
from telegram.constants import ChatType
from telegram.error import TelegramError
from telegram.ext import Application, CommandHandler, ContextTypes

from kaiji.collectors.models import Attachment
from kaiji_daemon.analyzers.disclosures import format_status
from kaiji_daemon.config import Config

logger = logging.getLogger(__name__)

GROUP_CHAT_TYPES = (ChatType.GROUP, ChatType.SUPERGROUP, ChatType.CHANNEL)


class TelegramBot:
    """Telegram bot delivering disclosure alerts."""

    def __init__(self, config: Config):
        self.config = config
        self.app = None
        self.bot = None
        self.jobs = None
        self.chat_ids: List[int] = []

    async def start(self):
        """Initialize and start the bot."""
        self.config.validate()

        self.app = Application.builder().token(self.config.telegram_bot_token).build()
        self.bot = self.app.bot

        self.app.add_handler(CommandHandler("start", self.cmd_start))
        self.app.add_handler(CommandHandler("help", self.cmd_help))
        self.app.add_handler(CommandHandler("status", self.cmd_status))
        self.app.add_handler(CommandHandler("scan", self.cmd_scan))
        self.app.add_handler(CommandHandler("reset", self.cmd_reset))

        await self.app.initialize()
        await self.app.start()
        await self.app.updater.start_polling()

        me = await self.bot.get_me()
        logger.info(f"Logged in as {me.username}")

    async def stop(self):
        """Stop the bot."""
        if self.app:
            await self.app.updater.stop()
            await self.app.stop()
            await self.app.shutdown()
        logger.info("Telegram bot stopped")

    def attach_jobs(self, jobs):
        self.jobs = jobs

    async def resolve_chat_ids(self, candidate_ids: Optional[Iterable[str]] = None) -> List[int]:
        """
        Resolve the chats alerts go to.

        Keeps the group chats and channels among `candidate_ids` whose title
        equals the configured channel name. An empty channel name keeps all.
        """
        if candidate_ids is None:
            candidate_ids = self.config.telegram_chat_ids
        wanted = self.config.telegram_channel_name

        resolved = []
        for chat_id in candidate_ids:
            try:
                chat = await self.bot.get_chat(chat_id)
            except TelegramError as e:
                logger.error(f"Cannot access chat {chat_id}: {e}")
                continue
            if chat.type not in GROUP_CHAT_TYPES:
                continue
            if wanted and chat.title != wanted:
                continue
            resolved.append(chat.id)

        self.chat_ids = resolved
        if resolved:
            logger.info(f"Delivering to {len(resolved)} chat(s)")
        else:
            logger.warning("No chat to deliver to, alerts will not be sent")
        return resolved

    async def send_entry(self, text: str, attachment: Optional[Attachment] = None,
                         chat_ids: Optional[Iterable[int]] = None) -> int:
        """
        Send one alert to every chat. Failures are logged per chat.

        Returns:
            Number of chats the message reached
        """
        if not self.bot:
            logger.warning("Bot not started, alert dropped")
            return 0

        sent = 0
        for chat_id in (self.chat_ids if chat_ids is None else chat_ids):
            try:
                await self._send(chat_id, text, attachment)
                sent += 1
            except Exception as e:
                logger.error(f"Failed to send to chat {chat_id}: {e}")
        return sent

    async def _send(self, chat_id: int, text: str, attachment: Optional[Attachment]):
        if attachment is None:
            await self.bot.send_message(chat_id=chat_id, text=text, parse_mode='HTML')
        elif attachment.is_image:
            await self.bot.send_photo(
                chat_id=chat_id,
                photo=attachment.content,
                filename=attachment.filename,
                caption=text,
                parse_mode='HTML'
            )
        else:
            await self.bot.send_document(
                chat_id=chat_id,
                document=attachment.content,
                filename=attachment.filename,
                caption=text,
                parse_mode='HTML'
            )

    # ========== COMMAND HANDLERS ==========

    async def cmd_start(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /start command."""
        welcome = """
📋 <b>Kaiji</b>
━━━━━━━━━━━━━━━━━━━━

Timely disclosure alerts for matching keywords.

<b>Commands:</b>
/status - Bot status
/scan - Check for new disclosures now
/reset - Forget the last seen entry
        """
        await update.message.reply_html(welcome.strip())

    async def cmd_help(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /help command."""
        await self.cmd_start(update, context)

    async def cmd_status(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /status command."""
        watermark = self.jobs.current_watermark() if self.jobs else None
        now = datetime.now(self.config.tz)
        await update.message.reply_html(format_status(self.config, watermark, self.chat_ids, now))

    async def cmd_scan(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /scan command - run one polling cycle immediately."""
        if not self.jobs:
            await update.message.reply_text("Scheduler not ready")
            return
        await update.message.reply_text("🔍 Scanning disclosures...")
        count = await self.jobs.run_cycle()
        if count is None:
            await update.message.reply_text("⏳ A scan is already running")
        else:
            await update.message.reply_text(f"✅ {count} new disclosure(s)")

    async def cmd_reset(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /reset command."""
        if not self.jobs:
            await update.message.reply_text("Scheduler not ready")
            return
        self.jobs.reset_watermark()
        await update.message.reply_text("🔄 Watermark cleared, today's entries will be checked again")
