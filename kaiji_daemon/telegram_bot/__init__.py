# Telegram Bot Package
from .bot import TelegramBot

__all__ = ['TelegramBot']
