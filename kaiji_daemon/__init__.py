# Kaiji Telegram Daemon
