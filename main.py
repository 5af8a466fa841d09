#!/usr/bin/env python3
"""
Kaiji - Timely disclosure notifier.
Scrapes the disclosure listing every minute and posts keyword matches
to Telegram.
"""

# Load environment variables FIRST (before any other imports that need them)
from dotenv import load_dotenv
load_dotenv()

from kaiji_daemon.main import main


if __name__ == "__main__":
    main()
