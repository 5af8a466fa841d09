# Kaiji Telegram Daemon
# Polls timely disclosures every minute and posts keyword matches to Telegram

import sys
import logging
import asyncio
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from kaiji_daemon.config import Config
from kaiji_daemon.telegram_bot.bot import TelegramBot
from kaiji_daemon.scheduler.jobs import ScheduledJobs

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = 'daemon.log'):
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file, encoding='utf-8')
        ]
    )
    # Polling and per-run scheduler chatter
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('apscheduler.executors.default').setLevel(logging.WARNING)


class KaijiDaemon:
    """Main daemon coordinator for disclosure alerts."""

    def __init__(self, config: Config):
        self.config = config
        self.scheduler = AsyncIOScheduler(timezone=config.tz)
        self.telegram_bot = TelegramBot(self.config)
        self.jobs = ScheduledJobs(self.config, self.telegram_bot)
        self.telegram_bot.attach_jobs(self.jobs)

    def setup_schedule(self):
        """Poll once a minute."""
        self.scheduler.add_job(
            self.jobs.poll_disclosures,
            CronTrigger(minute='*', timezone=self.config.tz),
            id='poll_disclosures',
            name='Disclosure Poll',
            max_instances=1,
            coalesce=True
        )
        logger.info(f"Scheduled {len(self.scheduler.get_jobs())} jobs")

    async def run(self):
        """Start the daemon."""
        logger.info("=" * 50)
        logger.info("Kaiji Telegram Daemon Starting")
        logger.info(f"Site: {self.config.disclosure_site}")
        logger.info(f"Timezone: {self.config.timezone}")
        logger.info(f"Current time: {datetime.now(self.config.tz)}")
        logger.info("=" * 50)

        await self.telegram_bot.start()
        await self.telegram_bot.resolve_chat_ids()

        self.setup_schedule()
        self.scheduler.start()

        try:
            while True:
                await asyncio.sleep(60)
        except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
            logger.info("Shutting down daemon...")
        finally:
            self.scheduler.shutdown(wait=False)
            await self.telegram_bot.stop()


def main():
    setup_logging()
    try:
        config = Config()
        config.validate()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    try:
        asyncio.run(KaijiDaemon(config).run())
    except KeyboardInterrupt:
        pass


if __name__ == '__main__':
    main()
