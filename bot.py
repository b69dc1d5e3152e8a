import logging

import discord
from discord.ext import commands

from config import ConfigError, Settings

logger = logging.getLogger(__name__)

EXTENSIONS = ["cogs.verify_link"]


class VerifyBot(commands.Bot):
    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix=settings.command_prefix, intents=intents)
        self.settings = settings

    async def setup_hook(self):
        for extension in EXTENSIONS:
            await self.load_extension(extension)

    async def on_ready(self):
        logger.info(f"{self.user} has connected to Discord!")


def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not settings.discord_token:
        raise ConfigError("DISCORD_TOKEN is not set")

    VerifyBot(settings).run(settings.discord_token, log_handler=None)


if __name__ == "__main__":
    main()
