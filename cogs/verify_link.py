import logging

from discord.ext import commands

from bungie_client import BungieClient
from config import Settings

logger = logging.getLogger(__name__)


class VerifyLink(commands.Cog):
    def __init__(self, bot, client: BungieClient):
        self.bot = bot
        self.client = client

    @commands.command(
        name="verify",
        help="Get a Bungie.net link that verifies your nickname. Usage: !verify <Name#1234>",
    )
    async def verify(self, ctx, *, nickname: str = ""):
        nickname = nickname.strip()
        if not nickname:
            await ctx.send("Please provide your Bungie Name. Usage: `!verify Name#1234`")
            return

        url = self.client.authorize_url(nickname)
        logger.info(f"Issued verification link for {nickname!r} to {ctx.author}")
        await ctx.send(
            f"Sign in with Bungie.net to verify **{nickname}**:\n<{url}>"
        )


async def setup(bot):
    settings = getattr(bot, "settings", None) or Settings.from_env()
    await bot.add_cog(VerifyLink(bot, BungieClient.from_settings(settings)))
