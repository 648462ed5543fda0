"""Entry point: draft service, web API and (optionally) the Discord bot."""
import asyncio
import logging
import platform
import os
from typing import Optional
from aiohttp import web
import discord
from discord.ext import commands, tasks
from config.settings import AppConfig, load_config
from database.database import Database
from services.draft_audit import DraftAuditRecorder
from services.draft_notifier import DraftNotifier
from services.draft_service import DraftService
from utils.logging import setup_logger
from web.server import create_app

logger = logging.getLogger(__name__)

class DraftBot(commands.Bot):
    """Discord bot hosting the draft commands and the web API."""

    def __init__(self, config: AppConfig, database: Database, draft_service: DraftService,
                 web_app: web.Application, *args, **kwargs):
        # Set up intents
        intents = discord.Intents.default()
        intents.members = True

        super().__init__(
            command_prefix=config.command_prefix,
            intents=intents,
            *args,
            **kwargs
        )

        self.config = config
        self.database = database
        self.draft_service = draft_service
        self.web_app = web_app
        self._web_runner: Optional[web.AppRunner] = None

        self.last_heartbeat = None
        self.start_timestamp = None
        self.logger = logging.getLogger(__name__)

        self.cog_load_order = [
            'cogs.draft'
        ]
        self.loaded_cogs = []  # Track loading order

    async def setup_hook(self):
        """Initialize bot systems."""
        try:
            self.logger.info("Initializing bot systems...")
            self.logger.info(f"Python version: {platform.python_version()}")
            self.logger.info(f"Discord.py version: {discord.__version__}")

            self.start_timestamp = discord.utils.utcnow()

            if self.config.web.enabled:
                try:
                    self._web_runner = await start_web_server(self.web_app, self.config)
                except Exception as e:
                    self.logger.error(f"Failed to start web server: {e}")
                    # Continue with bot startup even if the web server fails
            self.heartbeat.start()

            self.logger.info("Loading cogs in order...")
            for cog_name in self.cog_load_order:
                try:
                    await self.load_extension(cog_name)
                    self.loaded_cogs.append(cog_name)
                    self.logger.info(f"Loaded {cog_name}")
                except Exception as e:
                    self.logger.error(f"Failed to load {cog_name}: {e}")
                    raise

            # Sync commands with Discord
            self.logger.info("Syncing application commands...")
            if self.config.discord.guild_id:
                guild = discord.Object(id=int(self.config.discord.guild_id))
                self.tree.copy_global_to(guild=guild)
                synced_commands = await self.tree.sync(guild=guild)
            else:
                synced_commands = await self.tree.sync()
            for command in synced_commands:
                self.logger.info(f"Synced command: {command.name}")
            self.logger.info(f"Synced {len(synced_commands)} application commands")

        except Exception as e:
            self.logger.error(f"Error during setup: {e}")
            raise

    @tasks.loop(seconds=30)
    async def heartbeat(self):
        """Update heartbeat timestamp."""
        self.last_heartbeat = discord.utils.utcnow()
        self.logger.debug(f"Heartbeat updated at {self.last_heartbeat}")

    async def on_ready(self):
        """Handle the bot's ready event."""
        self.logger.info(f"Logged in as {self.user.name} (ID: {self.user.id})")
        self.logger.info(f"Running on: {platform.system()} {platform.release()} ({os.name})")

        await self.change_presence(
            activity=discord.Activity(
                type=discord.ActivityType.watching,
                name="the draft board"
            )
        )

    async def close(self):
        """Cleanup and close the bot."""
        try:
            self.logger.info("Starting bot shutdown sequence...")
            self.heartbeat.cancel()

            if self._web_runner is not None:
                self.logger.info("Stopping web server...")
                await self._web_runner.cleanup()
                self._web_runner = None

            self.logger.info("Unloading cogs...")
            for cog in reversed(self.loaded_cogs):
                await self.unload_extension(cog)
                self.logger.info(f"Unloaded cog: {cog}")
            self.loaded_cogs.clear()

            await super().close()

        except Exception as e:
            self.logger.error(f"Error during shutdown: {e}")
            raise

async def start_web_server(app: web.Application, config: AppConfig) -> web.AppRunner:
    """Start the web server for the draft API and health checks."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(
        runner,
        host=config.web.host,
        port=config.web.port
    )
    await site.start()
    logger.info(
        f"Web server started on "
        f"http://{config.web.host}:{config.web.port}/health"
    )
    return runner

async def build_service(config: AppConfig, database: Database) -> DraftService:
    """Create the draft service with its audit observer and resume live clocks."""
    notifier = DraftNotifier()
    notifier.subscribe_all(DraftAuditRecorder(database.session))
    service = DraftService.from_database(database, config.draft, notifier)
    await service.start()
    return service

async def run(config: AppConfig):
    logger.info(f"Connecting to database at {config.database.url}")
    database = Database(config.database.url)
    await database.create_all()

    service = await build_service(config, database)
    app = create_app(service, database)
    runner = None

    try:
        if config.discord.token:
            bot = DraftBot(config, database, service, app)
            async with bot:
                await bot.start(config.discord.token)
        else:
            logger.warning("No Discord token configured; running the web API only")
            runner = await start_web_server(app, config)
            await asyncio.Event().wait()
    finally:
        if runner is not None:
            await runner.cleanup()
        await service.stop()
        await service.notifier.close()
        await database.close()
        logger.info("Shutdown complete")

def main():
    """Main entry point."""
    config = load_config()

    # Quiet noisy library loggers
    for name in ['discord', 'discord.http', 'discord.gateway',
                 'discord.client', 'aiosqlite', 'asyncio', 'aiohttp.access']:
        logging.getLogger(name).setLevel(logging.WARNING)
    setup_logger("", config.logging.file, config.logging.level, config.logging.format)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")

if __name__ == "__main__":
    main()
