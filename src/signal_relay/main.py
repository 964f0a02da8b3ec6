"""Main orchestrator with dependency injection."""

import logging
import time
from typing import Callable, List, Optional
from dependency_injector import containers, providers

from .core import (
    RelayConfig,
    Message,
    RelayResult,
    MigrationStats
)
from .core.exceptions import ConfigurationError, MigrationError, RelayError
from .export import SignalExportReader
from .state import CheckpointStore
from .telegram import BotClient, DryRunBotClient, MessageRelay, TelegramBotApi
from .utils import ProgressReporter, setup_logging

logger = logging.getLogger(__name__)


class MigrationDriver:
    """
    Relay every pending self-chat message, oldest first.

    The checkpoint advances only after a message's relay has fully
    succeeded, so an interrupted run resumes with at most one duplicate
    and never skips a message.
    """

    def __init__(
        self,
        config: RelayConfig,
        reader: SignalExportReader,
        relay: MessageRelay,
        checkpoint_store: CheckpointStore,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.config = config
        self.reader = reader
        self.relay = relay
        self.checkpoint = checkpoint_store
        self.sleep = sleep
        self.stats = MigrationStats()

    def run(self, restart: bool = False) -> MigrationStats:
        """
        Run the migration.

        Args:
            restart: Discard the checkpoint once the run lock is held

        Raises:
            ConfigurationError: If the export is unusable or another run holds the lock
            ParseError: If the export or checkpoint is malformed
            RelayError: If a send fails; earlier messages stay checkpointed
        """
        if not self.checkpoint.acquire_lock():
            raise ConfigurationError(
                f"Another migration is already using {self.checkpoint.checkpoint_file}"
            )
        try:
            if restart:
                logger.info("Discarding checkpoint, starting from the beginning.")
                self.checkpoint.reset()
            return self._run()
        finally:
            self.checkpoint.release_lock()

    def _run(self) -> MigrationStats:
        after_ms = self.checkpoint.load()
        messages = self.pending_messages(after_ms)
        self.stats.total_messages = len(messages)

        logger.info(f"Found {len(messages)} messages to send.")
        if self.config.dry_run:
            logger.info("Dry run: nothing will be sent and the checkpoint stays untouched.")

        progress = ProgressReporter(len(messages), logger)
        for index, message in enumerate(messages):
            if index and not self.config.dry_run:
                self.sleep(self.config.rate_limit_delay_seconds)

            progress.sending(message.preview())
            try:
                result = self.relay_message(message)
            except RelayError as e:
                progress.failed(e)
                raise
            progress.sent(result.api_calls)

        self.stats.last_sent_at_ms = self.checkpoint.last_sent_at_ms
        progress.complete(self.stats.sent_messages)
        return self.stats

    def pending_messages(self, after_ms: int) -> List[Message]:
        """
        Messages newer than the checkpoint, oldest first, capped by message_limit.

        The cap never splits messages that share a sent_at_ms: the checkpoint
        only stores the timestamp, so a partially sent group could not resume.
        """
        messages = sorted(
            (m for m in self.reader.read_messages(after_ms) if m.sent_at_ms > after_ms),
            key=lambda m: m.sent_at_ms
        )
        limit = self.config.message_limit
        if limit and len(messages) > limit:
            boundary = messages[limit - 1].sent_at_ms
            while limit < len(messages) and messages[limit].sent_at_ms == boundary:
                limit += 1
            messages = messages[:limit]
        return messages

    def relay_message(self, message: Message) -> RelayResult:
        """Send one message and advance the checkpoint once it is fully sent."""
        start_time = time.time()
        result = RelayResult(sent_at_ms=message.sent_at_ms, success=False)

        try:
            result.api_calls = self.relay.send(message)
            if not self.config.dry_run:
                self.checkpoint.advance(message.sent_at_ms)
            result.success = True

        except RelayError as e:
            logger.error(f"Failed to relay message at {message.sent_at_ms}: {e}")
            result.error = str(e)
            raise

        finally:
            result.duration_seconds = time.time() - start_time
            self.stats.add_result(result)

        return result

    def get_stats(self) -> MigrationStats:
        """Get migration statistics."""
        return self.stats


def select_bot_client(config_obj: RelayConfig) -> BotClient:
    """Pick the real Telegram client, or a logging stand-in for dry runs."""
    if config_obj.dry_run:
        return DryRunBotClient()
    return TelegramBotApi(
        token=config_obj.bot_token,
        chat_id=config_obj.chat_id,
        api_base=config_obj.api_base,
        timeout=config_obj.request_timeout
    )


class RelayContainer(containers.DeclarativeContainer):
    """Dependency injection container using dependency-injector library."""

    # Configuration provider
    config = providers.Singleton(RelayConfig.from_env)

    checkpoint_store = providers.Singleton(
        CheckpointStore,
        checkpoint_file=config.provided.checkpoint_path
    )

    reader = providers.Singleton(
        SignalExportReader,
        export_path=config.provided.export_dir
    )

    bot_client = providers.Singleton(
        select_bot_client,
        config_obj=config
    )

    relay = providers.Factory(
        MessageRelay,
        client=bot_client
    )

    # Main driver
    driver = providers.Factory(
        MigrationDriver,
        config=config,
        reader=reader,
        relay=relay,
        checkpoint_store=checkpoint_store
    )


def create_driver(config: Optional[RelayConfig] = None) -> MigrationDriver:
    """
    Factory function to create a configured driver.

    Args:
        config: Optional configuration, uses environment if not provided

    Returns:
        Configured MigrationDriver instance
    """
    container = RelayContainer()

    if config:
        container.config.override(config)

    return container.driver()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI execution."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Relay a Signal 'Note to Self' export into a Telegram chat"
    )
    parser.add_argument("--config", help="JSON settings file (appsettings.json layout)")
    parser.add_argument("--dry-run", action="store_true", help="List messages without sending")
    parser.add_argument("--limit", type=int, help="Send at most this many messages")
    parser.add_argument("--delay-ms", type=int, help="Pause between messages in milliseconds")
    parser.add_argument("--restart", action="store_true", help="Discard the checkpoint and start over")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (overrides configuration)"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")

    args = parser.parse_args(argv)

    setup_logging(args.log_level or "INFO", log_file=args.log_file)

    driver = None
    try:
        if args.config:
            config = RelayConfig.from_file(args.config, dry_run=args.dry_run)
        else:
            config = RelayConfig.from_env(dry_run=args.dry_run)

        # Override with CLI args
        config_dict = {}
        if args.limit is not None:
            config_dict["message_limit"] = args.limit
        if args.delay_ms is not None:
            config_dict["rate_limit_delay_ms"] = args.delay_ms
        if args.log_level:
            config_dict["log_level"] = args.log_level
        if config_dict:
            config = RelayConfig.from_dict({**config.__dict__, **config_dict})

        if not args.log_level:
            logging.getLogger().setLevel(config.log_level.upper())

        logger.info(f"Export path: {config.export_dir}")
        logger.info(f"Rate limit: {config.rate_limit_delay_ms}ms between messages")

        driver = create_driver(config)
        stats = driver.run(restart=args.restart)

    except MigrationError as e:
        logger.error(f"Migration aborted: {e}")
        return 1

    finally:
        if driver is not None:
            driver.relay.client.close()

    logger.info(stats.summary())
    return 0
