"""Main entry point for the Inquiry Slack Bot."""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from inquiry_bot.config import Settings, get_settings
from inquiry_bot.confluence import ConfluenceClient
from inquiry_bot.inquiry import AnswerGenerator, InquiryOrchestrator, ReactionIntake
from inquiry_bot.llm import LLMProvider, create_llm_provider
from inquiry_bot.search import SearchEngine
from inquiry_bot.slack import SignatureVerifier, SlackClient
from inquiry_bot.storage import Database, InquiryRepository
from inquiry_bot.web_server import WebServer

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure root logging from settings."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


async def run_health_checks(
    slack: SlackClient, confluence: ConfluenceClient, llm_provider: LLMProvider
) -> dict[str, bool]:
    """Check connectivity of every external collaborator."""
    health = {
        "slack": await slack.validate_token(),
        "confluence": await confluence.validate_connection(),
        "llm": await llm_provider.health_check(),
    }
    health["overall"] = all(health.values())
    if not health["overall"]:
        logger.error(f"Health check failed - bot may not work properly: {health}")
    return health


async def main() -> None:
    """Main application entry point."""
    load_dotenv()
    settings = get_settings()
    configure_logging(settings)

    logger.info(f"Starting Inquiry Bot in {settings.environment.value} mode")
    logger.info(f"Using LLM provider: {settings.llm_provider.value}")

    # Validate configuration
    try:
        settings.validate_provider_config()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if not settings.slack_signing_secret:
        logger.error("SLACK_SIGNING_SECRET is not set - every webhook request will be rejected")

    database = Database(settings.database_url)
    await database.create_all()
    repository = InquiryRepository(database)

    slack = SlackClient(settings)
    confluence = ConfluenceClient(settings)
    llm_provider = create_llm_provider(settings)

    search_engine = SearchEngine(settings, slack, confluence, repository)
    answer_generator = AnswerGenerator(llm_provider, timeout=settings.generation_timeout)
    orchestrator = InquiryOrchestrator(
        settings, repository, search_engine, answer_generator, slack
    )
    intake = ReactionIntake(settings, repository, slack, orchestrator)
    verifier = SignatureVerifier(
        settings.slack_signing_secret, max_age_seconds=settings.signature_max_age
    )

    await run_health_checks(slack, confluence, llm_provider)

    web_server = WebServer(settings, verifier, intake, orchestrator)
    runner = await web_server.start()

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down...")
        await web_server.stop(runner)
        await slack.close()
        await confluence.close()
        await llm_provider.close()
        await database.dispose()


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
