"""Validation script for the bot's external integrations."""

import asyncio
import logging
import sys

from dotenv import load_dotenv

from inquiry_bot.config import get_settings
from inquiry_bot.confluence import ConfluenceClient
from inquiry_bot.llm import create_llm_provider
from inquiry_bot.main import run_health_checks
from inquiry_bot.search import extract_keywords
from inquiry_bot.slack import SlackClient

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def validate_integrations(query: str):
    """Check credentials and run a read-only sample search."""
    print("🤖 Testing Inquiry Bot Integrations")
    print("=" * 50)

    load_dotenv()
    settings = get_settings()
    print(f"📋 Trigger emoji: :{settings.trigger_emoji}:")
    print(f"📋 Search channel: {settings.slack_channel_id or '(all channels)'}")
    print(f"📋 Confluence space: {settings.confluence_space_key}")
    print(f"📋 LLM provider: {settings.llm_provider.value} ({settings.llm_model})")
    print()

    slack = SlackClient(settings)
    confluence = ConfluenceClient(settings)
    llm_provider = create_llm_provider(settings)

    try:
        print("🔍 Performing health checks...")
        health = await run_health_checks(slack, confluence, llm_provider)
        print(f"   Slack: {'✅' if health['slack'] else '❌'}")
        print(f"   Confluence: {'✅' if health['confluence'] else '❌'}")
        print(f"   LLM Provider: {'✅' if health['llm'] else '❌'}")
        print(f"   Overall: {'✅' if health['overall'] else '❌'}")
        print()

        keywords = extract_keywords(query)
        print(f"🔍 Sample query: {query!r}")
        print(f"   Keywords: {keywords}")
        if not keywords:
            print("⚠️  Query has no keywords - nothing to search")
            return

        search_query = " ".join(keywords)
        if health["slack"]:
            try:
                messages = await slack.search_messages(search_query, settings.search_days_back)
                print(f"✅ Slack search found {len(messages)} messages")
            except Exception as e:
                print(f"⚠️  Slack search failed: {e}")
        if health["confluence"]:
            try:
                pages = await confluence.search_pages(search_query)
                print(f"✅ Confluence search found {len(pages)} pages")
                for page in pages[:3]:
                    print(f"   - {page.title}: {page.url}")
            except Exception as e:
                print(f"⚠️  Confluence search failed: {e}")
        print()

        print("🎉 Integration validation completed!")
        print()
        print("💡 Next steps:")
        print("   1. Start the bot: inquiry-bot")
        print(f"   2. React to a question in Slack with :{settings.trigger_emoji}:")
        print("   3. Check recent activity with /inquiry-status")
    finally:
        await slack.close()
        await confluence.close()
        await llm_provider.close()


if __name__ == "__main__":
    asyncio.run(validate_integrations(" ".join(sys.argv[1:]) or "deployment guide"))
