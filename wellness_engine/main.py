"""Process wiring: logging, configuration and engine construction"""
import logging
import asyncio
from typing import Optional

from wellness_engine import config
from wellness_engine.services.container import init_container
from wellness_engine.services.engine import WellnessEngine
from wellness_engine.storage.kv_store import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging in the standard engine format"""
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)
    )


async def create_kv_store() -> KeyValueStore:
    """Key-value backend selected by STORAGE_BACKEND"""
    if config.STORAGE_BACKEND == "redis":
        from wellness_engine.storage.redis_store import RedisKeyValueStore
        store = RedisKeyValueStore(config.REDIS_URL)
        await store.connect()
        return store
    return InMemoryKeyValueStore()


def create_completion_provider():
    """OpenAI provider when an API key is configured, otherwise None (fallback insights)"""
    if not config.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set; insights will use the fallback payload")
        return None

    from wellness_engine.insights.providers import OpenAICompletionProvider
    return OpenAICompletionProvider(
        api_key=config.OPENAI_API_KEY,
        model=config.AI_MODEL,
        temperature=config.AI_TEMPERATURE,
        max_retries=config.AI_MAX_RETRIES,
    )


async def build_engine() -> WellnessEngine:
    """Validate configuration and assemble a WellnessEngine from it"""
    logger.info("Validating configuration...")
    config.validate_config()

    logger.info(f"Initializing {config.STORAGE_BACKEND} storage backend...")
    kv = await create_kv_store()

    container = init_container(
        kv,
        completion=create_completion_provider(),
        insight_ttl=config.INSIGHT_CACHE_TTL_SECONDS,
        completion_timeout=config.AI_TIMEOUT_SECONDS,
    )
    logger.info("Wellness engine ready")
    return WellnessEngine(container=container)


async def main() -> None:
    """Build the engine, log a readiness check and shut down cleanly"""
    configure_logging()
    engine = None
    try:
        engine = await build_engine()
        level = await engine.get_level_info("healthcheck")
        logger.info(f"Healthcheck level info: {level.model_dump()}")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        raise
    finally:
        if engine:
            logger.info("Closing storage backend...")
            await engine.close()
        logger.info("Shutdown complete")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
