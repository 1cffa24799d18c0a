import logging
import os
import sys

import uvicorn

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    from visitflow.core.config import get_settings

    try:
        settings = get_settings()
    except ValueError as ve:
        logger.error(f"Configuration validation failed: {ve}")
        logger.error("Check MONGO_URI, ASSEMBLYAI_API_KEY and AZURE_OPENAI_* settings")
        sys.exit(1)

    port = int(os.environ.get("PORT", settings.port))
    host = os.environ.get("HOST", settings.host)
    logger.info(f"Starting {settings.app_name} v{settings.app_version} on {host}:{port} (env={settings.app_env})")
    logger.info(f"  MONGO_URI: {'set' if os.environ.get('MONGO_URI') else 'not set'}")
    logger.info(f"  ASSEMBLYAI_API_KEY: {'set' if settings.assemblyai.api_key else 'not set'}")
    logger.info(f"  AZURE_OPENAI_ENDPOINT: {'set' if settings.azure_openai.endpoint else 'not set'}")

    uvicorn.run(
        "visitflow.app:app",
        host=host,
        port=port,
        workers=1,
        log_level=settings.logging.level.lower(),
        access_log=True,
        timeout_keep_alive=75,
        timeout_graceful_shutdown=30,
    )
