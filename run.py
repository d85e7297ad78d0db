import logging
import os

from dotenv import load_dotenv
import uvicorn

load_dotenv()

logger = logging.getLogger("bloomrent.run")


def run_migrations() -> bool:
    """Run Alembic migrations."""
    from alembic import command
    from alembic.config import Config

    try:
        alembic_cfg = Config("alembic.ini")
        logger.info("[STARTUP] Running database migrations...")
        command.upgrade(alembic_cfg, "head")
        logger.info("[STARTUP] Migrations complete!")
        return True
    except Exception as e:
        logger.warning(f"[WARN] Migration failed: {e}")
        return False


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    if os.getenv("RUN_MIGRATIONS") == "true" and not run_migrations():
        raise SystemExit("Database migrations failed; refusing to start.")

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 8000))

    # Disable reload in production
    reload = os.getenv("ENV") == "development"

    uvicorn.run(
        "bloomrent.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
        workers=1,
        lifespan="auto",
    )
