# run.py
import uvicorn
import logging
import os
import sys

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    try:
        port = int(os.getenv("PORT", 8000))
    except (ValueError, TypeError):
        logger.warning("Invalid PORT environment variable, using default 8000")
        port = 8000

    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting Plate Inventory API on {host}:{port}")

    try:
        uvicorn.run(
            "plate_inventory.main:app",
            host=host,
            port=port,
            reload=False,
            workers=1,     # capture sessions live in process memory
            log_level="info",
            access_log=True
        )
    except Exception as e:
        logger.error(f"Failed to start server: {e}")
        sys.exit(1)
