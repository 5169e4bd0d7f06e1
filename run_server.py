import os

import uvicorn

from utils.logging_utils import get_tagged_logger, setup_logging
from weather_dashboard.config import settings

logger = get_tagged_logger(__name__, tag="server")


if __name__ == "__main__":
    setup_logging(level=settings.log_level, job_name="weather_dashboard")
    if not settings.openweather_api_key:
        logger.warning("DASHBOARD_OPENWEATHER_API_KEY is not set; fetches will fail with 'Invalid API key'")

    uvicorn.run(
        "weather_dashboard.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
