import logging
import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

logging.basicConfig(
    level=ApplicationConfig.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    # Autoscaling sweeps run in src.worker.autoscaler, the API only serves admin calls
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        log_level=ApplicationConfig.LOG_LEVEL.lower(),
    )
