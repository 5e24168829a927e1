import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")


def load_config_data(path: str = CONFIG_FILE_PATH) -> dict:
    """Read env.yaml again; used to pick up changes between sweeps"""
    if os.path.exists(path):
        with open(path, "r") as r_file:
            return yaml.safe_load(r_file) or dict()
    return dict()


data = load_config_data()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Autoscaling policy (re-read from env.yaml before every sweep)
    AUTOSCALING_ENABLED = bool(data.get("AUTOSCALING_ENABLED", True))
    AUTOSCALING_RAM_THRESHOLD = data.get("AUTOSCALING_RAM_THRESHOLD", 80)  # % of allocated RAM
    AUTOSCALING_CPU_THRESHOLD = data.get("AUTOSCALING_CPU_THRESHOLD", 50)  # % of allocated CPU
    AUTOSCALING_RAM_STEP = data.get("AUTOSCALING_RAM_STEP", 256)  # MB
    AUTOSCALING_CPU_STEP = data.get("AUTOSCALING_CPU_STEP", 50)  # percentage points
    AUTOSCALING_COST_PER_RAM_MB = data.get("AUTOSCALING_COST_PER_RAM_MB", 0.01)
    AUTOSCALING_COST_PER_CPU_PERCENT = data.get("AUTOSCALING_COST_PER_CPU_PERCENT", 0.02)
    AUTOSCALING_INTERVAL_SECONDS = data.get("AUTOSCALING_INTERVAL_SECONDS", 300)
    AUTOSCALING_SETTLE_PENDING = bool(data.get("AUTOSCALING_SETTLE_PENDING", False))
    AUTOSCALING_SETTLE_BATCH_SIZE = data.get("AUTOSCALING_SETTLE_BATCH_SIZE", 100)

    # External systems
    EXTERNAL_CALL_TIMEOUT_SECONDS = data.get("EXTERNAL_CALL_TIMEOUT_SECONDS", 10)
    RESOURCE_MANAGER_URL = data.get("RESOURCE_MANAGER_URL", "http://localhost:8080/api/v1")
    RESOURCE_MANAGER_API_KEY = data.get("RESOURCE_MANAGER_API_KEY", "")
    RESOURCE_MANAGER_SERVER_ID = data.get("RESOURCE_MANAGER_SERVER_ID", "1")
    BILLING_SYSTEM_URL = data.get("BILLING_SYSTEM_URL", "http://localhost:8081/includes/api.php")
    BILLING_SYSTEM_IDENTIFIER = data.get("BILLING_SYSTEM_IDENTIFIER", "")
    BILLING_SYSTEM_SECRET = data.get("BILLING_SYSTEM_SECRET", "")
    SCALING_NOTIFICATION_WEBHOOK = data.get("SCALING_NOTIFICATION_WEBHOOK", None)

    # Wallets
    WALLET_CURRENCY = data.get("WALLET_CURRENCY", "PLN")

    # Wallet Reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
