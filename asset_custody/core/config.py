import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "asset-custody-db"
    COSMOS_DB_DEVICES_CONTAINER: str = "devices"
    COSMOS_DB_COMPONENTS_CONTAINER: str = "components"
    COSMOS_DB_ACCOUNTS_CONTAINER: str = "accounts"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employees"

    AZURE_AD_TENANT_ID: str = ""
    AZURE_AD_CLIENT_ID: str = ""

    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
