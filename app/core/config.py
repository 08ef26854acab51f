import sys

from pydantic_settings import BaseSettings

_ENV_FILE = None if "pytest" in sys.modules else ".env"


class Settings(BaseSettings):
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    COSMOS_DB_ENDPOINT: str = ""
    COSMOS_DB_KEY: str = ""
    COSMOS_DB_DATABASE: str = "workforce-db"
    COSMOS_DB_EMPLOYEES_CONTAINER: str = "employees"
    COSMOS_DB_PERSONS_CONTAINER: str = "persons"

    MERGE_API_BASE_URL: str = "https://api.merge.dev/api/hris/v1"
    MERGE_API_KEY: str = ""
    MERGE_PAGE_SIZE: int = 100
    MERGE_MAX_PAGES: int = 1000
    MERGE_TIMEOUT_SECONDS: int = 30

    HRIS_SOURCE_SYSTEM: str = "MERGE_DEV"

    AZURE_AD_TENANT_ID: str = ""
    AZURE_AD_CLIENT_ID: str = ""
    AZURE_AD_ORGANIZATION_CLAIM: str = "org_id"

    model_config = {
        "env_file": _ENV_FILE,
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
    }


settings = Settings()
