import json
import os
from typing import List, Optional

import boto3
from pydantic_settings import BaseSettings


def _load_secrets(secret_name: str, region: str = "us-east-1") -> dict:
    """Fetch sensitive config from AWS Secrets Manager."""
    client = boto3.client("secretsmanager", region_name=region)
    response = client.get_secret_value(SecretId=secret_name)
    return json.loads(response["SecretString"])


class Settings(BaseSettings):
    """Application settings and configuration"""

    # API Settings
    API_PREFIX: str = ""
    PROJECT_NAME: str = "Portfolio Dashboard API"

    # Auth
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Rate Limiting
    RATE_LIMIT_PER_MINUTE: int = 60

    # AWS Settings
    AWS_REGION: str = "us-east-1"

    # Database
    DYNAMODB_ENDPOINT: Optional[str] = None  # For local development
    USERS_TABLE: str = "users"
    HOLDINGS_TABLE: str = "holdings"

    # Market data
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    COINGECKO_TIMEOUT_SECONDS: float = 10.0
    ALPHA_VANTAGE_API_KEY: str = ""
    ALPHA_VANTAGE_MIN_DELAY: float = 0.3

    # Price refresh
    PRICE_REFRESH_ENABLED: bool = False
    PRICE_REFRESH_INTERVAL_SECONDS: int = 120
    CRYPTO_WATCHLIST: List[str] = ["bitcoin", "ethereum", "cardano", "solana", "ripple"]
    STOCK_WATCHLIST: List[str] = ["AAPL", "GOOGL", "MSFT", "TSLA", "AMZN"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Optional[str] = None  # "json" or "human"; auto-detected when unset
    AWS_LAMBDA_FUNCTION_NAME: Optional[str] = None  # set by the Lambda runtime

    @property
    def log_json(self) -> bool:
        """JSON logs when LOG_FORMAT says so, otherwise whenever running in Lambda."""
        if self.LOG_FORMAT:
            return self.LOG_FORMAT.lower() == "json"
        return self.AWS_LAMBDA_FUNCTION_NAME is not None

    class Config:
        case_sensitive = True
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    """Build settings from the environment, overlaying Secrets Manager values
    when APP_SECRET_NAME is set."""
    secret_name = os.getenv("APP_SECRET_NAME")
    if not secret_name:
        return Settings()

    region = os.getenv("AWS_REGION", "us-east-1")
    secrets = _load_secrets(secret_name, region)
    overrides = {
        key: secrets[key]
        for key in ("JWT_SECRET", "ALPHA_VANTAGE_API_KEY")
        if secrets.get(key)
    }
    return Settings(**overrides)


settings = get_settings()
