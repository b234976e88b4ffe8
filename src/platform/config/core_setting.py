from pathlib import Path
from typing import List

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[3]
_ENV_PATH = _PROJECT_ROOT / '.env'
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / '.env.example')


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra='ignore',
    )

    PROJECT_NAME: str = 'Event Ticket Engine'
    VERSION: str = '0.1.0'
    DEBUG: bool = True  # Set to False in production

    # CORS
    BACKEND_CORS_ORIGINS: List[str] = []  # add your frontend URL here

    @field_validator('BACKEND_CORS_ORIGINS', mode='before')
    @classmethod
    def assemble_cors_origins(cls, v: str | List[str]) -> List[str]:
        if isinstance(v, str) and not v.startswith('['):
            return [i.strip() for i in v.split(',')]
        elif isinstance(v, list):
            return v
        return []

    # Database
    POSTGRES_SERVER: str = 'localhost'
    POSTGRES_USER: str = 'postgres'
    POSTGRES_PASSWORD: SecretStr = SecretStr('postgres')
    POSTGRES_DB: str = 'event_ticket_engine'
    POSTGRES_PORT: int = 5432

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql+asyncpg://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    @property
    def DATABASE_URL_SYNC(self) -> str:
        password = self.POSTGRES_PASSWORD.get_secret_value()
        return f'postgresql://{self.POSTGRES_USER}:{password}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}'

    # asyncpg Pool Configuration
    ASYNCPG_POOL_MIN_SIZE: int = 5
    ASYNCPG_POOL_MAX_SIZE: int = 20
    ASYNCPG_POOL_COMMAND_TIMEOUT: float = 30.0  # seconds
    ASYNCPG_POOL_MAX_INACTIVE_LIFETIME: float = 300.0  # seconds
    ASYNCPG_POOL_TIMEOUT: float = 10.0  # acquire timeout (seconds)
    ASYNCPG_POOL_MAX_QUERIES: int = 50000

    # Kvrocks Configuration (Redis protocol + Kvrocks storage)
    KVROCKS_HOST: str = 'localhost'
    KVROCKS_PORT: int = 6666
    KVROCKS_DB: int = 0
    KVROCKS_PASSWORD: str = ''
    REDIS_DECODE_RESPONSES: bool = True

    # Kvrocks Connection Pool Configuration
    KVROCKS_POOL_MAX_CONNECTIONS: int = 100
    KVROCKS_POOL_SOCKET_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_CONNECT_TIMEOUT: int = 10  # seconds
    KVROCKS_POOL_SOCKET_KEEPALIVE: bool = True
    KVROCKS_POOL_HEALTH_CHECK_INTERVAL: int = 30  # seconds

    # Notification channel prefix (published as {prefix}:{user_id})
    NOTIFICATION_CHANNEL_PREFIX: str = 'notification'

    # Payment Gateway (PhonePe-style REST API)
    PAYMENT_GATEWAY_ENV: str = 'UAT'  # UAT | PRODUCTION
    PAYMENT_GATEWAY_UAT_BASE_URL: str = 'https://api-preprod.phonepe.com/apis/pg-sandbox'
    PAYMENT_GATEWAY_PRODUCTION_BASE_URL: str = 'https://api.phonepe.com/apis/hermes'
    PAYMENT_GATEWAY_MERCHANT_ID: str = 'PGTESTPAYUAT'
    PAYMENT_GATEWAY_SALT_KEY: SecretStr = SecretStr('099eb0cd-02cf-4e2a-8aca-3e6c6aff0399')
    PAYMENT_GATEWAY_SALT_INDEX: int = 1
    PAYMENT_GATEWAY_CALLBACK_URL: str = 'http://localhost:8000/api/payment/callback'
    PAYMENT_GATEWAY_REDIRECT_URL: str = 'http://localhost:3000/payment/status'
    PAYMENT_GATEWAY_TIMEOUT: float = 10.0  # seconds
    PAYMENT_INITIATE_MAX_ATTEMPTS: int = 2

    @property
    def PAYMENT_GATEWAY_BASE_URL(self) -> str:
        if self.PAYMENT_GATEWAY_ENV.upper() == 'PRODUCTION':
            return self.PAYMENT_GATEWAY_PRODUCTION_BASE_URL
        return self.PAYMENT_GATEWAY_UAT_BASE_URL

    # Booking Policy
    CHECK_IN_OPENS_BEFORE_START_HOURS: int = 2
    DEFAULT_EVENT_DURATION_HOURS: int = 6  # used when an event has no end time
    CANCELLATION_BLACKOUT_HOURS: int = 24
    REFUND_TIERS: str = '72:100,48:50'  # hours_before_start:refund_percent
    PAYMENT_TIMEOUT_MINUTES: int = 30
    EXPIRY_BATCH_SIZE: int = 100
    DEFAULT_MAX_PER_BUYER: int = 10
    CREDENTIAL_SECRET_BYTES: int = 20
    VERIFICATION_CODE_LENGTH: int = 6

    @field_validator('REFUND_TIERS')
    @classmethod
    def validate_refund_tiers(cls, v: str) -> str:
        for tier in filter(None, (part.strip() for part in v.split(','))):
            hours, _, percent = tier.partition(':')
            if not hours.isdigit() or not percent.isdigit() or int(percent) > 100:
                raise ValueError(f'Invalid refund tier: {tier!r} (expected "hours:percent")')
        return v

    @property
    def REFUND_TIER_TABLE(self) -> list[tuple[int, int]]:
        """(min_hours_before_start, percent) ordered from the most generous tier"""
        tiers = []
        for tier in filter(None, (part.strip() for part in self.REFUND_TIERS.split(','))):
            hours, _, percent = tier.partition(':')
            tiers.append((int(hours), int(percent)))
        return sorted(tiers, reverse=True)


settings = Settings()  # type: ignore
