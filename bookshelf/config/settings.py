from pydantic_settings import BaseSettings
from dotenv import load_dotenv, find_dotenv
from os import getenv
from typing import Optional

_env_path = find_dotenv()  # locate a .env file in this folder or parent folders
if _env_path:
    load_dotenv(_env_path)


class Settings(BaseSettings):
    # Database related
    DB_HOST_IP: Optional[str] = getenv('DB_HOST_IP')
    DB_USER: Optional[str] = getenv('DB_USER')
    DB_PASSWORD: Optional[str] = getenv('DB_PASSWORD')
    DB_NAME: Optional[str] = getenv('DB_NAME')
    # Full SQLAlchemy URL; takes precedence over the DB_* parts (e.g. sqlite:// for local runs)
    DATABASE_URL: Optional[str] = getenv('DATABASE_URL')

    # Cache related
    CACHE_BACKEND: str = getenv('CACHE_BACKEND', 'redis')  # 'redis' or 'memory'
    REDIS_URL: str = getenv('REDIS_URL', 'redis://localhost:6379/0')
    CACHE_NAMESPACE: str = getenv('CACHE_NAMESPACE', 'books')
    LISTING_CACHE_TTL: int = int(getenv('LISTING_CACHE_TTL', '300'))

    # An empty paginated listing is reported as 404 unless disabled
    EMPTY_PAGE_NOT_FOUND: bool = getenv('EMPTY_PAGE_NOT_FOUND', 'true').lower() in ('1', 'true', 'yes')

    # Upper bounds for paginated listings; larger values are rejected with 400
    MAX_PAGE_LIMIT: int = int(getenv('MAX_PAGE_LIMIT', '100'))
    MAX_PAGE: int = int(getenv('MAX_PAGE', '100000'))

    # Result sizes for the auxiliary listings
    RANDOM_LIMIT: int = int(getenv('RANDOM_LIMIT', '10'))
    RELATED_LIMIT: int = int(getenv('RELATED_LIMIT', '8'))
    MOST_VIEWED_LIMIT: int = int(getenv('MOST_VIEWED_LIMIT', '10'))

    LOG_LEVEL: str = getenv('LOG_LEVEL', 'INFO')

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST_IP}:5432/{self.DB_NAME}"


settings = Settings()
