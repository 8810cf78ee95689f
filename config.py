# config.py

import os
from sqlalchemy.pool import QueuePool

class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 280,
        "pool_size": 5,
        "max_overflow": 10,
        "poolclass": QueuePool
    }

    # Shared secret checked on every route (?key=... or X-API-Key)
    APP_API_KEY = os.getenv("APP_API_KEY", "")

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-2024-08-06")

    SUPABASE_PROJECT_URL = os.getenv("SUPABASE_PROJECT_URL", "")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
    SUPABASE_BUCKET = os.getenv("SUPABASE_BUCKET", "images")

    UNSPLASH_ACCESS_KEY = os.getenv("UNSPLASH_ACCESS_KEY", "")
    LOGO_DEV_PUBLISHABLE_KEY = os.getenv("LOGO_DEV_PUBLISHABLE_KEY", "")
    LOGO_DEV_SECRET_KEY = os.getenv("LOGO_DEV_SECRET_KEY", "")
    SPOTIFY_CLIENT_ID = os.getenv("SPOTIFY_CLIENT_ID", "")
    SPOTIFY_CLIENT_SECRET = os.getenv("SPOTIFY_CLIENT_SECRET", "")

    IMAGE_SIZE = int(os.getenv("IMAGE_SIZE", "768"))
    IMAGE_FETCH_TIMEOUT = float(os.getenv("IMAGE_FETCH_TIMEOUT", "10"))
    RECENT_PAIRS_SIZE = int(os.getenv("RECENT_PAIRS_SIZE", "10"))

    # Fetch a Spotify token at startup when credentials exist
    SPOTIFY_REFRESH_ON_START = True

    @staticmethod
    def init_app(app):
        pass

class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DEV_DATABASE_URL",
        "sqlite:///local.db"  # resolved inside the app instance folder
    )
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

class ProductionConfig(Config):
    DEBUG = False

    @classmethod
    def get_database_uri(cls):
        uri = os.getenv("DATABASE_URL", "")
        if uri.startswith("postgres://"):
            uri = uri.replace("postgres://", "postgresql://", 1)
        if uri and "sslmode" not in uri:
            uri += "?sslmode=require"
        return uri

    SQLALCHEMY_DATABASE_URI = get_database_uri.__func__(None)

class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    APP_API_KEY = "test-key"
    IMAGE_SIZE = 64
    IMAGE_FETCH_TIMEOUT = 2
    SPOTIFY_REFRESH_ON_START = False

config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig
}
