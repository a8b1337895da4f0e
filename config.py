import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration"""
    SECRET_KEY = os.environ.get("SECRET_KEY") or "dev-secret-key-change-in-production"

    MONGO_URI = os.environ.get("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME = os.environ.get("DB_NAME", "YouthSurveyPortal")

    # "firebase" talks to Firebase Authentication, "local" keeps hashed
    # credentials in the database
    IDENTITY_BACKEND = os.environ.get("IDENTITY_BACKEND", "firebase")
    FIREBASE_API_KEY = os.environ.get("FIREBASE_API_KEY")
    FIREBASE_AUTH_URL = os.environ.get(
        "FIREBASE_AUTH_URL", "https://identitytoolkit.googleapis.com/v1"
    )
    PROVIDER_TIMEOUT = float(os.environ.get("PROVIDER_TIMEOUT", 10))

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # seconds between reads when change streams are unavailable
    STATUS_POLL_INTERVAL = float(os.environ.get("STATUS_POLL_INTERVAL", 2))

    SESSION_COOKIE_SAMESITE = "Lax"
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "0") == "1"

    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    SECRET_KEY = os.environ.get("SECRET_KEY") or "must-set-secret-key-in-production"
    SESSION_COOKIE_SECURE = True


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DB_NAME = "YouthSurveyPortalTest"
    IDENTITY_BACKEND = "local"
    LOG_LEVEL = "DEBUG"
    STATUS_POLL_INTERVAL = 0.05


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}


def get_config(name=None):
    name = name or os.environ.get("APP_ENV", "default")
    return config.get(name, config["default"])
