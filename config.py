import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directory of the application
BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _database_path_from_env():
    """Resolve the database location from DATABASE_URL or DATABASE_PATH"""
    url = os.environ.get('DATABASE_URL')
    if url:
        for prefix in ('sqlite:///', 'sqlite://', 'sqlite:'):
            if url.startswith(prefix):
                return url[len(prefix):]
        return url
    return os.environ.get('DATABASE_PATH') or os.path.join(BASE_DIR, 'healthkit.db')


class Config:
    """Base configuration class"""

    # Database
    DATABASE_PATH = _database_path_from_env()

    # Rows per table committed in one transaction
    BATCH_SIZE = int(os.environ.get('BATCH_SIZE', 5000))

    # Events buffered between the parser thread and the writer (0 = no thread)
    PIPELINE_QUEUE_SIZE = int(os.environ.get('PIPELINE_QUEUE_SIZE', 4096))

    # Layout of the Apple Health export archive
    EXPORT_ROOT = 'apple_health_export'
    EXPORT_XML_MEMBER = 'apple_health_export/export.xml'

    # Logging / progress
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'WARNING')
    PROGRESS_EVERY = int(os.environ.get('PROGRESS_EVERY', 50000))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DATABASE_PATH = ':memory:'
    BATCH_SIZE = 2
    PIPELINE_QUEUE_SIZE = 0
    LOG_LEVEL = 'DEBUG'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
