import os
from config import config


def create_converter(config_name=None, overrides=None):
    """
    Converter factory.

    Args:
        config_name: Configuration name ('development', 'production', 'testing',
            or None to read HEALTHKIT_ENV)
        overrides: Optional dictionary of configuration values to override

    Returns:
        Converter instance
    """
    from healthkit_sqlite.services.converter import Converter

    if config_name is None:
        config_name = os.environ.get('HEALTHKIT_ENV', 'development')

    # Load configuration
    config_class = config.get(config_name, config['default'])
    settings = {key: getattr(config_class, key) for key in dir(config_class) if key.isupper()}

    if overrides:
        settings.update(overrides)

    return Converter(settings)
