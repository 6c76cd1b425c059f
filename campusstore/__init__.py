import logging

from campusstore.config import DevelopmentConfig
from campusstore.extensions import store


def create_store(config_class=DevelopmentConfig, **overrides):
    """Bind the module-level store to a data directory and configure logging."""
    config = type(config_class.__name__, (config_class,), dict(overrides)) if overrides else config_class

    logger = logging.getLogger('campusstore')
    logger.setLevel(getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO))
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s [%(name)s] %(message)s'))
        logger.addHandler(handler)

    store.init_app(config)
    logger.debug("Store initialised at %s", store.data_dir)
    return store
