"""
Database connection handling for the reporting catalog.
"""
import logging
from sqlalchemy import create_engine
from pizza_reports.config import Config

logger = logging.getLogger(__name__)


def build_connection_string(db_config):
    """
    Build a SQLAlchemy URL from the DATABASE config section.
    """
    if db_config['type'] == 'sqlite':
        if db_config['name'] in (None, '', ':memory:'):
            return "sqlite://"
        return f"sqlite:///{db_config['name']}"
    elif db_config['type'] == 'postgresql':
        return f"postgresql+psycopg2://{db_config['user']}:{db_config['password']}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    elif db_config['type'] == 'mysql':
        return f"mysql+pymysql://{db_config['user']}:{db_config['password']}@{db_config['host']}:{db_config['port']}/{db_config['name']}"
    raise ValueError(f"Unsupported database type: {db_config['type']}")


def create_db_engine(config=None):

    try:
        if config is None:
            config = Config()

        db_config = config.get_database_config()
        engine = create_engine(build_connection_string(db_config))
        logger.info(f"Database connection created for {db_config['type']}")
        return engine
    except Exception as e:
        logger.error(f"Failed to create database connection: {str(e)}")
        raise


def init_db(engine, base):
    """
    Initialize database tables.
    """
    base.metadata.create_all(engine)
    logger.info("Database tables initialized")
