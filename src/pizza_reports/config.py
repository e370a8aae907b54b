"""
Configuration handling for the pizza sales reporting catalog.
"""
import os
import logging
import configparser
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()
# Load environment variables
DB_TYPE = os.getenv("PIZZA_DB_TYPE", "sqlite")
DB_NAME = os.getenv("PIZZA_DB_NAME", "data/pizza_sales.db")
DB_HOST = os.getenv("PIZZA_DB_HOST", "")
DB_PORT = os.getenv("PIZZA_DB_PORT", "")
DB_USER = os.getenv("PIZZA_DB_USER", "")
DB_PASSWORD = os.getenv("PIZZA_DB_PASSWORD", "")

REPORT_SOURCES = ('csv', 'database')
REPORT_STYLES = ('table', 'structured')


class Config:
    """Configuration manager for the reporting catalog."""

    def __init__(self, config_file='config.ini', setup_logging=True):
        """
        Initialize configuration from config file.
        """
        self.config = configparser.ConfigParser(interpolation=None)

        # Set default values
        self._set_defaults()

        # Try to read from config file
        config_path = Path(config_file) if config_file else None
        if config_path is not None and config_path.exists():
            self.config.read(config_path)
        elif config_path is not None:
            logging.getLogger(__name__).warning(
                f"Config file {config_file} not found. Using defaults."
            )

        if setup_logging:
            self._setup_logging()

    def _set_defaults(self):
        """Set default configuration values."""
        self.config['DATABASE'] = {
            'type': DB_TYPE,
            'name': DB_NAME,
            'host': DB_HOST,
            'port': DB_PORT,
            'user': DB_USER,
            'password': DB_PASSWORD
        }

        self.config['LOGGING'] = {
            'level': 'INFO',
            'file': 'logs/reports.log'
        }

        self.config['PATHS'] = {
            'input_dir': 'data/input',
            'output_dir': 'data/output'
        }

        self.config['REPORTS'] = {
            'source': 'csv',
            'default_style': 'table',
            'precision': '2',
            'quality_check': 'true'
        }

    def _setup_logging(self):
        """Configure logging based on settings."""
        log_config = self.config['LOGGING']
        log_level = getattr(logging, log_config.get('level', 'INFO').upper(), logging.INFO)
        log_file = log_config.get('file', '')

        handlers = [logging.StreamHandler()]
        if log_file:
            # Create directory for log file if it doesn't exist
            log_dir = os.path.dirname(log_file)
            if log_dir and not os.path.exists(log_dir):
                os.makedirs(log_dir)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=handlers
        )

    def get_database_config(self):
        """
        Get database configuration.

        """
        return {
            'type': self.config['DATABASE'].get('type'),
            'name': self.config['DATABASE'].get('name'),
            'host': self.config['DATABASE'].get('host'),
            'port': self.config['DATABASE'].get('port'),
            'user': self.config['DATABASE'].get('user'),
            'password': self.config['DATABASE'].get('password')
        }

    def get_input_path(self, filename=None):
        """
        Get input directory or file path.

        """
        input_dir = self.config['PATHS'].get('input_dir', 'data/input')
        if filename:
            return os.path.join(input_dir, filename)
        return input_dir

    def get_output_path(self, filename=None):
        """
        Get output directory or file path.

        """
        output_dir = self.config['PATHS'].get('output_dir', 'data/output')

        # Create directory if it doesn't exist
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        if filename:
            return os.path.join(output_dir, filename)
        return output_dir

    def get_report_source(self):
        """
        Where reports read their data from: 'csv' files or the 'database'.
        """
        source = self.config['REPORTS'].get('source', 'csv').lower()
        if source not in REPORT_SOURCES:
            raise ValueError(f"Unsupported report source: {source}")
        return source

    def get_default_style(self):
        style = self.config['REPORTS'].get('default_style', 'table').lower()
        if style not in REPORT_STYLES:
            raise ValueError(f"Unsupported report style: {style}")
        return style

    def get_precision(self):
        return self.config['REPORTS'].getint('precision', 2)

    def is_quality_check_enabled(self):
        """
        Check if data quality checks run before reports.

        """
        return self.config['REPORTS'].getboolean('quality_check', True)
