# main.py
import os
import sys
import logging
import argparse
import json
from pathlib import Path

from database import Database
from logger import setup_logger

logger = logging.getLogger("pos_system.main")

# Default configuration
DEFAULT_CONFIG = {
    "database": {"name": "pos.db"},
    "receipt": {"receipt_dir": "receipts"},
    "export": {"default_dir": "exports"},
    "theme": "default",
    "logging": {"level": "INFO", "file": "logs/pos.log"}
}


def load_config(config_path="config.json"):
    """Load configuration from JSON file or create default if not exists"""
    if os.path.exists(config_path):
        try:
            with open(config_path, 'r') as f:
                config = json.load(f)
            logger.info(f"Configuration loaded from {config_path}")
            return {**DEFAULT_CONFIG, **config}
        except (OSError, ValueError) as e:
            logger.error(f"Error loading config: {e}")
            return dict(DEFAULT_CONFIG)

    with open(config_path, 'w') as f:
        json.dump(DEFAULT_CONFIG, f, indent=4)
    logger.info(f"Created default configuration at {config_path}")

    return dict(DEFAULT_CONFIG)


def setup_directories(config):
    """Create required directories if they don't exist."""
    dir_mappings = {
        'receipt_dir': config.get('receipt', {}).get('receipt_dir', 'receipts'),
        'export_dir': config.get('export', {}).get('default_dir', 'exports'),
    }

    for dir_key, dir_path in dir_mappings.items():
        path = Path(dir_path)
        if not path.exists():
            path.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created directory: {path}")
        else:
            logger.debug(f"Directory already exists: {path}")


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description="Simple POS")
    parser.add_argument("--config", help="Path to configuration file", default="config.json")
    parser.add_argument("--debug", help="Enable debug mode", action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    try:
        args = parse_arguments(argv)

        config = load_config(args.config)
        if args.debug:
            config["logging"] = {**config.get("logging", {}), "level": "DEBUG"}
        setup_logger(config)
        logger.debug("Debug mode enabled")

        setup_directories(config)

        db_path = config["database"].get("name", "pos.db")
        db = Database(db_path)
        logger.info(f"Database initialized: {db_path}")

        # keeps config and storage usable without Tk installed
        from ui import CashierUI
        app = CashierUI(db, config)
        logger.info("Starting POS application")
        app.run()

    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
