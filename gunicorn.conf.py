"""
Gunicorn configuration for the Quizboard application.
Optimized for Socket.IO with eventlet workers.
"""

import sys
import logging

from config_factory import load_config, ConfigError


def on_starting(server):
    """
    Server hook that runs when the master process is starting.
    Configuration is validated here so a bad deployment fails before workers fork.
    """
    logger = logging.getLogger(__name__)
    try:
        config = load_config()
    except ConfigError as e:
        logger.critical(f"FATAL: Invalid configuration. Server shutting down. Error: {e}")
        sys.exit(1)
    logger.info(f"Configuration valid for {config.environment.value}; "
                f"board mutations {'serialized' if config.serialize_board_mutations else 'unserialized'}")


# Load configuration (renamed to avoid conflicts with gunicorn's internal 'config')
app_config = load_config()

# Server socket
bind = f"{app_config.host}:{app_config.port}"
backlog = 2048

# Worker processes
workers = 1  # Connection registry and board locks are per process
worker_class = "eventlet"
worker_connections = app_config.worker_connections
timeout = app_config.timeout
keepalive = app_config.keepalive

# Logging
accesslog = "-"
errorlog = "-"
loglevel = app_config.log_level
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s"'

# Process naming
proc_name = "quizboard"

# Server mechanics
preload_app = False  # Don't preload for Socket.IO
daemon = False
