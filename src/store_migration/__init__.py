"""Store Bridge - Migrate a catalog, customers and orders between commerce platforms."""

import logging
import warnings

__version__ = "0.1.0"
__author__ = "Store Bridge Team"
__license__ = "Apache-2.0"

# Third-party loggers are too chatty for the migration console output
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpcore.connection").setLevel(logging.WARNING)
logging.getLogger("httpcore.http11").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

warnings.filterwarnings("ignore", category=DeprecationWarning, module="httpx")
