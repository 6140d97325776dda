import logging

__version__ = "0.1.0"

# Logging stays silent unless the CLI configures a log file
logging.getLogger(__name__).addHandler(logging.NullHandler())
