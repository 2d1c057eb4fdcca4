# Utils package
from .logging_utils import setup_logging, LogTimer, log_step
from .audit import audit

__all__ = ['setup_logging', 'LogTimer', 'log_step', 'audit']
