"""Utility modules for the STARTTLS policy store."""

from .secure_logging import get_secure_logger, setup_secure_logging
from .validation import valid_domain_name

__all__ = ["get_secure_logger", "setup_secure_logging", "valid_domain_name"]
