"""Logging setup for apicontract."""

from apicontract.observability.logger import JSONFormatter, configure_logging

__all__ = ["JSONFormatter", "configure_logging"]
