"""Clients for external HTTP APIs."""

from increase_demo.clients.increase import IncreaseAPIError, IncreaseClient

__all__ = ["IncreaseAPIError", "IncreaseClient"]
