"""
Email Campaign Service Clients

Clients for calling other microservices.
"""

from .registration_client import RegistrationClient

__all__ = [
    "RegistrationClient",
]
