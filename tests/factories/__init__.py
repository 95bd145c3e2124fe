"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .user import UserFactory, InactiveUserFactory
from .oauth_client import OAuthClientFactory, ScopedOAuthClientFactory

__all__ = [
    "UserFactory",
    "InactiveUserFactory",
    "OAuthClientFactory",
    "ScopedOAuthClientFactory",
]
