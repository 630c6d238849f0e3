"""Persistence layer."""

from flowauth.repositories.user import UserRepository

__all__ = ["UserRepository"]
