"""Slack Web API client construction."""

from .factory import DefaultSlackClientFactory, RetryableSlackClientFactory, SlackClientFactory

__all__ = ["SlackClientFactory", "DefaultSlackClientFactory", "RetryableSlackClientFactory"]
