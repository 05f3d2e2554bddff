"""Singleton factory contract for the web application."""

from abc import ABCMeta, abstractmethod


class BaseServerFactory[T](metaclass=ABCMeta):
    """Create, fetch and reset one process-wide ``T`` instance.

    :data:`slack_autoreply.app.web_factory` is the FastAPI implementation.
    """

    @staticmethod
    @abstractmethod
    def create(**kwargs) -> T:
        """Build the instance; fails if one already exists."""

    @staticmethod
    @abstractmethod
    def get() -> T:
        """Return the instance built by :meth:`create`."""

    @staticmethod
    @abstractmethod
    def reset() -> None:
        """Drop the instance so :meth:`create` can run again."""
