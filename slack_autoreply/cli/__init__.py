"""Command-line interface for the Slack auto-reply server."""

from .models import ServerCliOptions
from .options import _parse_args

__all__ = ["ServerCliOptions", "_parse_args"]
