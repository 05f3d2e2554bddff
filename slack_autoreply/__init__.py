"""Slack auto-reply webhook server.

Receives Slack Events API callbacks, verifies that they were signed by Slack,
and answers ``app_mention`` events with a canned reply.
"""

__version__ = "0.1.0"
