"""Console entry-point for the Slack auto-reply server.

Run with:

.. code-block:: bash

    python -m slack_autoreply --port 8080

This delegates to `slack_autoreply.entry.main()`.
"""

from slack_autoreply.entry import main

if __name__ == "__main__":
    main()
