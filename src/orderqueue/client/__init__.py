"""Client side of orderqueue: HTTP client, submission queue and CLI."""
