"""Core building blocks: backends, snapshot adapter, events, transports, page identity."""
