"""Built-in CLI commands registered by :func:`gholafetch.app.main`."""
