"""ghrelay HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: the GitHub webhook receiver, health probes and error
handlers.

Usage
-----
Create and run the application::

    from ghrelay.api import create_app

    app = create_app()              # health-only mode
    app = create_app(dependencies)  # with the webhook receiver

"""

from ghrelay.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
