"""ghrelay: relay GitHub pull-request activity into Discord notifications.

The package is organised around the inbound webhook pipeline:

* ``ghrelay.webhook`` - signature verification, mention resolution,
  notification delivery, and the pipeline that ties them together.
* ``ghrelay.events`` - typed payload variants, validation, and the pure
  event-to-notification mapping.
* ``ghrelay.storage`` - persistence models and the read/write stores used by
  the pipeline and the admin CLI.
* ``ghrelay.api`` - the Falcon ASGI surface.
"""

from __future__ import annotations

__all__: list[str] = []
