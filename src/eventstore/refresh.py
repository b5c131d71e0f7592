from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Protocol, Union, runtime_checkable

from .settings import Settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
@runtime_checkable
class TimelineRefresher(Protocol):
    """Fire-and-forget signal asking widget renderers to reload their timelines."""

    def reload_all_timelines(self) -> None:
        ...


class NoopTimelineRefresher:
    """Used when no widget renderer is attached."""

    def reload_all_timelines(self) -> None:
        return None


class MarkerFileTimelineRefresher:
    """
    Signals widget renderers by rewriting a marker file they poll.

    The marker holds the ISO timestamp of the latest save; renderers reload
    when it changes.
    """

    def __init__(self, marker_path: Union[Path, str]) -> None:
        self._marker_path = Path(marker_path)

    @property
    def marker_path(self) -> Path:
        return self._marker_path

    def reload_all_timelines(self) -> None:
        self._marker_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._marker_path.with_suffix(".tmp")
        tmp_path.write_text(datetime.now().isoformat(), encoding="utf-8")
        # Atomic rename so renderers never read a half-written marker
        os.replace(tmp_path, self._marker_path)
        logger.debug("Widget refresh marker updated at %s", self._marker_path)


# PUBLIC_INTERFACE
def get_refresher(settings: Settings) -> TimelineRefresher:
    """Return the marker-file refresher when configured, otherwise a no-op."""
    if settings.widget_refresh_marker:
        return MarkerFileTimelineRefresher(settings.widget_refresh_marker)
    return NoopTimelineRefresher()
