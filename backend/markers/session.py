from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from coords.systems import CoordSystem
from markers.host import InMemoryHost, RenderHost
from markers.manager import ClickHandler, MarkerManager
from styles.registry import get_style_table, table_lookup
from styles.types import StyleTable
from telemetry.singleton import get_store
from telemetry.store import TelemetryStore


logger = logging.getLogger(__name__)


@dataclass
class MapSession:
    """
    One map view: its host, style table and marker manager.

    Everything a map view accumulates (rendered markers, coordinate cache,
    cluster groups, pending updates) lives here and is dropped by `close()`.
    """

    host: RenderHost
    styles: StyleTable
    manager: MarkerManager
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    closed: bool = False

    @property
    def provider(self) -> CoordSystem:
        return self.manager.provider

    def close(self) -> None:
        if self.closed:
            return
        self.manager.close()
        self.closed = True
        logger.debug("map session %s closed", self.session_id)

    def __enter__(self) -> "MapSession":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()


def open_session(
    host: RenderHost | None = None,
    *,
    provider: str | CoordSystem = CoordSystem.wgs84,
    styles: StyleTable | None = None,
    styles_path: Path | None = None,
    telemetry: TelemetryStore | None = None,
    on_marker_click: ClickHandler | None = None,
    **manager_opts: Any,
) -> MapSession:
    """
    Create a session. Telemetry falls back to the process-wide store (None
    unless `PTMAP_TELEMETRY` is on).
    """
    host = host if host is not None else InMemoryHost()
    table = styles if styles is not None else get_style_table(styles_path)
    session_id = uuid.uuid4().hex
    manager = MarkerManager(
        host,
        style_lookup=table_lookup(table),
        provider=provider,
        on_marker_click=on_marker_click,
        telemetry=telemetry if telemetry is not None else get_store(),
        session_id=session_id,
        **manager_opts,
    )
    return MapSession(host=host, styles=table, manager=manager, session_id=session_id)
