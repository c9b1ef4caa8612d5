"""Resolve report uris to files of the checked-out repository."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import structlog

LOGGER = structlog.get_logger("cucumber_report")

CLASSPATH_PREFIX = "classpath:"


class FileLocator:
    """Finds the workspace file a report uri refers to, caching each lookup."""

    def __init__(self, workspace: Path) -> None:
        self.workspace = workspace
        self._cache: dict[str, Optional[str]] = {}

    def find(self, uri: str) -> Optional[str]:
        """Return the first ``**/<uri>`` match relative to the workspace, or ``None``."""

        if uri not in self._cache:
            self._cache[uri] = self._search(uri)
        return self._cache[uri]

    def resolve(self, uri: str) -> str:
        return self.find(uri) or uri

    def _search(self, uri: str) -> Optional[str]:
        search = uri[len(CLASSPATH_PREFIX):] if uri.startswith(CLASSPATH_PREFIX) else uri
        search = search.lstrip("/")
        if not search:
            return None
        try:
            matches = sorted(
                (path for path in self.workspace.glob(f"**/{search}") if path.is_file()),
                key=lambda path: (len(path.parts), path.as_posix()),
            )
        except ValueError:
            LOGGER.debug("file_lookup_invalid_pattern", uri=uri)
            return None
        if not matches:
            LOGGER.debug("file_not_found", uri=uri)
            return None
        best = matches[0].relative_to(self.workspace).as_posix()
        LOGGER.debug("file_matched", uri=uri, path=best)
        return best
