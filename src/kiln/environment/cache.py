"""Compiled-artifact cache.

Each template's compiled artifact lives next to it, under the same name with
a leading dot:

    templates/page.html   →   templates/.page.html

An artifact that exists is considered fresh; there is no timestamp check.
Pass ``always_recompile=True`` to the Environment (or call `invalidate`)
after editing a template.

Thread-Safety:
Writes to the same artifact path are serialized by a per-path lock held by
the cache instance. Each write goes to a temporary sibling first and is
moved into place, so readers never see a half-written artifact; between
concurrent writers the last one wins.

"""

from __future__ import annotations

import logging
import os
import threading
from contextlib import suppress
from pathlib import Path

from kiln.environment.exceptions import (
    ReadDeniedError,
    TemplateNotFoundError,
    WriteDeniedError,
    WriteFailedError,
)

logger = logging.getLogger(__name__)


def artifact_path(template_path: str | Path) -> Path:
    """Artifact location for ``template_path`` (pure; no filesystem access)."""
    path = Path(template_path)
    return path.with_name("." + path.name)


class ArtifactCache:
    """Locate, read and persist compiled artifacts.

    Methods:
        resolve(template): Artifact path for an existing template
        is_fresh(template): True if the artifact exists
        read_template(template): Template source text
        load(artifact): Artifact text
        persist(artifact, text): Write artifact text
        invalidate(template): Remove the artifact

    Raises:
        TemplateNotFoundError: The template (or artifact) does not exist
        ReadDeniedError: A file exists but cannot be read
        WriteDeniedError: The artifact's directory is not writable
        WriteFailedError: Writing the artifact raised

    """

    __slots__ = ("_encoding", "_locks", "_locks_guard")

    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding
        self._locks: dict[Path, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, path: Path) -> threading.Lock:
        key = path.absolute()
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def resolve(self, template_path: str | Path) -> Path:
        """Return the artifact path; the template itself must exist."""
        if not Path(template_path).is_file():
            raise TemplateNotFoundError(f"This template does not exist: {template_path}")
        return artifact_path(template_path)

    def is_fresh(self, template_path: str | Path) -> bool:
        return self.resolve(template_path).is_file()

    def _read(self, path: Path) -> str:
        if not path.is_file():
            raise TemplateNotFoundError(f"This template does not exist: {path}")
        if not os.access(path, os.R_OK):
            raise ReadDeniedError("I do not have permission to read the template", str(path))
        try:
            return path.read_text(self._encoding)
        except PermissionError as e:
            raise ReadDeniedError("I do not have permission to read the template", str(path)) from e

    def read_template(self, template_path: str | Path) -> str:
        return self._read(Path(template_path))

    def load(self, artifact: str | Path) -> str:
        return self._read(Path(artifact))

    def persist(self, artifact: str | Path, text: str) -> None:
        """Write ``text`` to ``artifact``, replacing any previous content."""
        path = Path(artifact)
        directory = path.parent
        if not os.access(directory, os.W_OK):
            raise WriteDeniedError("I do not have permission to write to this template", str(path))

        tmp = path.with_name(f"{path.name}.{os.getpid()}.{threading.get_ident()}.tmp")
        with self._lock_for(path):
            try:
                with open(tmp, "w", encoding=self._encoding, newline="") as f:
                    f.write(text)
                os.replace(tmp, path)
            except OSError as e:
                with suppress(OSError):
                    tmp.unlink()
                raise WriteFailedError("I could not write to this template", str(path)) from e
        logger.debug("Persisted artifact %s (%d chars)", path, len(text))

    def invalidate(self, template_path: str | Path) -> bool:
        """Remove the artifact for ``template_path``. Returns True if one existed."""
        path = artifact_path(template_path)
        with self._lock_for(path):
            try:
                path.unlink()
            except FileNotFoundError:
                return False
        logger.debug("Invalidated artifact %s", path)
        return True
