"""Mini README: File storage for proof-of-transaction attachments.

Structure:
    * ProofUpload - filename and bytes received from a client.
    * ProofStorage - saves uploads and resolves, reads and deletes references.

Stored files are addressed by references of the form ``/uploads/<name>``
which the web interface also serves statically. A file exists until it is
explicitly deleted; the transaction store deletes it when its record is
removed or its proof replaced.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..errors import StorageError, ValidationError
from ..logging_utils import get_logger

LOGGER = get_logger(__name__)

URL_PREFIX = "/uploads/"


@dataclass(frozen=True, slots=True)
class ProofUpload:
    """A proof file as received from the client."""

    filename: str
    content: bytes

    @property
    def extension(self) -> str:
        return PurePosixPath(self.filename or "").suffix.lower()


class ProofStorage:
    """Keep proof files in a single directory on disk."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise StorageError(f"Upload directory {self.directory} is unavailable: {error}") from error

    def _path_for(self, reference: str) -> Path:
        """Resolve a reference, refusing anything outside the upload directory."""

        if not reference or not reference.startswith(URL_PREFIX):
            raise ValidationError(f"Not a proof reference: {reference!r}")
        name = reference[len(URL_PREFIX):]
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            raise ValidationError(f"Not a proof reference: {reference!r}")
        return self.directory / name

    def save(self, upload: ProofUpload) -> str:
        """Write an upload under a fresh name and return its reference."""

        name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{upload.extension}"
        try:
            (self.directory / name).write_bytes(upload.content)
        except OSError as error:
            raise StorageError(f"Could not store proof {upload.filename!r}: {error}") from error
        LOGGER.info("Stored proof %s (%s bytes) as %s", upload.filename, len(upload.content), name)
        return URL_PREFIX + name

    def exists(self, reference: str) -> bool:
        return self._path_for(reference).is_file()

    def read_bytes(self, reference: str) -> bytes:
        path = self._path_for(reference)
        try:
            return path.read_bytes()
        except OSError as error:
            raise StorageError(f"Could not read proof {reference}: {error}") from error

    def delete(self, reference: str) -> bool:
        """Remove a stored proof; returns ``False`` when it was already gone."""

        path = self._path_for(reference)
        if not path.exists():
            LOGGER.debug("Proof %s already absent", reference)
            return False
        try:
            path.unlink()
        except OSError as error:
            raise StorageError(f"Could not delete proof {reference}: {error}") from error
        LOGGER.info("Deleted proof %s", reference)
        return True
