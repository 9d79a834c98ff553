"""Archive packaging for export artifacts."""

import io
import logging
import zipfile
import zlib
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field

from saison_backup.exceptions import UnreadableArtifactError

logger = logging.getLogger(__name__)


class Blob(BaseModel):
    """One named text file of an artifact."""

    model_config = ConfigDict(frozen=True)

    name: str
    text: str
    item_count: int = 0

    @property
    def data(self) -> bytes:
        return self.text.encode("utf-8")


class PackagedArtifact(BaseModel):
    """Bytes of a packaged artifact with its size and item summary."""

    model_config = ConfigDict(frozen=True)

    data: bytes
    is_archive: bool
    file_names: list[str]
    total_items: int

    @property
    def file_size(self) -> int:
        return len(self.data)


class UnpackedArtifact(BaseModel):
    """Raw files of an artifact keyed by file name.

    A single-file artifact has one entry named after the caller-supplied
    name, or an empty name when none was given.
    """

    files: dict[str, bytes] = Field(default_factory=dict)
    is_archive: bool


class ArchivePackager:
    """Packs named text blobs into a single document or a zip archive."""

    def package_single(self, blob: Blob) -> PackagedArtifact:
        """Package one blob as a plain JSON document."""
        return PackagedArtifact(
            data=blob.data,
            is_archive=False,
            file_names=[blob.name],
            total_items=blob.item_count,
        )

    def package_archive(self, blobs: list[Blob]) -> PackagedArtifact:
        """Package blobs into a deflated zip archive, in the given order."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for blob in blobs:
                zf.writestr(blob.name, blob.data)
        return PackagedArtifact(
            data=buffer.getvalue(),
            is_archive=True,
            file_names=[blob.name for blob in blobs],
            total_items=sum(blob.item_count for blob in blobs),
        )

    def unpack(self, data: bytes, file_name: str | None = None) -> UnpackedArtifact:
        """Split an artifact into its files.

        The archive/single-file decision is made from the bytes, never from
        the file name.

        Args:
            data: Artifact bytes
            file_name: Name of a single-file artifact, if known

        Returns:
            Unpacked artifact

        Raises:
            UnreadableArtifactError: If the artifact is empty or a corrupt archive
        """
        if not data:
            raise UnreadableArtifactError("Artifact is empty")

        if not zipfile.is_zipfile(io.BytesIO(data)):
            name = PurePosixPath(file_name).name if file_name else ""
            return UnpackedArtifact(files={name: data}, is_archive=False)

        files: dict[str, bytes] = {}
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as zf:
                for info in zf.infolist():
                    if info.is_dir():
                        continue
                    name = PurePosixPath(info.filename).name
                    if name in files:
                        logger.warning(f"Duplicate archive entry ignored: {info.filename}")
                        continue
                    files[name] = zf.read(info)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError) as e:
            raise UnreadableArtifactError(f"Archive cannot be read: {e}") from e

        return UnpackedArtifact(files=files, is_archive=True)
