"""Archive extraction for downloaded package artifacts.

Release assets are often archives holding the executable among other
files. The extractor scans the archive for the first regular file whose
lower-cased name matches the package's bin pattern and copies it out.
"""

import logging
import re
import shutil
import stat
import tarfile
import zipfile
from pathlib import Path

from bpm.errors import ExtractionConfigError, NoMatchingEntryError
from bpm.models.package import Package

logger = logging.getLogger(__name__)

_TAR_MODES: dict[str, str] = {
    "tar": "r|",
    "tar.gz": "r|gz",
}


def compile_bin_pattern(package: Package, version: str) -> re.Pattern[str]:
    """Compile the version-expanded bin pattern of a package.

    Raises:
        ExtractionConfigError: If the expanded pattern is not a valid regex.
    """
    pattern = package.expand(package.bin_pattern, version)
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ExtractionConfigError(f"bin pattern {pattern!r} is not a valid regex: {e}") from e


def _output_path(package: Package, scratch_dir: Path) -> Path:
    return Path(scratch_dir) / f"output-{package.name}"


def extract_tar(
    package: Package, version: str, source_path: Path, scratch_dir: Path, mode: str = "r|"
) -> Path:
    """Extract the binary from a (optionally gzipped) tar stream.

    Args:
        package: The package descriptor.
        version: Version used to expand the bin pattern.
        source_path: The downloaded archive.
        scratch_dir: Directory to write the extracted file into.
        mode: tarfile stream mode ("r|" or "r|gz").

    Returns:
        Path of the extracted binary.

    Raises:
        ExtractionConfigError: If the bin pattern is invalid.
        NoMatchingEntryError: If no regular entry matches.
        tarfile.TarError: If the stream is corrupt.
        OSError: On read/write or decompression failures.
    """
    bin_pattern = compile_bin_pattern(package, version)
    with tarfile.open(source_path, mode=mode) as archive:
        for member in archive:
            if not member.isreg():
                continue
            if not bin_pattern.search(member.name.lower()):
                continue
            logger.debug("found %s in %s", member.name, source_path)
            output_path = _output_path(package, scratch_dir)
            source = archive.extractfile(member)
            if source is None:
                continue
            with source, output_path.open("wb") as target:
                shutil.copyfileobj(source, target)
            return output_path

    raise NoMatchingEntryError(bin_pattern.pattern)


def _is_regular(info: zipfile.ZipInfo) -> bool:
    if info.is_dir():
        return False
    mode = info.external_attr >> 16
    # Many writers store permission bits only, without a file type
    return stat.S_IFMT(mode) == 0 or stat.S_ISREG(mode)


def extract_zip(package: Package, version: str, source_path: Path, scratch_dir: Path) -> Path:
    """Extract the binary from a zip archive.

    Entries are checked in central directory order.

    Args:
        package: The package descriptor.
        version: Version used to expand the bin pattern.
        source_path: The downloaded archive.
        scratch_dir: Directory to write the extracted file into.

    Returns:
        Path of the extracted binary.

    Raises:
        ExtractionConfigError: If the bin pattern is invalid.
        NoMatchingEntryError: If no regular entry matches.
        zipfile.BadZipFile: If the archive is corrupt.
        OSError: On read/write failures.
    """
    bin_pattern = compile_bin_pattern(package, version)
    with zipfile.ZipFile(source_path) as archive:
        for info in archive.infolist():
            if not _is_regular(info) or not bin_pattern.search(info.filename.lower()):
                continue
            logger.debug("found %s in %s", info.filename, source_path)
            output_path = _output_path(package, scratch_dir)
            with archive.open(info) as source, output_path.open("wb") as target:
                shutil.copyfileobj(source, target)
            return output_path

    raise NoMatchingEntryError(bin_pattern.pattern)


def extract_package(package: Package, version: str, source_path: Path, scratch_dir: Path) -> Path:
    """Extract the package binary according to its archive format.

    Args:
        package: The package descriptor.
        version: Version used to expand the bin pattern.
        source_path: The downloaded artifact.
        scratch_dir: Directory to write the extracted file into.

    Returns:
        Path of the binary: source_path itself when the package declares
        no archive format, otherwise the extracted file.

    Raises:
        ExtractionConfigError: For an unsupported format or invalid pattern.
        NoMatchingEntryError: If the archive has no matching entry.
    """
    archive_format = package.archive_format
    if not archive_format:
        return Path(source_path)

    logger.info("extract package %s (format %s)", package.name, archive_format)
    if archive_format in _TAR_MODES:
        return extract_tar(package, version, source_path, scratch_dir, _TAR_MODES[archive_format])
    if archive_format == "zip":
        return extract_zip(package, version, source_path, scratch_dir)

    raise ExtractionConfigError(f"unknown archive format {archive_format}")
