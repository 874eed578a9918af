"""I/O utilities: file-system abstraction for animations and logging setup."""

import io
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from shutil import move
from typing import BinaryIO


def setup_logging(log_dir: Path | None = None, log_level: str = "INFO") -> logging.Logger:
    """Set up logging configuration for framecheck.

    Args:
        log_dir: Directory to store log files (console only when None)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)

    Returns:
        Configured logger instance
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        handlers.append(logging.FileHandler(log_dir / f"framecheck_{timestamp}.log"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    return logging.getLogger("framecheck")


class FileSystem(ABC):
    """Where golden animations are read from and diagnostic animations written to."""

    @abstractmethod
    def open_read(self, path: Path) -> BinaryIO:
        """Open *path* for binary reading."""

    @abstractmethod
    def open_write(self, path: Path) -> BinaryIO:
        """Open *path* for seekable binary writing, replacing existing content."""


class _AtomicFile:
    """Seekable temp file moved over its target on close."""

    def __init__(self, target_path: Path):
        target_path.parent.mkdir(parents=True, exist_ok=True)
        self._target_path = target_path
        self._temp_file = tempfile.NamedTemporaryFile(
            mode="w+b",
            dir=target_path.parent,
            delete=False,
            suffix=f".tmp_{target_path.name}",
        )

    @property
    def closed(self) -> bool:
        return self._temp_file.closed

    def write(self, data: bytes) -> int:
        return self._temp_file.write(data)

    def tell(self) -> int:
        return self._temp_file.tell()

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        return self._temp_file.seek(offset, whence)

    def close(self) -> None:
        if self._temp_file.closed:
            return
        self._temp_file.flush()
        self._temp_file.close()
        # Atomic move on POSIX systems
        move(self._temp_file.name, self._target_path)

    def discard(self) -> None:
        """Drop the temp file, leaving any existing target untouched."""
        if self._temp_file.closed:
            return
        self._temp_file.close()
        Path(self._temp_file.name).unlink(missing_ok=True)


class LocalFileSystem(FileSystem):
    """The local disk. Writes land atomically when the file is closed."""

    def open_read(self, path: Path) -> BinaryIO:
        return open(path, "rb")

    def open_write(self, path: Path) -> BinaryIO:
        return _AtomicFile(Path(path))  # type: ignore[return-value]


class _MemoryFile(io.BytesIO):
    def __init__(self, file_system: "MemoryFileSystem", path: Path):
        super().__init__()
        self._file_system = file_system
        self._path = path

    def close(self) -> None:
        if not self.closed:
            self._file_system.files[self._path] = self.getvalue()
        super().close()

    def discard(self) -> None:
        super().close()


class MemoryFileSystem(FileSystem):
    """In-memory file system keyed by path; contents become visible on close."""

    def __init__(self) -> None:
        self.files: dict[Path, bytes] = {}

    def open_read(self, path: Path) -> BinaryIO:
        path = Path(path)
        if path not in self.files:
            raise FileNotFoundError(f"No such file: {path}")
        return io.BytesIO(self.files[path])

    def open_write(self, path: Path) -> BinaryIO:
        return _MemoryFile(self, Path(path))

    def exists(self, path: Path) -> bool:
        return Path(path) in self.files

    def read_bytes(self, path: Path) -> bytes:
        return self.files[Path(path)]


def discard_file(fp: BinaryIO) -> None:
    """Close a file opened by ``FileSystem.open_write`` without publishing its content.

    Plain file objects have nothing to withdraw and are simply closed.
    """
    discard = getattr(fp, "discard", None)
    if discard is not None:
        discard()
    else:
        fp.close()


LOCAL_FILE_SYSTEM = LocalFileSystem()
