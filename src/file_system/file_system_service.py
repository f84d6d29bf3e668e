"""Async file system service used by all path operations.

Operations never touch the disk directly; they go through a
FileSystemService so the same code runs against the local disk, the
in-memory test double, or a fault-injecting wrapper. Paths are posix strings.
Missing paths raise FileNotFoundError, as the os module does.
"""

import asyncio
import os
import shutil
import stat as stat_module
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class DirEntry:
    """A single directory listing entry.

    Attributes:
        name: Entry name (no directory component)
        is_directory: True when the entry is a directory
    """
    name: str
    is_directory: bool

    def is_dir(self) -> bool:
        return self.is_directory

    def is_file(self) -> bool:
        return not self.is_directory


@dataclass(frozen=True)
class FileStat:
    """Minimal stat result.

    Attributes:
        is_directory: True for directories
        is_regular_file: True for regular files
        size: Size in bytes (0 for directories)
    """
    is_directory: bool
    is_regular_file: bool
    size: int = 0

    def is_dir(self) -> bool:
        return self.is_directory

    def is_file(self) -> bool:
        return self.is_regular_file


class FileSystemService(ABC):
    """Abstract async file system used by copy, move and link operations."""

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a UTF-8 text file."""

    @abstractmethod
    async def write_file(self, path: str, content: str) -> None:
        """Write a UTF-8 text file, replacing any existing content."""

    @abstractmethod
    async def stat(self, path: str) -> FileStat:
        """Stat a path, raising FileNotFoundError when it does not exist."""

    @abstractmethod
    async def readdir(self, path: str) -> List[DirEntry]:
        """List a directory, sorted by entry name."""

    @abstractmethod
    async def mkdir(self, path: str, recursive: bool = False) -> None:
        """Create a directory (and parents when ``recursive``)."""

    @abstractmethod
    async def rename(self, old_path: str, new_path: str) -> None:
        """Rename a file or directory."""

    @abstractmethod
    async def unlink(self, path: str) -> None:
        """Delete a single file."""

    @abstractmethod
    async def rm(self, path: str, recursive: bool = False, force: bool = False) -> None:
        """Delete a file or directory tree."""

    async def exists(self, path: str) -> bool:
        try:
            await self.stat(path)
            return True
        except FileNotFoundError:
            return False

    async def is_file(self, path: str) -> bool:
        try:
            return (await self.stat(path)).is_file()
        except FileNotFoundError:
            return False

    async def is_folder(self, path: str) -> bool:
        try:
            return (await self.stat(path)).is_dir()
        except FileNotFoundError:
            return False

    def resolve(self, *paths: str) -> str:
        """Join and normalize paths into an absolute posix path."""
        return os.path.abspath(os.path.join(*paths)).replace('\\', '/')


class LocalFileSystemService(FileSystemService):
    """FileSystemService backed by the local disk.

    Blocking calls run in a worker thread via ``asyncio.to_thread`` so that
    concurrent link rewrites do not stall the event loop.
    """

    async def read_file(self, path: str) -> str:
        def _read() -> str:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        return await asyncio.to_thread(_read)

    async def write_file(self, path: str, content: str) -> None:
        def _write() -> None:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        await asyncio.to_thread(_write)

    async def stat(self, path: str) -> FileStat:
        st = await asyncio.to_thread(os.stat, path)
        return FileStat(
            is_directory=stat_module.S_ISDIR(st.st_mode),
            is_regular_file=stat_module.S_ISREG(st.st_mode),
            size=st.st_size,
        )

    async def readdir(self, path: str) -> List[DirEntry]:
        def _list() -> List[DirEntry]:
            with os.scandir(path) as it:
                entries = [DirEntry(e.name, e.is_dir(follow_symlinks=False)) for e in it]
            return sorted(entries, key=lambda e: e.name)
        return await asyncio.to_thread(_list)

    async def mkdir(self, path: str, recursive: bool = False) -> None:
        if recursive:
            await asyncio.to_thread(os.makedirs, path, exist_ok=True)
        else:
            await asyncio.to_thread(os.mkdir, path)

    async def rename(self, old_path: str, new_path: str) -> None:
        await asyncio.to_thread(os.replace, old_path, new_path)

    async def unlink(self, path: str) -> None:
        await asyncio.to_thread(os.unlink, path)

    async def rm(self, path: str, recursive: bool = False, force: bool = False) -> None:
        def _rm() -> None:
            if not os.path.lexists(path):
                if force:
                    return
                raise FileNotFoundError(path)
            if os.path.isdir(path) and not os.path.islink(path):
                if recursive:
                    shutil.rmtree(path)
                else:
                    os.rmdir(path)
            else:
                os.unlink(path)
        await asyncio.to_thread(_rm)
