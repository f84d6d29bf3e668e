"""In-memory file system doubles for tests and dry runs.

InMemoryFileSystemService keeps files and directories in dictionaries and
records every call it receives, which lets tests assert that validation
failures performed zero I/O and that concurrent link rewrites stay within
their bound. FaultInjectingFileSystemService wraps any service and raises
InjectedFaultError for configured (operation, path) pairs.
"""

import asyncio
import posixpath
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .errors import InjectedFaultError
from .file_system_service import DirEntry, FileStat, FileSystemService


def _norm(path: str) -> str:
    path = path.replace('\\', '/')
    if not path.startswith('/'):
        path = '/' + path
    return posixpath.normpath(path)


class InMemoryFileSystemService(FileSystemService):
    """Dictionary-backed FileSystemService.

    Attributes:
        files: Mapping of absolute posix path to file content
        dirs: Set of absolute posix directory paths (always contains "/")
        calls: Ordered list of (operation, path) tuples received
        io_delay: Seconds each read/write yields to the event loop
        in_flight: Number of read/write calls currently executing
        max_in_flight: Highest value ``in_flight`` reached

    Example:
        >>> fs = InMemoryFileSystemService({'/dataset/a.md': '# A'})
        >>> await fs.read_file('/dataset/a.md')
        '# A'
    """

    def __init__(self, files: Optional[Dict[str, str]] = None, io_delay: float = 0.0):
        self.files: Dict[str, str] = {}
        self.dirs: Set[str] = {'/'}
        self.calls: List[Tuple[str, str]] = []
        self.io_delay = io_delay
        self.in_flight = 0
        self.max_in_flight = 0
        for path, content in (files or {}).items():
            path = _norm(path)
            self._add_parents(path)
            self.files[path] = content

    def _add_parents(self, path: str) -> None:
        parent = posixpath.dirname(path)
        while parent not in self.dirs:
            self.dirs.add(parent)
            parent = posixpath.dirname(parent)

    def _record(self, operation: str, path: str) -> str:
        path = _norm(path)
        self.calls.append((operation, path))
        return path

    async def _tracked_io(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.io_delay)
        finally:
            self.in_flight -= 1

    def written_paths(self) -> List[str]:
        """Return the paths of every mutating call, in order."""
        mutating = {'write_file', 'mkdir', 'rename', 'unlink', 'rm'}
        return [path for operation, path in self.calls if operation in mutating]

    def list_files(self, prefix: str = '/') -> List[str]:
        prefix = _norm(prefix)
        return sorted(
            p for p in self.files
            if p == prefix or p.startswith(prefix.rstrip('/') + '/')
        )

    async def read_file(self, path: str) -> str:
        path = self._record('read_file', path)
        await self._tracked_io()
        if path not in self.files:
            if path in self.dirs:
                raise IsADirectoryError(path)
            raise FileNotFoundError(path)
        return self.files[path]

    async def write_file(self, path: str, content: str) -> None:
        path = self._record('write_file', path)
        await self._tracked_io()
        if posixpath.dirname(path) not in self.dirs:
            raise FileNotFoundError(posixpath.dirname(path))
        if path in self.dirs:
            raise IsADirectoryError(path)
        self.files[path] = content

    async def stat(self, path: str) -> FileStat:
        path = self._record('stat', path)
        if path in self.dirs:
            return FileStat(is_directory=True, is_regular_file=False)
        if path in self.files:
            return FileStat(
                is_directory=False,
                is_regular_file=True,
                size=len(self.files[path].encode('utf-8')),
            )
        raise FileNotFoundError(path)

    async def readdir(self, path: str) -> List[DirEntry]:
        path = self._record('readdir', path)
        if path not in self.dirs:
            if path in self.files:
                raise NotADirectoryError(path)
            raise FileNotFoundError(path)
        entries = {}
        for d in self.dirs:
            if d != path and posixpath.dirname(d) == path:
                entries[posixpath.basename(d)] = DirEntry(posixpath.basename(d), True)
        for f in self.files:
            if posixpath.dirname(f) == path:
                entries[posixpath.basename(f)] = DirEntry(posixpath.basename(f), False)
        return [entries[name] for name in sorted(entries)]

    async def mkdir(self, path: str, recursive: bool = False) -> None:
        path = self._record('mkdir', path)
        if path in self.files:
            raise FileExistsError(path)
        if path in self.dirs:
            if recursive:
                return
            raise FileExistsError(path)
        parent = posixpath.dirname(path)
        if parent not in self.dirs:
            if not recursive:
                raise FileNotFoundError(parent)
            # A file somewhere up the chain blocks the whole creation
            ancestor = parent
            while ancestor not in self.dirs:
                if ancestor in self.files:
                    raise NotADirectoryError(ancestor)
                ancestor = posixpath.dirname(ancestor)
            self._add_parents(path)
        self.dirs.add(path)

    async def rename(self, old_path: str, new_path: str) -> None:
        old_path = self._record('rename', old_path)
        new_path = _norm(new_path)
        if posixpath.dirname(new_path) not in self.dirs:
            raise FileNotFoundError(posixpath.dirname(new_path))
        if old_path in self.files:
            self.files[new_path] = self.files.pop(old_path)
            return
        if old_path not in self.dirs:
            raise FileNotFoundError(old_path)
        prefix = old_path + '/'
        for d in sorted(self.dirs):
            if d == old_path or d.startswith(prefix):
                self.dirs.discard(d)
                self.dirs.add(new_path + d[len(old_path):])
        for f in list(self.files):
            if f.startswith(prefix):
                self.files[new_path + f[len(old_path):]] = self.files.pop(f)

    async def unlink(self, path: str) -> None:
        path = self._record('unlink', path)
        if path not in self.files:
            raise FileNotFoundError(path)
        del self.files[path]

    async def rm(self, path: str, recursive: bool = False, force: bool = False) -> None:
        path = self._record('rm', path)
        if path in self.files:
            del self.files[path]
            return
        if path not in self.dirs:
            if force:
                return
            raise FileNotFoundError(path)
        prefix = path + '/'
        children = [p for p in list(self.files) + list(self.dirs) if p.startswith(prefix)]
        if children and not recursive:
            raise OSError(f"Directory not empty: {path}")
        for f in list(self.files):
            if f.startswith(prefix):
                del self.files[f]
        self.dirs = {d for d in self.dirs if d != path and not d.startswith(prefix)}

    def resolve(self, *paths: str) -> str:
        return _norm(posixpath.join(*paths))


class FaultInjectingFileSystemService(FileSystemService):
    """Wraps another FileSystemService and fails selected calls.

    Faults are registered per operation name with an optional path; a fault
    without a path fires for every call of that operation.

    Example:
        >>> fs = FaultInjectingFileSystemService(InMemoryFileSystemService())
        >>> fs.fail_on('write_file', '/dataset/target/a.md')
    """

    def __init__(self, inner: FileSystemService):
        self.inner = inner
        self._faults: Dict[str, Set[Optional[str]]] = {}

    def fail_on(self, operation: str, path: Optional[str] = None) -> None:
        self._faults.setdefault(operation, set()).add(_norm(path) if path else None)

    def fail_on_many(self, operation: str, paths: Iterable[str]) -> None:
        for path in paths:
            self.fail_on(operation, path)

    def _check(self, operation: str, path: str) -> None:
        targets = self._faults.get(operation)
        if not targets:
            return
        if None in targets or _norm(path) in targets:
            raise InjectedFaultError(operation, path)

    async def read_file(self, path: str) -> str:
        self._check('read_file', path)
        return await self.inner.read_file(path)

    async def write_file(self, path: str, content: str) -> None:
        self._check('write_file', path)
        await self.inner.write_file(path, content)

    async def stat(self, path: str) -> FileStat:
        self._check('stat', path)
        return await self.inner.stat(path)

    async def readdir(self, path: str) -> List[DirEntry]:
        self._check('readdir', path)
        return await self.inner.readdir(path)

    async def mkdir(self, path: str, recursive: bool = False) -> None:
        self._check('mkdir', path)
        await self.inner.mkdir(path, recursive=recursive)

    async def rename(self, old_path: str, new_path: str) -> None:
        self._check('rename', old_path)
        await self.inner.rename(old_path, new_path)

    async def unlink(self, path: str) -> None:
        self._check('unlink', path)
        await self.inner.unlink(path)

    async def rm(self, path: str, recursive: bool = False, force: bool = False) -> None:
        self._check('rm', path)
        await self.inner.rm(path, recursive=recursive, force=force)

    def resolve(self, *paths: str) -> str:
        return self.inner.resolve(*paths)
