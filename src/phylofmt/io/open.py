from io import IOBase, BytesIO
from importlib import import_module
from pathlib import Path
import sys
from typing import Union, BinaryIO, Optional


# Classes --------------------------------------------------------------------------------------------------------------
class Xopen:
    """
    Opens paths, ``-`` (stdin/stdout) or existing binary handles, transparently handling compression.

    Compression is sniffed from magic bytes when reading and inferred from the extension when writing.

    Examples:
        >>> with Xopen("ATP6.fasta.gz", "rb") as f:
        ...     content = f.read()
    """
    _MAGIC = {
        b'\x1f\x8b': 'gzip',
        b'\x42\x5a\x68': 'bz2',
        b'\xfd7zXZ\x00': 'lzma',
    }
    _EXT_TO_PKG = {'gz': 'gzip', 'bz2': 'bz2', 'xz': 'lzma'}
    COMPRESSED_SUFFIXES = tuple(f'.{ext}' for ext in _EXT_TO_PKG)
    _MIN_N_BYTES = max(len(i) for i in _MAGIC.keys())

    def __init__(self, file: Union[str, Path, BinaryIO], mode: str = 'rb'):
        """
        Args:
            file: File path (str or Path), ``-``, or an existing binary file object.
            mode: ``'rb'``, ``'wb'`` or ``'ab'``.
        """
        if mode not in {'rb', 'wb', 'ab'}: raise ValueError(f"Unsupported mode '{mode}'")
        self.file = file
        self.mode = mode
        self._handle: Optional[BinaryIO] = None
        self._owned: list[BinaryIO] = []  # Handles opened here, closed innermost first

    @property
    def name(self) -> str:
        if isinstance(self.file, IOBase): return getattr(self.file, 'name', '<stream>')
        return str(self.file)

    def __enter__(self) -> BinaryIO:
        self._handle = self._open()
        return self._handle

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Closes the file handle if it was opened by this instance."""
        while self._owned: self._owned.pop().close()
        self._handle = None

    def _own(self, handle: BinaryIO) -> BinaryIO:
        self._owned.append(handle)
        return handle

    @classmethod
    def _opener(cls, pkg_name: str):
        return import_module(pkg_name).open

    def _open(self) -> BinaryIO:
        writing = self.mode != 'rb'
        if isinstance(self.file, IOBase): raw = self.file
        elif str(self.file) in {'-', 'stdin'} and not writing: raw = sys.stdin.buffer
        elif str(self.file) in {'-', 'stdout'} and writing: raw = sys.stdout.buffer
        else:
            path = Path(self.file).expanduser()
            if writing:
                pkg = self._EXT_TO_PKG.get(path.suffix.lower().lstrip('.'))
                return self._own(self._opener(pkg)(path, mode=self.mode) if pkg else open(path, mode=self.mode))
            raw = self._own(open(path, mode='rb'))

        if writing: return raw
        if not raw.seekable():  # Pipes: buffer everything so the magic bytes can be sniffed
            raw = BytesIO(raw.read())
        pos = raw.tell()
        start = raw.read(self._MIN_N_BYTES)
        raw.seek(pos)
        for magic, pkg in self._MAGIC.items():
            if start.startswith(magic):
                return self._own(self._opener(pkg)(raw, mode='rb'))
        return raw
