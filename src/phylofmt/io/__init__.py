"""
Module for reading and writing sequence collections.

Formats register their reader and writer classes with :class:`SeqFile`, which resolves a format
from an explicit name, a file extension or, for reading, the first bytes of the stream.
"""
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Union, Generator, BinaryIO, Callable, Type, Iterable

from phylofmt import PhylofmtWarning
from phylofmt.containers.seq import Sequence
from phylofmt.io.open import Xopen


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SeqIOError(IOError):
    """Base class for errors reading or writing sequence collections."""

class FormatError(SeqIOError):
    """Raised when a stream is not well-formed for its format."""

class SeqFileError(SeqIOError):
    """Raised when a format cannot be resolved or has no reader/writer."""

class FormatWarning(PhylofmtWarning):
    """Emitted for recoverable oddities in an input stream."""


# Classes --------------------------------------------------------------------------------------------------------------
class BaseReader(ABC):
    """Turns an open binary stream into :class:`~phylofmt.containers.seq.Sequence` objects."""
    __slots__ = ('_handle', '_iterator')
    def __init__(self, handle: BinaryIO, **kwargs):
        """
        Args:
            handle: The open binary handle to read from.
            **kwargs: Format-specific options.
        """
        self._handle = handle
        self._iterator = None

    @classmethod
    @abstractmethod
    def sniff(cls, s: bytes) -> bool: ...
    @abstractmethod
    def __iter__(self) -> Generator[Sequence, None, None]: ...
    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb): self.close()
    def __next__(self):
        if self._iterator is None: self._iterator = self.__iter__()
        return next(self._iterator)

    def read(self) -> list[Sequence]:
        """Reads every remaining record."""
        return list(self)

    def close(self):
        """Closes the reader."""
        pass


class BaseWriter(ABC):
    """
    Renders sequences to a sink; the footer is only written when the block exits cleanly.

    Examples:
        >>> with FastaWriter("ATP6.fasta") as w:
        ...     w.write(matrix)
    """
    __slots__ = ('_opener', '_handle')
    def __init__(self, file: Union[str, Path, BinaryIO], mode: str = 'wb', **kwargs):
        self._opener = Xopen(file, mode=mode)
        self._handle = None

    def __enter__(self):
        """Opens the sink and writes any header."""
        self._handle = self._opener.__enter__()
        self.write_header()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Writes the footer unless an exception is propagating, then closes the file."""
        try:
            if exc_type is None: self.write_footer()
        finally:
            self._opener.__exit__(exc_type, exc_val, exc_tb)

    def write(self, *items: Union[Sequence, Iterable[Sequence]]):
        """
        Writes sequences, unpacking any iterables of sequences.

        Args:
            *items: Sequence objects, or iterables of them (lists, readers, a Matrix).
        """
        for item in items:
            if isinstance(item, Sequence): self.write_one(item)
            else:
                for sub_item in item: self.write_one(sub_item)

    @abstractmethod
    def write_one(self, item: Sequence):
        """Writes a single sequence."""
        pass

    def write_header(self):
        """Hook called once before the first record."""
        pass

    def write_footer(self):
        """Hook called once after the last record."""
        pass


class FormatSpec:
    """Extensions and reader/writer classes registered for one format."""
    __slots__ = ('extensions', 'reader', 'writer')
    def __init__(self, extensions: list[str] = None):
        self.extensions = extensions or []
        self.reader: Type[BaseReader] = None
        self.writer: Type[BaseWriter] = None


class SeqFileFormat(str, Enum):
    """Formats known to the registry."""
    FASTA = 'fasta'
    TNT = 'tnt'


class SeqFile:
    """
    Reads sequence collections from a path, ``-`` or a handle, resolving the format on the way.

    Examples:
        >>> with SeqFile('ATP6.fasta', gene='ATP6', species_from_id=True) as f:
        ...     for seq in f: print(seq.species, seq.length)
    """
    __slots__ = ('_opener', '_handle', '_format', '_reader_kwargs')
    _REGISTRY: dict['SeqFileFormat', FormatSpec] = {}
    Format = SeqFileFormat

    def __init__(self, file: Union[str, Path, BinaryIO], fmt: Union[str, Format] = None, **reader_kwargs):
        """
        Args:
            file: File path, ``-`` for stdin, or a binary handle.
            fmt: Format name; inferred from the extension or the content if omitted.
            **reader_kwargs: Passed to the format's reader (e.g. ``gene``, ``species_from_id``).
        """
        self._opener = Xopen(file, mode='rb')
        self._handle = None
        if fmt is None and isinstance(file, (str, Path)): fmt = self.infer_format(file, required=False)
        self._format = self.Format(fmt) if fmt else None
        self._reader_kwargs = reader_kwargs

    @property
    def format(self) -> Format: return self._format
    @property
    def name(self) -> str: return self._opener.name

    @classmethod
    def open(cls, file: Union[str, Path, BinaryIO], mode: str = 'rb', fmt: Union[str, Format] = None,
             **kwargs) -> Union['SeqFile', BaseWriter]:
        """
        Opens a file for reading (a :class:`SeqFile`) or writing (the format's writer).

        Raises:
            SeqFileError: If no writer is available or the format cannot be inferred for writing.
        """
        if mode == 'rb': return cls(file, fmt=fmt, **kwargs)
        if fmt is None: fmt = cls.infer_format(file)
        spec = cls._REGISTRY.get(cls.Format(fmt))
        if not spec or not spec.writer: raise SeqFileError(f"No writer available for format '{fmt}'")
        return spec.writer(file, mode=mode, **kwargs)

    @classmethod
    def infer_format(cls, file: Union[str, Path, BinaryIO], required: bool = True) -> Union[Format, None]:
        """
        Infers a format from a file name, ignoring any compression suffix.

        Raises:
            SeqFileError: If ``required`` and no registered extension matches.
        """
        name = Path(str(getattr(file, 'name', file))).name.lower()
        name = name.removesuffix(next((s for s in Xopen.COMPRESSED_SUFFIXES if name.endswith(s)), ''))
        for fmt, spec in cls._REGISTRY.items():
            if any(name.endswith(ext) for ext in spec.extensions): return fmt
        if required: raise SeqFileError(f"Cannot infer a format from '{name}'")
        return None

    def __iter__(self) -> Generator[Sequence, None, None]:
        """
        Iterates over the sequences in the file.

        Raises:
            SeqFileError: If the format is unknown or has no reader.
            FormatError: If the content is malformed.
        """
        close_on_exit = False
        if self._handle is None:
            self._handle = self._opener.__enter__()
            close_on_exit = True
        try:
            if self._format is None: self._format = self._sniff_format(self._handle)
            if (spec := self._REGISTRY.get(self._format)) is None or spec.reader is None:
                raise SeqFileError(f"Cannot parse file: format '{self._format.value}' has no reader.")
            yield from spec.reader(self._handle, **self._reader_kwargs)
        finally:
            if close_on_exit: self.close()

    def read(self) -> list[Sequence]:
        return list(self)

    def _sniff_format(self, handle: BinaryIO) -> Format:
        """
        Picks the first registered reader that recognises the first kilobyte of the stream.

        Raises:
            SeqFileError: If the format cannot be determined.
        """
        pos = handle.tell()
        peek_window = handle.read(1024).lstrip()
        handle.seek(pos)
        for fmt, spec in self._REGISTRY.items():
            if spec.reader and spec.reader.sniff(peek_window): return fmt
        raise SeqFileError(f"Could not determine the format of '{self.name}' from its content.")

    def close(self):
        """Closes the file."""
        self._opener.__exit__(None, None, None)
        self._handle = None

    def __enter__(self):
        self._handle = self._opener.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @classmethod
    def register(cls, fmt: Union[str, Format], extensions: list[str] = None) -> Callable:
        """
        Class decorator adding a reader or writer, and its file extensions, to the registry.
        """
        fmt = cls.Format(fmt)

        def decorator(klass: Type) -> Type:
            if (spec := cls._REGISTRY.get(fmt)) is None: cls._REGISTRY[fmt] = spec = FormatSpec()
            for ext in extensions or ():
                if ext not in spec.extensions: spec.extensions.append(ext)
            if issubclass(klass, BaseReader): spec.reader = klass
            elif issubclass(klass, BaseWriter): spec.writer = klass
            return klass

        return decorator


# Functions ------------------------------------------------------------------------------------------------------------
def gene_from_path(path: Union[str, Path]) -> str:
    """
    Derives a gene name from a file name: the name without directory, compression or format suffix.

    Examples:
        >>> gene_from_path('data/ATP6.fasta.gz')
        'ATP6'
    """
    name = Path(path).name
    for suffix in Xopen.COMPRESSED_SUFFIXES:
        if name.lower().endswith(suffix):
            name = name[:-len(suffix)]
            break
    return Path(name).stem


def discover(path: Union[str, Path], fmt: Union[str, SeqFileFormat] = SeqFileFormat.FASTA,
             recurse: bool = True) -> list[Path]:
    """
    Lists files of a format under a directory, by extension (optionally compressed).

    Args:
        path: A directory, or a single file which is returned as-is.
        fmt: The format whose registered extensions are matched.
        recurse: Descend into sub-directories.

    Returns:
        Matching paths, sorted.
    """
    if not (path := Path(path)).is_dir(): return [path]
    fmt = SeqFile.Format(fmt)
    files = path.rglob('*') if recurse else path.iterdir()
    return sorted(f for f in files if f.is_file() and SeqFile.infer_format(f, required=False) == fmt)


def read(file: Union[str, Path, BinaryIO], fmt: Union[str, SeqFileFormat] = None, gene: str = None,
         species_from_id: bool = True) -> list[Sequence]:
    """
    Reads every sequence of a file.

    Args:
        file: Path, ``-`` for stdin, or a binary handle.
        fmt: Format name, inferred if omitted.
        gene: Gene assigned to every sequence; derived from the file name if omitted and ``file`` is a path.
        species_from_id: Copy each identifier into the species field.

    Returns:
        The sequences in file order.
    """
    if gene is None: gene = gene_from_path(file) if isinstance(file, (str, Path)) and str(file) != '-' else ''
    with SeqFile(file, fmt=fmt, gene=gene, species_from_id=species_from_id) as f:
        return f.read()


# Import submodules to populate the registry
from phylofmt.io import fasta, tnt
