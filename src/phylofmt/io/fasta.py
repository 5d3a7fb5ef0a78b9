"""
FASTA records: one ``>`` identifier line followed by (possibly wrapped) sequence data.
"""
from enum import IntEnum
from io import BytesIO
from pathlib import Path
from typing import Union, Generator, BinaryIO
from warnings import warn

from phylofmt.containers.seq import Sequence, SequenceError, BUILDER
from phylofmt.core.scanner import Scanner, TokenType
from phylofmt.io import BaseReader, BaseWriter, FormatError, FormatWarning, SeqFile


# Classes --------------------------------------------------------------------------------------------------------------
class ReaderState(IntEnum):
    NOT_STARTED = 0
    SAW_IDENTIFIER = 1
    SAW_DATA = 2


@SeqFile.register('fasta', extensions=['.fasta', '.fas', '.fa', '.fna', '.faa'])
class FastaReader(BaseReader):
    """
    Reader for FASTA streams.

    Data lines are rejoined, ``[..]`` ambiguity groups are kept verbatim and count as one position.

    Examples:
        >>> with open("ATP6.fasta", "rb") as f:
        ...     for seq in FastaReader(f, gene='ATP6', species_from_id=True):
        ...         print(seq.species, seq.length)
    """
    __slots__ = ('gene', 'species_from_id')
    def __init__(self, handle: BinaryIO, gene: str = '', species_from_id: bool = False, **kwargs):
        """
        Args:
            handle: Binary handle positioned at the start of the records.
            gene: Gene assigned to every sequence read.
            species_from_id: Copy each identifier into the species field. Otherwise species falls back
                to the sequence name, as for any :class:`Sequence` built without one.
        """
        super().__init__(handle, **kwargs)
        self.gene = gene
        self.species_from_id = species_from_id

    def __iter__(self) -> Generator[Sequence, None, None]:
        """
        Iterates over FASTA records.

        Yields:
            Sequence objects in stream order.

        Raises:
            FormatError: On data without an identifier, two identifiers without data between them,
                or characters the scanner rejects.
        """
        state = ReaderState.NOT_STARTED
        name = None
        for token in Scanner.from_handle(self._handle):
            if token.type == TokenType.IDENTIFIER:
                if state == ReaderState.SAW_IDENTIFIER:
                    raise FormatError(f"Malformed FASTA: two sequence markers with no data between them "
                                      f"('>{name}' and '>{token.text}')")
                name, state = token.text, ReaderState.SAW_IDENTIFIER
            elif token.type == TokenType.DATA:
                if state != ReaderState.SAW_IDENTIFIER:
                    raise FormatError(f'Malformed FASTA: data with no preceding identifier ({token.literal[:20]!r})')
                try:
                    yield BUILDER.from_token(token, name, species=name if self.species_from_id else None,
                                             gene=self.gene)
                except SequenceError as e:
                    raise FormatError(f"Malformed FASTA: sequence '{name}': {e}") from e
                state = ReaderState.SAW_DATA
            elif token.type == TokenType.INVALID:
                raise FormatError(f'Invalid characters in the stream: {token.error}') from token.error
            elif token.type == TokenType.EOF:
                if state == ReaderState.SAW_IDENTIFIER:
                    warn(f"Identifier '>{name}' at the end of the stream has no data and was skipped", FormatWarning)
                return

    @classmethod
    def sniff(cls, s: bytes) -> bool: return s.startswith(b'>')


@SeqFile.register('fasta')
class FastaWriter(BaseWriter):
    """
    Writer for FASTA files. Names have spaces replaced with underscores, and a blank line ends the file.

    Examples:
        >>> with FastaWriter("output.fasta") as w:
        ...     w.write(sequences)
    """
    __slots__ = ('width',)
    def __init__(self, file: Union[str, Path, BinaryIO], width: int = 0, **kwargs):
        """
        Args:
            file: File path or object.
            width: Line width for sequence wrapping (0 for no wrapping).
            **kwargs: Additional arguments.
        """
        super().__init__(file, **kwargs)
        self.width = width

    def write_one(self, seq: Sequence):
        """Writes a single FASTA record."""
        if not isinstance(seq, Sequence): raise TypeError("FastaWriter expects Sequence objects")
        self._handle.write(b'>' + seq.safe_name.encode('utf-8') + b'\n')
        if (width := self.width) > 0:
            for i in range(0, len(seq.data), width): self._handle.write(seq.data[i:i + width] + b'\n')
        else:
            self._handle.write(seq.data + b'\n')

    def write_footer(self):
        self._handle.write(b'\n')


# Functions ------------------------------------------------------------------------------------------------------------
def dumps(*sequences: Sequence) -> bytes:
    """Renders sequences as FASTA bytes."""
    with FastaWriter(buffer := BytesIO()) as w: w.write(*sequences)
    return buffer.getvalue()


def loads(data: bytes, gene: str = '', species_from_id: bool = False) -> list[Sequence]:
    """Parses FASTA bytes."""
    return FastaReader(BytesIO(data), gene=gene, species_from_id=species_from_id).read()
