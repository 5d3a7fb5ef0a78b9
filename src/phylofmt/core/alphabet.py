"""
Module for the ASCII character classes used when scanning and classifying sequence data.
"""
from enum import Enum, IntEnum
from typing import Final, ClassVar, Iterable, Union
from warnings import warn

import numpy as np

from phylofmt import PhylofmtWarning


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class AlphabetError(Exception):
    """Raised when an alphabet definition is invalid."""


class SeqTypeWarning(PhylofmtWarning):
    """Emitted when a sequence type call is made on suspiciously sparse evidence."""


# Classes --------------------------------------------------------------------------------------------------------------
class CharClass(IntEnum):
    """Lexical class of a single byte."""
    OTHER = 0
    DATA = 1
    SPACE = 2
    GROUP_OPEN = 3
    GROUP_CLOSE = 4
    MARKER = 5
    HIGH = 6  # First byte of a multi-byte (or undecodable) character


class SeqType(str, Enum):
    """Biological type of a sequence, as called by :class:`SeqClassifier`."""
    BLANK = 'blank'
    DNA = 'dna'
    PROTEIN = 'protein'
    UNSUPPORTED = 'unsupported'


class Alphabet:
    """
    An immutable, case-insensitive set of ASCII symbols backed by a 256-entry lookup mask.

    Examples:
        >>> 'a' in Alphabet.NUCLEOTIDE
        True
        >>> Alphabet.AMINO.covers('MKV')
        True
    """
    __slots__ = ('_symbols', '_mask')
    DTYPE: Final = np.uint8
    ENCODING: Final = 'ascii'

    NUCLEOTIDE: ClassVar['Alphabet']
    CANONICAL: ClassVar['Alphabet']
    AMINO: ClassVar['Alphabet']

    def __init__(self, symbols: bytes):
        """
        Args:
            symbols: The symbols in the alphabet as bytes.

        Raises:
            AlphabetError: If symbols are not ASCII or contain duplicates.
        """
        if not symbols.isascii(): raise AlphabetError('Alphabet symbols must be a valid ASCII string')
        if len(set(symbols.upper())) != len(symbols): raise AlphabetError('Alphabet contains duplicate symbols')
        self._symbols = symbols.upper()
        mask = np.zeros(256, dtype=bool)
        mask[np.frombuffer(self._symbols, dtype=self.DTYPE)] = True
        mask[np.frombuffer(self._symbols.lower(), dtype=self.DTYPE)] = True
        mask.flags.writeable = False
        self._mask = mask

    def __len__(self): return len(self._symbols)
    def __iter__(self): return iter(self._symbols.decode(self.ENCODING))
    def __repr__(self): return f'Alphabet({self._symbols!r})'
    def __hash__(self): return hash(self._symbols)
    def __eq__(self, other):
        if not isinstance(other, Alphabet): return False
        return self._symbols == other._symbols

    def __contains__(self, item: Union[str, bytes, int]) -> bool:
        if isinstance(item, (str, bytes)):
            if len(item) != 1: return False
            item = ord(item)
        return 0 <= item < 256 and bool(self._mask[item])

    @property
    def symbols(self) -> bytes: return self._symbols

    def covers(self, symbols: Iterable[str]) -> bool:
        """True if every symbol is a member of this alphabet."""
        return all(s in self for s in symbols)

    def count(self, symbols: Iterable[str]) -> int:
        """Number of distinct alphabet members among ``symbols`` (case-insensitive)."""
        return len({s.upper() for s in symbols if s in self})


class SeqClassifier:
    """
    Calls the biological type of a sequence from its observed alphabet.

    The numeric thresholds are heuristics: a protein call supported by fewer than ``min_protein_symbols``
    distinct residues, or a DNA call with fewer than ``min_nucleotide_symbols`` canonical bases, still stands
    but raises a :class:`SeqTypeWarning`.

    Examples:
        >>> SeqClassifier().classify(b'ATGC')
        <SeqType.DNA: 'dna'>
    """
    __slots__ = ('min_protein_symbols', 'min_nucleotide_symbols')
    MIN_PROTEIN_SYMBOLS: ClassVar[int] = 6
    MIN_NUCLEOTIDE_SYMBOLS: ClassVar[int] = 4
    _IGNORED: Final = frozenset('-?[]')

    def __init__(self, min_protein_symbols: int = None, min_nucleotide_symbols: int = None):
        self.min_protein_symbols = self.MIN_PROTEIN_SYMBOLS if min_protein_symbols is None else min_protein_symbols
        self.min_nucleotide_symbols = (self.MIN_NUCLEOTIDE_SYMBOLS if min_nucleotide_symbols is None
                                       else min_nucleotide_symbols)

    def classify(self, data: bytes, alphabet: Iterable[str] = None, name: str = '') -> SeqType:
        """
        Classifies sequence data.

        Args:
            data: Raw sequence bytes (brackets allowed).
            alphabet: Pre-computed distinct symbols of ``data``; derived from ``data`` if omitted.
            name: Sequence name, only used in diagnostics.

        Returns:
            The :class:`SeqType` call.
        """
        if not data.strip(GAP): return SeqType.BLANK
        if alphabet is None: alphabet = set(data.decode(Alphabet.ENCODING, 'replace'))
        symbols = {s.upper() for s in alphabet if s not in self._IGNORED}
        if not symbols: return SeqType.UNSUPPORTED

        label = f"'{name}'" if name else 'sequence'
        if Alphabet.AMINO.covers(symbols) and not Alphabet.NUCLEOTIDE.covers(symbols):
            if (n := Alphabet.AMINO.count(symbols)) < self.min_protein_symbols:
                warn(f'{label} called as protein from only {n} distinct residues', SeqTypeWarning)
            return SeqType.PROTEIN

        if Alphabet.NUCLEOTIDE.covers(symbols):
            canonical = {'T' if s == 'U' else s for s in symbols if s in Alphabet.CANONICAL}
            if (n := len(canonical)) < self.min_nucleotide_symbols:
                warn(f'{label} called as DNA from only {n} canonical bases', SeqTypeWarning)
            return SeqType.DNA

        return SeqType.UNSUPPORTED


# Functions ------------------------------------------------------------------------------------------------------------
def _build_class_table() -> bytes:
    table = np.full(256, CharClass.OTHER, dtype=np.uint8)
    for symbols in (b'ABCDEFGHIJKLMNOPQRSTUVWXYZ', b'abcdefghijklmnopqrstuvwxyz', b'0123456789', b'-?'):
        table[np.frombuffer(symbols, dtype=np.uint8)] = CharClass.DATA
    table[np.frombuffer(WHITESPACE, dtype=np.uint8)] = CharClass.SPACE
    table[ord('[')] = CharClass.GROUP_OPEN
    table[ord(']')] = CharClass.GROUP_CLOSE
    table[ord('>')] = CharClass.MARKER
    table[0x80:] = CharClass.HIGH
    return table.tobytes()


# Constants ------------------------------------------------------------------------------------------------------------
GAP: Final = b'-'
MISSING: Final = b'?'
WHITESPACE: Final = b' \t\n\r\x0b\x0c'
CLASS_TABLE: Final = _build_class_table()
"""Maps every byte to its :class:`CharClass`; usable with ``bytes.translate``."""

Alphabet.NUCLEOTIDE = Alphabet(b'ACGTURYSWKMBDHVN')
Alphabet.CANONICAL = Alphabet(b'ACGTU')
Alphabet.AMINO = Alphabet(b'ACDEFGHIKLMNPQRSTVWYX')
