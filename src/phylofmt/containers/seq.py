"""
Module for the sequence data model and the builder that derives its logical length.
"""
from typing import Union, Final

import numpy as np

from phylofmt.core.alphabet import Alphabet, CharClass, CLASS_TABLE, GAP, SeqType, SeqClassifier
from phylofmt.core.scanner import Token, TokenType
from phylofmt.utils import safe
from phylofmt.utils.resources import jit


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SequenceError(Exception):
    """Raised when sequence data is malformed or inconsistent with its scanned token."""


# Classes --------------------------------------------------------------------------------------------------------------
class SequenceBuilder:
    """
    Derives the logical length and observed alphabet of sequence data.

    A bracketed ambiguity group such as ``[AG]`` occupies a single logical position, whatever its size.
    """
    __slots__ = ()
    _STRUCTURAL: Final = frozenset('[]')

    def measure(self, data: bytes) -> tuple[int, frozenset[str]]:
        """
        Args:
            data: Sequence bytes without whitespace.

        Returns:
            A tuple of (logical length, alphabet).

        Raises:
            SequenceError: If the data holds characters outside the data alphabet or unbalanced brackets.

        Examples:
            >>> length, alphabet = SequenceBuilder().measure(b'AT[AG]C')
            >>> length, sorted(alphabet)
            (4, ['A', 'C', 'G', 'T'])
        """
        if not data: return 0, frozenset()
        codes = np.frombuffer(data.translate(CLASS_TABLE), dtype=np.uint8)
        if (length := _measure_kernel(codes)) == _UNBALANCED:
            raise SequenceError(f'Unbalanced [] in sequence data: {data[:50]!r}')
        if length == _FOREIGN:
            bad = data[int(np.flatnonzero((codes != _DATA) & (codes != _OPEN) & (codes != _CLOSE))[0])]
            raise SequenceError(f'Character {chr(bad)!r} is not valid sequence data')
        counts = np.bincount(np.frombuffer(data, dtype=np.uint8), minlength=256)
        return int(length), frozenset(map(chr, np.flatnonzero(counts))) - self._STRUCTURAL

    def from_token(self, token: Token, name: str, species: str = None, gene: str = '') -> 'Sequence':
        """
        Builds a :class:`Sequence` from a scanned ``DATA`` token.

        Args:
            token: The data token.
            name: Display name, usually the preceding identifier.
            species: Taxon name, defaults to ``name``.
            gene: Partition key.

        Raises:
            SequenceError: If the token is not a data token, or its reported length disagrees with the data.
        """
        if token.type != TokenType.DATA: raise SequenceError(f'Expected a DATA token, got {token.type.name}')
        seq = Sequence(name, token.literal, species=species, gene=gene)
        if seq.length != token.length:
            raise SequenceError(f"Scanned length {token.length} of '{name}' disagrees with its data ({seq.length})")
        return seq


class Sequence:
    """
    A named sequence fragment contributed by one taxon to one gene.

    ``length`` and ``alphabet`` are always derived from ``data``; assigning ``data`` re-measures it.

    Attributes:
        name: Display identifier, may contain spaces.
        species: Taxon identifier, defaults to ``name``.
        gene: Partition key, empty when not supplied.

    Examples:
        >>> seq = Sequence('Homo sapiens', b'ATAGCT[AC]G', gene='ATP8')
        >>> seq.length, seq.safe_name
        (8, 'Homo_sapiens')
    """
    __slots__ = ('name', 'species', 'gene', '_data', '_length', '_alphabet')

    def __init__(self, name: str, data: Union[bytes, str] = b'', species: str = None, gene: str = ''):
        self.name = name
        self.species = name if species is None else species
        self.gene = gene
        self.data = data

    @classmethod
    def blank(cls, length: int, name: str, species: str = None, gene: str = '') -> 'Sequence':
        """Returns a new sequence made of ``length`` gap characters."""
        return cls(name, GAP * length, species=species, gene=gene)

    @property
    def data(self) -> bytes: return self._data

    @data.setter
    def data(self, value: Union[bytes, str]):
        if isinstance(value, str):
            try: value = value.encode(Alphabet.ENCODING)
            except UnicodeEncodeError as e: raise SequenceError(f'Non-ASCII sequence data: {value[:50]!r}') from e
        value = bytes(value)
        self._length, self._alphabet = BUILDER.measure(value)
        self._data = value

    @property
    def length(self) -> int: return self._length
    @property
    def alphabet(self) -> frozenset[str]: return self._alphabet
    @property
    def safe_name(self) -> str: return safe(self.name)
    @property
    def safe_species(self) -> str: return safe(self.species)
    @property
    def is_empty(self) -> bool: return not self._data

    def classify(self, classifier: SeqClassifier = None) -> SeqType:
        """Calls the :class:`SeqType` of this sequence; diagnostics are emitted as warnings."""
        return (classifier or CLASSIFIER).classify(self._data, self._alphabet, self.name)

    def __len__(self): return self._length
    def __bytes__(self): return self._data
    def __str__(self): return self._data.decode(Alphabet.ENCODING)
    def __repr__(self):
        data = self._data if len(self._data) <= 20 else self._data[:17] + b'...'
        return f'Sequence({self.name!r}, {data!r}, species={self.species!r}, gene={self.gene!r})'
    def __eq__(self, other):
        if not isinstance(other, Sequence): return False
        return (self.name, self.species, self.gene, self._data) == (other.name, other.species, other.gene, other._data)

    __hash__ = None


# Functions ------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True)
def _measure_kernel(codes: np.ndarray) -> int:
    length = 0
    in_group = False
    for code in codes:
        if code == _DATA:
            if not in_group: length += 1
        elif code == _OPEN:
            if in_group: return _UNBALANCED
            in_group = True
        elif code == _CLOSE:
            if not in_group: return _UNBALANCED
            in_group = False
            length += 1
        else:
            return _FOREIGN
    return _UNBALANCED if in_group else length


# Constants ------------------------------------------------------------------------------------------------------------
_DATA: Final = int(CharClass.DATA)
_OPEN: Final = int(CharClass.GROUP_OPEN)
_CLOSE: Final = int(CharClass.GROUP_CLOSE)
_UNBALANCED: Final = -1
_FOREIGN: Final = -2
BUILDER = SequenceBuilder()
CLASSIFIER = SeqClassifier()
