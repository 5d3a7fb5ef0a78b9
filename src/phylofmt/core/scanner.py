"""
Lexical scanner for FASTA-style record streams.

The scanner works on an in-memory byte buffer. Every byte is first mapped to its
:class:`~phylofmt.core.alphabet.CharClass` with a single ``bytes.translate`` call, so
the scanning loops only ever compare small integers.
"""
from enum import IntEnum
from typing import BinaryIO, Generator, Optional, Union

from phylofmt.core.alphabet import CharClass, CLASS_TABLE


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class ScanError(Exception):
    """
    Describes why a token could not be scanned.

    Never raised by :meth:`Scanner.scan`; it is attached to the ``INVALID`` token instead.
    """
    def __init__(self, message: str, offset: int):
        super().__init__(f'{message} (byte {offset})')
        self.offset = offset


# Classes --------------------------------------------------------------------------------------------------------------
class TokenType(IntEnum):
    EOF = 0
    IDENTIFIER = 1
    DATA = 2
    WHITESPACE = 3
    INVALID = 4


class Token:
    """
    A single scanned token.

    Attributes:
        type: The :class:`TokenType`.
        literal: Raw bytes of the token; for identifiers this excludes the ``>`` and line ending,
            for data it excludes skipped whitespace.
        length: Logical length for ``IDENTIFIER`` and ``DATA`` tokens, 0 otherwise.
        alphabet: Distinct data symbols seen in a ``DATA`` token (brackets excluded).
        error: The :class:`ScanError` of an ``INVALID`` token.
    """
    __slots__ = ('type', 'literal', 'length', 'alphabet', 'error')
    def __init__(self, type_: TokenType, literal: bytes = b'', length: int = 0, alphabet: frozenset = frozenset(),
                 error: ScanError = None):
        self.type = type_
        self.literal = literal
        self.length = length
        self.alphabet = alphabet
        self.error = error

    def __repr__(self): return f'Token({self.type.name}, {self.literal!r}, length={self.length})'
    def __eq__(self, other):
        if not isinstance(other, Token): return False
        return (self.type, self.literal, self.length) == (other.type, other.literal, other.length)

    @property
    def text(self) -> str:
        """The literal decoded as UTF-8."""
        return self.literal.decode('utf-8')


class Scanner:
    """
    Converts a byte buffer into :class:`Token` objects, one per call to :meth:`scan`.

    Examples:
        >>> scanner = Scanner(b'\\n>foo\\nATG\\nC[AG]T\\n')
        >>> [(t.type.name, t.literal, t.length) for t in scanner]
        [('WHITESPACE', b'\\n', 0), ('IDENTIFIER', b'foo', 3), ('DATA', b'ATGC[AG]T', 6), ('EOF', b'', 0)]
    """
    __slots__ = ('_data', '_classes', '_pos')

    def __init__(self, data: Union[bytes, bytearray, memoryview]):
        self._data = bytes(data)
        self._classes = self._data.translate(CLASS_TABLE)
        self._pos = 0

    @classmethod
    def from_handle(cls, handle: BinaryIO) -> 'Scanner':
        """Reads a binary handle to exhaustion and scans its content."""
        return cls(handle.read())

    @property
    def position(self) -> int:
        """Offset of the next unconsumed byte."""
        return self._pos

    def __iter__(self) -> Generator[Token, None, None]:
        """Yields tokens up to and including the first ``EOF``."""
        while True:
            token = self.scan()
            yield token
            if token.type == TokenType.EOF: break

    def scan(self) -> Token:
        """
        Returns the next token and advances past everything it consumed.

        Returns:
            The next :class:`Token`; ``EOF`` once the buffer is exhausted.
        """
        if self._pos >= len(self._data): return Token(TokenType.EOF)
        cls = self._classes[self._pos]
        if cls == CharClass.MARKER: return self._scan_identifier()
        if cls == CharClass.DATA or cls == CharClass.GROUP_OPEN: return self._scan_data()
        if cls == CharClass.SPACE: return self._scan_whitespace()
        start, self._pos = self._pos, self._pos + 1
        if cls == CharClass.HIGH: return self._invalid('Multi-byte or undecodable character', start)
        return self._invalid(f'Unexpected character {self._data[start:start + 1]!r}', start)

    def _invalid(self, message: str, offset: int) -> Token:
        return Token(TokenType.INVALID, self._data[offset:self._pos], error=ScanError(message, offset))

    def _scan_identifier(self) -> Token:
        start = self._pos + 1
        end = self._data.find(b'\n', start)
        if end == -1: end = self._pos = len(self._data)
        else: self._pos = end + 1
        literal = self._data[start:end].removesuffix(b'\r')
        try: text = literal.decode('utf-8')
        except UnicodeDecodeError as e:
            return self._invalid(f'Undecodable identifier ({e.reason})', start + e.start)
        return Token(TokenType.IDENTIFIER, literal, len(text))

    def _scan_whitespace(self) -> Token:
        start = self._pos
        classes, n = self._classes, len(self._classes)
        while self._pos < n and classes[self._pos] == CharClass.SPACE: self._pos += 1
        return Token(TokenType.WHITESPACE, self._data[start:self._pos])

    def _scan_data(self) -> Token:
        data, classes, n = self._data, self._classes, len(self._data)
        buf = bytearray()
        length = 0
        group_start = -1  # Offset of the open '[' while inside a group
        pos = self._pos
        while pos < n:
            cls = classes[pos]
            if cls == CharClass.SPACE:
                pos += 1
            elif cls == CharClass.DATA:
                buf.append(data[pos])
                if group_start < 0: length += 1
                pos += 1
            elif cls == CharClass.GROUP_OPEN and group_start < 0:
                group_start = pos
                buf.append(data[pos])
                pos += 1
            elif cls == CharClass.GROUP_CLOSE and group_start >= 0:
                group_start = -1
                buf.append(data[pos])
                length += 1
                pos += 1
            elif cls == CharClass.MARKER and group_start < 0:
                break
            else:
                self._pos = pos + 1
                if cls == CharClass.MARKER:
                    self._pos = pos
                    return self._invalid('Unbalanced [] in sequence data', group_start)
                if cls == CharClass.HIGH: return self._invalid('Multi-byte or undecodable character', pos)
                return self._invalid(f'Unexpected character {data[pos:pos + 1]!r} in sequence data', pos)
        self._pos = pos
        if group_start >= 0: return self._invalid('Unbalanced [] in sequence data', group_start)
        literal = bytes(buf)
        alphabet = frozenset(literal.decode('ascii')) - _STRUCTURAL
        return Token(TokenType.DATA, literal, length, alphabet)


# Constants ------------------------------------------------------------------------------------------------------------
_STRUCTURAL = frozenset('[]')
