"""
Conversion of phylogenetic sequence collections between FASTA records and TNT matrices.

Examples:
    >>> from phylofmt import read, Matrix
    ... matrix = Matrix()
    ... matrix.add_sequence(*read('ATP6.fasta'), *read('ATP8.fasta'))
    ... print(matrix.render(title='mito').decode())
"""
from importlib.metadata import version, PackageNotFoundError


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class PhylofmtWarning(Warning): pass


# Constants ------------------------------------------------------------------------------------------------------------
try: __version__ = version(__name__)
except PackageNotFoundError: __version__ = '0.0.0'

from phylofmt.utils.resources import RESOURCES, jit
from phylofmt.core.alphabet import Alphabet, SeqType, SeqClassifier, SeqTypeWarning
from phylofmt.core.scanner import Scanner, Token, TokenType, ScanError
from phylofmt.containers.seq import Sequence, SequenceBuilder, SequenceError
from phylofmt.containers.matrix import Matrix, GeneMetaData, MatrixError, InvalidSequence
from phylofmt.io import SeqFile, SeqFileFormat, SeqIOError, FormatError, SeqFileError, FormatWarning, read, discover, \
    gene_from_path
