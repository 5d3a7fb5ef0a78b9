"""
TNT matrices: a non-interleaved ``xread`` block followed by gene block definitions.
"""
from pathlib import Path
from typing import Union, BinaryIO

from phylofmt.containers.matrix import Matrix
from phylofmt.containers.seq import Sequence
from phylofmt.io import BaseWriter, SeqFile


# Classes --------------------------------------------------------------------------------------------------------------
@SeqFile.register('tnt', extensions=['.tnt', '.ss'])
class TntWriter(BaseWriter):
    """
    Writer for TNT files.

    Sequences are collected into a :class:`~phylofmt.containers.matrix.Matrix` keyed on gene and species,
    and the matrix is rendered in one go when the writer closes. Length mismatches raise
    :class:`~phylofmt.containers.matrix.InvalidSequence` before anything is written.

    Examples:
        >>> with TntWriter("out.tnt", title="mito", outgroup="Pan troglodytes") as w:
        ...     w.write(read("ATP6.fasta"), read("ATP8.fasta"))
    """
    __slots__ = ('title', 'matrix')
    def __init__(self, file: Union[str, Path, BinaryIO], title: str = '', outgroup: str = None,
                 matrix: Matrix = None, **kwargs):
        """
        Args:
            file: File path or object.
            title: Matrix title, quoted in the ``xread`` header.
            outgroup: Taxon rendered as the first row; unknown names are ignored.
            matrix: Existing store to add to, a new one is created if omitted.
        """
        super().__init__(file, **kwargs)
        self.title = title
        self.matrix = matrix if matrix is not None else Matrix()
        if outgroup: self.matrix.set_outgroup(outgroup)

    def write_one(self, seq: Sequence):
        if not isinstance(seq, Sequence): raise TypeError("TntWriter expects Sequence objects")
        self.matrix.add_sequence(seq)

    def write_footer(self):
        self._handle.write(self.matrix.render(self.title))
