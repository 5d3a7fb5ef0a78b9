"""
Module for assembling per-gene, per-taxon sequences into a single aligned matrix.

Sequences are indexed by ``(gene, taxon)``. Before rendering, each gene is validated to have
a single logical length across the taxa that contribute to it; taxa that do not contribute
are padded with gaps. Genes are laid out left to right in ascending name order and each one
becomes a named block of columns.
"""
from bisect import bisect_left, insort
from collections import defaultdict
from operator import attrgetter
from typing import Iterator, NamedTuple, Optional

from phylofmt.containers.seq import Sequence
from phylofmt.core.alphabet import GAP
from phylofmt.utils import safe


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class MatrixError(Exception):
    """Base class for errors raised while assembling a matrix."""


class InvalidSequence(MatrixError):
    """
    Raised when the taxa contributing to one gene disagree on its logical length.

    Attributes:
        gene: The offending gene.
        lengths: Mapping of each conflicting length to the taxa that have it.
    """
    def __init__(self, gene: str, lengths: dict[int, list[str]]):
        details = '\n'.join(f'\t{n}: {", ".join(taxa)}' for n, taxa in sorted(lengths.items()))
        super().__init__(f"Sequences of gene '{gene}' are not the same length:\n{details}")
        self.gene = gene
        self.lengths = lengths


# Classes --------------------------------------------------------------------------------------------------------------
class GeneMetaData(NamedTuple):
    """Validated shape of one gene block."""
    gene: str
    length: int
    species_count: int


class Matrix:
    """
    Gene-by-taxon store of sequences, rendered as a TNT ``xread`` matrix with block definitions.

    Examples:
        >>> matrix = Matrix()
        >>> matrix.add_sequence(Sequence('Homo sapiens', b'ATAGCTAG', gene='ATP8'),
        ...                     Sequence('Homo erectus', b'ATAGCTAC', gene='ATP8'))
        >>> matrix.taxa
        ['Homo erectus', 'Homo sapiens']
    """
    __slots__ = ('_sequences', '_taxa', '_outgroup', '_metadata', '_needs_fill')

    def __init__(self, *sequences: Sequence, outgroup: str = None):
        self._sequences: dict[str, dict[str, Sequence]] = {}
        self._taxa: list[str] = []  # Ascending, unique
        self._outgroup: Optional[str] = None
        self._metadata: Optional[list[GeneMetaData]] = None
        self._needs_fill = False
        self.add_sequence(*sequences)
        self.set_outgroup(outgroup)

    def __len__(self): return len(self._taxa)
    def __contains__(self, item): return item in self._sequences
    def __repr__(self): return f'Matrix(genes={len(self._sequences)}, taxa={len(self._taxa)})'

    def __iter__(self) -> Iterator[Sequence]:
        """Iterates over stored sequences, gene by gene in ascending order."""
        for gene in self.genes: yield from self._sequences[gene].values()

    def add_sequence(self, *sequences: Sequence):
        """
        Indexes sequences by gene and species. A later sequence for the same pair replaces the earlier one.

        Invalidates any previously generated metadata.
        """
        for seq in sequences:
            self._sequences.setdefault(seq.gene, {})[seq.species] = seq
            if not self._has_taxon(seq.species):
                insort(self._taxa, seq.species)
        if sequences: self._metadata = None

    def _has_taxon(self, taxon: str) -> bool:
        i = bisect_left(self._taxa, taxon)
        return i < len(self._taxa) and self._taxa[i] == taxon

    def get(self, gene: str, taxon: str) -> Optional[Sequence]:
        return self._sequences.get(gene, {}).get(taxon)

    @property
    def genes(self) -> list[str]: return sorted(self._sequences)
    @property
    def outgroup(self) -> Optional[str]: return self._outgroup
    @property
    def needs_fill(self) -> bool:
        """True if the last metadata pass found taxa with absent or empty data."""
        return self._needs_fill

    def set_outgroup(self, name: Optional[str]):
        """
        Designates the taxon rendered as the first row.

        Matching is done on the underscore-sanitised name. An unknown name is accepted and simply
        causes no reordering, since the outgroup may be set before any sequences are added.
        """
        self._outgroup = name or None

    @property
    def taxa(self) -> list[str]:
        """Taxon names in row order: the outgroup first if it is known, the rest ascending."""
        if self._outgroup is None: return list(self._taxa)
        target = safe(self._outgroup)
        for i, taxon in enumerate(self._taxa):
            if safe(taxon) == target: return [taxon] + self._taxa[:i] + self._taxa[i + 1:]
        return list(self._taxa)

    @property
    def metadata(self) -> list[GeneMetaData]:
        """Gene metadata, generated on first access after any mutation."""
        if self._metadata is None: self.generate_metadata()
        return self._metadata

    @property
    def total_length(self) -> int:
        """Number of logical columns across all genes."""
        return sum(md.length for md in self.metadata)

    def generate_metadata(self) -> list[GeneMetaData]:
        """
        Validates per-gene lengths and records the shape of each gene block.

        Absent or zero-length entries are tolerated and flag the store as needing gap-fill.

        Returns:
            Metadata sorted ascending by gene name.

        Raises:
            InvalidSequence: If a gene has more than one distinct non-zero length.
        """
        metadata = []
        needs_fill = False
        for gene, by_taxon in self._sequences.items():
            lengths = defaultdict(list)
            contributing = 0  # Gap-only rows count towards the length but not the species
            for taxon in self._taxa:
                if (seq := by_taxon.get(taxon)) is not None and seq.length:
                    lengths[seq.length].append(taxon)
                    if seq.data.strip(GAP): contributing += 1
                else:
                    needs_fill = True
            if len(lengths) > 1: raise InvalidSequence(gene, dict(lengths))
            metadata.append(GeneMetaData(gene, next(iter(lengths), 0), contributing))
        metadata.sort(key=attrgetter('gene'))
        self._metadata, self._needs_fill = metadata, needs_fill
        return metadata

    def fill_missing(self) -> int:
        """
        Inserts a gap-filled sequence of the validated gene length for every absent or empty entry.

        Never overwrites non-empty data, so repeated calls are harmless.

        Returns:
            The number of entries filled.

        Raises:
            InvalidSequence: If metadata has to be generated and fails validation.
        """
        filled = 0
        for md in self.metadata:
            by_taxon = self._sequences[md.gene]
            for taxon in self._taxa:
                seq = by_taxon.get(taxon)
                if seq is not None and (not seq.is_empty or md.length == 0): continue
                name = seq.name if seq is not None else taxon
                by_taxon[taxon] = Sequence.blank(md.length, name, species=taxon, gene=md.gene)
                filled += 1
        self._needs_fill = False
        return filled

    def assemble_rows(self) -> list[tuple[str, bytes]]:
        """
        Concatenates each taxon's data across genes in metadata order.

        Missing cells are padded with gaps on the fly; the store itself is left untouched.

        Returns:
            ``(sanitised taxon name, row)`` pairs in row order.
        """
        metadata = self.metadata
        rows = []
        for taxon in self.taxa:
            parts = []
            for md in metadata:
                seq = self._sequences[md.gene].get(taxon)
                parts.append(seq.data if seq is not None and not seq.is_empty else GAP * md.length)
            rows.append((safe(taxon), b''.join(parts)))
        return rows

    def block_offsets(self) -> list[int]:
        """Column offset at which each gene block starts, in metadata order."""
        offsets, start = [], 0
        for md in self.metadata:
            offsets.append(start)
            start += md.length
        return offsets

    def render_xread(self, title: str = '') -> bytes:
        """
        Renders the ``xread`` block::

            xread
            'title'
            19 2
            Homo_erectus TAGCATAGCTAATAGCTAC
            Homo_sapiens TAGCATAGCTGATAGCTAG
            ;
        """
        rows = self.assemble_rows()
        lines = [b'xread', b"'" + title.encode('utf-8') + b"'", b'%d %d' % (self.total_length, len(rows))]
        lines.extend(name.encode('utf-8') + b' ' + row for name, row in rows)
        lines.append(b';')
        return b'\n'.join(lines)

    def render_blocks(self) -> bytes:
        """
        Renders the block definitions and their names::

            blocks 0 11;
            cnames
            [1 ATP6;
            [2 ATP8;
            ;

        Block 0 is the implicit "ALL" block, so user blocks are numbered from 1.
        """
        blocks = b' '.join(b'%d' % i for i in self.block_offsets())
        cnames = b''.join(b'[%d %s;\n' % (i, self.block_name(i, md.gene).encode('utf-8'))
                         for i, md in enumerate(self.metadata, 1))
        return b'\nblocks ' + blocks + b';\ncnames\n' + cnames + b';'

    @staticmethod
    def block_name(number: int, gene: str) -> str:
        """Sanitised gene name for ``cnames``; an unnamed gene is called after its block number."""
        return safe(gene) or f'gene{number}'

    def render(self, title: str = '') -> bytes:
        """
        Renders the full matrix: the ``xread`` block followed by the block definitions.

        Raises:
            MatrixError: If the matrix holds no sequences.
            InvalidSequence: If validation fails; nothing is rendered in that case.
        """
        if not self._sequences: raise MatrixError('Cannot render an empty matrix')
        xread = self.render_xread(title)
        return xread + self.render_blocks()

