"""
Command line interface: ``phylofmt -i <file|dir|-> -o <file|-> -F tnt``.
"""
from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Sequence as Argv
import sys
import warnings

from phylofmt import PhylofmtWarning, __version__
from phylofmt.containers.matrix import MatrixError
from phylofmt.containers.seq import Sequence, SequenceError
from phylofmt.io import SeqFile, SeqFileFormat, SeqIOError, discover, gene_from_path, read


# Functions ------------------------------------------------------------------------------------------------------------
def build_parser() -> ArgumentParser:
    formats = [f.value for f in SeqFileFormat]
    parser = ArgumentParser(
        prog='phylofmt',
        description='Convert genetic sequence collections between formats. Directories are searched for FASTA '
                    'files, and each file name (without extension) is used as the gene name.')
    parser.add_argument('-f', '--input-format', default=SeqFileFormat.FASTA.value, choices=formats,
                        help='Input format (default: %(default)s)')
    parser.add_argument('-F', '--output-format', default=SeqFileFormat.FASTA.value, choices=formats,
                        help='Output format (default: %(default)s)')
    parser.add_argument('-i', '--input', default='-', metavar='PATH',
                        help="Input file or directory, '-' for stdin (default)")
    parser.add_argument('-o', '--output', default='-', metavar='PATH', help="Output file, '-' for stdout (default)")
    parser.add_argument('-t', '--title', default='', help='Title of the TNT matrix')
    parser.add_argument('--outgroup', default=None,
                        help='Taxon placed first in the TNT matrix; otherwise taxa are sorted alphabetically')
    parser.add_argument('--no-recurse', dest='recurse', action='store_false',
                        help='Do not descend into sub-directories of an input directory')
    parser.add_argument('--no-species-from-id', dest='species_from_id', action='store_false',
                        help='Do not use record identifiers as species names')
    parser.add_argument('--classify', action='store_true', help='Report the sequence type of every input on stderr')
    parser.add_argument('-q', '--quiet', action='store_true', help='Suppress warnings')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def load(args: Namespace) -> list[Sequence]:
    """Reads every input file, deriving the gene from each file name."""
    if args.input == '-': return read('-', fmt=args.input_format, gene='', species_from_id=args.species_from_id)
    sequences = []
    for file in discover(args.input, args.input_format, recurse=args.recurse):
        sequences.extend(read(file, fmt=args.input_format, gene=gene_from_path(file),
                              species_from_id=args.species_from_id))
    return sequences


def classify(sequences: list[Sequence]):
    for seq in sequences: print(f'{seq.gene}\t{seq.name}\t{seq.classify().value}', file=sys.stderr)


def write(sequences: list[Sequence], args: Namespace):
    kwargs = {'title': args.title, 'outgroup': args.outgroup} if args.output_format == SeqFileFormat.TNT else {}
    with SeqFile.open(args.output, 'wb', fmt=args.output_format, **kwargs) as writer:
        writer.write(sequences)


def main(argv: Argv[str] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.input != '-' and not Path(args.input).exists(): parser.error(f"input '{args.input}' does not exist")
    with warnings.catch_warnings():
        warnings.simplefilter('ignore' if args.quiet else 'always', PhylofmtWarning)
        try:
            sequences = load(args)
            if args.classify: classify(sequences)
            write(sequences, args)
        except (SeqIOError, SequenceError, MatrixError) as e:
            print(f'{parser.prog}: {e}', file=sys.stderr)
            return 1
    return 0
