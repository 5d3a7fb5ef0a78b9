import bz2
import lzma
from io import BytesIO

import pytest

from phylofmt.containers.matrix import InvalidSequence, Matrix
from phylofmt.containers.seq import Sequence
from phylofmt.io import SeqFile, SeqFileFormat, SeqFileError, discover, gene_from_path, read
from phylofmt.io.fasta import FastaWriter
from phylofmt.io.open import Xopen
from phylofmt.io.tnt import TntWriter


class TestFormatInference:
    @pytest.mark.parametrize('name, fmt', [
        ('ATP6.fasta', SeqFileFormat.FASTA),
        ('ATP6.fas', SeqFileFormat.FASTA),
        ('x.FA.GZ', SeqFileFormat.FASTA),
        ('proteins.faa.xz', SeqFileFormat.FASTA),
        ('out.tnt', SeqFileFormat.TNT),
        ('out.ss', SeqFileFormat.TNT),
    ])
    def test_infer_format(self, name, fmt):
        assert SeqFile.infer_format(name) == fmt

    def test_unknown_extension(self):
        assert SeqFile.infer_format('notes.txt', required=False) is None
        with pytest.raises(SeqFileError, match="notes.txt"):
            SeqFile.infer_format('notes.txt')

    def test_sniff_content(self):
        with SeqFile(BytesIO(b'\n>a\nACGT\n')) as f:
            assert f.read() == [Sequence('a', b'ACGT')]
            assert f.format == SeqFileFormat.FASTA

    def test_sniff_failure(self):
        with pytest.raises(SeqFileError, match="Could not determine"):
            SeqFile(BytesIO(b'xread\n')).read()

    def test_no_reader(self, tmp_path):
        (path := tmp_path / 'matrix.tnt').write_bytes(b'xread\n')
        with pytest.raises(SeqFileError, match="has no reader"):
            SeqFile(path).read()


class TestGeneFromPath:
    @pytest.mark.parametrize('path, gene', [
        ('data/ATP6.fasta.gz', 'ATP6'),
        ('COI.fa', 'COI'),
        ('cyt b.fasta', 'cyt b'),
        ('ND5', 'ND5'),
    ])
    def test_gene_from_path(self, path, gene):
        assert gene_from_path(path) == gene


class TestDiscover:
    def test_recursive(self, fasta_dir):
        assert discover(fasta_dir) == [fasta_dir / 'ATP8.fasta', fasta_dir / 'COI.fa.gz',
                                       fasta_dir / 'nested' / 'ATP6.fas']

    def test_not_recursive(self, fasta_dir):
        assert discover(fasta_dir, recurse=False) == [fasta_dir / 'ATP8.fasta', fasta_dir / 'COI.fa.gz']

    def test_single_file(self, fasta_dir):
        assert discover(fasta_dir / 'notes.txt') == [fasta_dir / 'notes.txt']

    def test_other_format(self, fasta_dir):
        assert discover(fasta_dir, fmt='tnt') == []


class TestRead:
    def test_gene_from_file_name(self, fasta_dir):
        sapiens, erectus = read(fasta_dir / 'ATP8.fasta')
        assert sapiens.gene == erectus.gene == 'ATP8'
        assert erectus.species == 'Homo erectus'
        assert erectus.data == b'ATAGCTAC'

    def test_gzipped(self, fasta_dir):
        seq, = read(fasta_dir / 'COI.fa.gz')
        assert (seq.gene, seq.species, seq.data) == ('COI', 'Homo erectus', b'ACGT')

    def test_explicit_gene(self, fasta_dir):
        assert read(fasta_dir / 'ATP8.fasta', gene='atp8')[0].gene == 'atp8'

    def test_handle(self):
        seq, = read(BytesIO(b'>Pan troglodytes\nACGT\n'))
        assert seq.gene == ''
        assert seq.species == 'Pan troglodytes'

    def test_species_not_from_id(self, fasta_dir):
        assert read(fasta_dir / 'ATP8.fasta', species_from_id=False)[0].species == 'Homo sapiens'


class TestXopen:
    @pytest.mark.parametrize('suffix, module', [('.bz2', bz2), ('.xz', lzma)])
    def test_compressed_read(self, tmp_path, suffix, module):
        path = tmp_path / f'ATP6.fasta{suffix}'
        with module.open(path, 'wb') as f: f.write(b'>a\nACGT\n')
        with Xopen(path) as f:
            assert f.read() == b'>a\nACGT\n'

    def test_sniffs_by_content(self, tmp_path):
        import gzip
        (path := tmp_path / 'misnamed.fasta').write_bytes(gzip.compress(b'>a\nAC\n'))
        assert read(path)[0].data == b'AC'

    def test_handle_is_left_open(self):
        handle = BytesIO(b'>a\nAC\n')
        with Xopen(handle) as f: f.read()
        assert not handle.closed

    def test_invalid_mode(self):
        with pytest.raises(ValueError):
            Xopen('x.fasta', 'r')


class TestWriters:
    def test_open_returns_writer(self, tmp_path):
        with SeqFile.open(tmp_path / 'out.fasta', 'wb') as w:
            assert isinstance(w, FastaWriter)
        with SeqFile.open(tmp_path / 'out.tnt', 'wb') as w:
            assert isinstance(w, TntWriter)
            w.write(Sequence('a', b'AC', gene='G'))

    def test_cannot_infer_output_format(self, tmp_path):
        with pytest.raises(SeqFileError):
            SeqFile.open(tmp_path / 'out.txt', 'wb')

    def test_fasta_round_trip_compressed(self, tmp_path, atp_sequences):
        path = tmp_path / 'out.fasta.gz'
        atp8 = [s for s in atp_sequences if s.gene == 'ATP8']
        with SeqFile.open(path, 'wb') as w: w.write(atp8)
        assert path.read_bytes()[:2] == b'\x1f\x8b'
        assert [(s.name, s.data) for s in read(path)] == [('Homo_sapiens', b'ATAGCTAG'), ('Homo_erectus', b'ATAGCTAC')]

    def test_tnt(self, tmp_path, atp_sequences):
        path = tmp_path / 'out.tnt'
        with SeqFile.open(path, 'wb', title='mito', outgroup='Homo sapiens') as w: w.write(atp_sequences)
        expected = Matrix(*atp_sequences, outgroup='Homo sapiens').render('mito')
        assert path.read_bytes() == expected
        assert path.read_bytes().startswith(b"xread\n'mito'\n19 2\nHomo_sapiens ")

    def test_tnt_from_fasta_files(self, tmp_path, fasta_dir):
        out = tmp_path / 'out.tnt'
        with TntWriter(out) as w:
            for file in discover(fasta_dir): w.write(read(file))
        assert out.read_bytes() == (b"xread\n''\n23 2\n"
                                    b"Homo_erectus -----------ATAGCTACACGT\n"
                                    b"Homo_sapiens TAGCATAGCTGATAGCTAG----\n"
                                    b";\nblocks 0 11 19;\ncnames\n[1 ATP6;\n[2 ATP8;\n[3 COI;\n;")

    def test_tnt_mismatch_writes_nothing(self, tmp_path):
        path = tmp_path / 'out.tnt'
        with pytest.raises(InvalidSequence):
            with SeqFile.open(path, 'wb') as w:
                w.write(Sequence('a', b'ACGT', gene='G'), Sequence('b', b'ACG', gene='G'))
        assert path.read_bytes() == b''
