import pytest

from phylofmt.containers.seq import Sequence
from phylofmt.containers.matrix import Matrix


@pytest.fixture
def atp_sequences():
    """Two taxa sequenced for ATP6 (length 11) and ATP8 (length 8)."""
    return [
        Sequence('Homo sapiens', b'ATAGCTAG', gene='ATP8'),
        Sequence('Homo erectus', b'ATAGCTAC', gene='ATP8'),
        Sequence('Homo sapiens', b'TAGCATAGCTG', gene='ATP6'),
        Sequence('Homo erectus', b'TAGCATAGCTA', gene='ATP6'),
    ]


@pytest.fixture
def atp_matrix(atp_sequences):
    return Matrix(*atp_sequences)


@pytest.fixture
def fasta_dir(tmp_path):
    """A directory of per-gene FASTA files, one of them nested and one gzipped."""
    import gzip
    (tmp_path / 'ATP8.fasta').write_bytes(b'>Homo sapiens\nATAGCTAG\n>Homo erectus\nATAG\nCTAC\n')
    (tmp_path / 'nested').mkdir()
    (tmp_path / 'nested' / 'ATP6.fas').write_bytes(b'>Homo sapiens\nTAGCATAGCTG\n')
    with gzip.open(tmp_path / 'COI.fa.gz', 'wb') as f: f.write(b'>Homo erectus\nACGT\n')
    (tmp_path / 'notes.txt').write_text('not a sequence file')
    return tmp_path
