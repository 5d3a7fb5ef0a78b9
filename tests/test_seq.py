import pytest

from phylofmt.containers.seq import Sequence, SequenceBuilder, SequenceError
from phylofmt.core.alphabet import SeqType
from phylofmt.core.scanner import Token, TokenType


class TestSequenceBuilder:
    @pytest.fixture
    def builder(self):
        return SequenceBuilder()

    def test_measure(self, builder):
        length, alphabet = builder.measure(b'AT[AG]C')
        assert length == 4
        assert alphabet == frozenset('ATGC')

    def test_measure_empty(self, builder):
        assert builder.measure(b'') == (0, frozenset())

    def test_measure_gaps_and_missing(self, builder):
        assert builder.measure(b'--??AC')[0] == 6

    @pytest.mark.parametrize('data', [b'AT[AG', b'AT]G', b'A[A[G]]'])
    def test_unbalanced(self, builder, data):
        with pytest.raises(SequenceError, match="Unbalanced"):
            builder.measure(data)

    @pytest.mark.parametrize('data', [b'AT*G', b'AT G', b'AT>G'])
    def test_foreign_character(self, builder, data):
        with pytest.raises(SequenceError, match="not valid sequence data"):
            builder.measure(data)

    def test_from_token(self, builder):
        seq = builder.from_token(Token(TokenType.DATA, b'AT[AG]C', 4), 'foo', gene='X')
        assert seq.name == 'foo'
        assert seq.species == 'foo'
        assert seq.gene == 'X'
        assert seq.length == 4

    def test_from_token_length_drift(self, builder):
        with pytest.raises(SequenceError, match="disagrees"):
            builder.from_token(Token(TokenType.DATA, b'ATG', 4), 'foo')

    def test_from_token_wrong_type(self, builder):
        with pytest.raises(SequenceError, match="IDENTIFIER"):
            builder.from_token(Token(TokenType.IDENTIFIER, b'foo', 3), 'foo')


class TestSequence:
    def test_init(self):
        seq = Sequence('Homo sapiens', 'ATAGCT[AC]G', gene='ATP8')
        assert seq.data == b'ATAGCT[AC]G'
        assert seq.length == len(seq) == 8
        assert seq.alphabet == frozenset('ATGC')
        assert seq.species == 'Homo sapiens'
        assert seq.safe_name == seq.safe_species == 'Homo_sapiens'

    def test_explicit_species(self):
        seq = Sequence('voucher 12', b'ACGT', species='Pan troglodytes')
        assert seq.safe_species == 'Pan_troglodytes'
        assert Sequence('x', b'A', species='').species == ''

    def test_non_ascii_data(self):
        with pytest.raises(SequenceError, match="Non-ASCII"):
            Sequence('x', 'ATé')

    def test_invalid_data(self):
        with pytest.raises(SequenceError):
            Sequence('x', b'AT[G')

    def test_data_is_remeasured(self):
        seq = Sequence('x', b'ACGT')
        seq.data = b'A[CG]'
        assert seq.length == 2
        assert seq.alphabet == frozenset('ACG')

    def test_failed_assignment_keeps_previous_data(self):
        seq = Sequence('x', b'ACGT')
        with pytest.raises(SequenceError):
            seq.data = b'AC]'
        assert seq.data == b'ACGT'
        assert seq.length == 4

    def test_blank(self):
        seq = Sequence.blank(5, 'Homo sapiens', gene='COI')
        assert seq.data == b'-----'
        assert seq.length == 5
        assert seq.gene == 'COI'
        assert seq.classify() == SeqType.BLANK

    def test_empty(self):
        assert Sequence('x').is_empty
        assert not Sequence('x', b'-').is_empty

    def test_equality(self):
        assert Sequence('x', b'ACGT', gene='A') == Sequence('x', 'ACGT', gene='A')
        assert Sequence('x', b'ACGT', gene='A') != Sequence('x', b'ACGT', gene='B')
        assert Sequence('x', b'ACGT') != b'ACGT'

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(Sequence('x', b'ACGT'))

    def test_conversions(self):
        seq = Sequence('x', b'AC[GT]')
        assert bytes(seq) == b'AC[GT]'
        assert str(seq) == 'AC[GT]'
        assert 'A' * 17 + '...' in repr(Sequence('x', b'A' * 30))

    def test_classify(self):
        assert Sequence('x', b'ATGCATGC').classify() == SeqType.DNA
