import gzip
from io import BytesIO

import pytest
from seqlib import SeqlibWarning
from seqlib.core.alphabet import Alphabet, BadCharError
from seqlib.containers.record import Record
from seqlib.containers.sites import SequenceContainer, SiteContainer, ContainerError
from seqlib.io import SeqFile, ParserError, SeqFileError
from seqlib.io.seq import FastaReader, FastaWriter, MaseReader, MaseWriter
from seqlib.io.align import PhylipReader, PhylipWriter, ClustalReader, DcseReader

FASTA = b""">seq1 first sequence
ACGT
AC
>seq2
ACGT-N
"""

MASE = b""";; An alignment
;;# of segments=2 first_last
;; 1,2 5,6
;first sequence
seq1
ACGT
AC
;
seq2
AC-TTN
"""

PHYLIP_INTERLEAVED = b"""3 8
seq1      ACGT
seq2      AC-T
seq3      ACNT

          TTGG
          TTGG
          TTGG
"""

PHYLIP_SEQUENTIAL = b"""3 8
seq1      ACGT
TTGG
seq2      AC-TTTGG
seq3      ACNT
TT GG
"""

PHYLIP_EXTENDED = b""" 2 4
a_long_sequence_name ACGT
b  AC-T
"""

CLUSTAL = b"""CLUSTAL W (1.83) multiple sequence alignment

seq1      ACGT 4
seq2      AC-T 3
          ** *

seq1      TTGG
seq2      TTGA
          ***
"""

DCSE = b"""DCSE header line
ACGU{[GG]}     seq1
AC-U(GG)^      seq2
..............     Helix numbering
ACGUGG     mask
"""


def make_sites():
    return SiteContainer(Alphabet.DNA, [Record(Alphabet.DNA.seq_from('ACGTAC'), b'seq1', b'first sequence'),
                                        Record(Alphabet.DNA.seq_from('AC-TTN'), b'seq2')])


class TestFasta:
    def test_read(self):
        records = list(FastaReader(BytesIO(FASTA)))
        assert [r.id for r in records] == [b'seq1', b'seq2']
        assert records[0].description == b'first sequence'
        assert str(records[0].seq) == 'ACGTAC'
        assert str(records[1].seq) == 'ACGT-N'

    def test_read_container(self):
        container = FastaReader(BytesIO(FASTA)).read_container()
        assert isinstance(container, SiteContainer)
        assert container.n_sites == 6

    def test_unaligned(self):
        data = b'>a\nACGT\n>b\nAC\n'
        with pytest.raises(ContainerError):
            FastaReader(BytesIO(data)).read_container()
        assert len(FastaReader(BytesIO(data)).read_container(aligned=False)) == 2

    def test_invalid_residue(self):
        with pytest.raises(BadCharError):
            list(FastaReader(BytesIO(b'>a\nACGZ\n')))

    def test_data_before_header(self):
        with pytest.raises(ParserError, match="line 1"):
            list(FastaReader(BytesIO(b'ACGT\n>a\nACGT\n')))

    def test_protein(self):
        records = list(FastaReader(BytesIO(b'>p\nMKV\n'), alphabet=Alphabet.PROTEIN))
        assert records[0].alphabet is Alphabet.PROTEIN

    def test_write(self):
        out = BytesIO()
        with FastaWriter(out, width=4) as writer:
            writer.write(make_sites())
        assert out.getvalue() == b'>seq1 first sequence\nACGT\nAC\n>seq2\nAC-T\nTN\n'

    def test_write_no_wrap(self):
        out = BytesIO()
        with FastaWriter(out, width=0) as writer:
            writer.write(list(make_sites()))
        assert out.getvalue().splitlines()[1] == b'ACGTAC'

    def test_negative_width(self):
        with pytest.raises(ValueError, match=">= 0"):
            FastaWriter(BytesIO(), width=-1)


class TestMase:
    def test_read(self):
        reader = MaseReader(BytesIO(MASE))
        container = reader.read_container()
        assert container.ids == [b'seq1', b'seq2']
        assert container[0].description == b'first sequence'
        assert str(container[1].seq) == 'AC-TTN'
        assert container.comments[0] == b'An alignment'
        assert reader.site_selections == {b'first_last': [(1, 2), (5, 6)]}

    def test_site_selection(self):
        container = MaseReader(BytesIO(MASE)).read_container(site_selection='first_last')
        assert [str(r.seq) for r in container] == ['ACAC', 'ACTN']

    def test_unknown_site_selection(self):
        with pytest.raises(SeqFileError, match="No site selection"):
            MaseReader(BytesIO(MASE)).read_container(site_selection='missing')

    def test_selection_beyond_alignment(self):
        data = b';;# of segments=1 sel\n;; 1,10\n;\nseq1\nACGT\n'
        with pytest.raises(SeqFileError, match="exceeds"):
            MaseReader(BytesIO(data)).read_container(site_selection='sel')

    def test_incomplete_selection(self):
        data = b';;# of segments=2 sel 1,2\n;\nseq1\nACGT\n'
        with pytest.raises(ParserError, match="expects 2 segments"):
            list(MaseReader(BytesIO(data)))

    def test_name_without_comment(self):
        with pytest.raises(ParserError):
            list(MaseReader(BytesIO(b'seq1\nACGT\n')))

    def test_write(self):
        out = BytesIO()
        with MaseWriter(out, width=60) as writer:
            writer.write(make_sites())
        assert out.getvalue() == b';;Mase file written by seqlib\n;first sequence\nseq1\nACGTAC\n;\nseq2\nAC-TTN\n'

    def test_write_header(self):
        out = BytesIO()
        sites = SiteContainer(Alphabet.DNA, make_sites(), comments=[b'An alignment'])
        with MaseWriter(out, width=60) as writer:
            writer.write(sites)
        assert out.getvalue() == b';;An alignment\n;first sequence\nseq1\nACGTAC\n;\nseq2\nAC-TTN\n'

    def test_write_default_header(self):
        out = BytesIO()
        with MaseWriter(out) as writer:
            writer.write_one(Record(Alphabet.DNA.seq_from('ACGT'), b'a'))
        assert out.getvalue().splitlines()[0].startswith(b';;')
        assert out.getvalue().splitlines()[1:] == [b';', b'a', b'ACGT']

    def test_round_trip_keeps_selection(self):
        out = BytesIO()
        with MaseWriter(out) as writer:
            writer.write(MaseReader(BytesIO(MASE)).read_container())
        reader = MaseReader(BytesIO(out.getvalue()))
        reader.read_container()
        assert reader.site_selections == {b'first_last': [(1, 2), (5, 6)]}

    def test_filtered_round_trip_drops_selection(self):
        data = b';;# of segments=1 tail 4,6\n;\nseq1\nA-GACG\n;\nseq2\nACGACG\n'
        sites = MaseReader(BytesIO(data)).read_container().gapless_sites()
        assert sites.comments == []
        out = BytesIO()
        with MaseWriter(out) as writer:
            writer.write(sites)
        reader = MaseReader(BytesIO(out.getvalue()))
        assert [str(r.seq) for r in reader.read_container()] == ['AGACG', 'AGACG']
        assert reader.site_selections == {}
        with pytest.raises(SeqFileError, match="No site selection"):
            MaseReader(BytesIO(out.getvalue())).read_container(site_selection='tail')


class TestPhylip:
    def test_interleaved(self):
        container = PhylipReader(BytesIO(PHYLIP_INTERLEAVED)).read_container()
        assert container.ids == [b'seq1', b'seq2', b'seq3']
        assert [str(r.seq) for r in container] == ['ACGTTTGG', 'AC-TTTGG', 'ACNTTTGG']

    def test_sequential(self):
        container = PhylipReader(BytesIO(PHYLIP_SEQUENTIAL), sequential=True).read_container()
        assert container.ids == [b'seq1', b'seq2', b'seq3']
        assert [str(r.seq) for r in container] == ['ACGTTTGG', 'AC-TTTGG', 'ACNTTTGG']

    def test_extended(self):
        container = PhylipReader(BytesIO(PHYLIP_EXTENDED), extended=True).read_container()
        assert container.ids == [b'a_long_sequence_name', b'b']
        assert str(container[1].seq) == 'AC-T'

    def test_wrong_length(self):
        with pytest.raises(ParserError, match="expected 9"):
            list(PhylipReader(BytesIO(PHYLIP_INTERLEAVED.replace(b'3 8', b'3 9'))))

    def test_missing_sequences(self):
        with pytest.raises(ParserError, match="expected 4"):
            list(PhylipReader(BytesIO(PHYLIP_SEQUENTIAL.replace(b'3 8', b'4 8')), sequential=True))

    def test_missing_header(self):
        with pytest.raises(ParserError, match="number of sequences"):
            list(PhylipReader(BytesIO(b'seq1      ACGT\n')))

    def test_write_interleaved(self):
        out = BytesIO()
        with PhylipWriter(out, width=4) as writer:
            writer.write(make_sites())
        assert out.getvalue() == (b'2 6\nseq1      ACGT\nseq2      AC-T\n\n'
                                  b'          AC\n          TN\n')
        container = PhylipReader(BytesIO(out.getvalue())).read_container()
        assert [str(r.seq) for r in container] == ['ACGTAC', 'AC-TTN']

    def test_write_sequential_extended(self):
        out = BytesIO()
        with PhylipWriter(out, sequential=True, extended=True, width=0) as writer:
            writer.write(make_sites())
        assert out.getvalue() == b'2 6\nseq1 ACGTAC\nseq2 AC-TTN\n'

    def test_truncated_name_warns(self):
        out = BytesIO()
        with pytest.warns(SeqlibWarning, match="truncated"):
            with PhylipWriter(out) as writer:
                writer.write_one(Record(Alphabet.DNA.seq_from('ACGT'), b'a_very_long_name'))
        assert out.getvalue().splitlines()[1] == b'a_very_lonACGT'

    def test_write_unaligned(self):
        with pytest.raises(SeqFileError, match="aligned"):
            with PhylipWriter(BytesIO()) as writer:
                writer.write(Record(Alphabet.DNA.seq_from('ACGT'), b'a'), Record(Alphabet.DNA.seq_from('A'), b'b'))

    def test_no_sequences(self):
        assert list(PhylipReader(BytesIO(b'0 0\n'))) == []
        assert list(PhylipReader(BytesIO(b'0 0\n\n'), sequential=True)) == []
        with pytest.raises(ParserError, match="no sequences"):
            list(PhylipReader(BytesIO(b'0 0\nseq1      ACGT\n')))

    def test_write_empty(self):
        out = BytesIO()
        with PhylipWriter(out) as writer:
            writer.write(SiteContainer(Alphabet.DNA))
        assert out.getvalue() == b'0 0\n'
        assert len(PhylipReader(BytesIO(out.getvalue())).read_container()) == 0

    @pytest.mark.parametrize('sequential, extended', [(False, False), (True, False), (False, True), (True, True)])
    def test_round_trip_without_sites(self, sequential, extended):
        sites = SiteContainer(Alphabet.DNA, [Record(Alphabet.DNA.empty_seq(), b'a'),
                                             Record(Alphabet.DNA.empty_seq(), b'b')])
        out = BytesIO()
        with PhylipWriter(out, sequential=sequential, extended=extended) as writer:
            writer.write(sites)
        container = PhylipReader(BytesIO(out.getvalue()), sequential=sequential, extended=extended).read_container()
        assert container.ids == [b'a', b'b']
        assert container.n_sites == 0


class TestClustal:
    def test_read(self):
        reader = ClustalReader(BytesIO(CLUSTAL))
        container = reader.read_container()
        assert container.ids == [b'seq1', b'seq2']
        assert [str(r.seq) for r in container] == ['ACGTTTGG', 'AC-TTTGA']
        assert reader.comments[0].startswith(b'CLUSTAL')

    def test_missing_header(self):
        with pytest.raises(ParserError, match="CLUSTAL"):
            list(ClustalReader(BytesIO(b'seq1 ACGT\n')))


class TestDcse:
    def test_read(self):
        container = DcseReader(BytesIO(DCSE), alphabet=Alphabet.RNA).read_container()
        assert container.ids == [b'seq1', b'seq2']
        assert [str(r.seq) for r in container] == ['ACGUGG', 'AC-UGG']

    def test_stops_at_unnamed_line(self):
        data = DCSE.replace(b'ACGU{[GG]}     seq1\n', b'ACGU{[GG]}     seq1\n\nACGUGG     seq3\n')
        assert len(DcseReader(BytesIO(data), alphabet=Alphabet.RNA).read_container()) == 1


class TestSeqFile:
    @pytest.mark.parametrize('data, fmt', [
        (FASTA, SeqFile.Format.FASTA), (MASE, SeqFile.Format.MASE), (PHYLIP_INTERLEAVED, SeqFile.Format.PHYLIP),
        (CLUSTAL, SeqFile.Format.CLUSTAL),
    ])
    def test_sniff(self, data, fmt):
        with SeqFile(BytesIO(data)) as f:
            assert len(f.read_container()) >= 2
            assert f.format is fmt

    def test_unknown_format(self):
        with pytest.raises(SeqFileError, match="Could not determine"):
            SeqFile(BytesIO(b'nothing to see here\n')).read_container()

    def test_format_names(self):
        assert SeqFile.Format('Phylip') is SeqFile.Format.PHYLIP
        assert SeqFile.Format('DCSE') is SeqFile.Format.DCSE
        assert SeqFile.Format.CLUSTAL not in SeqFile.formats(readable=False)
        assert SeqFile.Format.FASTA in SeqFile.formats(readable=False)

    def test_infer_format(self):
        assert SeqFile.infer_format('aln.phy') is SeqFile.Format.PHYLIP
        assert SeqFile.infer_format('aln.fasta.gz') is SeqFile.Format.FASTA
        assert SeqFile.infer_format('aln.unknown') is None

    def test_explicit_format_and_kwargs(self, tmp_path):
        path = tmp_path / 'aln.txt'
        path.write_bytes(PHYLIP_SEQUENTIAL)
        container = SeqFile(path, 'phylip', sequential=True).read_container()
        assert container.n_sites == 8

    def test_iterate(self, tmp_path):
        path = tmp_path / 'seqs.fa'
        path.write_bytes(FASTA)
        assert [r.id for r in SeqFile(path)] == [b'seq1', b'seq2']

    def test_gzip(self, tmp_path):
        path = tmp_path / 'seqs.fa.gz'
        with SeqFile.open(path, 'w', width=60) as writer:
            writer.write(make_sites())
        assert gzip.decompress(path.read_bytes()).startswith(b'>seq1')
        container = SeqFile(path).read_container()
        assert str(container['seq2'].seq) == 'AC-TTN'

    def test_open_write_needs_format(self):
        with pytest.raises(SeqFileError, match="Format must be specified"):
            SeqFile.open(BytesIO(), 'w')
        with pytest.raises(SeqFileError, match="No writer"):
            SeqFile.open(BytesIO(), 'w', 'clustal')

    def test_mase_selection_through_seqfile(self):
        container = SeqFile(BytesIO(MASE), 'mase').read_container(site_selection='first_last')
        assert container.n_sites == 4

    def test_unaligned_container(self):
        container = SeqFile(BytesIO(b'>a\nACGT\n>b\nAC\n')).read_container(aligned=False)
        assert type(container) is SequenceContainer
