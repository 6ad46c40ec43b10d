import numpy as np
import pytest
from seqlib.core.alphabet import Alphabet
from seqlib.containers.record import Record
from seqlib.containers.sites import SequenceContainer, SiteContainer, ContainerError


def make_sites(*rows, alphabet=Alphabet.DNA):
    return SiteContainer(alphabet, [Record(alphabet.seq_from(s), f'seq{i}') for i, s in enumerate(rows, 1)],
                         comments=[b'test alignment'])


class TestRecord:
    def test_init(self):
        rec = Record(Alphabet.DNA.seq_from('ACGT'), 'seq1', 'a description')
        assert rec.id == b'seq1'
        assert rec.description == b'a description'
        assert len(rec) == 4
        assert rec.alphabet is Alphabet.DNA

    def test_generated_id(self):
        a, b = Record(Alphabet.DNA.seq_from('A')), Record(Alphabet.DNA.seq_from('A'))
        assert a.id and a.id != b.id

    def test_with_seq(self):
        rec = Record(Alphabet.DNA.seq_from('ACGT'), b'seq1', b'desc')
        other = rec.with_seq(Alphabet.DNA.seq_from('AC'))
        assert other.id == rec.id and other.description == rec.description
        assert str(other.seq) == 'AC'


class TestSequenceContainer:
    def test_access(self):
        container = SequenceContainer(Alphabet.DNA, [Record(Alphabet.DNA.seq_from('ACGT'), b'a'),
                                                     Record(Alphabet.DNA.seq_from('AC'), b'b')])
        assert len(container) == 2
        assert container.ids == [b'a', b'b']
        assert container[1].id == b'b'
        assert str(container['a'].seq) == 'ACGT'
        assert str(container.get(b'b').seq) == 'AC'
        assert 'a' in container and b'c' not in container

    def test_missing_id(self):
        with pytest.raises(KeyError, match="No sequence named"):
            SequenceContainer(Alphabet.DNA).get('missing')

    def test_duplicate_id(self):
        container = SequenceContainer(Alphabet.DNA, [Record(Alphabet.DNA.seq_from('A'), b'a')])
        with pytest.raises(ContainerError, match="Duplicate"):
            container.add(Record(Alphabet.DNA.seq_from('C'), b'a'))

    def test_alphabet_mismatch(self):
        with pytest.raises(ContainerError, match="alphabet"):
            SequenceContainer(Alphabet.DNA, [Record(Alphabet.PROTEIN.seq_from('MK'), b'a')])

    def test_comments(self):
        container = SequenceContainer(Alphabet.DNA, comments=[b'header'])
        assert container.comments == [b'header']
        assert not container


class TestSiteContainer:
    def test_unequal_lengths(self):
        with pytest.raises(ContainerError, match="length"):
            make_sites('ACGT', 'ACG')

    def test_matrix(self):
        sites = make_sites('ACGT', 'A-NT')
        assert sites.n_sites == 4
        np.testing.assert_array_equal(sites.matrix, [[0, 1, 2, 3], [0, 15, 14, 3]])
        assert not sites.matrix.flags.writeable
        np.testing.assert_array_equal(sites.site(1), [1, 15])
        with pytest.raises(IndexError):
            sites.site(4)

    def test_matrix_invalidated_on_add(self):
        sites = make_sites('ACGT')
        assert sites.matrix.shape == (1, 4)
        sites.add(Record(Alphabet.DNA.seq_from('TTTT'), b'new'))
        assert sites.matrix.shape == (2, 4)

    def test_empty(self):
        sites = SiteContainer(Alphabet.DNA)
        assert sites.n_sites == 0
        assert sites.matrix.shape == (0, 0)

    def test_masks(self):
        sites = make_sites('AC-TGA', 'ANGT-A')
        np.testing.assert_array_equal(sites.complete_mask(), [True, False, False, True, False, True])
        np.testing.assert_array_equal(sites.gapless_mask(), [True, True, False, True, False, True])

    def test_complete_sites(self):
        complete = make_sites('AC-TGA', 'ANGT-A').complete_sites()
        assert isinstance(complete, SiteContainer)
        assert [str(r.seq) for r in complete] == ['ATA', 'ATA']
        assert complete.ids == [b'seq1', b'seq2']
        assert complete.comments == [b'test alignment']

    def test_gapless_sites(self):
        gapless = make_sites('AC-TGA', 'ANGT-A').gapless_sites()
        assert [str(r.seq) for r in gapless] == ['ACTA', 'ANTA']

    def test_select_indices(self):
        sites = make_sites('ACGT', 'TGCA')
        selected = sites.select_sites([3, 0])
        assert [str(r.seq) for r in selected] == ['TA', 'AT']
        with pytest.raises(IndexError):
            sites.select_sites([4])
        with pytest.raises(IndexError):
            sites.select_sites(np.array([True, False]))

    def test_select_nothing(self):
        selected = make_sites('ACGT', 'TGCA').select_sites([])
        assert len(selected) == 2 and selected.n_sites == 0

    def test_protein_sites(self):
        sites = make_sites('MK-X', 'MKAA', alphabet=Alphabet.PROTEIN)
        np.testing.assert_array_equal(sites.complete_mask(), [True, True, False, False])

    def test_select_sites_drops_site_selections(self):
        sites = SiteContainer(Alphabet.DNA, [Record(Alphabet.DNA.seq_from('ACGT'), b'a')],
                              comments=[b'An alignment', b'# of segments=2 sel', b' 1,2 3,4', b'Edited by hand'])
        assert sites.select_sites([0, 1]).comments == [b'An alignment', b'Edited by hand']
        assert sites.comments[1] == b'# of segments=2 sel'
