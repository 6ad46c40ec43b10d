import pytest
from seqlib import __version__
from seqlib.__main__ import main

FASTA = b'>seq1\nATGAC-TTTGNA\n>seq2\nATGACCTTTGGA\n'


@pytest.fixture
def fasta_file(tmp_path):
    path = tmp_path / 'aln.fasta'
    path.write_bytes(FASTA)
    return path


class TestMain:
    def test_version(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            main(['--version'])
        assert excinfo.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_convert(self, fasta_file, tmp_path):
        out = tmp_path / 'out.phy'
        status = main([f'sequence.file={fasta_file}', 'alphabet=DNA', 'sequence.sites_to_use=nogap',
                       f'output.sequence.file={out}', 'output.sequence.format=Phylip', '--quiet'])
        assert status == 0
        assert out.read_bytes() == b'2 11\nseq1      ATGACTTTGNA\nseq2      ATGACTTTGGA\n'

    def test_option_file(self, fasta_file, tmp_path):
        out = tmp_path / 'out.fasta'
        options = tmp_path / 'options.bpp'
        options.write_text(f'# Translate an alignment\nalphabet = DNA\nsequence.file = {fasta_file}\n'
                           f'sequence.sites_to_use = all // keep everything\ninput.translate = yes\n'
                           f'output.sequence.file = {out}\nverbose = no\n')
        assert main([f'param={options}']) == 0
        assert out.read_bytes() == b'>seq1\nMXFX\n>seq2\nMTFG\n'

    def test_missing_option(self, fasta_file, caplog):
        assert main([f'sequence.file={fasta_file}', '--quiet']) == 1
        assert 'Missing required option "alphabet"' in caplog.text

    def test_bad_argument(self, caplog):
        assert main(['alphabet', '--quiet']) == 1
        assert 'key=value' in caplog.text

    def test_unreadable_file(self, tmp_path, caplog):
        path = tmp_path / 'aln.fasta'
        path.write_bytes(b'>a\nACGT\n>b\nAC\n')
        status = main([f'sequence.file={path}', 'alphabet=DNA', f'output.sequence.file={tmp_path / "out.fa"}',
                       '--quiet'])
        assert status == 1
        assert 'length' in caplog.text

    def test_unwritable_output(self, fasta_file, tmp_path, caplog):
        out = tmp_path / 'missing' / 'out.fasta'
        assert main([f'sequence.file={fasta_file}', 'alphabet=DNA', f'output.sequence.file={out}', '--quiet']) == 1
        assert 'No such file' in caplog.text
