from pathlib import Path

import pytest
from seqlib import SeqlibWarning
from seqlib.config import (Options, OptionError, MissingOptionError, strip_comments, parse_options, read_options,
                           parse_arguments, resolve_variables)


class TestParsing:
    def test_comments(self):
        text = 'a = 1 # shell\nb = 2 // c++\n/* block\nc = 3\n*/d = 4\n'
        assert strip_comments(text).split() == ['a', '=', '1', 'b', '=', '2', 'd', '=', '4']

    def test_parse_options(self):
        options = parse_options('alphabet = DNA\n\n  sequence.file=aln.fasta  \n# sequence.format = Mase\n')
        assert options == {'alphabet': 'DNA', 'sequence.file': 'aln.fasta'}

    def test_value_with_equals(self):
        assert parse_options('model = GTR(a=1)\n') == {'model': 'GTR(a=1)'}

    def test_later_assignment_wins(self):
        with pytest.warns(SeqlibWarning, match="more than once"):
            assert parse_options('a = 1\na = 2\n') == {'a': '2'}

    def test_line_without_value(self):
        with pytest.warns(SeqlibWarning, match="ignoring"):
            assert parse_options('just text\na = 1\n') == {'a': '1'}

    def test_read_options_with_include(self, tmp_path):
        (tmp_path / 'base.bpp').write_text('alphabet = DNA\nsequence.format = Fasta\n')
        (tmp_path / 'run.bpp').write_text('param = base.bpp\nsequence.format = Phylip\n')
        assert read_options(tmp_path / 'run.bpp') == {'alphabet': 'DNA', 'sequence.format': 'Phylip'}

    def test_read_options_cycle(self, tmp_path):
        (tmp_path / 'a.bpp').write_text('param = b.bpp\n')
        (tmp_path / 'b.bpp').write_text('param = a.bpp\n')
        with pytest.raises(OptionError, match="includes itself"):
            read_options(tmp_path / 'a.bpp')

    def test_read_options_missing(self, tmp_path):
        with pytest.raises(OptionError, match="not found"):
            read_options(tmp_path / 'missing.bpp')


class TestArguments:
    def test_command_line_overrides_file(self, tmp_path):
        path = tmp_path / 'options.bpp'
        path.write_text('alphabet = DNA\nsequence.file = a.fasta\n')
        options = parse_arguments([f'param={path}', 'sequence.file=b.fasta'])
        assert options['alphabet'] == 'DNA'
        assert options['sequence.file'] == 'b.fasta'
        assert 'param' not in options

    def test_argument_order_does_not_matter(self, tmp_path):
        path = tmp_path / 'options.bpp'
        path.write_text('alphabet = DNA\n')
        assert parse_arguments(['alphabet=RNA', f'param={path}'])['alphabet'] == 'RNA'

    def test_bad_argument(self):
        with pytest.raises(OptionError, match="key=value"):
            parse_arguments(['alphabet'])

    def test_variables(self):
        options = parse_arguments(['name=aln', 'sequence.file=$(name).fasta', 'output.sequence.file=$(name).phy'])
        assert options['sequence.file'] == 'aln.fasta'
        assert options['output.sequence.file'] == 'aln.phy'


class TestVariables:
    def test_nested(self):
        resolved = resolve_variables({'a': 'x', 'b': '$(a)y', 'c': '$(b)z'})
        assert resolved == {'a': 'x', 'b': 'xy', 'c': 'xyz'}

    def test_undefined(self):
        with pytest.raises(OptionError, match="undefined option"):
            resolve_variables({'b': '$(a)'})

    def test_circular(self):
        with pytest.raises(OptionError, match="Circular"):
            resolve_variables({'a': '$(b)', 'b': '$(a)'})


class TestOptions:
    options = Options({'alphabet': 'dna', 'n': '12', 'flag': 'Yes', 'bad_int': 'x', 'empty': '',
                       'sequence.file1': 'one.fasta', 'sequence.file': 'default.fasta',
                       'input.sequence.format': 'Phylip'})

    def test_mapping(self):
        assert len(self.options) == 8
        assert 'alphabet' in self.options

    def test_get_string(self):
        assert self.options.get_string('alphabet') == 'dna'
        assert self.options.get_string('missing', 'fallback') == 'fallback'
        with pytest.raises(MissingOptionError, match='"missing"') as excinfo:
            self.options.get_string('missing')
        assert excinfo.value.key == 'missing'

    def test_empty_is_missing(self):
        with pytest.raises(MissingOptionError):
            self.options.get_string('empty')

    def test_get_int(self):
        assert self.options.get_int('n') == 12
        assert self.options.get_int('missing', 100) == 100
        with pytest.raises(OptionError) as excinfo:
            self.options.get_int('bad_int')
        assert excinfo.value.key == 'bad_int' and excinfo.value.value == 'x'

    def test_get_bool(self):
        assert self.options.get_bool('flag') is True
        assert self.options.get_bool('missing', False) is False
        with pytest.raises(OptionError):
            self.options.get_bool('alphabet')

    def test_get_choice(self):
        assert self.options.get_choice('alphabet', ('DNA', 'RNA')) == 'DNA'
        with pytest.raises(OptionError, match="expected one of RNA, Protein"):
            self.options.get_choice('alphabet', ('RNA', 'Protein'))

    def test_get_path(self, tmp_path):
        assert self.options.get_path('sequence.file') == Path('default.fasta')
        with pytest.raises(OptionError, match="File not found"):
            self.options.get_path('sequence.file', must_exist=True)

    def test_suffix(self):
        assert self.options.get_string('sequence.file', suffix='1') == 'one.fasta'
        assert self.options.get_string('sequence.file', suffix='2') == 'default.fasta'
        with pytest.raises(MissingOptionError, match='"sequence.file2"'):
            self.options.get_string('sequence.file', suffix='2', suffix_optional=False)

    def test_prefix(self):
        assert self.options.get_string('sequence.format', prefix='input.') == 'Phylip'
        assert self.options.get_string('sequence.format', 'Fasta') == 'Fasta'

    def test_updated(self):
        updated = self.options.updated({'n': '3'})
        assert updated.get_int('n') == 3
        assert self.options.get_int('n') == 12
