"""
Command-line program: reads an alignment, filters its sites, optionally translates it and writes it out.

Examples:
    $ seqlib param=options.txt
    $ seqlib alphabet=DNA sequence.file=aln.fasta sequence.sites_to_use=nogap \\
          output.sequence.file=aln.phy output.sequence.format=Phylip
"""
import logging
from argparse import ArgumentParser, RawDescriptionHelpFormatter
from typing import Sequence

from seqlib import __version__
from seqlib.application import (build_alphabet, build_sequence_container, select_sites, build_genetic_code,
                                translate_container, write_sequence_file)
from seqlib.config import parse_arguments, OptionError
from seqlib.core.alphabet import AlphabetError
from seqlib.containers.sites import ContainerError


# Constants ------------------------------------------------------------------------------------------------------------
log = logging.getLogger('seqlib')
_EPILOG = """\
options:
  alphabet                             DNA, RNA or Protein
  sequence.file                        input alignment
  sequence.format                      Fasta, Mase, Phylip, Clustal or DCSE (default: Fasta)
  sequence.format_phylip.order         interleaved or sequential (default: interleaved)
  sequence.format_phylip.ext           classic or extended (default: classic)
  sequence.format_mase.site_selection  named site selection of a Mase file
  sequence.sites_to_use                all, complete or nogap (default: complete)
  input.translate                      translate to proteins before writing (default: no)
  genetic_code                         Standard or Bacterial (default: Standard)
  output.sequence.file                 output file
  output.sequence.format               Fasta, Mase or Phylip (default: Fasta)
  output.sequence.length               characters per line (default: 100)
  verbose                              log the chosen options (default: yes)
  param                                option file to read
"""


# Functions ------------------------------------------------------------------------------------------------------------
def parse_args(argv: Sequence[str] = None):
    parser = ArgumentParser(prog='seqlib', description=__doc__.splitlines()[1], epilog=_EPILOG,
                            formatter_class=RawDescriptionHelpFormatter)
    parser.add_argument('options', nargs='*', metavar='key=value', help='options, or param=<file> to read a file')
    parser.add_argument('-q', '--quiet', action='store_true', help='only log warnings and errors')
    parser.add_argument('-v', '--version', action='version', version=f'%(prog)s {__version__}')
    return parser.parse_args(argv)


def main(argv: Sequence[str] = None) -> int:
    """Runs the program and returns the exit status."""
    args = parse_args(argv)
    try:
        options = parse_arguments(args.options)
        verbose = not args.quiet and options.get_bool('verbose', True)
        logging.basicConfig(level=logging.INFO if verbose else logging.WARNING,
                            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
        alphabet = build_alphabet(options, verbose=verbose)
        sites = select_sites(build_sequence_container(alphabet, options, verbose=verbose), options, verbose=verbose)
        if options.get_bool('input.translate', False):
            sites = translate_container(sites, build_genetic_code(alphabet, options, verbose=verbose))
        write_sequence_file(sites, options, verbose=verbose)
    except (OptionError, AlphabetError, ContainerError, OSError) as e:
        log.error(e)
        return 1
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
