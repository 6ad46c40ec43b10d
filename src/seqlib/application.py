"""
Module for building alphabets, alignments, site selections, genetic codes and output files from options.

Each builder reads its options under an optional ``prefix`` (e.g. ``input.``) and ``suffix`` (e.g. ``1`` to read
``sequence.file1``). With ``suffix_optional`` the key without the suffix is used when the suffixed one is not set.

Examples:
    >>> options = Options({'alphabet': 'DNA', 'sequence.file': 'aln.phy', 'sequence.format': 'Phylip'})
    >>> alphabet = build_alphabet(options)
    >>> sites = select_sites(build_sequence_container(alphabet, options), options)
"""
import logging
from collections.abc import Mapping
from typing import Union

import numpy as np

from seqlib.config import Options, OptionError
from seqlib.core.alphabet import Alphabet
from seqlib.core.code import GeneticCode
from seqlib.containers.sites import SequenceContainer, SiteContainer
from seqlib.io import SeqFile


# Constants ------------------------------------------------------------------------------------------------------------
log = logging.getLogger(__name__)
ALPHABETS = {'DNA': Alphabet.DNA, 'RNA': Alphabet.RNA, 'Protein': Alphabet.PROTEIN}
INPUT_FORMATS = ('Fasta', 'Mase', 'Phylip', 'Clustal', 'DCSE')
OUTPUT_FORMATS = ('Fasta', 'Mase', 'Phylip')
PHYLIP_ORDERS = ('interleaved', 'sequential')
PHYLIP_EXTENSIONS = ('classic', 'extended')
SITES_TO_USE = ('all', 'complete', 'nogap')
GENETIC_CODES = {'Standard': GeneticCode.standard, 'Bacterial': GeneticCode.bacterial}
DEFAULT_LINE_LENGTH = 100


# Functions ------------------------------------------------------------------------------------------------------------
def _as_options(options: Union[Options, Mapping]) -> Options:
    return options if isinstance(options, Options) else Options(options)


def _phylip_kwargs(options: Options, prefix: str, keys: dict) -> dict:
    order = options.get_choice('format_phylip.order', PHYLIP_ORDERS, 'interleaved', prefix=prefix, **keys)
    ext = options.get_choice('format_phylip.ext', PHYLIP_EXTENSIONS, 'classic', prefix=prefix, **keys)
    return {'sequential': order == 'sequential', 'extended': ext == 'extended'}


def build_alphabet(options: Union[Options, Mapping], prefix: str = '', suffix: str = '',
                   suffix_optional: bool = True, verbose: bool = True) -> Alphabet:
    """
    Builds the alphabet named by the ``alphabet`` option (``DNA``, ``RNA`` or ``Protein``).

    Raises:
        MissingOptionError: If the option is not set.
        OptionError: If the value is not a known alphabet.
    """
    options = _as_options(options)
    name = options.get_choice('alphabet', ALPHABETS, prefix=prefix, suffix=suffix, suffix_optional=suffix_optional)
    if verbose: log.info('Alphabet type: %s', name)
    return ALPHABETS[name]


def build_sequence_container(alphabet: Alphabet, options: Union[Options, Mapping], prefix: str = '',
                             suffix: str = '', suffix_optional: bool = True, verbose: bool = True) -> SiteContainer:
    """
    Reads an alignment from the file and format given by the options.

    Options (under ``prefix``):
        - ``sequence.file``: the alignment file (required, must exist).
        - ``sequence.format``: ``Fasta`` (default), ``Mase``, ``Phylip``, ``Clustal`` or ``DCSE``.
        - ``sequence.format_phylip.order``: ``interleaved`` (default) or ``sequential``.
        - ``sequence.format_phylip.ext``: ``classic`` (default) or ``extended``.
        - ``sequence.format_mase.site_selection``: name of a site selection of the Mase header.

    Returns:
        A ``SiteContainer`` (all sequences must have the same length).
    """
    options = _as_options(options)
    keys = {'suffix': suffix, 'suffix_optional': suffix_optional}
    path = options.get_path('sequence.file', must_exist=True, prefix=prefix, **keys)
    fmt = options.get_choice('sequence.format', INPUT_FORMATS, 'Fasta', prefix=prefix, **keys)
    reader_kwargs, container_kwargs = {}, {}
    if fmt == 'Phylip':
        reader_kwargs = _phylip_kwargs(options, prefix + 'sequence.', keys)
    elif fmt == 'Mase':
        if selection := options.get_string('sequence.format_mase.site_selection', None, prefix=prefix, **keys):
            container_kwargs['site_selection'] = selection
    if verbose:
        log.info('Sequence file: %s', path)
        settings = {**reader_kwargs, **container_kwargs}
        log.info('Sequence format: %s%s', fmt, ''.join(f', {k}={v}' for k, v in settings.items()))
    with SeqFile(path, fmt.lower(), alphabet, **reader_kwargs) as seq_file:
        container = seq_file.read_container(aligned=True, **container_kwargs)
    if verbose: log.info('Number of sequences: %d, number of sites: %d', len(container), container.n_sites)
    return container


def select_sites(container: SiteContainer, options: Union[Options, Mapping], prefix: str = '',
                 suffix: str = '', suffix_optional: bool = True, verbose: bool = True) -> SiteContainer:
    """
    Filters the sites of an alignment according to the ``sequence.sites_to_use`` option.

    Values:
        - ``all``: keep every site (the container is copied).
        - ``complete`` (default): keep sites where every sequence has a resolved state.
        - ``nogap``: keep sites without gaps.

    Returns:
        A new ``SiteContainer``.
    """
    options = _as_options(options)
    sites_to_use = options.get_choice('sequence.sites_to_use', SITES_TO_USE, 'complete', prefix=prefix,
                                      suffix=suffix, suffix_optional=suffix_optional)
    if sites_to_use == 'complete': selected = container.complete_sites()
    elif sites_to_use == 'nogap': selected = container.gapless_sites()
    else: selected = container.select_sites(np.ones(container.n_sites, dtype=bool))
    if verbose:
        log.info('Sites to use: %s, %d of %d sites kept', sites_to_use, selected.n_sites, container.n_sites)
    if container.n_sites and not selected.n_sites: log.warning('No site left after selecting %s sites', sites_to_use)
    return selected


def write_sequence_file(container: SequenceContainer, options: Union[Options, Mapping], prefix: str = '',
                        suffix: str = '', suffix_optional: bool = True, verbose: bool = True):
    """
    Writes sequences to the file and format given by the options.

    Options (under ``prefix``):
        - ``output.sequence.file``: the output file (required). Compression follows the extension.
        - ``output.sequence.format``: ``Fasta`` (default), ``Mase`` or ``Phylip``.
        - ``output.sequence.length``: number of sequence characters per line (default 100).
        - ``output.sequence.format_phylip.order`` and ``output.sequence.format_phylip.ext`` as for reading.
    """
    options = _as_options(options)
    keys = {'suffix': suffix, 'suffix_optional': suffix_optional}
    path = options.get_path('output.sequence.file', prefix=prefix, **keys)
    fmt = options.get_choice('output.sequence.format', OUTPUT_FORMATS, 'Fasta', prefix=prefix, **keys)
    width = options.get_int('output.sequence.length', DEFAULT_LINE_LENGTH, prefix=prefix, **keys)
    if width < 0: raise OptionError(prefix + 'output.sequence.length', width)
    writer_kwargs = _phylip_kwargs(options, prefix + 'output.sequence.', keys) if fmt == 'Phylip' else {}
    if verbose:
        log.info('Output file: %s', path)
        log.info('Output format: %s', fmt)
    with SeqFile.open(path, 'w', fmt.lower(), width=width, **writer_kwargs) as writer:
        writer.write(container)
    if verbose: log.info('Wrote %d sequences', len(container))


def build_genetic_code(alphabet: Alphabet, options: Union[Options, Mapping], prefix: str = '', suffix: str = '',
                       suffix_optional: bool = True, verbose: bool = True) -> GeneticCode:
    """
    Returns the genetic code named by the ``genetic_code`` option (``Standard`` by default, or ``Bacterial``).

    Raises:
        AlphabetError: If the alphabet is not DNA or RNA.
    """
    options = _as_options(options)
    name = options.get_choice('genetic_code', GENETIC_CODES, 'Standard', prefix=prefix, suffix=suffix,
                              suffix_optional=suffix_optional)
    code = GENETIC_CODES[name](alphabet)
    if verbose: log.info('Genetic code: %s', code)
    return code


def translate_container(container: SequenceContainer, code: GeneticCode) -> SequenceContainer:
    """
    Translates every sequence of a container, each up to its first stop codon.

    Returns:
        A ``SequenceContainer`` over the proteic alphabet, keeping names, descriptions and comments.
    """
    return SequenceContainer(code.protein_alphabet, (r.with_seq(code.translate_seq(r.seq, to_stop=True))
                                                    for r in container), container.comments)
