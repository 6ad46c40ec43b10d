"""
Genetic codes: codon to amino-acid translation.
"""
from typing import Union, Iterable, Final, ClassVar

import numpy as np

from seqlib.core.alphabet import Alphabet, CodonAlphabet, AlphabetError, BadIndexError, TranslationError
from seqlib.containers.seq import Seq
from seqlib.lib.resources import jit


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class StopCodonError(TranslationError):
    """
    Raised when a stop codon is translated.

    This is a biological signal rather than a bug: callers decide whether it ends a reading frame.

    Attributes:
        codon: The stop codon as text (e.g. ``'TAA'``).
        context: Where the stop codon was met.
        position: The nucleotide offset of the codon in a sequence, if known.
    """
    def __init__(self, codon: str, context: str = '', position: int = None):
        self.codon = codon
        self.context = context
        self.position = position
        at = f' at position {position}' if position is not None else ''
        super().__init__(f'{context + ": " if context else ""}stop codon {codon}{at}')


# Classes --------------------------------------------------------------------------------------------------------------
class GeneticCode:
    """
    Represents a genetic code table for translation.

    The table is a direct 64-entry lookup indexed by codon code (see ``CodonAlphabet``), holding the
    amino-acid code of each sense codon and a mask of stop codons. It is fixed at construction.

    Examples:
        >>> code = GeneticCode.STANDARD
        >>> code.translate('ATG')
        'M'
        >>> code.translate(14) == Alphabet.PROTEIN.char_to_int('M')
        True
    """
    __slots__ = ('_name', '_codons', '_proteins', '_table', '_stops', '_starts', '_kernel_table', '_kernel_stops')
    STANDARD_TABLE: Final = b'KNKNTTTTRSRSIIMIQHQHPPPPRRRRLLLLEDEDAAAAGGGGVVVV*Y*YSSSS*CWCLFLF'
    BACTERIAL_STARTS: Final = (b'TTG', b'CTG', b'ATT', b'ATC', b'ATA', b'ATG', b'GTG')

    STANDARD: ClassVar['GeneticCode']
    STANDARD_RNA: ClassVar['GeneticCode']
    BACTERIAL: ClassVar['GeneticCode']
    BACTERIAL_RNA: ClassVar['GeneticCode']

    def __init__(self, nucleic: Alphabet = None, table: bytes = STANDARD_TABLE, starts: Iterable[bytes] = (b'ATG',),
                 name: str = 'Standard'):
        """Initializes a genetic code.

        Args:
            nucleic: The nucleotide alphabet codons are spelled with (DNA by default).
            table: 64-byte ASCII string of one-letter amino acids in codon code order, ``*`` for stops.
            starts: Iterable of start codons (e.g. ``[b'ATG', b'GTG']``).
            name: Name of the code.

        Raises:
            AlphabetError: If the table is malformed or the alphabet is not nucleic.
        """
        if len(table) != CodonAlphabet.N_CODONS:
            raise AlphabetError(f'A genetic code table needs {CodonAlphabet.N_CODONS} entries, got {len(table)}')
        self._name = name
        self._codons = CodonAlphabet(nucleic or Alphabet.DNA)
        self._proteins = Alphabet.PROTEIN

        raw = np.frombuffer(table, dtype=Alphabet.DTYPE)
        self._stops = raw == ord('*')
        self._table = np.full(CodonAlphabet.N_CODONS, Alphabet.INVALID, dtype=Alphabet.DTYPE)
        self._table[~self._stops] = self._proteins.encode(raw[~self._stops].tobytes(), strict=True)
        if not self._proteins.is_resolved(self._table[~self._stops]).all():
            raise AlphabetError('Genetic code tables may only contain resolved amino acids')

        self._starts = np.zeros(CodonAlphabet.N_CODONS, dtype=bool)
        for codon in starts:
            index = self._codons.char_to_int(codon)
            if not self._codons.is_resolved(index): raise AlphabetError(f'Invalid start codon {codon!r}')
            self._starts[index] = True

        # Extended tables covering the unknown and gap codons for whole-sequence translation
        self._kernel_table = np.concatenate(
            (self._table, np.array([self._proteins.unknown_code, self._proteins.gap_code], dtype=Alphabet.DTYPE)))
        self._kernel_stops = np.concatenate((self._stops, np.zeros(2, dtype=bool)))

        for array in (self._table, self._stops, self._starts, self._kernel_table, self._kernel_stops):
            array.flags.writeable = False

    def __repr__(self): return f'GeneticCode({self._name}, {self._codons.nucleic_alphabet})'
    def __str__(self): return self._name

    @classmethod
    def standard(cls, alphabet: Alphabet = None) -> 'GeneticCode':
        """Returns the shared standard code for a DNA (default) or RNA alphabet."""
        return cls._shared(alphabet, cls.STANDARD, cls.STANDARD_RNA)

    @classmethod
    def bacterial(cls, alphabet: Alphabet = None) -> 'GeneticCode':
        """Returns the shared bacterial, archaeal and plant plastid code (NCBI table 11)."""
        return cls._shared(alphabet, cls.BACTERIAL, cls.BACTERIAL_RNA)

    @staticmethod
    def _shared(alphabet, dna_code, rna_code):
        if alphabet is None or alphabet == Alphabet.DNA: return dna_code
        if alphabet == Alphabet.RNA: return rna_code
        raise AlphabetError(f'Genetic codes require a nucleic alphabet, not {alphabet}')

    @property
    def name(self) -> str:
        return self._name

    @property
    def codon_alphabet(self) -> CodonAlphabet:
        """The codon alphabet used to decode codon codes."""
        return self._codons

    @property
    def protein_alphabet(self) -> Alphabet:
        """The proteic alphabet amino-acid codes refer to."""
        return self._proteins

    @property
    def nucleic_alphabet(self) -> Alphabet:
        return self._codons.nucleic_alphabet

    @property
    def table(self) -> np.ndarray:
        """Amino-acid code per codon code (size 64); stop codons hold ``Alphabet.INVALID``."""
        return self._table

    @property
    def stops(self) -> np.ndarray:
        """Boolean array indicating stop codons (size 64)."""
        return self._stops

    @property
    def starts(self) -> np.ndarray:
        """Boolean array indicating start codons (size 64)."""
        return self._starts

    @property
    def stop_codons(self) -> list[bytes]:
        """The spellings of the stop codons."""
        return [self._codons.int_to_char(int(i)) for i in np.flatnonzero(self._stops)]

    def _resolve(self, codon: Union[int, str, bytes]) -> int:
        if isinstance(codon, (str, bytes)): return self._codons.char_to_int(codon)
        return codon

    def is_stop(self, codon: Union[int, str, bytes]) -> bool:
        """Checks whether a codon (code or spelling) is a stop codon."""
        index = self._resolve(codon)
        return self._codons.is_resolved(index) and bool(self._stops[index])

    def is_start(self, codon: Union[int, str, bytes]) -> bool:
        """Checks whether a codon (code or spelling) is a start codon."""
        index = self._resolve(codon)
        return self._codons.is_resolved(index) and bool(self._starts[index])

    def translate(self, codon: Union[int, str, bytes]) -> Union[int, str, bytes]:
        """
        Translates a single codon.

        An integer codon code translates to the integer code of the amino acid in ``protein_alphabet``. A
        three-character spelling translates to the one-letter amino acid, returned as the same type as the input.

        Args:
            codon: A codon code or a codon spelling (e.g. ``'ATG'``).

        Returns:
            The amino-acid code or symbol.

        Raises:
            StopCodonError: If the codon is a stop codon.
            BadIndexError: If the code is not one of the 64 resolved codons.
            BadCharError: If the spelling is not a codon of the nucleic alphabet.

        Examples:
            >>> GeneticCode.STANDARD.translate(b'TGG')
            b'W'
            >>> GeneticCode.STANDARD.translate('TGA')
            Traceback (most recent call last):
            ...
            seqlib.core.code.StopCodonError: GeneticCode.translate: stop codon TGA
        """
        if isinstance(codon, (str, bytes)):
            symbol = self._proteins.int_to_char(self.translate(self._codons.char_to_int(codon)))
            return symbol.decode(Alphabet.ENCODING) if isinstance(codon, str) else symbol
        if not self._codons.is_resolved(codon): raise BadIndexError(codon, 'GeneticCode.translate', self._codons)
        if self._stops[codon]:
            raise StopCodonError(self._codons.int_to_char(codon).decode(Alphabet.ENCODING), 'GeneticCode.translate')
        return int(self._table[codon])

    def translate_seq(self, seq: 'Seq', frame: int = 0, to_stop: bool = False) -> 'Seq':
        """
        Translates a nucleotide sequence to a protein sequence.

        Codons containing ambiguity codes translate to ``X`` and gap codons to ``-``. Trailing bases that do not
        fill a codon are ignored.

        Args:
            seq: The nucleotide sequence.
            frame: The reading frame (0, 1, or 2).
            to_stop: If True, translation ends before the first stop codon instead of raising.

        Returns:
            The translated protein sequence.

        Raises:
            StopCodonError: If ``to_stop`` is False and the frame contains a stop codon.
        """
        codons = self._codons.encode(seq, frame)
        translation, stop = _translate_kernel(codons, self._kernel_table, self._kernel_stops)
        if stop >= 0 and not to_stop:
            raise StopCodonError(self._codons.int_to_char(int(codons[stop])).decode(Alphabet.ENCODING),
                                 'GeneticCode.translate_seq', position=frame + 3 * stop)
        return self._proteins.seq_from(translation)


GeneticCode.STANDARD = GeneticCode(Alphabet.DNA)
GeneticCode.STANDARD_RNA = GeneticCode(Alphabet.RNA)
GeneticCode.BACTERIAL = GeneticCode(Alphabet.DNA, starts=GeneticCode.BACTERIAL_STARTS, name='Bacterial')
GeneticCode.BACTERIAL_RNA = GeneticCode(Alphabet.RNA, starts=GeneticCode.BACTERIAL_STARTS, name='Bacterial')


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _translate_kernel(codons, table, stops):
    """
    Translates codon codes to amino-acid codes, stopping at the first stop codon.
    Returns the translation and the index of the stop codon (-1 if none).
    """
    n = len(codons)
    res = np.empty(n, dtype=np.uint8)
    for i in range(n):
        codon = codons[i]
        if stops[codon]:
            return res[:i], i
        res[i] = table[codon]
    return res[:n], -1
