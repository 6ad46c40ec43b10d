"""
Module for representing ASCII biological alphabets and the codon alphabet built on top of them.
"""
from typing import Union, Final, ClassVar

import numpy as np

from seqlib.containers.seq import Seq


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class AlphabetError(ValueError):
    """Raised when an alphabet is invalid or an operation is incompatible with the alphabet."""


class BadCharError(AlphabetError):
    """
    Raised when text contains symbols that are not part of an alphabet.

    Attributes:
        text: The offending text.
        context: Where the error was detected (e.g. ``'Alphabet.char_to_int'``).
    """
    def __init__(self, text: Union[str, bytes], context: str = '', message: str = None):
        if isinstance(text, bytes): text = text.decode('ascii', errors='replace')
        self.text = text
        self.context = context
        super().__init__(message or f'{context + ": " if context else ""}invalid symbol(s) {text!r}')


class BadIndexError(AlphabetError):
    """
    Raised when an integer code does not map to a symbol of an alphabet.

    Attributes:
        index: The offending integer code.
        context: Where the error was detected.
        alphabet: A description of the alphabet the code was checked against.
    """
    def __init__(self, index, context: str = '', alphabet: object = None):
        self.index = index
        self.context = context
        self.alphabet = str(alphabet) if alphabet is not None else None
        where = f' in {self.alphabet}' if self.alphabet else ''
        super().__init__(f'{context + ": " if context else ""}invalid index {index!r}{where}')


class TranslationError(AlphabetError):
    """Raised when nucleotide-to-amino-acid translation fails."""


# Classes --------------------------------------------------------------------------------------------------------------
class Alphabet:
    """
    A class to represent an alphabet of ASCII symbols.

    Symbols are encoded as their position in the alphabet. The first ``n_resolved`` symbols are the fully resolved
    states (e.g. A, C, G, T), followed by ambiguity codes and, optionally, the gap symbol.

    Examples:
        >>> Alphabet.DNA.char_to_int('G')
        2
        >>> Alphabet.DNA.int_to_char(3)
        b'T'
    """
    __slots__ = ('_name', '_data', '_n_resolved', '_gap', '_unknown', '_lookup_table', '_complement',
                 '_trans_table', '_delete_bytes', '_decode_table')
    DTYPE: Final = np.uint8
    INVALID: Final = np.iinfo(DTYPE).max
    MAX_LEN: Final = INVALID + 1
    ENCODING: Final = 'ascii'

    DNA: ClassVar['Alphabet']
    RNA: ClassVar['Alphabet']
    PROTEIN: ClassVar['Alphabet']

    def __init__(self, symbols: bytes, complement: bytes = None, aliases: dict[bytes, bytes] = None,
                 n_resolved: int = None, gap: bytes = None, unknown: bytes = None, name: str = None):
        """
        Initializes an Alphabet.

        Args:
            symbols: The symbols in the alphabet as bytes, resolved states first.
            complement: Optional complement symbols as bytes. Must be same length as symbols.
            aliases: Optional mapping of extra characters to valid ones (e.g. {b'U': b'T'}).
            n_resolved: Number of leading symbols that are fully resolved states (defaults to all non-gap symbols).
            gap: Optional gap symbol, must be one of the symbols.
            unknown: Optional symbol for a completely unknown state, must be one of the symbols.
            name: A human-readable name for the alphabet.

        Raises:
            AlphabetError: If symbols are not ASCII, too long, contain duplicates, or if complement is invalid.
        """
        if not symbols.isascii(): raise AlphabetError('Alphabet symbols must be a valid ASCII string')
        if len(symbols) >= self.INVALID:
            raise AlphabetError(f'Alphabet size cannot exceed {self.INVALID - 1} symbols ({self.DTYPE.__name__})')
        if len(set(symbols.upper())) != len(symbols): raise AlphabetError('Alphabet contains duplicate symbols')

        self._name = name or symbols.decode(self.ENCODING)
        self._data: np.ndarray = np.frombuffer(symbols, dtype=self.DTYPE)

        # Build Lookup Table (case-insensitive)
        self._lookup_table = np.full(self.MAX_LEN, self.INVALID, dtype=self.DTYPE)
        indices = np.arange(len(symbols), dtype=self.DTYPE)
        self._lookup_table[np.frombuffer(symbols.lower(), dtype=self.DTYPE)] = indices
        self._lookup_table[np.frombuffer(symbols, dtype=self.DTYPE)] = indices

        if aliases:
            for src, dst in aliases.items():
                if len(src) != 1 or len(dst) != 1: raise AlphabetError("Aliases must be single bytes")
                dst_idx = self._lookup_table[ord(dst)]
                if dst_idx == self.INVALID: raise AlphabetError(f"Alias target {dst} not in alphabet")
                self._lookup_table[ord(src)] = dst_idx
                self._lookup_table[ord(src.lower())] = dst_idx

        self._gap = self._symbol_code(gap, 'Gap')
        self._unknown = self._symbol_code(unknown, 'Unknown')
        if n_resolved is None: n_resolved = len(symbols) - (self._gap is not None)
        if not 0 < n_resolved <= len(symbols): raise AlphabetError(f'Invalid number of resolved states: {n_resolved}')
        if self._gap is not None and self._gap < n_resolved: raise AlphabetError('The gap cannot be a resolved state')
        self._n_resolved = n_resolved

        # Translation tables for bytes.translate
        self._trans_table = self._lookup_table.tobytes()
        self._delete_bytes = np.where(self._lookup_table == self.INVALID)[0].astype(self.DTYPE).tobytes()
        decode_map = np.zeros(self.MAX_LEN, dtype=self.DTYPE)
        decode_map[:len(self._data)] = self._data
        self._decode_table = decode_map.tobytes()

        self._complement = None
        if complement is not None:
            if len(complement) != len(symbols):
                raise AlphabetError("Complement must be the same length as symbols")
            comp_indices = self._lookup_table[np.frombuffer(complement, dtype=self.DTYPE)]
            if np.any(comp_indices == self.INVALID):
                raise AlphabetError("Complement contains symbols not in alphabet")
            comp_indices.flags.writeable = False
            self._complement = comp_indices
        self._lookup_table.flags.writeable = False

    def _symbol_code(self, symbol: bytes, role: str):
        if symbol is None: return None
        code = self._lookup_table[ord(symbol)] if len(symbol) == 1 else self.INVALID
        if code == self.INVALID: raise AlphabetError(f'{role} symbol {symbol!r} not in alphabet')
        return int(code)

    def __len__(self): return len(self._data)
    def __iter__(self): return iter(self._data)
    def __getitem__(self, item): return self._data[item]
    def __str__(self): return self._name
    def __repr__(self): return f'Alphabet({self._name}: {self._data.tobytes().decode(self.ENCODING)})'

    def __contains__(self, item):
        try:
            if isinstance(item, (int, np.integer)):
                return self._lookup_table[item] != self.INVALID
            if isinstance(item, (str, bytes)):
                if len(item) != 1: return False
                val = ord(item) if isinstance(item, str) else item[0]
                return self._lookup_table[val] != self.INVALID
        except (IndexError, ValueError, TypeError):
            pass
        return False

    def __eq__(self, other):
        if self is other: return True
        if not isinstance(other, Alphabet): return False
        return np.array_equal(self._data, other._data)

    def __ne__(self, other):
        return not self.__eq__(other)

    def __hash__(self):
        return hash(self._data.tobytes())

    @property
    def name(self) -> str:
        """The human-readable name of the alphabet."""
        return self._name

    @property
    def n_resolved(self) -> int:
        """The number of fully resolved states (e.g. 4 for DNA, 20 for proteins)."""
        return self._n_resolved

    @property
    def gap_code(self) -> Union[int, None]:
        """The code of the gap symbol, or ``None`` if the alphabet has no gap."""
        return self._gap

    @property
    def unknown_code(self) -> Union[int, None]:
        """The code of the completely unknown state (e.g. N, X), or ``None``."""
        return self._unknown

    @property
    def complement(self):
        """Returns the complement lookup table if available."""
        return self._complement

    @property
    def is_nucleic(self) -> bool:
        """True for nucleotide alphabets (four resolved, complementable states)."""
        return self._complement is not None and self._n_resolved == 4

    @property
    def bits_per_symbol(self) -> int:
        """Returns the number of bits required to represent a symbol in this alphabet."""
        return (len(self._data) - 1).bit_length()

    def char_to_int(self, symbol: Union[str, bytes]) -> int:
        """
        Converts a single symbol to its integer code.

        Args:
            symbol: A one-character string or bytes.

        Returns:
            The integer code of the symbol.

        Raises:
            BadCharError: If the symbol is not a single character of this alphabet.
        """
        if isinstance(symbol, str):
            if not symbol.isascii(): raise BadCharError(symbol, 'Alphabet.char_to_int')
            symbol = symbol.encode(self.ENCODING)
        if len(symbol) != 1 or (code := self._lookup_table[symbol[0]]) == self.INVALID:
            raise BadCharError(symbol, 'Alphabet.char_to_int')
        return int(code)

    def int_to_char(self, code: int) -> bytes:
        """
        Converts an integer code back to its symbol.

        Raises:
            BadIndexError: If the code is not a valid index of this alphabet.
        """
        if isinstance(code, bool) or not isinstance(code, (int, np.integer)) or not 0 <= code < len(self._data):
            raise BadIndexError(code, 'Alphabet.int_to_char', self)
        return bytes((self._data[code],))

    def is_resolved(self, code):
        """Returns True where ``code`` is a fully resolved state. Works on scalars and arrays."""
        return np.asarray(code) < self._n_resolved

    def is_gap(self, code):
        """Returns True where ``code`` is the gap. Works on scalars and arrays."""
        if self._gap is None: return np.zeros(np.shape(code), dtype=bool)
        return np.asarray(code) == self._gap

    def encode(self, text: Union[str, bytes], strict: bool = False) -> np.ndarray:
        """
        Zero-copy encoding from Byte String to Array.

        Args:
            text: The text to encode.
            strict: If ``True``, raise on symbols outside the alphabet instead of dropping them.

        Returns:
            A numpy array of encoded indices.

        Raises:
            BadCharError: If ``strict`` and the text contains invalid symbols.
        """
        if isinstance(text, str):
            if not text.isascii(): raise BadCharError(text, 'Alphabet.encode')
            text = text.encode(self.ENCODING)
        if not strict:
            return np.frombuffer(text.translate(self._trans_table, delete=self._delete_bytes), dtype=self.DTYPE)
        encoded = np.frombuffer(text.translate(self._trans_table), dtype=self.DTYPE)
        if (invalid := encoded == self.INVALID).any():
            bad = np.unique(np.frombuffer(text, dtype=self.DTYPE)[invalid]).tobytes()
            raise BadCharError(bad, 'Alphabet.encode')
        return encoded

    def decode(self, encoded: np.ndarray) -> bytes:
        """Decodes an array of indices back to bytes."""
        if encoded.dtype != self.DTYPE:
            encoded = encoded.astype(self.DTYPE, copy=False)
        return encoded.tobytes().translate(self._decode_table)

    def new_seq(self, data: np.ndarray) -> 'Seq':
        """
        Factory method. The ONLY valid way to create a Seq.
        """
        return Seq(data, self, _validation_token=self)

    def seq_from(self, data: Union['Seq', str, bytes, np.ndarray], strict: bool = False) -> 'Seq':
        """Creates a Seq object from various input types, ensuring correct encoding.

        Args:
            data: The input data. Can be a ``Seq``, string, bytes, or numpy array of codes.
            strict: If ``True``, invalid symbols raise instead of being dropped.

        Returns:
            A new ``Seq`` object with this alphabet.

        Raises:
            AlphabetError: If the input is a ``Seq`` of another alphabet.
            BadCharError: If ``strict`` and the text contains symbols not in the alphabet.
        """
        if isinstance(data, Seq):
            if data.alphabet != self: raise AlphabetError(f'Sequence has a different alphabet "{data.alphabet}"')
            return data
        if isinstance(data, np.ndarray): return self.new_seq(data.astype(self.DTYPE, copy=False))
        return self.new_seq(self.encode(data, strict=strict))

    def empty_seq(self) -> 'Seq':
        """Returns an empty sequence with this alphabet."""
        return self.new_seq(np.empty(0, dtype=self.DTYPE))

    def reverse_complement(self, seq: 'Seq') -> 'Seq':
        """Returns the reverse complement of the sequence.

        Raises:
            AlphabetError: If the alphabet has no complement.
        """
        if self._complement is None: raise AlphabetError(f'Alphabet {self} has no complement')
        return self.seq_from(self._complement[seq.encoded[::-1]])


# Initialize Standard Alphabets
Alphabet.DNA = Alphabet(b'ACGTMRWSYKVHDBN-', b'TGCAKYWSRMBDHVN-', n_resolved=4, gap=b'-', unknown=b'N', name='DNA',
                        aliases={b'U': b'T', b'X': b'N', b'?': b'N', b'.': b'-'})
Alphabet.RNA = Alphabet(b'ACGUMRWSYKVHDBN-', b'UGCAKYWSRMBDHVN-', n_resolved=4, gap=b'-', unknown=b'N', name='RNA',
                        aliases={b'T': b'U', b'X': b'N', b'?': b'N', b'.': b'-'})
Alphabet.PROTEIN = Alphabet(b'ARNDCQEGHILKMFPSTWYVBZX-', n_resolved=20, gap=b'-', unknown=b'X', name='Protein',
                            aliases={b'J': b'X', b'U': b'C', b'O': b'K', b'?': b'X', b'.': b'-'})


class CodonAlphabet:
    """
    The alphabet of nucleotide triplets over a nucleic ``Alphabet``.

    The 64 resolved codons are coded ``16 * p0 + 4 * p1 + p2`` where ``p0``, ``p1`` and ``p2`` are the nucleotide
    codes (A=0, C=1, G=2, T/U=3) of the first, second and third positions. Code 64 is the unknown codon (``NNN``) and
    code 65 the gap codon (``---``).

    Examples:
        >>> codons = CodonAlphabet(Alphabet.DNA)
        >>> codons.char_to_int('ATG')
        14
        >>> codons.positions(14)
        (0, 3, 2)
    """
    __slots__ = ('_nucleic', '_words')
    N_CODONS: Final = 64
    UNKNOWN: Final = 64
    GAP: Final = 65

    def __init__(self, nucleic: Alphabet):
        if not nucleic.is_nucleic: raise AlphabetError(f'Codon alphabets require a nucleic alphabet, not {nucleic}')
        self._nucleic = nucleic
        bases = nucleic.decode(np.arange(4, dtype=Alphabet.DTYPE))
        unknown = nucleic.int_to_char(nucleic.unknown_code)
        gap = nucleic.int_to_char(nucleic.gap_code)
        self._words = tuple(bytes((a, b, c)) for a in bases for b in bases for c in bases) + (unknown * 3, gap * 3)

    def __len__(self): return len(self._words)
    def __str__(self): return self.name
    def __repr__(self): return f'CodonAlphabet({self._nucleic.name})'

    def __eq__(self, other):
        if self is other: return True
        return isinstance(other, CodonAlphabet) and self._nucleic == other._nucleic

    def __hash__(self): return hash((CodonAlphabet, self._nucleic))

    @property
    def name(self) -> str:
        """The human-readable name of the alphabet."""
        return f'Codon({self._nucleic.name})'

    @property
    def nucleic_alphabet(self) -> Alphabet:
        """The nucleotide alphabet the codons are spelled with."""
        return self._nucleic

    def _check(self, index, context: str) -> int:
        if isinstance(index, bool) or not isinstance(index, (int, np.integer)) or not 0 <= index < len(self._words):
            raise BadIndexError(index, context, self)
        return int(index)

    def is_resolved(self, index) -> bool:
        """True if ``index`` is one of the 64 resolved codons."""
        return (not isinstance(index, bool) and isinstance(index, (int, np.integer))
                and 0 <= index < self.N_CODONS)

    def positions(self, index: int) -> tuple[int, int, int]:
        """
        Decodes a codon code into its three nucleotide codes.

        Raises:
            BadIndexError: If the index is not a codon of this alphabet.
        """
        index = self._check(index, 'CodonAlphabet.positions')
        if index == self.UNKNOWN: return (self._nucleic.unknown_code,) * 3
        if index == self.GAP: return (self._nucleic.gap_code,) * 3
        return index >> 4, (index >> 2) & 3, index & 3

    def index(self, p0: int, p1: int, p2: int) -> int:
        """
        Encodes three nucleotide codes into a codon code.

        Triplets containing ambiguity codes map to the unknown codon and the all-gap triplet to the gap codon.

        Raises:
            BadIndexError: If a position is not a nucleotide code, or gaps are mixed with nucleotides.
        """
        positions = (p0, p1, p2)
        n = len(self._nucleic)
        for p in positions:
            if isinstance(p, bool) or not isinstance(p, (int, np.integer)) or not 0 <= p < n:
                raise BadIndexError(positions, 'CodonAlphabet.index', self._nucleic)
        if all(p < 4 for p in positions): return (p0 << 4) | (p1 << 2) | p2
        gaps = sum(p == self._nucleic.gap_code for p in positions)
        if gaps == 3: return self.GAP
        if gaps: raise BadIndexError(positions, 'CodonAlphabet.index', self._nucleic)
        return self.UNKNOWN

    def char_to_int(self, text: Union[str, bytes]) -> int:
        """
        Converts a three-character codon spelling to its code.

        Raises:
            BadCharError: If the text is not three symbols of the nucleic alphabet.
        """
        if len(text) != 3: raise BadCharError(text, 'CodonAlphabet.char_to_int')
        try:
            p0, p1, p2 = (int(i) for i in self._nucleic.encode(text, strict=True))
            return self.index(p0, p1, p2)
        except AlphabetError as e:
            raise BadCharError(text, 'CodonAlphabet.char_to_int') from e

    def int_to_char(self, index: int) -> bytes:
        """
        Converts a codon code to its three-character spelling.

        Raises:
            BadIndexError: If the index is not a codon of this alphabet.
        """
        return self._words[self._check(index, 'CodonAlphabet.int_to_char')]

    def encode(self, seq: 'Seq', frame: int = 0) -> np.ndarray:
        """
        Vectorised conversion of a nucleotide ``Seq`` into codon codes.

        Trailing bases that do not fill a codon are ignored. Codons with ambiguity codes or partial gaps are
        encoded as the unknown codon.

        Args:
            seq: A sequence over this alphabet's nucleic alphabet.
            frame: The reading frame (0, 1 or 2).

        Returns:
            A ``uint8`` array of codon codes.
        """
        if seq.alphabet != self._nucleic:
            raise AlphabetError(f'Sequence alphabet {seq.alphabet} does not match {self._nucleic}')
        if frame not in (0, 1, 2): raise ValueError(f'Invalid reading frame: {frame}')
        data = seq.encoded[frame:]
        n = len(data) // 3
        triplets = data[:n * 3].reshape(n, 3).astype(np.intp)
        codes = (triplets[:, 0] << 4) | (triplets[:, 1] << 2) | triplets[:, 2]
        codes[~(triplets < 4).all(axis=1)] = self.UNKNOWN
        codes[(triplets == self._nucleic.gap_code).all(axis=1)] = self.GAP
        return codes.astype(Alphabet.DTYPE)
