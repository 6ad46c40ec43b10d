"""Core sequence container with alphabet-aware encoding and hashing."""
from typing import Union

import numpy as np

from seqlib.lib.protocols import HasAlphabet


# Classes --------------------------------------------------------------------------------------------------------------
class Seq(HasAlphabet):
    """
    Immutable, alphabet-aware sequence container storing encoded integers (uint8).

    ``Seq`` objects should be created via ``Alphabet.seq_from()`` rather than directly, to ensure encoding
    consistency.

    Args:
        data: A numpy uint8 array of encoded symbol indices.
        alphabet: The ``Alphabet`` that owns this sequence.
        _validation_token: Internal token (must be the alphabet) to prevent direct construction.

    Examples:
        >>> seq = Alphabet.DNA.seq_from(b'ATGCGA')
        >>> len(seq)
        6
        >>> bytes(seq)
        b'ATGCGA'
        >>> seq[1:4]
        TGC
    """
    __slots__ = ('_data', '_alphabet', '_hash')
    def __init__(self, data: np.ndarray, alphabet: 'Alphabet', _validation_token: object = None):
        if _validation_token is not alphabet:
            raise PermissionError("Seq objects must be created via an Alphabet")
        self._alphabet = alphabet
        self._data = data
        self._hash = None
        self._data.flags.writeable = False  # Enforce immutability for hashing safety

    @property
    def alphabet(self) -> 'Alphabet':
        """Returns the alphabet used for encoding/decoding."""
        return self._alphabet

    @property
    def encoded(self) -> np.ndarray:
        """Returns the underlying encoded integer array (zero-copy, read-only)."""
        return self._data

    def __array__(self, dtype=None, copy=None):
        return self._data.astype(dtype, copy=False) if dtype else self._data

    def __bytes__(self) -> bytes: return self._alphabet.decode(self._data)
    def __len__(self): return self._data.shape[0]
    def __str__(self): return self.__bytes__().decode('ascii')
    def __iter__(self): return iter(self._data)
    def __bool__(self): return len(self._data) > 0

    def __repr__(self):
        if len(self) <= 14: return str(self)
        head = self._alphabet.decode(self._data[:7]).decode('ascii')
        tail = self._alphabet.decode(self._data[-7:]).decode('ascii')
        return f"{head}...{tail}"

    def __contains__(self, item):
        if isinstance(item, (int, np.integer)): return item in self._data
        query = None
        if isinstance(item, Seq):
            if item.alphabet != self._alphabet: return False
            query = item._data.tobytes()
        elif isinstance(item, (bytes, str)):
            query = self._alphabet.encode(item).tobytes()
        if query is not None: return query in self._data.tobytes()
        return False

    def __eq__(self, other):
        if self is other: return True
        if not isinstance(other, Seq): return False
        if self._alphabet != other._alphabet: return False
        if self._hash is not None and other._hash is not None and self._hash != other._hash: return False
        return np.array_equal(self._data, other._data)

    def __hash__(self):
        if self._hash is None: self._hash = hash(self._data.tobytes())
        return self._hash

    def __getitem__(self, item: Union[slice, int]) -> 'Seq':
        """Extracts a subsequence by index or slice.

        Args:
            item: An integer index or a Python slice.

        Returns:
            A new ``Seq`` representing the subsequence.
        """
        if isinstance(item, slice): return self._alphabet.seq_from(self._data[item])
        if isinstance(item, (int, np.integer)):
            if item < 0: item += len(self)
            if not 0 <= item < len(self): raise IndexError(f'Sequence index {item} out of range')
            return self._alphabet.seq_from(self._data[item:item + 1])
        raise TypeError(f'Sequence indices must be integers or slices, not {type(item).__name__}')

    def reverse_complement(self) -> 'Seq':
        """Returns the reverse complement of this sequence (nucleic alphabets only)."""
        return self._alphabet.reverse_complement(self)

    def count_gaps(self) -> int:
        """Returns the number of gap symbols in the sequence."""
        return int(np.count_nonzero(self._alphabet.is_gap(self._data)))

    def ungapped(self) -> 'Seq':
        """Returns a copy of the sequence with gap symbols removed."""
        return self._alphabet.seq_from(self._data[~self._alphabet.is_gap(self._data)])
