"""Ordered collections of records: free sequence containers and aligned site containers."""
import re
from typing import Iterable, Iterator, Union

import numpy as np

from seqlib.containers.record import Record
from seqlib.lib.protocols import HasAlphabet


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class ContainerError(ValueError):
    """Raised when records cannot be added to a container (alphabet mismatch, duplicate id, unequal length)."""


# Constants ------------------------------------------------------------------------------------------------------------
_SITE_SELECTION = re.compile(rb'#\s*of\s+segments\s*=')
_SEGMENTS_ONLY = re.compile(rb'[\d\s,]+')


# Functions ------------------------------------------------------------------------------------------------------------
def _drop_site_selections(comments: Iterable[bytes]) -> list[bytes]:
    """Removes site selection headers (and their continuation lines), whose columns refer to the unfiltered sites."""
    kept, in_selection = [], False
    for comment in comments:
        if _SITE_SELECTION.search(comment): in_selection = True
        elif not (in_selection and _SEGMENTS_ONLY.fullmatch(comment)):
            in_selection = False
            kept.append(comment)
    return kept


# Classes --------------------------------------------------------------------------------------------------------------
class SequenceContainer(HasAlphabet):
    """
    An ordered collection of records sharing one alphabet, addressable by position or identifier.

    Args:
        alphabet: The alphabet shared by all records.
        records: Initial records.
        comments: File-level comment lines (e.g. the header of a Mase file).

    Examples:
        >>> container = SequenceContainer(Alphabet.DNA, [Record(Alphabet.DNA.seq_from('ACGT'), b'seq1')])
        >>> container[b'seq1'].seq
        ACGT
    """
    __slots__ = ('_alphabet', '_records', '_index', '_comments')
    def __init__(self, alphabet: 'Alphabet', records: Iterable[Record] = (), comments: Iterable[bytes] = ()):
        self._alphabet = alphabet
        self._records: list[Record] = []
        self._index: dict[bytes, int] = {}
        self._comments: list[bytes] = list(comments)
        for record in records: self.add(record)

    def __len__(self) -> int: return len(self._records)
    def __iter__(self) -> Iterator[Record]: return iter(self._records)
    def __bool__(self) -> bool: return len(self._records) > 0
    def __repr__(self) -> str: return f'{type(self).__name__}({self._alphabet}, {len(self)} sequences)'

    def __contains__(self, item) -> bool:
        if isinstance(item, Record): item = item.id
        if isinstance(item, str): item = item.encode()
        return item in self._index

    def __getitem__(self, item: Union[int, bytes, str]) -> Record:
        if isinstance(item, (int, np.integer)): return self._records[item]
        return self.get(item)

    @property
    def alphabet(self) -> 'Alphabet':
        return self._alphabet

    @property
    def comments(self) -> list[bytes]:
        """File-level comment lines."""
        return self._comments

    @property
    def ids(self) -> list[bytes]:
        """Record identifiers in container order."""
        return [r.id for r in self._records]

    def get(self, id_: Union[bytes, str]) -> Record:
        """
        Returns the record with the given identifier.

        Raises:
            KeyError: If no record has this identifier.
        """
        if isinstance(id_, str): id_ = id_.encode()
        try: return self._records[self._index[id_]]
        except KeyError: raise KeyError(f'No sequence named {id_!r}') from None

    def _check(self, record: Record):
        if not isinstance(record, Record): raise TypeError(f'Expected a Record, got {type(record).__name__}')
        if record.alphabet != self._alphabet:
            raise ContainerError(f'Sequence {record.id!r} has alphabet {record.alphabet}, expected {self._alphabet}')
        if record.id in self._index: raise ContainerError(f'Duplicate sequence name {record.id!r}')

    def add(self, record: Record):
        """
        Appends a record.

        Raises:
            ContainerError: If the alphabet differs or the identifier is already present.
        """
        self._check(record)
        self._index[record.id] = len(self._records)
        self._records.append(record)


class SiteContainer(SequenceContainer):
    """
    A sequence container whose sequences are aligned (all of the same length).

    Sites (alignment columns) are exposed through a ``(n_sequences, n_sites)`` code matrix.

    Examples:
        >>> sites = SiteContainer(Alphabet.DNA, [Record(Alphabet.DNA.seq_from('AC-T'), b'a'),
        ...                                      Record(Alphabet.DNA.seq_from('ANGT'), b'b')])
        >>> sites.n_sites
        4
        >>> sites.complete_mask()
        array([ True, False, False,  True])
    """
    __slots__ = ('_matrix',)
    def __init__(self, alphabet: 'Alphabet', records: Iterable[Record] = (), comments: Iterable[bytes] = ()):
        self._matrix = None
        super().__init__(alphabet, records, comments)

    def __repr__(self) -> str:
        return f'{type(self).__name__}({self._alphabet}, {len(self)} sequences, {self.n_sites} sites)'

    def _check(self, record: Record):
        super()._check(record)
        if self._records and len(record) != self.n_sites:
            raise ContainerError(f'Sequence {record.id!r} has length {len(record)}, expected {self.n_sites}')

    def add(self, record: Record):
        super().add(record)
        self._matrix = None

    @property
    def n_sites(self) -> int:
        """The alignment length."""
        return len(self._records[0]) if self._records else 0

    @property
    def matrix(self) -> np.ndarray:
        """The read-only ``(n_sequences, n_sites)`` matrix of codes."""
        if self._matrix is None:
            if self._records: self._matrix = np.vstack([r.seq.encoded for r in self._records])
            else: self._matrix = np.empty((0, 0), dtype=self._alphabet.DTYPE)
            self._matrix.flags.writeable = False
        return self._matrix

    def site(self, index: int) -> np.ndarray:
        """Returns the codes of one site (alignment column)."""
        if not -self.n_sites <= index < self.n_sites: raise IndexError(f'Site index {index} out of range')
        return self.matrix[:, index]

    def complete_mask(self) -> np.ndarray:
        """Boolean mask of sites where every sequence has a fully resolved state."""
        return self._alphabet.is_resolved(self.matrix).all(axis=0)

    def gapless_mask(self) -> np.ndarray:
        """Boolean mask of sites where no sequence has a gap."""
        return ~self._alphabet.is_gap(self.matrix).any(axis=0)

    def select_sites(self, sites: Union[np.ndarray, Iterable[int]]) -> 'SiteContainer':
        """
        Returns a new container restricted to the given sites.

        Args:
            sites: A boolean mask of length ``n_sites`` or an iterable of site indices (order is kept).

        Returns:
            A new ``SiteContainer`` with the same names, descriptions and comments. Site selection headers
            are dropped from the comments as their column numbers no longer apply.
        """
        sites = np.asarray(sites if isinstance(sites, np.ndarray) else list(sites))
        if sites.dtype == bool:
            if len(sites) != self.n_sites: raise IndexError(f'Site mask has length {len(sites)}, expected {self.n_sites}')
        elif sites.size:
            sites = sites.astype(np.intp)
            if sites.min() < 0 or sites.max() >= self.n_sites: raise IndexError('Site index out of range')
        else:
            sites = sites.astype(np.intp)
        columns = self.matrix[:, sites]
        return type(self)(self._alphabet, (r.with_seq(self._alphabet.seq_from(np.ascontiguousarray(row)))
                                           for r, row in zip(self._records, columns)),
                          _drop_site_selections(self._comments))

    def complete_sites(self) -> 'SiteContainer':
        """Returns a new container holding only complete sites."""
        return self.select_sites(self.complete_mask())

    def gapless_sites(self) -> 'SiteContainer':
        """Returns a new container holding only sites without gaps."""
        return self.select_sites(self.gapless_mask())
