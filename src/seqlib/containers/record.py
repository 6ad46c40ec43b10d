"""Container for named biological sequences."""
from binascii import hexlify
from uuid import uuid4

from seqlib.containers.seq import Seq
from seqlib.lib.protocols import HasAlphabet


# Classes --------------------------------------------------------------------------------------------------------------
class Record(HasAlphabet):
    """
    A biological sequence with an identifier and an optional description.

    Args:
        seq: The underlying ``Seq`` object.
        id_: Record identifier as bytes (auto-generated UUID if omitted).
        desc: Optional description line (e.g. the rest of a Fasta header or Mase comments).

    Examples:
        >>> rec = Record(Alphabet.DNA.seq_from(b'ATGCGA'), id_=b'seq_1')
        >>> len(rec)
        6
        >>> rec.id
        b'seq_1'
    """
    __slots__ = ('_seq', 'id', 'description')
    def __init__(self, seq: Seq, id_: bytes = None, desc: bytes = None):
        if isinstance(id_, str): id_ = id_.encode()
        if isinstance(desc, str): desc = desc.encode()
        self._seq: Seq = seq
        self.id: bytes = id_ or hexlify(uuid4().bytes)
        self.description: bytes = desc or b''

    def __str__(self): return self.id.decode(errors='ignore')
    def __repr__(self) -> str: return f'{self.id} {self._seq.__repr__()}'
    def __len__(self) -> int: return len(self._seq)
    def __hash__(self) -> int: return hash(self.id)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Record): return False
        return self.id == other.id and self.description == other.description and self._seq == other._seq

    @property
    def seq(self) -> Seq:
        """Returns the underlying sequence."""
        return self._seq

    @property
    def alphabet(self) -> 'Alphabet':
        return self._seq.alphabet

    def with_seq(self, seq: Seq) -> 'Record':
        """Returns a new record with the same identifier and description but another sequence."""
        return Record(seq, self.id, self.description)
