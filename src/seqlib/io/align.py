"""Readers and writers for alignment formats (Phylip, Clustal and DCSE)."""
import re
from pathlib import Path
from typing import Union, Generator, BinaryIO
from warnings import warn

from seqlib import SeqlibWarning
from seqlib.containers.record import Record
from seqlib.io import BaseReader, BaseWriter, ParserError, SeqFile, SeqFileError


# Classes --------------------------------------------------------------------------------------------------------------
@SeqFile.register('phylip', extensions=['.phy', '.phylip'])
class PhylipReader(BaseReader):
    """
    Reader for Phylip alignments.

    The first line holds the number of sequences and of sites. In the classic flavour names occupy the first
    10 characters of a line; in the extended flavour the name ends at the first whitespace.

    Args:
        handle: The open binary file handle to read from.
        alphabet: The alphabet sequences are encoded with.
        sequential: Sequences are written one after the other rather than in interleaved blocks.
        extended: Names are whitespace-delimited rather than 10 characters wide.

    Examples:
        >>> with open("alignment.phy", "rb") as f:
        ...     sites = PhylipReader(f, sequential=True).read_container()
    """
    __slots__ = ('sequential', 'extended')
    NAME_WIDTH = 10
    _HEADER = re.compile(rb'^\s*(\d+)\s+(\d+)')

    def __init__(self, handle: BinaryIO, alphabet=None, sequential: bool = False, extended: bool = False, **kwargs):
        super().__init__(handle, alphabet, **kwargs)
        self.sequential = sequential
        self.extended = extended

    def _split_name(self, line: bytes, n: int, n_sites: int) -> tuple[bytes, bytes]:
        """Splits a name line; the sequence data may only be missing from alignments without sites."""
        if self.extended:
            parts = line.strip().split(None, 1)
            if len(parts) < 2 and n_sites: raise ParserError('Expected a name followed by sequence data', n)
            return parts[0], parts[1] if len(parts) > 1 else b''
        if len(line) <= self.NAME_WIDTH and n_sites:
            raise ParserError('Expected a name followed by sequence data', n)
        return line[:self.NAME_WIDTH].strip(), line[self.NAME_WIDTH:]

    def __iter__(self) -> Generator[Record, None, None]:
        """
        Iterates over the aligned records.

        Yields:
            Record objects.

        Raises:
            ParserError: If the header is missing or the content does not match the declared dimensions.
        """
        lines = self._lines(self._handle)
        n_seqs, n_sites = self._read_header(lines)
        if not n_seqs:
            for n, line in lines:
                if line.strip(): raise ParserError('Sequence data after a header declaring no sequences', n)
            return
        read = self._read_sequential if self.sequential else self._read_interleaved
        names, parts = read(lines, n_seqs, n_sites)
        for name, seq_parts in zip(names, parts):
            record = self._make_record(name, seq_parts)
            if len(record) != n_sites:
                raise ParserError(f'Sequence {name.decode()!r} has {len(record)} sites, expected {n_sites}')
            yield record

    def _read_header(self, lines) -> tuple[int, int]:
        for n, line in lines:
            if not line.strip(): continue
            if (m := self._HEADER.match(line)) is None:
                raise ParserError('Phylip files must start with the number of sequences and sites', n)
            return int(m.group(1)), int(m.group(2))
        raise ParserError('Empty Phylip file')

    def _read_sequential(self, lines, n_seqs: int, n_sites: int):
        names, parts = [], []
        length = 0
        for n, line in lines:
            if not line.strip(): continue
            if len(names) < n_seqs and (not names or length >= n_sites):
                name, data = self._split_name(line, n, n_sites)
                names.append(name)
                parts.append([data])
            else:
                if not names: raise ParserError('Sequence data before the first name', n)
                data = line
                parts[-1].append(data)
            length = sum(len(p.translate(None, delete=self._WHITESPACE)) for p in parts[-1])
        if len(names) != n_seqs: raise ParserError(f'Found {len(names)} sequences, expected {n_seqs}')
        return names, parts

    def _read_interleaved(self, lines, n_seqs: int, n_sites: int):
        names, parts = [], [[] for _ in range(n_seqs)]
        i = 0
        for n, line in lines:
            if not line.strip(): continue
            if len(names) < n_seqs:
                name, data = self._split_name(line, n, n_sites)
                names.append(name)
            else:
                data = line
            parts[i % n_seqs].append(data)
            i += 1
        if len(names) != n_seqs: raise ParserError(f'Found {len(names)} sequences, expected {n_seqs}')
        if i % n_seqs: raise ParserError(f'Incomplete interleaved block ({i % n_seqs} of {n_seqs} lines)')
        return names, parts

    @classmethod
    def sniff(cls, s: bytes) -> bool: return cls._HEADER.match(s) is not None


class PhylipWriter(BaseWriter):
    """
    Writer for Phylip alignments.

    The header needs the alignment dimensions, so records are buffered and written when the writer is closed.

    Args:
        file: File path or binary file object.
        sequential: Write each sequence in one piece rather than in interleaved blocks.
        extended: Write whitespace-delimited names rather than 10 characters wide names.
        width: Number of sites per line.

    Examples:
        >>> with PhylipWriter("output.phy", extended=True) as w:
        ...     w.write(sites)
    """
    __slots__ = ('sequential', 'extended', '_records')

    def __init__(self, file: Union[str, Path, BinaryIO], sequential: bool = False, extended: bool = False,
                 **kwargs):
        super().__init__(file, **kwargs)
        self.sequential = sequential
        self.extended = extended
        self._records: list[Record] = []

    def write_one(self, record: Record):
        """
        Buffers a record.

        Raises:
            SeqFileError: If the record length differs from the previous ones.
        """
        if not isinstance(record, Record): raise TypeError("PhylipWriter expects Record objects")
        if self._records and len(record) != len(self._records[0]):
            raise SeqFileError(f'Phylip sequences must be aligned: {record.id.decode()!r} has length {len(record)}, '
                               f'expected {len(self._records[0])}')
        self._records.append(record)

    def _format_name(self, name: bytes) -> bytes:
        if self.extended: return name + b' '
        width = PhylipReader.NAME_WIDTH
        if len(name) > width:
            warn(f'Name {name.decode()!r} truncated to {width} characters for classic Phylip', SeqlibWarning)
        return name[:width].ljust(width)

    def write_footer(self):
        if not self._records:
            self._handle.write(b'0 0\n')
            return
        n_sites = len(self._records[0])
        self._handle.write(f'{len(self._records)} {n_sites}\n'.encode())
        names = [self._format_name(r.id) for r in self._records]
        blocks = [list(self._wrap(r.seq)) or [b''] for r in self._records]
        if self.sequential:
            for name, lines in zip(names, blocks):
                self._handle.write(name + lines[0] + b'\n')
                for line in lines[1:]: self._handle.write(line + b'\n')
            return
        padding = b' ' * len(names[0]) if not self.extended else b''
        for i in range(len(blocks[0])):
            if i: self._handle.write(b'\n')
            for name, lines in zip(names, blocks):
                self._handle.write((name if i == 0 else padding) + lines[i] + b'\n')


SeqFile.register('phylip')(PhylipWriter)


@SeqFile.register('clustal', extensions=['.aln', '.clustal'])
class ClustalReader(BaseReader):
    """
    Reader for Clustal alignments.

    After the ``CLUSTAL`` header, blocks of ``name sequence [count]`` lines are separated by blank lines and
    conservation lines (which start with whitespace).

    Examples:
        >>> with open("alignment.aln", "rb") as f:
        ...     sites = ClustalReader(f).read_container()
    """
    __slots__ = ()

    def __iter__(self) -> Generator[Record, None, None]:
        """
        Iterates over the aligned records.

        Raises:
            ParserError: If the header is missing.
        """
        lines = self._lines(self._handle)
        for n, line in lines:
            if not line.strip(): continue
            if not line.startswith(b'CLUSTAL'): raise ParserError('Clustal files must start with "CLUSTAL"', n)
            self.comments.append(line)
            break
        else:
            raise ParserError('Empty Clustal file')
        names, parts = [], {}
        for n, line in lines:
            if not line.strip() or line[:1].isspace(): continue
            fields = line.split()
            if len(fields) < 2: raise ParserError('Expected a name followed by sequence data', n)
            if fields[0] not in parts:
                names.append(fields[0])
                parts[fields[0]] = []
            parts[fields[0]].append(fields[1])
        for name in names: yield self._make_record(name, parts[name])

    @classmethod
    def sniff(cls, s: bytes) -> bool: return s.startswith(b'CLUSTAL')


@SeqFile.register('dcse', extensions=['.dcse'])
class DcseReader(BaseReader):
    """
    Reader for DCSE alignments (as written by the DCSE rRNA alignment editor).

    The first line is a header. Each following line holds a sequence, at least five spaces and its name.
    Structure annotation characters are removed and annotation lines (helix numbering, masks) are skipped. The
    alignment ends at the first line without a name.

    Examples:
        >>> with open("rrna.dcse", "rb") as f:
        ...     sites = DcseReader(f, alphabet=Alphabet.RNA).read_container()
    """
    __slots__ = ()
    _SEPARATOR = re.compile(rb' {5,}')
    _ANNOTATION = b'{}[]()^'
    _SKIPPED = (b'Helix numbering', b'mask')

    def __iter__(self) -> Generator[Record, None, None]:
        lines = self._lines(self._handle)
        if (header := next(lines, None)) is None: raise ParserError('Empty DCSE file')
        self.comments.append(header[1])
        for n, line in lines:
            parts = self._SEPARATOR.split(line.strip(), maxsplit=1)
            if len(parts) < 2: break
            seq, name = parts
            if any(skipped in name for skipped in self._SKIPPED): continue
            yield self._make_record(name.strip(), [seq.translate(None, delete=self._ANNOTATION)])

    # DCSE files have no recognisable signature
    @classmethod
    def sniff(cls, s: bytes) -> bool: return False
