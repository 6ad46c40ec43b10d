"""Readers and writers for unaligned sequence formats (Fasta and Mase)."""
import re
from pathlib import Path
from typing import Union, Generator, BinaryIO

import numpy as np

from seqlib.containers.record import Record
from seqlib.containers.sites import SequenceContainer
from seqlib.io import BaseReader, BaseWriter, ParserError, SeqFile, SeqFileError


# Classes --------------------------------------------------------------------------------------------------------------
@SeqFile.register('fasta', extensions=['.fasta', '.fa', '.fna', '.faa', '.fas', '.ffn'])
class FastaReader(BaseReader):
    """
    Reader for FASTA format files.

    The first word of the header is the record id, the rest of the line its description.

    Examples:
        >>> with open("genome.fasta", "rb") as f:
        ...     reader = FastaReader(f)
        ...     for record in reader:
        ...         print(record.id)
    """
    __slots__ = ()
    def __iter__(self) -> Generator[Record, None, None]:
        """
        Iterates over FASTA records.

        Yields:
            Record objects.

        Raises:
            ParserError: If sequence data appears before the first header.
        """
        header, seq_parts = None, []
        for n, line in self._lines(self._handle):
            if line.startswith(b'>'):
                if header is not None: yield self._make_fasta_record(header, seq_parts)
                header, seq_parts = line[1:].strip(), []
            elif header is None:
                if line.strip(): raise ParserError('Sequence data before the first header', n)
            else:
                seq_parts.append(line)
        if header is not None: yield self._make_fasta_record(header, seq_parts)

    def _make_fasta_record(self, header: bytes, seq_parts: list[bytes]) -> Record:
        name, _, desc = header.partition(b' ')
        return self._make_record(name, seq_parts, desc.strip())

    @classmethod
    def sniff(cls, s: bytes) -> bool: return s.startswith(b">")


class FastaWriter(BaseWriter):
    """
    Writer for FASTA format files.

    Examples:
        >>> with FastaWriter("output.fasta", width=60) as w:
        ...     w.write_one(record)
    """
    __slots__ = ()
    def write_one(self, record: Record):
        """
        Writes a single FASTA record.

        Args:
            record: The Record object to write.
        """
        if not isinstance(record, Record): raise TypeError("FastaWriter expects Record objects")
        header = b">" + record.id
        if record.description: header += b" " + record.description
        self._handle.write(header + b"\n")
        for line in self._wrap(record.seq): self._handle.write(line + b"\n")


SeqFile.register('fasta')(FastaWriter)


@SeqFile.register('mase', extensions=['.mase', '.mas'])
class MaseReader(BaseReader):
    """
    Reader for Mase files.

    A Mase file starts with ``;;`` header lines, then each sequence is written as one or more ``;`` comment lines,
    a name line and the sequence lines. Header lines of the form ``;;# of segments=2 name`` followed by
    ``start,end`` pairs (1-based, inclusive) define named site selections.

    Examples:
        >>> with open("alignment.mase", "rb") as f:
        ...     sites = MaseReader(f).read_container(site_selection='exons')
    """
    __slots__ = ('site_selections',)
    _SELECTION = re.compile(rb'#\s*of\s+segments\s*=\s*(\d+)\s+(\S+)')
    _SEGMENT = re.compile(rb'(\d+)\s*,\s*(\d+)')

    def __init__(self, handle: BinaryIO, alphabet=None, **kwargs):
        super().__init__(handle, alphabet, **kwargs)
        self.site_selections: dict[bytes, list[tuple[int, int]]] = {}

    def __iter__(self) -> Generator[Record, None, None]:
        """
        Iterates over Mase records.

        Yields:
            Record objects, with the ``;`` comment lines joined in the description.

        Raises:
            ParserError: If a sequence has no name line.
        """
        comments, name, seq_parts, in_entry = [], None, [], False
        pending: tuple[bytes, int, list] = None  # Selection being read: (name, n_segments, segments)
        for n, line in self._lines(self._handle):
            if line.startswith(b';;'):
                pending = self._read_header_line(line[2:].strip(), pending, n)
            elif line.startswith(b';'):
                if name is not None:
                    yield self._make_record(name, seq_parts, b' '.join(comments))
                    comments, name, seq_parts = [], None, []
                in_entry = True
                if text := line[1:].strip(): comments.append(text)
            elif name is None:
                if not line.strip():
                    continue
                if not in_entry:
                    raise ParserError('Mase sequence names must follow a ";" comment line', n)
                name, in_entry = line.strip(), False
            else:
                seq_parts.append(line)
        if pending is not None:
            raise ParserError(f'Site selection {pending[0].decode()!r} expects {pending[1]} segments, '
                              f'found {len(pending[2])}')
        if name is not None: yield self._make_record(name, seq_parts, b' '.join(comments))
        elif in_entry: raise ParserError('Mase file ends with a comment but no sequence')

    def _read_header_line(self, text: bytes, pending, line: int):
        """Stores a header comment and parses site selections, returning the selection still being read."""
        self.comments.append(text)
        if pending is None:
            if (m := self._SELECTION.search(text)) is None: return None
            pending = (m.group(2), int(m.group(1)), [])
            text = text[m.end():]
        _, n_segments, segments = pending
        for start, end in self._SEGMENT.findall(text):
            start, end = int(start), int(end)
            if start < 1 or end < start: raise ParserError(f'Invalid segment {start},{end}', line)
            segments.append((start, end))
        if len(segments) < n_segments: return pending
        if len(segments) > n_segments:
            raise ParserError(f'Site selection {pending[0].decode()!r} has more than {n_segments} segments', line)
        self.site_selections[pending[0]] = segments
        return None

    def read_container(self, aligned: bool = True, site_selection: Union[str, bytes] = None) -> SequenceContainer:
        """
        Reads all records into a container, optionally keeping only the sites of a named selection.

        Args:
            aligned: Build a ``SiteContainer`` rather than a ``SequenceContainer``.
            site_selection: Name of a site selection defined in the header (implies ``aligned``).

        Raises:
            SeqFileError: If the selection is not defined in the file.
        """
        container = super().read_container(aligned or site_selection is not None)
        if site_selection is None: return container
        if isinstance(site_selection, str): site_selection = site_selection.encode()
        if (segments := self.site_selections.get(site_selection)) is None:
            raise SeqFileError(f'No site selection named {site_selection.decode()!r} in Mase header')
        indices = np.concatenate([np.arange(start - 1, end) for start, end in segments])
        if indices.max() >= container.n_sites:
            raise SeqFileError(f'Site selection {site_selection.decode()!r} exceeds the alignment length '
                               f'({container.n_sites})')
        return container.select_sites(indices)

    @classmethod
    def sniff(cls, s: bytes) -> bool: return s.startswith(b";")


class MaseWriter(BaseWriter):
    """
    Writer for Mase files.

    The ``;;`` header is taken from the comments of the first container written (or a default line).

    Examples:
        >>> with MaseWriter("output.mase") as w:
        ...     w.write(container)
    """
    __slots__ = ('_header_written',)
    _DEFAULT_HEADER = b'Mase file written by seqlib'

    def __init__(self, file: Union[str, Path, BinaryIO], **kwargs):
        super().__init__(file, **kwargs)
        self._header_written = False

    def _write_mase_header(self, comments: list[bytes] = None):
        if self._header_written: return
        for comment in comments or [self._DEFAULT_HEADER]: self._handle.write(b';;' + comment + b'\n')
        self._header_written = True

    def write_container(self, container: SequenceContainer):
        self._write_mase_header(container.comments)
        super().write_container(container)

    def write_one(self, record: Record):
        """
        Writes a single Mase record.

        Args:
            record: The Record object to write.
        """
        if not isinstance(record, Record): raise TypeError("MaseWriter expects Record objects")
        self._write_mase_header()
        self._handle.write(b';' + record.description + b'\n' + record.id + b'\n')
        for line in self._wrap(record.seq): self._handle.write(line + b'\n')


SeqFile.register('mase')(MaseWriter)
