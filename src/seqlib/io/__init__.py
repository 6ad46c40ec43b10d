"""
Module for reading and writing sequence files.
"""
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Union, Generator, BinaryIO, Callable, Type, Iterable

from seqlib.core.alphabet import Alphabet
from seqlib.containers.record import Record
from seqlib.containers.sites import SequenceContainer, SiteContainer
from seqlib.lib.io import Xopen, PeekableHandle


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class SeqIOError(IOError):
    """Base class for sequence I/O errors."""


class ParserError(SeqIOError):
    """Raised when a file does not follow its format."""
    def __init__(self, message: str, line: int = None):
        self.line = line
        super().__init__(f'line {line}: {message}' if line is not None else message)


class SeqFileError(SeqIOError):
    """Exception raised for unknown or unsupported formats and missing content."""


# Classes --------------------------------------------------------------------------------------------------------------
class BaseReader(ABC):
    """
    Abstract base class for sequence file readers.

    Readers iterate over ``Record`` objects. File-level comments met while reading are collected in ``comments``.
    """
    __slots__ = ('_handle', '_iterator', '_alphabet', 'comments')
    _DEFAULT_ALPHABET = Alphabet.DNA
    _WHITESPACE = b' \t\r\n\x0b\x0c'

    def __init__(self, handle: BinaryIO, alphabet: Alphabet = None, **kwargs):
        """
        Initializes the reader.

        Args:
            handle: The open binary file handle to read from.
            alphabet: The alphabet sequences are encoded with (DNA by default).
            **kwargs: Additional arguments.
        """
        self._handle = handle
        self._iterator = None
        self._alphabet = alphabet or self._DEFAULT_ALPHABET
        self.comments: list[bytes] = []

    @classmethod
    @abstractmethod
    def sniff(cls, s: bytes) -> bool: ...
    @abstractmethod
    def __iter__(self) -> Generator[Record, None, None]: ...
    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb): self.close()
    def __next__(self):
        if self._iterator is None:
            self._iterator = self.__iter__()
        return next(self._iterator)

    @property
    def alphabet(self) -> Alphabet:
        return self._alphabet

    def close(self):
        """Closes the reader."""
        pass

    def read_container(self, aligned: bool = True) -> SequenceContainer:
        """
        Reads all records into a container.

        Args:
            aligned: Build a ``SiteContainer`` (all sequences must have the same length) rather than a
                ``SequenceContainer``.
        """
        records = list(self)
        return (SiteContainer if aligned else SequenceContainer)(self._alphabet, records, self.comments)

    def _make_record(self, name: bytes, seq_parts: Iterable[bytes], desc: bytes = b'') -> Record:
        """Builds a record, removing whitespace from the sequence and rejecting invalid symbols."""
        seq = b''.join(seq_parts).translate(None, delete=self._WHITESPACE)
        if not seq: return Record(self._alphabet.empty_seq(), name, desc)
        return Record(self._alphabet.seq_from(seq, strict=True), name, desc)

    @staticmethod
    def _lines(handle) -> Generator[tuple[int, bytes], None, None]:
        """Yields (line number, line without the line terminator)."""
        for n, line in enumerate(handle, 1):
            yield n, line.rstrip(b'\r\n')


class BaseWriter(ABC):
    """
    Abstract base class for sequence file writers.

    Examples:
        >>> with FastaWriter("output.fasta") as w:
        ...     w.write(record1, record2)
    """
    __slots__ = ('_opener', '_handle', 'width')
    def __init__(self, file: Union[str, Path, BinaryIO], mode: str = 'wb', width: int = 60, **kwargs):
        """
        Initializes the writer.

        Args:
            file: File path or binary file object. Compression is inferred from the extension.
            mode: Opening mode ('wb' or 'ab').
            width: Maximum number of sequence characters per line (0 for no wrapping).
        """
        if width < 0: raise ValueError(f'Line width must be >= 0, got {width}')
        self._opener = Xopen(file, mode=mode)
        self._handle = None
        self.width = width

    def __enter__(self):
        """Opens the file and writes the header."""
        self._handle = self._opener.__enter__()
        self.write_header()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Writes the footer (unless an error occurred) and closes the file."""
        try:
            if exc_type is None: self.write_footer()
        finally:
            self._opener.__exit__(exc_type, exc_val, exc_tb)

    def write(self, *items: Union[Record, SequenceContainer, list, tuple]):
        """
        Writes records. Containers, lists and tuples are unpacked.

        Args:
            *items: Variable number of Record, SequenceContainer, or list objects.
        """
        for item in items:
            if isinstance(item, SequenceContainer): self.write_container(item)
            elif isinstance(item, (list, tuple)):
                for sub_item in item: self.write_one(sub_item)
            else: self.write_one(item)

    def write_container(self, container: SequenceContainer):
        """Writes all records of a container. Subclasses can override to use container metadata."""
        for record in container: self.write_one(record)

    @abstractmethod
    def write_one(self, record: Record):
        """
        Writes a single record.

        Args:
            record: Record to write.
        """
        pass

    def write_header(self):
        """Writes the file header if applicable."""
        pass

    def write_footer(self):
        """Writes the end of the file if applicable."""
        pass

    def _wrap(self, seq) -> Generator[bytes, None, None]:
        """Yields the decoded sequence in lines of at most ``width`` characters."""
        text = bytes(seq)
        if not self.width:
            yield text
            return
        for i in range(0, len(text), self.width): yield text[i:i + self.width]


class FormatSpec:
    """Metadata for a supported file format."""
    __slots__ = ('extensions', 'reader', 'writer')
    def __init__(self, extensions: list[str] = None):
        self.extensions = extensions or []
        self.reader: Type[BaseReader] = None
        self.writer: Type[BaseWriter] = None


class SeqFileFormat(str, Enum):
    """Supported sequence file formats."""
    FASTA = 'fasta'
    MASE = 'mase'
    PHYLIP = 'phylip'
    CLUSTAL = 'clustal'
    DCSE = 'dcse'

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower(): return member
        return None


class SeqFile:
    """
    Main interface for reading sequence files.

    Automatically detects file format (unless given) and compression (gzip, bzip2, xz), providing a single,
    unified way to iterate over sequence records.

    Examples:
        >>> with SeqFile('alignment.phy', 'phylip', alphabet=Alphabet.DNA, sequential=True) as f:
        ...     sites = f.read_container()
    """
    __slots__ = ('_opener', '_handle', '_format', '_reader', '_reader_kwargs', '_iterator')
    _REGISTRY: dict['SeqFileFormat', FormatSpec] = {}
    Format = SeqFileFormat

    def __init__(self, file: Union[str, Path, BinaryIO], fmt: Union[str, Format] = None,
                 alphabet: Alphabet = None, **reader_kwargs):
        self._opener = Xopen(file, mode='rb')
        self._handle = None
        self._format = self.Format(fmt) if fmt else None
        self._reader = None
        self._reader_kwargs = reader_kwargs
        self._iterator = None
        if alphabet: self._reader_kwargs['alphabet'] = alphabet

    @property
    def format(self) -> Format: return self._format
    @property
    def name(self) -> str: return self._opener.name

    @classmethod
    def formats(cls, readable: bool = True) -> list[Format]:
        """Registered formats that can be read (or written, if ``readable`` is False)."""
        return [f for f, spec in cls._REGISTRY.items() if (spec.reader if readable else spec.writer)]

    @classmethod
    def infer_format(cls, file: Union[str, Path]) -> Union[Format, None]:
        """Infers a format from the file extension, ignoring compression extensions."""
        name = Path(file).name.lower()
        for ext in ('.gz', '.bz2', '.xz'):
            name = name.removesuffix(ext)
        for fmt, spec in cls._REGISTRY.items():
            if any(name.endswith(ext) for ext in spec.extensions): return fmt
        return None

    @classmethod
    def open(cls, file: Union[str, Path, BinaryIO], mode: str = 'r', fmt: Union[str, Format] = None,
             alphabet: Alphabet = None, **kwargs) -> Union['SeqFile', BaseWriter]:
        """
        Opens a sequence file for reading (returns a ``SeqFile``) or writing (returns a writer).

        Raises:
            SeqFileError: If the format cannot be inferred for writing or has no writer.
        """
        if any(c in mode for c in 'wax'):
            if fmt is None and isinstance(file, (str, Path)): fmt = cls.infer_format(file)
            if fmt is None:
                raise SeqFileError("Format must be specified for writing if it cannot be inferred from extension.")
            spec = cls._REGISTRY.get(cls.Format(fmt))
            if not spec or not spec.writer: raise SeqFileError(f"No writer available for format '{fmt}'")
            return spec.writer(file, mode=mode if 'b' in mode else mode + 'b', **kwargs)
        return cls(file, fmt=fmt, alphabet=alphabet, **kwargs)

    def _make_reader(self) -> BaseReader:
        handle_to_use = self._handle
        if self._format is None:
            if not hasattr(self._handle, 'peek'): handle_to_use = PeekableHandle(self._handle)
            self._format = self._sniff_format(handle_to_use)
        spec = self._REGISTRY.get(self._format)
        if spec is None or spec.reader is None:
            raise SeqFileError(f"Cannot parse file: format '{self._format}' is unknown or unsupported.")
        self._reader = spec.reader(handle_to_use, **self._reader_kwargs)
        return self._reader

    def __iter__(self) -> Generator[Record, None, None]:
        """
        Iterates over the records of the file.

        Yields:
            Record objects.
        """
        close_on_exit = False
        if self._handle is None:
            self._handle = self._opener.__enter__()
            close_on_exit = True
        try:
            yield from self._make_reader()
        finally:
            if close_on_exit: self.close()

    def __next__(self):
        if self._iterator is None:
            self._iterator = self.__iter__()
        return next(self._iterator)

    def read_container(self, aligned: bool = True, **kwargs) -> SequenceContainer:
        """
        Reads the whole file into a container.

        Args:
            aligned: Build a ``SiteContainer`` rather than a ``SequenceContainer``.
            **kwargs: Format-specific options of the reader's ``read_container`` (e.g. ``site_selection`` for Mase).
        """
        close_on_exit = False
        if self._handle is None:
            self._handle = self._opener.__enter__()
            close_on_exit = True
        try:
            return self._make_reader().read_container(aligned, **kwargs)
        finally:
            if close_on_exit: self.close()

    def _sniff_format(self, handle: Union[PeekableHandle, BinaryIO]) -> Format:
        """
        Detects the file format by peeking at the content.

        Raises:
            SeqFileError: If format cannot be determined.
        """
        peek_window = handle.peek(1024)[:1024].lstrip()
        for fmt, spec in self._REGISTRY.items():
            if spec.reader and spec.reader.sniff(peek_window): return fmt
        raise SeqFileError("Could not determine format from stream content.")

    def close(self):
        """Closes the file."""
        self._opener.__exit__(None, None, None)
        self._handle = None

    def __enter__(self):
        self._handle = self._opener.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    @classmethod
    def register(cls, fmt: Union[str, Format], extensions: list[str] = None):
        """
        Decorator to register a Reader or Writer for a specific format.
        """
        fmt = cls.Format(fmt)

        def decorator(klass: Callable) -> Callable:
            if (spec := cls._REGISTRY.get(fmt)) is None:
                spec = FormatSpec()
                cls._REGISTRY[fmt] = spec
            if extensions: spec.extensions.extend(ext for ext in extensions if ext not in spec.extensions)
            if issubclass(klass, BaseReader): spec.reader = klass
            elif issubclass(klass, BaseWriter): spec.writer = klass
            return klass

        return decorator


# Import submodules to populate the registry
from seqlib.io import seq, align
