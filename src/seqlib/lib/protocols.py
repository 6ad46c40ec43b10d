from typing import Protocol, runtime_checkable


@runtime_checkable
class HasAlphabet(Protocol):
    """Protocol for objects that possess an Alphabet (e.g. Seq, Record, SequenceContainer)."""
    @property
    def alphabet(self) -> 'Alphabet': ...
