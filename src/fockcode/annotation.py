"""
The `fockcode.annotation` module includes the annotations that can be attached to individual photons of a Fock state.

An annotation describes extra degrees of freedom of a photon that are not captured by its optical mode, e.g. its
polarization `P:H` or a label distinguishing photons emitted by different sources `_:0`. Fock states only rely on the
capabilities gathered in the `AnnotationLike` protocol: an annotation can be built from its canonical string,
rendered back to that string, tested for compatibility against another annotation, and asked whether it sets a key.
Two compatible photons are indistinguishable, and the test yields the annotation describing both of them.

Braces delimit annotations in textual Fock states, so annotation values cannot contain them.
"""

import re
from typing import Dict, Optional, Protocol

from fockcode.errors import ParseError

# keys are identifiers, such as `P` for polarization or `_` for an anonymous label
KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class AnnotationLike(Protocol):
    """Interface that any annotation type must provide to be attached to photons."""

    def to_str(self) -> str:
        ...

    def compatible(self, other: "AnnotationLike") -> Optional["AnnotationLike"]:
        ...

    def __contains__(self, key: str) -> bool:
        ...


class Annotation:
    """Set of `key:value` pairs describing a photon.

    Attributes:
        values (dict): mapping from each key to its value, both stored as stripped strings
    """

    def __init__(self, text: str = "") -> None:
        """Initialization of an Annotation from its textual form.

        Args:
            text: comma-separated `key:value` pairs, e.g. `P:H,_:1`, an empty string being the absence of annotation

        Raises:
            ParseError: if a pair has no `:` separator, an invalid key, an empty value, a value containing braces, or
                if a key is repeated with different values
        """
        self.values: Dict[str, str] = {}
        for pair in text.split(","):
            if not pair.strip():
                continue
            if ":" not in pair:
                raise ParseError(f"invalid annotation '{text}' (missing ':' in '{pair.strip()}')")
            key, value = (part.strip() for part in pair.split(":", 1))
            if not KEY_PATTERN.match(key):
                raise ParseError(f"invalid annotation '{text}' (bad key '{key}')")
            if not value:
                raise ParseError(f"invalid annotation '{text}' (empty value for key '{key}')")
            if "{" in value or "}" in value:
                raise ParseError(f"invalid annotation '{text}' (braces in value for key '{key}')")
            if self.values.get(key, value) != value:
                raise ParseError(f"invalid annotation '{text}' (conflicting values for key '{key}')")
            self.values[key] = value

    @classmethod
    def from_values(cls, values: Dict[str, str]) -> "Annotation":
        annot = cls()
        annot.values = dict(values)
        return annot

    def to_str(self) -> str:
        """Render the annotation in canonical form, with keys sorted alphabetically.

        Returns:
            Canonical string of the annotation, empty when no key is set
        """
        return ",".join(f"{key}:{self.values[key]}" for key in sorted(self.values))

    def compatible(self, other: "Annotation") -> Optional["Annotation"]:
        """Check whether two annotations can describe the same photon.

        Annotations are compatible when each key they share is given the same value. An empty annotation is
        therefore compatible with any other one.

        Args:
            other: annotation to compare against

        Returns:
            Annotation combining the keys of both when they are compatible, `None` otherwise
        """
        for key, value in other.values.items():
            if self.values.get(key, value) != value:
                return None
        return Annotation.from_values({**self.values, **other.values})

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Annotation):
            return NotImplemented
        return self.values == other.values

    def __hash__(self) -> int:
        return hash(self.to_str())

    def __str__(self) -> str:
        return self.to_str()

    def __repr__(self) -> str:
        return f"Annotation('{self.to_str()}')"
