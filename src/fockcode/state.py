"""
The `fockcode.state` module includes the `FockState` class, a basis state of the second-quantized Fock basis of $n$
photons distributed among $m$ optical modes.

A Fock state is stored in mode-specifying form, i.e. as an $n$-length array whose $k$-th element is the optical mode
of the $k$-th photon, sorted in non-decreasing order. For instance, $\\left|2,0,1\\right\\rangle$ is stored as
`[0, 0, 2]`. This is the form used to catalog the symmetric Fock basis in [basis](basis.md), and it makes enumerating
the basis, composing states and extracting ranges of modes a matter of simple array manipulations.

Three kinds of code back a state:

- an array owned by the state, whenever it holds photons,
- the shared read-only `EMPTY_CODE`, whenever it holds no photon,
- no array at all, for an undefined state, e.g. once the enumeration of a basis is exhausted.
"""

import logging
from enum import Enum
from math import factorial
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from fockcode.annotation import Annotation, AnnotationLike
from fockcode.errors import AnnotationCountError, InvalidModeIndex, InvalidOperand, SliceMismatch
from fockcode.parser import AnnotationFactory, parse_fock
from fockcode.partition import group_photons

logger = logging.getLogger(__name__)

# single code shared by every state without photons, never written to
EMPTY_CODE = np.zeros(0, dtype=int)
EMPTY_CODE.flags.writeable = False

AnnotationMap = Dict[int, List[list]]


class CodeKind(Enum):
    """Kind of code backing a Fock state."""

    OWNED = "owned"
    BORROWED = "borrowed"
    UNDEFINED = "undefined"


def _copy_annotations(annotations: AnnotationMap, shift: int = 0) -> AnnotationMap:
    return {mode + shift: [[count, annot] for count, annot in entries] for mode, entries in annotations.items()}


class FockState:
    """Basis state of $n$ photons in $m$ optical modes, with optional annotations on the photons.

    Equality and hashing only consider the number of modes, the number of photons and the occupation of each mode,
    annotations are ignored.
    """

    def __init__(
        self,
        state: Union[None, int, str, Sequence[int], np.ndarray] = None,
        n: Optional[int] = None,
        annotations: Optional[Dict[int, Sequence[Union[str, AnnotationLike]]]] = None,
        annotation_factory: AnnotationFactory = Annotation,
    ) -> None:
        """Initialization of a Fock state.

        Args:
            state: textual form of the state, e.g. `|1,0,1>`, or the photon number of each mode, or the number of
                optical modes $m$, or `None` for an undefined state without modes
            n: number of photons $n$, all placed in the first mode, only when `state` is the number of modes
            annotations: mapping from mode indices to the annotation of each of their photons, given as annotations
                or as strings
            annotation_factory: callable building an annotation from its textual form

        Raises:
            ParseError: if `state` is a string that does not follow the grammar
            ValueError: if a number of modes or photons is negative, or if photons are requested without modes
        """
        self._m = 0
        self._n = 0
        self._code: Optional[np.ndarray] = None
        self._annotations: AnnotationMap = {}

        if n is not None and not isinstance(state, (int, np.integer)):
            raise ValueError("A number of photons can only be given alongside a number of modes")

        if isinstance(state, str):
            parsed = parse_fock(state, annotation_factory)
            self._m = parsed.m
            if parsed.counts is not None:
                self._set_counts(parsed.counts)
                self._annotations = parsed.annotations
        elif isinstance(state, (int, np.integer)):
            m, n = int(state), 0 if n is None else int(n)
            if m < 0 or n < 0:
                raise ValueError("Numbers of modes and photons cannot be negative")
            if m == 0 and n > 0:
                raise ValueError("Photons cannot be placed in a state without modes")
            self._m = m
            self._n = n
            self._code = np.zeros(n, dtype=int) if n else EMPTY_CODE
        elif state is not None:
            counts = [int(count) for count in state]
            self._m = len(counts)
            self._set_counts(counts)

        for mode, mode_annotations in (annotations or {}).items():
            self.set_mode_annotations(
                mode, [annotation_factory(annot) if isinstance(annot, str) else annot for annot in mode_annotations]
            )

    def _set_counts(self, counts: Sequence[int]) -> None:
        if min(counts, default=0) < 0:
            raise ValueError("Photon numbers cannot be negative")
        self._n = sum(counts)
        self._code = np.repeat(np.arange(self._m), counts) if self._n else EMPTY_CODE

    @classmethod
    def _from_code(
        cls, m: int, code: np.ndarray, owned: bool = True, annotations: Optional[AnnotationMap] = None
    ) -> "FockState":
        """Build a state directly from a sorted mode-specifying code, whose validity is not checked.

        Args:
            m: number of optical modes, $m$
            code: sorted array of the mode of each photon
            owned: whether the state can take the array as is, otherwise it stores a copy
            annotations: annotation entries of each mode, taken as is

        Returns:
            New Fock state backed by the code, or by `EMPTY_CODE` when it holds no photon
        """
        fs = cls(m)
        if len(code):
            fs._code = code if owned else np.array(code, dtype=int)
            fs._n = len(code)
        fs._annotations = annotations if annotations is not None else {}
        return fs

    @property
    def m(self) -> int:
        """Number of optical modes, $m$."""
        return self._m

    @property
    def n(self) -> int:
        """Number of photons, $n$."""
        return self._n

    @property
    def kind(self) -> CodeKind:
        """Kind of code backing the state."""
        if self._code is None:
            return CodeKind.UNDEFINED
        if self._code is EMPTY_CODE:
            return CodeKind.BORROWED
        return CodeKind.OWNED

    @property
    def is_defined(self) -> bool:
        return self._code is not None

    def _require_defined(self) -> None:
        if self._code is None:
            raise InvalidOperand("cannot make operation on undefined state")

    def copy(self) -> "FockState":
        """Deep copy of the state, annotations included.

        Returns:
            New Fock state that shares no array with this one, except `EMPTY_CODE`
        """
        return FockState().assign(self)

    __copy__ = copy

    def assign(self, other: "FockState") -> "FockState":
        """Replace the content of this state by a copy of another state.

        Args:
            other: state to copy

        Returns:
            This state, after the assignment
        """
        if other is self:
            return self
        self._m = other._m
        self._n = other._n
        if other._code is None:
            self._code = None
        else:
            self._code = other._code.copy() if other._n else EMPTY_CODE
        self._annotations = _copy_annotations(other._annotations)
        return self

    def to_vect(self) -> np.ndarray:
        """Number of photons in each optical mode.

        Returns:
            $m$-length array of the photon numbers
        """
        self._require_defined()
        return np.bincount(self._code, minlength=self._m)

    def to_modes(self) -> np.ndarray:
        """Copy of the state in mode-specifying form.

        Returns:
            $n$-length sorted array of the mode of each photon
        """
        self._require_defined()
        return self._code.copy()

    def photon2mode(self, k: int) -> int:
        """Optical mode of the $k$-th photon."""
        self._require_defined()
        if not 0 <= k < self._n:
            raise IndexError(f"invalid photon index {k}")
        return int(self._code[k])

    def __getitem__(self, key: Union[int, slice]) -> Union[int, "FockState"]:
        """Number of photons in a mode, or the state restricted to a range of modes.

        Args:
            key: index of the mode in $[0, m)$, or a slice of modes

        Returns:
            Photon number of the mode, or a new Fock state when `key` is a slice

        Raises:
            InvalidModeIndex: if the mode index lies outside of $[0, m)$
        """
        if isinstance(key, slice):
            start = 0 if key.start is None else key.start
            end = self._m if key.stop is None else key.stop
            step = 1 if key.step is None else key.step
            return self.slice(start, end, step)

        if not 0 <= key < self._m:
            raise InvalidModeIndex(f"invalid mode {key}")
        self._require_defined()

        # photons are sorted by mode, stop as soon as a higher mode is reached
        count = 0
        for mode in self._code:
            if mode > key:
                break
            if mode == key:
                count += 1
        return count

    def increment(self) -> "FockState":
        """Move to the next state of the symmetric Fock basis, in lexicographic order of the modes of the photons.

        The last photon that is not in the last mode moves to the next mode, and all photons after it are gathered
        in that same mode. Once all photons are in the last mode, the enumeration is over and the state becomes
        undefined. Annotations are cleared since photons change modes.

        Returns:
            This state, after the move

        Raises:
            InvalidOperand: if the state is undefined
        """
        self._require_defined()
        self._annotations = {}

        movable = np.nonzero(self._code != self._m - 1)[0]
        if not movable.size:
            logger.debug(f"Enumeration of {self._n} photons in {self._m} modes is exhausted")
            self._code = None
            return self

        # a state with movable photons owns its code
        i = movable[-1]
        self._code[i:] = self._code[i] + 1
        return self

    def __iadd__(self, c: int) -> "FockState":
        if not isinstance(c, (int, np.integer)):
            return NotImplemented
        self._require_defined()
        for _ in range(c):
            if self._code is None:
                break
            self.increment()
        return self

    def __add__(self, c: int) -> "FockState":
        if not isinstance(c, (int, np.integer)):
            return NotImplemented
        self._require_defined()
        fs = self.copy()
        fs += c
        return fs

    def __mul__(self, other: "FockState") -> "FockState":
        """Tensor product of two states, the modes of `other` following those of this state.

        Raises:
            InvalidOperand: if either state is undefined
        """
        if not isinstance(other, FockState):
            return NotImplemented
        self._require_defined()
        other._require_defined()
        code = np.concatenate((self._code, other._code + self._m))
        annotations = {**_copy_annotations(self._annotations), **_copy_annotations(other._annotations, self._m)}
        return FockState._from_code(self._m + other._m, code, annotations=annotations)

    def prodnfact(self) -> int:
        """Product of the factorials of the photon numbers of all modes, $\\prod_i n_i!$.

        Returns:
            Exact value of the product
        """
        self._require_defined()

        # the code is sorted, so counting unique modes gives the length of each run of photons
        _, runs = np.unique(self._code, return_counts=True)
        p = 1
        for run in runs:
            p *= factorial(int(run))
        return p

    def _check_slice(self, start: int, end: int, step: int) -> tuple:
        if step <= 0:
            raise ValueError("Slice step must be positive")

        # negative bounds count from the end, as for python sequences
        if start < 0:
            start += self._m
        if end < 0:
            end += self._m
        start = min(max(start, 0), self._m)
        end = min(max(end, 0), self._m)
        self._require_defined()

        slice_m = len(range(start, end, step))
        selected = (self._code >= start) & (self._code < end) & ((self._code - start) % step == 0)
        return start, end, slice_m, selected

    def slice(self, start: int, end: int, step: int = 1) -> "FockState":
        """Restrict the state to the modes visited from `start` to `end` (excluded) with the given step.

        Args:
            start: first mode of the range, counted from the end if negative
            end: mode ending the range, counted from the end if negative
            step: distance between consecutive selected modes

        Returns:
            New Fock state whose modes are the selected ones, renumbered from 0

        Raises:
            InvalidOperand: if the state is undefined
        """
        start, end, slice_m, selected = self._check_slice(start, end, step)
        code = (self._code[selected] - start) // step
        annotations = {
            (mode - start) // step: [[count, annot] for count, annot in entries]
            for mode, entries in self._annotations.items()
            if start <= mode < end and (mode - start) % step == 0
        }
        return FockState._from_code(slice_m, code, annotations=annotations)

    def set_slice(self, fs: "FockState", start: int, end: int) -> "FockState":
        """Replace the modes from `start` to `end` (excluded) by another state.

        Since `fs` spans exactly the replaced range, its photons land in that range and the modes of the result
        remain sorted.

        Args:
            fs: state replacing the range, with as many modes as the range
            start: first mode of the range, counted from the end if negative
            end: mode ending the range, counted from the end if negative

        Returns:
            New Fock state with the same number of modes as this one

        Raises:
            InvalidOperand: if either state is undefined
            SliceMismatch: if the number of modes of `fs` differs from the size of the range
        """
        start, end, slice_m, _ = self._check_slice(start, end, 1)
        if fs.m != slice_m:
            raise SliceMismatch(f"invalid fockstate to replace in slice, expected {slice_m} modes, got {fs.m}")
        fs._require_defined()

        # photons of the lower modes, then those of the replacement, then those of the higher modes
        upper = max(start, end)
        code = np.concatenate((self._code[self._code < start], fs._code + start, self._code[self._code >= upper]))
        annotations = {
            mode: [[count, annot] for count, annot in entries]
            for mode, entries in self._annotations.items()
            if mode < start or mode >= upper
        }
        annotations.update(_copy_annotations(fs._annotations, start))
        return FockState._from_code(self._m, code, annotations=annotations)

    def set_mode_annotations(self, mode: int, annotations: Sequence[AnnotationLike]) -> None:
        """Set the annotations of the photons of a mode, replacing the previous ones.

        Annotations rendering to the same string are merged, and those rendering to an empty string are dropped.

        Args:
            mode: index of the mode in $[0, m)$
            annotations: annotation of each annotated photon of the mode

        Raises:
            InvalidModeIndex: if the mode index lies outside of $[0, m)$
            AnnotationCountError: if there are more annotations than photons in the mode
        """
        if not 0 <= mode < self._m:
            raise InvalidModeIndex(f"invalid mode index {mode}")

        entries: Dict[str, list] = {}
        for annot in annotations:
            key = annot.to_str()
            if key and key in entries:
                entries[key][0] += 1
            elif key:
                entries[key] = [1, annot]

        annotated = sum(count for count, _ in entries.values())
        if annotated > self[mode]:
            raise AnnotationCountError(f"{annotated} annotations given for {self[mode]} photons in mode {mode}")
        if entries:
            self._annotations[mode] = list(entries.values())
        else:
            self._annotations.pop(mode, None)

    def get_mode_annotations(self, mode: int) -> List[AnnotationLike]:
        """Annotations of the photons of a mode, one per annotated photon."""
        if not 0 <= mode < self._m:
            raise InvalidModeIndex(f"invalid mode index {mode}")
        return [annot for count, annot in self._annotations.get(mode, []) for _ in range(count)]

    def get_photon_annotation(self, k: int) -> Optional[AnnotationLike]:
        """Annotation of the $k$-th photon, `None` if it has none.

        Within a mode, annotations are given to photons in order, the remaining photons having none.
        """
        mode = self.photon2mode(k)
        position = k - int(np.searchsorted(self._code, mode, side="left"))
        mode_annotations = self.get_mode_annotations(mode)
        return mode_annotations[position] if position < len(mode_annotations) else None

    def photon_annotations(self) -> List[Optional[AnnotationLike]]:
        """Annotation of every photon, in the order of the photons.

        Returns:
            $n$-length list holding the annotation of each photon, `None` for photons without annotation
        """
        self._require_defined()
        annotations: List[Optional[AnnotationLike]] = [None] * self._n

        # photons of a mode are contiguous, the annotated ones come first
        for mode, entries in self._annotations.items():
            k = int(np.searchsorted(self._code, mode, side="left"))
            for count, annot in entries:
                annotations[k : k + count] = [annot] * count
                k += count
        return annotations

    def clear_annotations(self) -> None:
        self._annotations = {}

    @property
    def has_annotations(self) -> bool:
        return bool(self._annotations)

    @property
    def has_polarization(self) -> bool:
        """Whether a photon is annotated with a polarization `P`."""
        return any("P" in annot for entries in self._annotations.values() for _, annot in entries)

    def separate_state(self) -> List["FockState"]:
        """Split the state into states of mutually distinguishable photons, based on their annotations.

        See [partition](partition.md) for the greedy grouping of the photons.

        Returns:
            List of states without annotations, or a single copy of this state without annotations if all photons
                are indistinguishable

        Raises:
            InvalidOperand: if the state is undefined
        """
        self._require_defined()
        if not self._n:
            return [self.copy()]

        groups = group_photons(self.photon_annotations())
        logger.debug(f"State {self} separated into {len(groups)} groups of photons")
        if len(groups) == 1:
            fs = self.copy()
            fs.clear_annotations()
            return [fs]
        return [FockState(np.bincount(self._code[photons], minlength=self._m)) for photons in groups]

    def to_str(self, show_annotations: bool = True) -> str:
        """Render the state as a ket.

        Annotated photons are written first, e.g. `2{P:H}` or `{P:V}` for a single photon, followed by the number
        of photons without annotation. An undefined state is written with commas only.

        Args:
            show_annotations: whether annotations are written

        Returns:
            Textual form of the state, e.g. `|{P:H}1,0>`
        """
        if self._code is None:
            return "|" + "," * max(self._m - 1, 0) + ">"

        parts = []
        for mode, count in enumerate(self.to_vect()):
            part = ""
            annotated = 0
            if show_annotations:
                for annot_count, annot in self._annotations.get(mode, []):
                    part += ("{" if annot_count == 1 else f"{annot_count}{{") + annot.to_str() + "}"
                    annotated += annot_count
            if not part or count > annotated:
                part += str(count - annotated)
            parts.append(part)
        return "|" + ",".join(parts) + ">"

    def __str__(self) -> str:
        return self.to_str()

    def __repr__(self) -> str:
        return f"FockState('{self.to_str()}')"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FockState):
            return NotImplemented
        if self._m != other._m or self._n != other._n:
            return False
        if self._m == 0:
            return True
        if self._code is None or other._code is None:
            return self._code is None and other._code is None
        return bool(np.array_equal(self._code, other._code))

    def __hash__(self) -> int:
        code = None if self._m == 0 or self._code is None else tuple(self._code.tolist())
        return hash((self._m, self._n, code))


def parse(text: str, annotation_factory: AnnotationFactory = Annotation) -> FockState:
    """Build a Fock state from its textual form, see [parser](parser.md) for the grammar.

    Args:
        text: textual Fock state, e.g. `|1,0{P:H}>`
        annotation_factory: callable building an annotation from the text found between braces

    Returns:
        The corresponding Fock state

    Raises:
        ParseError: if the text does not follow the grammar
    """
    return FockState(text, annotation_factory=annotation_factory)
