"""
The `fockcode.parser` module includes the grammar front-end that reads textual Fock states.

A Fock state is written as a comma-separated list of photon numbers, one per optical mode, enclosed in a ket
`|1,0,2>` or in brackets `[1,0,2]` / parentheses `(1,0,2)`. Each photon number can be split into terms carrying an
annotation between braces, e.g. `|2{P:H}1,{P:V}>` holds two horizontally polarized photons and one photon without
annotation in the first mode, and a vertically polarized photon in the second one. A body made only of commas, such
as `|,,>`, describes the number of modes of a state whose photons are undefined.
"""

import logging
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from fockcode.annotation import Annotation, AnnotationLike
from fockcode.errors import ParseError

logger = logging.getLogger(__name__)

DIGITS = "0123456789"
KET_CLOSERS = (">", "〉", "⟩")
OPEN_TO_CLOSE = {"[": ("]",), "(": (")",), "|": KET_CLOSERS}

AnnotationFactory = Callable[[str], AnnotationLike]


class ParsedFock(NamedTuple):
    """Raw content of a textual Fock state.

    Attributes:
        m (int): number of optical modes, $m$
        counts (list): photon number of each mode, `None` when only the number of modes is specified
        annotations (dict): mapping from each annotated mode to its `[count, annotation]` entries
    """

    m: int
    counts: Optional[List[int]]
    annotations: Dict[int, List[list]]


def _at(text: str, pos: int, chars: str) -> bool:
    return pos < len(text) and text[pos] in chars


def _skip_blanks(text: str, pos: int) -> int:
    while _at(text, pos, " "):
        pos += 1
    return pos


def _parse_mode(text: str, pos: int, annotation_factory: AnnotationFactory) -> Tuple[int, List[list], int]:
    """Parse the terms describing the photons of a single mode.

    Args:
        text: full textual Fock state
        pos: position of the first term of the mode
        annotation_factory: callable building an annotation from the text found between braces

    Returns:
        Tuple containing the photon number of the mode, its `[count, annotation]` entries merged by canonical string,
            and the position following the last term
    """
    total = 0
    entries: Dict[str, list] = {}
    while _at(text, pos, DIGITS + "{"):
        count = 0
        if text[pos] == "{":
            count = 1
        else:
            while _at(text, pos, DIGITS):
                count = 10 * count + int(text[pos])
                pos += 1

        if _at(text, pos, "{"):
            if count == 0:
                raise ParseError(f"invalid fock state representation '{text}' (annotation on 0 photons)")
            close = text.find("}", pos + 1)
            if close < 0:
                raise ParseError(f"invalid fock state representation '{text}' (no annotation close)")
            annot = annotation_factory(text[pos + 1 : close])
            pos = close + 1

            # annotations rendering to the same string are the same annotation, the first one is kept
            key = annot.to_str()
            if key and key in entries:
                entries[key][0] += count
            elif key:
                entries[key] = [count, annot]

        total += count

    return total, list(entries.values()), pos


def parse_fock(text: str, annotation_factory: AnnotationFactory = Annotation) -> ParsedFock:
    """Read the number of modes, photon numbers and annotations from a textual Fock state.

    Args:
        text: textual Fock state, e.g. `|1,0{P:H}>`, `[1,0]`, `(1,0)` or `|,>`
        annotation_factory: callable building an annotation from the text found between braces

    Returns:
        Parsed content of the state, where the photon numbers are `None` for a mode-count-only descriptor

    Raises:
        ParseError: if the text does not follow the grammar
    """
    pos = _skip_blanks(text, 0)
    if not _at(text, pos, "".join(OPEN_TO_CLOSE)):
        raise ParseError(f"invalid fock state representation '{text}' (bad opening delimiter)")
    closers = OPEN_TO_CLOSE[text[pos]]
    pos = _skip_blanks(text, pos + 1)

    counts: Optional[List[int]] = []
    annotations: Dict[int, List[list]] = {}
    m = 0
    if _at(text, pos, ","):
        # only commas, the photons are undefined
        m = 1
        while _at(text, pos, ","):
            m += 1
            pos = _skip_blanks(text, pos + 1)
        counts = None
    elif _at(text, pos, DIGITS + "{"):
        while True:
            n_mode, entries, pos = _parse_mode(text, pos, annotation_factory)
            if entries:
                annotations[len(counts)] = entries
            counts.append(n_mode)

            pos = _skip_blanks(text, pos)
            if not _at(text, pos, ","):
                break
            pos = _skip_blanks(text, pos + 1)
            if not _at(text, pos, DIGITS + "{"):
                raise ParseError(f"invalid fock state representation '{text}' (digit or '{{' expected)")
        m = len(counts)

    if not _at(text, pos, "".join(closers)):
        raise ParseError(f"invalid fock state representation '{text}' (bad close)")
    if text[pos + 1 :].strip():
        raise ParseError(f"invalid fock state representation '{text}' (extra chars)")

    logger.debug(f"Parsed '{text}': {m} modes, photons {counts}")
    return ParsedFock(m, counts, annotations)
