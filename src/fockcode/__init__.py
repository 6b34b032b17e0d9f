from fockcode.annotation import Annotation, AnnotationLike
from fockcode.basis import build_symm_basis, build_symm_mode_basis, calc_symm_dim, iter_symm_states
from fockcode.errors import (
    AnnotationCountError,
    FockStateError,
    InvalidModeIndex,
    InvalidOperand,
    ParseError,
    SliceMismatch,
)
from fockcode.parser import ParsedFock, parse_fock
from fockcode.partition import group_photons
from fockcode.state import EMPTY_CODE, CodeKind, FockState, parse
from fockcode.utils import calc_norm
