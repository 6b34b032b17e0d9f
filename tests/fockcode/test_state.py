import numpy as np
import pytest

from fockcode.annotation import Annotation
from fockcode.errors import AnnotationCountError, InvalidModeIndex, InvalidOperand, ParseError, SliceMismatch
from fockcode.state import CodeKind, FockState, parse


def test_parse():
    fs = parse("|1,1>")
    assert fs.m == 2
    assert fs.n == 2
    assert fs[0] == 1
    assert fs[1] == 1
    assert np.array_equal(fs.to_modes(), np.array([0, 1]))
    assert fs.to_str() == "|1,1>"

    fs = parse("|,,>")
    assert fs.m == 3
    assert fs.kind == CodeKind.UNDEFINED
    assert fs.to_str() == "|,,>"


def test_constructors():
    fs = FockState()
    assert (fs.m, fs.n) == (0, 0)
    assert fs.kind == CodeKind.UNDEFINED

    fs = FockState(3)
    assert (fs.m, fs.n) == (3, 0)
    assert fs.kind == CodeKind.BORROWED
    assert str(fs) == "|0,0,0>"

    fs = FockState(3, 2)
    assert fs.kind == CodeKind.OWNED
    assert str(fs) == "|2,0,0>"

    fs = FockState([1, 0, 2])
    assert (fs.m, fs.n) == (3, 3)
    assert np.array_equal(fs.to_vect(), np.array([1, 0, 2]))
    assert np.array_equal(fs.to_modes(), np.array([0, 2, 2]))
    assert FockState(np.array([0, 0])).kind == CodeKind.BORROWED

    with pytest.raises(ValueError):
        FockState(-1)
    with pytest.raises(ValueError):
        FockState(0, 2)
    with pytest.raises(ValueError):
        FockState([1, -1])
    with pytest.raises(ValueError):
        FockState([1, 0], 2)


def test_copy_assign():
    fs = FockState([1, 1])
    fs_copy = fs.copy()
    fs_copy.increment()
    assert str(fs) == "|1,1>"
    assert str(fs_copy) == "|0,2>"

    assert FockState(2).copy().kind == CodeKind.BORROWED
    assert FockState("|,>").copy().kind == CodeKind.UNDEFINED

    fs = FockState([2, 0])
    fs.assign(parse("|{P:H},1,0>"))
    assert fs == FockState([1, 1, 0])
    assert fs.has_annotations
    fs.assign(FockState(4))
    assert fs.kind == CodeKind.BORROWED
    assert fs.m == 4
    assert not fs.has_annotations


def test_increment():
    fs = parse("|2,0>")
    fs.increment()
    assert str(fs) == "|1,1>"
    fs.increment()
    assert str(fs) == "|0,2>"
    fs.increment()
    assert not fs.is_defined

    with pytest.raises(InvalidOperand):
        fs.increment()

    fs = FockState(3)
    fs.increment()
    assert not fs.is_defined


def test_increment_clears_annotations():
    fs = parse("|{P:H},0>")
    fs.increment()
    assert str(fs) == "|0,1>"
    assert not fs.has_annotations


def test_add():
    fs = parse("|2,0>")
    assert fs + 1 == FockState([1, 1])
    assert fs + 2 == FockState([0, 2])
    assert not (fs + 3).is_defined
    assert not (fs + 5).is_defined
    assert str(fs) == "|2,0>"

    fs += 2
    assert str(fs) == "|0,2>"
    fs += 10
    assert not fs.is_defined

    with pytest.raises(InvalidOperand):
        fs += 1
    with pytest.raises(InvalidOperand):
        FockState("|,>") + 1


def test_enumeration():
    for n, m, N in [(2, 2, 3), (3, 4, 20), (0, 3, 1), (4, 1, 1), (2, 5, 15)]:
        fs = FockState(m, n)
        codes = []
        while fs.is_defined:
            codes.append(tuple(fs.to_modes().tolist()))
            fs.increment()
        assert len(codes) == N
        assert all(a < b for a, b in zip(codes, codes[1:]))


def test_mul():
    fs = FockState(3, 0) * FockState(2, 0)
    assert (fs.m, fs.n) == (5, 0)
    assert str(fs) == "|0,0,0,0,0>"
    assert fs.kind == CodeKind.BORROWED

    a = FockState([1, 0, 2])
    b = FockState([0, 1])
    fs = a * b
    assert (fs.m, fs.n) == (a.m + b.m, a.n + b.n)
    assert str(fs) == "|1,0,2,0,1>"

    fs = parse("|{P:H}>") * parse("|0,{P:V}>")
    assert str(fs) == "|{P:H},0,{P:V}>"

    with pytest.raises(InvalidOperand):
        FockState("|,>") * FockState([1])
    with pytest.raises(InvalidOperand):
        FockState([1]) * FockState("|,>")


def test_prodnfact():
    assert FockState([2, 0, 3]).prodnfact() == 12
    assert FockState([1, 1, 1]).prodnfact() == 1
    assert FockState([0, 0]).prodnfact() == 1
    assert FockState([21]).prodnfact() == 51090942171709440000


def test_getitem():
    fs = FockState([1, 2, 0, 3])
    assert [fs[i] for i in range(4)] == [1, 2, 0, 3]

    with pytest.raises(InvalidModeIndex):
        fs[4]
    with pytest.raises(InvalidModeIndex):
        fs[-1]
    with pytest.raises(IndexError):
        fs[10]
    with pytest.raises(InvalidOperand):
        FockState("|,>")[0]


def test_slice():
    fs = FockState([1, 2, 0, 3])
    assert fs.slice(1, 3) == FockState([2, 0])
    assert fs.slice(0, 4, 2) == FockState([1, 0])
    assert fs.slice(1, 4, 2) == FockState([2, 3])
    assert fs.slice(-10, 10) == fs
    assert fs.slice(3, 1) == FockState(0)

    fs_slice = FockState(4).slice(-2, -1)
    assert (fs_slice.m, fs_slice.n) == (1, 0)
    assert fs.slice(-2, -1) == FockState([0])
    assert fs.slice(-2, -1).kind == CodeKind.BORROWED

    assert fs[1:] == FockState([2, 0, 3])
    assert fs[::2] == FockState([1, 0])
    assert fs[:-1] == FockState([1, 2, 0])

    assert str(parse("|{P:H},{P:V}>").slice(1, 2)) == "|{P:V}>"

    with pytest.raises(InvalidOperand):
        FockState("|,,>").slice(0, 1)
    with pytest.raises(ValueError):
        fs.slice(0, 2, 0)


def test_set_slice():
    fs = FockState([1, 2, 0, 3])
    fs_new = fs.set_slice(FockState([0, 5]), 1, 3)
    assert fs_new == FockState([1, 0, 5, 3])
    assert fs_new.n == 9
    assert fs == FockState([1, 2, 0, 3])

    assert fs.set_slice(FockState([4]), -1, 4) == FockState([1, 2, 0, 4])

    fs_new = FockState([1, 0]).set_slice(FockState([0]), 0, 1)
    assert str(fs_new) == "|0,0>"
    assert fs_new.kind == CodeKind.BORROWED

    fs_new = parse("|{P:H},0,1>").set_slice(parse("|{P:V}>"), 1, 2)
    assert str(fs_new) == "|{P:H},{P:V},1>"

    with pytest.raises(SliceMismatch):
        fs.set_slice(FockState([1]), 1, 3)
    with pytest.raises(InvalidOperand):
        fs.set_slice(FockState("|,>"), 1, 3)
    with pytest.raises(InvalidOperand):
        FockState("|,,>").set_slice(FockState([1]), 0, 1)

    # an empty range inserts nothing and keeps every photon once
    assert fs.set_slice(FockState(0), 3, 1) == fs
    assert fs.set_slice(FockState(0), -1, 1) == fs


def test_slice_set_slice_inverse():
    fs = FockState([2, 0, 1, 3, 1])
    for a in range(fs.m + 1):
        for b in range(a, fs.m + 1):
            assert fs.set_slice(fs.slice(a, b, 1), a, b) == fs


def test_eq_hash():
    a = FockState("|1,0>")
    b = FockState([1, 0])
    c = FockState("[1,0]")
    assert a == b and b == a
    assert b == c and a == c
    assert a == FockState("(1, 0)")
    assert hash(a) == hash(b) == hash(c)
    assert a != FockState([0, 1])
    assert a != FockState([1, 0, 0])
    assert a != "|1,0>"

    assert FockState("|,>") != FockState([0, 0])
    assert FockState("|,>") == FockState("|,>")
    assert hash(FockState("|,>")) == hash(FockState("|,>"))
    assert FockState() == FockState([])
    assert hash(FockState()) == hash(FockState([]))

    # annotations do not take part in equality
    assert parse("|{P:H},1>") == FockState([1, 1])
    assert hash(parse("|{P:H},1>")) == hash(FockState([1, 1]))
    assert len({FockState([1, 1]), parse("|1,1>"), FockState(2, 2)}) == 2


def test_to_str():
    fs = parse("|2{P:H}1,{P:V}>")
    assert fs.to_str() == "|2{P:H}1,{P:V}>"
    assert fs.to_str(show_annotations=False) == "|3,1>"
    assert repr(fs) == "FockState('|2{P:H}1,{P:V}>')"
    assert str(parse("|1{P:H},1{P:V}>")) == "|{P:H},{P:V}>"
    assert str(parse("[1,0]")) == "|1,0>"
    assert str(FockState()) == "|>"


def test_round_trip():
    for text in ["|1,1>", "|0,0,3>", "|>", "|{P:H}2,0>", "|2{P:H}{P:V},1{_:0}>", "[{P:H,_:1},0]"]:
        fs = parse(text)
        fs_again = parse(str(fs))
        assert fs_again == fs
        assert str(fs_again) == str(fs)


def test_annotations():
    fs = parse("|{P:H}1,{P:V}>")
    assert [fs.photon2mode(k) for k in range(3)] == [0, 0, 1]
    assert fs.get_photon_annotation(0).to_str() == "P:H"
    assert fs.get_photon_annotation(1) is None
    assert fs.get_photon_annotation(2).to_str() == "P:V"
    assert fs.has_polarization

    fs = FockState([2, 1], annotations={0: ["P:H", "P:V"]})
    assert [annot.to_str() for annot in fs.get_mode_annotations(0)] == ["P:H", "P:V"]
    assert fs.get_mode_annotations(1) == []
    assert str(fs) == "|{P:H}{P:V},1>"

    fs = parse("|{_:1},1>")
    assert fs.has_annotations
    assert not fs.has_polarization
    fs.clear_annotations()
    assert not fs.has_annotations
    assert str(fs) == "|1,1>"

    with pytest.raises(AnnotationCountError):
        FockState([1, 0], annotations={0: ["P:H", "P:V"]})
    with pytest.raises(InvalidModeIndex):
        FockState([1, 0], annotations={2: ["P:H"]})
    with pytest.raises(IndexError):
        fs.photon2mode(2)


def test_from_code():
    code = np.array([0, 2, 2])
    fs = FockState._from_code(3, code, owned=False)
    code[0] = 1
    assert fs == FockState([1, 0, 2])
    assert fs.kind == CodeKind.OWNED

    fs = FockState._from_code(3, np.zeros(0, dtype=int))
    assert fs.kind == CodeKind.BORROWED
    assert fs == FockState(3)


def test_round_trip_annotations():
    fs = FockState([2, 1], annotations={0: ["P:H", "_:0"], 1: ["P:V"]})
    assert str(fs) == "|{P:H}{_:0},{P:V}>"
    fs_again = parse(str(fs))
    assert fs_again == fs
    assert str(fs_again) == str(fs)

    # braces would end the annotation block early, they cannot reach a rendered state
    with pytest.raises(ParseError):
        FockState([1, 0], annotations={0: ["P:a}b"]})


def test_failed_annotation_leaves_state_unchanged():
    fs = parse("|{P:H}1,{P:V}>")
    text = str(fs)

    with pytest.raises(AnnotationCountError):
        fs.set_mode_annotations(1, [Annotation("P:H"), Annotation("P:V")])
    assert str(fs) == text

    with pytest.raises(InvalidModeIndex):
        fs.set_mode_annotations(2, [Annotation("P:H")])
    assert str(fs) == text


def test_photon_annotations():
    fs = parse("|{P:H}1,2{P:V},1>")
    annotations = fs.photon_annotations()
    assert [None if annot is None else annot.to_str() for annot in annotations] == ["P:H", None, "P:V", "P:V", None]
    assert annotations == [fs.get_photon_annotation(k) for k in range(fs.n)]
    assert FockState(2).photon_annotations() == []

    with pytest.raises(InvalidOperand):
        FockState("|,>").photon_annotations()


class Polarization:
    def __init__(self, text):
        self.text = text

    def to_str(self):
        return f"pol={self.text}"

    def compatible(self, other):
        return self if other.text == self.text else None

    def __contains__(self, key):
        return key == "P"


def test_custom_annotation_type():
    fs = FockState([1, 1], annotations={0: [Polarization("H")], 1: [Polarization("V")]})
    assert fs.has_polarization
    assert str(fs) == "|{pol=H},{pol=V}>"
    assert fs.separate_state() == [FockState([1, 0]), FockState([0, 1])]

    fs = FockState([1, 1], annotations={0: [Polarization("H")], 1: [Polarization("H")]})
    assert fs.separate_state() == [FockState([1, 1])]
