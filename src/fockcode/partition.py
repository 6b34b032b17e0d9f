"""
The `fockcode.partition` module includes the grouping of photons into mutually distinguishable sets.

Photons whose annotations are compatible cannot be told apart and interfere with each other, while incompatible ones
behave as if they were sent through the circuit separately. The grouping is greedy: photons are visited once, in
order, and each one joins the first group whose representative annotation it is compatible with, the representative
then becoming the merged annotation. When compatibility is not transitive, the resulting groups depend on the order
of the photons.
"""

from typing import List, Optional, Sequence, Tuple

from fockcode.annotation import AnnotationLike


def merge_annotations(
    first: Optional[AnnotationLike], second: Optional[AnnotationLike]
) -> Tuple[bool, Optional[AnnotationLike]]:
    """Merge two photon annotations, where `None` stands for a photon without annotation.

    Args:
        first: representative annotation of a group
        second: annotation of the photon to merge

    Returns:
        Tuple containing whether the annotations are compatible, and the merged annotation
    """
    if first is None:
        return True, second
    if second is None:
        return True, first
    merged = first.compatible(second)
    return merged is not None, merged


def group_photons(annotations: Sequence[Optional[AnnotationLike]]) -> List[List[int]]:
    """Split photons into groups of compatible annotations.

    Args:
        annotations: annotation of each photon, `None` for photons without annotation

    Returns:
        List of groups, each one being the list of the indices of its photons, in order of creation
    """
    groups: List[list] = []
    for k, annot in enumerate(annotations):
        for group in groups:
            can_merge, merged = merge_annotations(group[0], annot)
            if can_merge:
                group[0] = merged
                group[1].append(k)
                break
        else:
            groups.append([annot, [k]])

    return [photons for _, photons in groups]
