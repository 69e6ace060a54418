from typing import Callable, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")


def split_on(items: Iterable[T], is_break: Callable[[T], bool]) -> List[List[T]]:
    """
    Partitions items into groups separated by elements matching is_break.
    Break elements are consumed (they belong to no group).

    A leading break yields a leading empty group, consecutive breaks yield an
    empty group between them and a trailing break yields a trailing empty
    group. Input without breaks yields one group; empty input yields none.
    """
    current: Optional[List[T]] = None
    groups: List[List[T]] = []

    for item in items:
        if current is None:
            current = []
            groups.append(current)

        if is_break(item):
            current = []
            groups.append(current)
        else:
            current.append(item)

    return groups


def join_groups(groups: Sequence[Sequence[T]], separator: T) -> List[T]:
    """Inverse of split_on: flattens groups with one separator between each pair."""
    joined: List[T] = []
    for i, group in enumerate(groups):
        if i > 0:
            joined.append(separator)
        joined.extend(group)
    return joined
