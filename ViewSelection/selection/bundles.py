"""
Camera Bundles
==============

Result table of a selection run: every main camera with the distinct side
cameras chosen for it, and the two-level cursor used by the refinement driver.
"""

from typing import Dict, Iterator, List, Optional, Tuple

SENTINEL = -1


class BundleTable:
    """Ordered mapping main camera -> distinct side cameras"""

    def __init__(self):
        self._bundles: Dict[int, List[int]] = {}

    def add(self, main: int, side: int) -> bool:
        """
        Record a (main, side) pair.

        Returns:
            True if the side camera was not yet listed under this main camera
        """
        sides = self._bundles.setdefault(main, [])
        if side in sides:
            return False
        sides.append(side)
        return True

    def sort(self):
        """Order the bundles by main camera index"""
        self._bundles = dict(sorted(self._bundles.items()))

    def mains(self) -> List[int]:
        return list(self._bundles)

    def sides(self, main: int) -> List[int]:
        return list(self._bundles.get(main, []))

    def items(self) -> Iterator[Tuple[int, List[int]]]:
        for main, sides in self._bundles.items():
            yield main, list(sides)

    def pairs(self) -> Iterator[Tuple[int, int]]:
        for main, sides in self._bundles.items():
            for side in sides:
                yield main, side

    @property
    def pair_count(self) -> int:
        return sum(len(sides) for sides in self._bundles.values())

    def __len__(self) -> int:
        return len(self._bundles)

    def __repr__(self) -> str:
        return f"BundleTable(mains={len(self)}, pairs={self.pair_count})"


class BundleIterator:
    """
    Cursor over a bundle table: main cameras in order, then the side cameras
    of the current main camera.

    All methods return SENTINEL once a level is exhausted. Side queries for a
    main camera other than the one under the cursor also return SENTINEL
    instead of raising.
    """

    def __init__(self, table: BundleTable):
        self.table = table
        self._mains: List[int] = []
        self._main_pos: Optional[int] = None
        self._side_pos = 0

    def _current_main(self) -> Optional[int]:
        if self._main_pos is None or self._main_pos >= len(self._mains):
            return None
        return self._mains[self._main_pos]

    def begin_main(self) -> int:
        """Position on the first main camera"""
        self._mains = self.table.mains()
        if not self._mains:
            self._main_pos = None
            return SENTINEL
        self._main_pos = 0
        return self._mains[0]

    def next_main(self) -> int:
        if self._main_pos is None:
            return SENTINEL
        self._main_pos += 1
        current = self._current_main()
        return SENTINEL if current is None else current

    def begin_side(self, imain: int) -> int:
        """Position on the first side camera of the current main camera"""
        current = self._current_main()
        if current is None or imain != current:
            return SENTINEL
        sides = self.table.sides(current)
        if not sides:
            return SENTINEL
        self._side_pos = 0
        return sides[0]

    def next_side(self, imain: int) -> int:
        current = self._current_main()
        if current is None or imain != current:
            return SENTINEL
        sides = self.table.sides(current)
        self._side_pos += 1
        if self._side_pos >= len(sides):
            return SENTINEL
        return sides[self._side_pos]
