from dataclasses import dataclass


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in preview coordinates."""
    min_x: float
    min_y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.min_x + self.width

    @property
    def max_y(self) -> float:
        return self.min_y + self.height

    def is_well_formed(self) -> bool:
        return self.width >= 0 and self.height >= 0

    def shrink(self, inset: float) -> "Rect":
        """
        Subtracts the inset from width and height, keeping the origin.
        The face box is only narrowed on its right and bottom edges.
        """
        return Rect(self.min_x, self.min_y, self.width - inset, self.height - inset)


def contains(outside: Rect, inside: Rect) -> bool:
    """
    Checks whether `inside` lies fully within `outside`.
    Malformed rectangles are not special-cased.
    """
    return (
        inside.min_x >= outside.min_x
        and inside.min_y >= outside.min_y
        and inside.max_x <= outside.max_x
        and inside.max_y <= outside.max_y
    )
