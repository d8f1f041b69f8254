"""NumberRange value object — immutable closed interval of consignment numbers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class NumberRange:
    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Range start {self.start} is greater than end {self.end}")

    @property
    def size(self) -> int:
        return self.end - self.start + 1

    def contains(self, number: int) -> bool:
        return self.start <= number <= self.end

    def overlaps(self, other: "NumberRange") -> bool:
        """Closed-interval intersection test."""
        return self.start <= other.end and self.end >= other.start

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"
