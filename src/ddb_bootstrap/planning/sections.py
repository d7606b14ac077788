"""Horizontal split of the segment space across cooperating processes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from ddb_bootstrap.errors import BootstrapError, ErrorKind

__all__ = ["SectionSpec", "validate_section", "owned_segments"]


@dataclass(frozen=True)
class SectionSpec:
    """This process's slice of the table's scan segments."""

    index: int
    total_sections: int

    def owns(self, segment: int) -> bool:
        return segment % self.total_sections == self.index


def validate_section(index: int, total_sections: int, total_segments: int) -> SectionSpec:
    """
    Check that (index, total_sections) can be satisfied by total_segments.

    Raises:
        BootstrapError: SECTION_OUT_OF_RANGE unless
            0 <= index < total_sections <= total_segments
    """
    if total_sections < 1:
        raise BootstrapError(
            ErrorKind.SECTION_OUT_OF_RANGE,
            f"Total sections must be at least 1, got {total_sections}",
        )
    if index < 0 or index >= total_sections:
        raise BootstrapError(
            ErrorKind.SECTION_OUT_OF_RANGE,
            f"Section {index} is outside 0..{total_sections - 1}",
        )
    if total_sections > total_segments:
        raise BootstrapError(
            ErrorKind.SECTION_OUT_OF_RANGE,
            f"Cannot split {total_segments} segments into {total_sections} sections",
        )
    return SectionSpec(index=index, total_sections=total_sections)


def owned_segments(section: SectionSpec, total_segments: int) -> List[int]:
    """Segment ids scanned by this section, interleaved (s mod sections == index)."""
    return [s for s in range(total_segments) if section.owns(s)]
