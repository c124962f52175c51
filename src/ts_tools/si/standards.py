"""Broadcast standards profiles that change how some tables are encoded."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntFlag


# Bit mask of standards.  Several standards may be active at the same time, for instance
# ISDB | JAPAN for terrestrial broadcasts in Japan.
class Standards(IntFlag):
    NONE = 0x00
    MPEG = 0x01
    DVB = 0x02
    SCTE = 0x04
    ATSC = 0x08
    ISDB = 0x10
    # Japan-specific variants: the TOT carries JST instead of UTC.
    JAPAN = 0x20
    ABNT = 0x40


@dataclass(frozen=True, kw_only=True)
class Context:
    """Contains the settings needed by every table and descriptor codec call.

    The context is always passed explicitly; no codec reads global state.
    """

    standards: Standards = Standards.NONE

    @property
    def japan(self) -> bool:
        return (self.standards & Standards.JAPAN) == Standards.JAPAN

    def with_standards(self, standards: Standards) -> Context:
        """Return a copy of the context with additional standards flags set."""
        return replace(self, standards=self.standards | standards)
