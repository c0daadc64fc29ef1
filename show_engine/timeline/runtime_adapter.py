"""
Runtime view of the imported show timeline.

Holds the compiled timeline for the session and the section currently
being performed, and answers marker lookups for scheduling.
"""

import logging
from typing import Any, Dict, List, Optional

from .compiler import compile_bundle
from .timeline_types import CompiledTimeline, EngineCueMarker, TheatreExportBundle

logger = logging.getLogger(__name__)

class TimelineRuntimeAdapter:
    """
    Single source of truth for the imported timeline.

    A re-import replaces the compiled timeline wholesale. Nothing here checks
    section membership: callers confirm a section against `sections()`
    before activating it.
    """

    def __init__(self):
        self._compiled: Optional[CompiledTimeline] = None
        self._active_section: Optional[str] = None
        self._imports = 0

    @property
    def compiled(self) -> Optional[CompiledTimeline]:
        return self._compiled

    @property
    def active_section(self) -> Optional[str]:
        return self._active_section

    def import_bundle(self, bundle: TheatreExportBundle) -> int:
        """
        Compile a validated bundle and make it the current timeline.

        The active section becomes the first compiled section.

        Returns:
            Number of markers in the new timeline
        """
        compiled = compile_bundle(bundle)

        if self._compiled is not None:
            logger.info(f"Replacing timeline {self._compiled.version!r} with {compiled.version!r}")

        self._compiled = compiled
        self._active_section = compiled.sections[0] if compiled.sections else None
        self._imports += 1

        logger.info(f"Imported timeline {compiled.version!r}: {len(compiled.markers)} markers, "
                    f"active section {self._active_section!r}")
        return len(compiled.markers)

    def activate_section(self, section: str) -> int:
        """
        Make a section the active one.

        Returns:
            Number of markers in that section
        """
        previous = self._active_section
        self._active_section = section
        count = len(self.list_markers(section))

        logger.info(f"Active section: {previous!r} → {section!r} ({count} markers)")
        return count

    def list_markers(self, section: Optional[str] = None) -> List[EngineCueMarker]:
        """
        Markers of the given section, else of the active section.

        With neither a section nor an active section every marker is
        returned. Before any import the result is empty.
        """
        if self._compiled is None:
            return []

        selected = section if section is not None else self._active_section
        if selected is None:
            return list(self._compiled.markers)

        return [marker for marker in self._compiled.markers if marker.section == selected]

    def sections(self) -> List[str]:
        """Compiled section names, or an empty list before any import."""
        if self._compiled is None:
            return []
        return list(self._compiled.sections)

    def get_stats(self) -> Dict[str, Any]:
        compiled = self._compiled
        return {
            'imports': self._imports,
            'version': compiled.version if compiled else None,
            'fps': compiled.fps if compiled else None,
            'marker_count': len(compiled.markers) if compiled else 0,
            'section_count': len(compiled.sections) if compiled else 0,
            'envelope_count': len(compiled.envelopes) if compiled else 0,
            'active_section': self._active_section
        }
