"""
Bundle validation and compilation.
"""

import logging

from .errors import (
    InvalidBeatError,
    InvalidFpsError,
    MissingMarkersError,
    MissingSequenceError,
    MissingVersionError,
)
from .timeline_types import CompiledTimeline, TheatreExportBundle

logger = logging.getLogger(__name__)

MIN_BEAT = 1
MAX_BEAT = 4

def validate_bundle(bundle: TheatreExportBundle) -> None:
    """
    Check a bundle before it is compiled.

    Checks run in a fixed order and stop at the first failure, so exactly
    one error is reported per call.

    Raises:
        MissingVersionError: Version is empty or whitespace
        InvalidFpsError: fps is zero
        MissingSequenceError: No sequences
        MissingMarkersError: No cue markers
        InvalidBeatError: First marker whose beat is outside 1..4
    """
    if not bundle.version.strip():
        raise MissingVersionError()

    if bundle.fps == 0:
        raise InvalidFpsError()

    if not bundle.sequences:
        raise MissingSequenceError()

    if not bundle.cue_markers:
        raise MissingMarkersError()

    for marker in bundle.cue_markers:
        if not MIN_BEAT <= marker.beat <= MAX_BEAT:
            raise InvalidBeatError(marker.id)

def compile_bundle(bundle: TheatreExportBundle) -> CompiledTimeline:
    """
    Sort and index a validated bundle.

    Markers are sorted by (bar, beat); the sort is stable so markers at the
    same position keep their authored order. Sections are the union of
    marker and sequence sections in lexicographic order.
    """
    markers = sorted(bundle.cue_markers, key=lambda marker: marker.position)
    sections = sorted({marker.section for marker in markers} |
                      {sequence.section for sequence in bundle.sequences})

    compiled = CompiledTimeline(
        version=bundle.version,
        fps=bundle.fps,
        sections=tuple(sections),
        markers=tuple(markers),
        envelopes=tuple(bundle.envelope_templates)
    )

    logger.info(f"Compiled timeline {bundle.version!r}: {len(markers)} markers "
                f"across {len(sections)} sections at {bundle.fps} fps")
    return compiled
