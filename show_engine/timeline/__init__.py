"""
Timeline package for the show engine.

Validates authored show bundles, compiles them into a section-indexed
timeline and tracks the active section during a performance.
"""

from .errors import (
    TimelineError,
    MissingVersionError,
    InvalidFpsError,
    MissingSequenceError,
    MissingMarkersError,
    InvalidBeatError,
    UnknownSectionError,
    MalformedBundleError
)
from .timeline_types import (
    CueAction,
    EngineSequence,
    EngineCueMarker,
    EngineEnvelopeTemplate,
    TheatreExportBundle,
    CompiledTimeline
)
from .compiler import validate_bundle, compile_bundle
from .runtime_adapter import TimelineRuntimeAdapter

__all__ = [
    # Errors
    'TimelineError',
    'MissingVersionError',
    'InvalidFpsError',
    'MissingSequenceError',
    'MissingMarkersError',
    'InvalidBeatError',
    'UnknownSectionError',
    'MalformedBundleError',

    # Bundle data
    'CueAction',
    'EngineSequence',
    'EngineCueMarker',
    'EngineEnvelopeTemplate',
    'TheatreExportBundle',
    'CompiledTimeline',

    # Compilation and runtime
    'validate_bundle',
    'compile_bundle',
    'TimelineRuntimeAdapter'
]
