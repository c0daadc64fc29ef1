"""
Show bundle data types.

The authoring tool exports a TheatreExportBundle as JSON with camelCase keys.
`from_dict` checks the shape of that data (keys present, values of the right
type) and builds immutable records; semantic checks such as beat range and
non-empty lists belong to `validate_bundle`.
"""

import copy
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Tuple

from ..interfaces.scheduling_interfaces import QuantizeGrid
from .errors import MalformedBundleError

logger = logging.getLogger(__name__)

class CueAction(Enum):
    """What a cue marker does when released"""
    TRIGGER_CLIP = "trigger_clip"
    APPLY_ACCENT = "apply_accent"
    SWAP_SCENE = "swap_scene"

def _get(data: Mapping[str, Any], context: str, key: str, *aliases: str) -> Any:
    for name in (key,) + aliases:
        if name in data:
            return data[name]
    raise MalformedBundleError(f"{context} is missing '{key}'")

def _as_str(value: Any, context: str) -> str:
    if not isinstance(value, str):
        raise MalformedBundleError(f"{context} must be a string, got {type(value).__name__}")
    return value

def _as_count(value: Any, context: str) -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise MalformedBundleError(f"{context} must be a non-negative integer, got {value!r}")
    return value

def _as_number(value: Any, context: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedBundleError(f"{context} must be a number, got {value!r}")
    return float(value)

def _as_list(value: Any, context: str) -> list:
    if not isinstance(value, list):
        raise MalformedBundleError(f"{context} must be a list, got {type(value).__name__}")
    return value

def _as_mapping(value: Any, context: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedBundleError(f"{context} must be an object, got {type(value).__name__}")
    return value

def _as_enum(enum_cls, value: Any, context: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise MalformedBundleError(f"{context} must be one of {allowed}, got {value!r}") from None

@dataclass(frozen=True)
class EngineSequence:
    id: str
    name: str
    section: str

    @classmethod
    def from_dict(cls, data: Any, context: str = "sequence") -> 'EngineSequence':
        data = _as_mapping(data, context)
        return cls(
            id=_as_str(_get(data, context, 'id'), f"{context}.id"),
            name=_as_str(_get(data, context, 'name'), f"{context}.name"),
            section=_as_str(_get(data, context, 'section'), f"{context}.section"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'section': self.section}

@dataclass(frozen=True)
class EngineCueMarker:
    """
    A cue placed at a bar/beat position inside a section.

    `payload` is caller-defined JSON-like data and is carried through
    untouched.
    """
    id: str
    section: str
    bar: int
    beat: int
    quantize: QuantizeGrid
    action: CueAction
    payload: Any = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any, context: str = "marker") -> 'EngineCueMarker':
        data = _as_mapping(data, context)
        return cls(
            id=_as_str(_get(data, context, 'id'), f"{context}.id"),
            section=_as_str(_get(data, context, 'section'), f"{context}.section"),
            bar=_as_count(_get(data, context, 'bar'), f"{context}.bar"),
            beat=_as_count(_get(data, context, 'beat'), f"{context}.beat"),
            quantize=_as_enum(QuantizeGrid, _get(data, context, 'quantize'), f"{context}.quantize"),
            action=_as_enum(CueAction, _get(data, context, 'action'), f"{context}.action"),
            payload=copy.deepcopy(_get(data, context, 'payload')),
        )

    @property
    def position(self) -> Tuple[int, int]:
        """Sort key: (bar, beat)."""
        return (self.bar, self.beat)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'section': self.section,
            'bar': self.bar,
            'beat': self.beat,
            'quantize': self.quantize.value,
            'action': self.action.value,
            'payload': copy.deepcopy(self.payload),
        }

@dataclass(frozen=True)
class EngineEnvelopeTemplate:
    id: str
    name: str
    attack_ms: int
    decay_ms: int
    sustain: float
    release_ms: int
    curve_in: str
    curve_out: str

    @classmethod
    def from_dict(cls, data: Any, context: str = "envelope") -> 'EngineEnvelopeTemplate':
        data = _as_mapping(data, context)
        return cls(
            id=_as_str(_get(data, context, 'id'), f"{context}.id"),
            name=_as_str(_get(data, context, 'name'), f"{context}.name"),
            attack_ms=_as_count(_get(data, context, 'attackMs', 'attack_ms'), f"{context}.attackMs"),
            decay_ms=_as_count(_get(data, context, 'decayMs', 'decay_ms'), f"{context}.decayMs"),
            sustain=_as_number(_get(data, context, 'sustain'), f"{context}.sustain"),
            release_ms=_as_count(_get(data, context, 'releaseMs', 'release_ms'), f"{context}.releaseMs"),
            curve_in=_as_str(_get(data, context, 'curveIn', 'curve_in'), f"{context}.curveIn"),
            curve_out=_as_str(_get(data, context, 'curveOut', 'curve_out'), f"{context}.curveOut"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'attackMs': self.attack_ms,
            'decayMs': self.decay_ms,
            'sustain': self.sustain,
            'releaseMs': self.release_ms,
            'curveIn': self.curve_in,
            'curveOut': self.curve_out,
        }

@dataclass
class TheatreExportBundle:
    """Authored show data as exported, before validation."""
    version: str
    fps: int
    sequences: List[EngineSequence] = field(default_factory=list)
    cue_markers: List[EngineCueMarker] = field(default_factory=list)
    envelope_templates: List[EngineEnvelopeTemplate] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> 'TheatreExportBundle':
        """
        Build a bundle from exported JSON data.

        Raises:
            MalformedBundleError: If a key is missing or a value has the wrong type
        """
        data = _as_mapping(data, "bundle")
        sequences = _as_list(_get(data, "bundle", 'sequences'), "bundle.sequences")
        markers = _as_list(_get(data, "bundle", 'cueMarkers', 'cue_markers'), "bundle.cueMarkers")
        envelopes = _as_list(_get(data, "bundle", 'envelopeTemplates', 'envelope_templates'),
                             "bundle.envelopeTemplates")

        bundle = cls(
            version=_as_str(_get(data, "bundle", 'version'), "bundle.version"),
            fps=_as_count(_get(data, "bundle", 'fps'), "bundle.fps"),
            sequences=[EngineSequence.from_dict(s, f"sequences[{i}]") for i, s in enumerate(sequences)],
            cue_markers=[EngineCueMarker.from_dict(m, f"cueMarkers[{i}]") for i, m in enumerate(markers)],
            envelope_templates=[EngineEnvelopeTemplate.from_dict(e, f"envelopeTemplates[{i}]")
                                for i, e in enumerate(envelopes)],
        )
        logger.debug(f"Parsed bundle {bundle.version!r}: {len(bundle.sequences)} sequences, "
                     f"{len(bundle.cue_markers)} markers, {len(bundle.envelope_templates)} envelopes")
        return bundle

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'fps': self.fps,
            'sequences': [s.to_dict() for s in self.sequences],
            'cueMarkers': [m.to_dict() for m in self.cue_markers],
            'envelopeTemplates': [e.to_dict() for e in self.envelope_templates],
        }

@dataclass(frozen=True)
class CompiledTimeline:
    """Validated bundle with markers sorted by (bar, beat) and sections indexed."""
    version: str
    fps: int
    sections: Tuple[str, ...]
    markers: Tuple[EngineCueMarker, ...]
    envelopes: Tuple[EngineEnvelopeTemplate, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'version': self.version,
            'fps': self.fps,
            'sections': list(self.sections),
            'markers': [m.to_dict() for m in self.markers],
            'envelopes': [e.to_dict() for e in self.envelopes],
        }
