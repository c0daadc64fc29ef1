import copy

import pytest

from show_engine.clock import ManualClock

SHOW_BUNDLE = {
    "version": "1.2.0",
    "fps": 60,
    "sequences": [
        {"id": "seq-1", "name": "Opening", "section": "verse-a"},
        {"id": "seq-2", "name": "Drop", "section": "chorus-a"},
    ],
    "cueMarkers": [
        {"id": "m3", "section": "chorus-a", "bar": 2, "beat": 1,
         "quantize": "1/4n", "action": "swap_scene", "payload": {"scene": "strobe"}},
        {"id": "m1", "section": "verse-a", "bar": 1, "beat": 1,
         "quantize": "1n", "action": "trigger_clip", "payload": {"clip": "intro"}},
        {"id": "m2", "section": "verse-a", "bar": 1, "beat": 3,
         "quantize": "1/8n", "action": "apply_accent", "payload": {}},
    ],
    "envelopeTemplates": [
        {"id": "env-1", "name": "Pluck", "attackMs": 5, "decayMs": 120,
         "sustain": 0.4, "releaseMs": 300, "curveIn": "linear", "curveOut": "exp"},
    ],
}

@pytest.fixture
def bundle_data():
    return copy.deepcopy(SHOW_BUNDLE)

@pytest.fixture
def clock():
    return ManualClock(start_ms=1_000)
