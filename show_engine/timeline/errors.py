"""
Timeline error types.

All of these are caller-correctable input errors. They are never retried
and their messages are surfaced verbatim to the command boundary.
"""

class TimelineError(ValueError):
    """Base class for bundle and section errors"""

class MissingVersionError(TimelineError):
    def __init__(self):
        super().__init__("bundle version is required")

class InvalidFpsError(TimelineError):
    def __init__(self):
        super().__init__("fps must be greater than zero")

class MissingSequenceError(TimelineError):
    def __init__(self):
        super().__init__("at least one sequence is required")

class MissingMarkersError(TimelineError):
    def __init__(self):
        super().__init__("cue markers are required")

class InvalidBeatError(TimelineError):
    def __init__(self, marker_id: str):
        self.marker_id = marker_id
        super().__init__(f"marker '{marker_id}' has invalid beat; expected 1..=4")

class UnknownSectionError(TimelineError):
    def __init__(self, section: str):
        self.section = section
        super().__init__(f"section '{section}' was not found")

class MalformedBundleError(TimelineError):
    """Raised when bundle data does not have the exported shape"""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"bundle is malformed: {detail}")
