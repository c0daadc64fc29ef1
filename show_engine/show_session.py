"""
Show session: the command boundary of the show engine.

Composes the timeline adapter, tempo engine and quantized scheduler, each
guarded by its own lock, and exposes them as named commands. Typed methods
raise on caller error; `dispatch` turns those errors into failed
`CommandResult`s for front ends that only deal in strings.
"""

import inspect
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .clock import Clock, now_ms
from .command_types import CommandResult
from .interfaces.scheduling_interfaces import QuantizeGrid, ScheduledAction
from .observability import MetricsCollector, PerformanceTimer
from .scheduling import tempo_engine, quantized_scheduler
from .scheduling.quantized_scheduler import QuantizedScheduler
from .scheduling.tempo_engine import TempoEngine, TempoState
from .timeline import (
    EngineCueMarker,
    TheatreExportBundle,
    TimelineError,
    TimelineRuntimeAdapter,
    UnknownSectionError,
    validate_bundle,
)

logger = logging.getLogger(__name__)

BundleInput = Union[TheatreExportBundle, Mapping[str, Any]]

class ShowSession:
    """
    One live show: imported timeline, beat clock and pending actions.

    The three components are locked independently and no method holds two
    locks at once. Commands that need data from several components read
    each one under its own lock in turn.
    """

    def __init__(self, app_config_module=None, clock: Clock = now_ms):
        """
        Initialize a show session.

        Args:
            app_config_module: Module (or object) carrying tempo and scheduler
                settings; missing settings fall back to the engine defaults
            clock: Source of "now" for commands called without a timestamp
        """
        self.app_config = app_config_module
        self._clock = clock

        self._timeline = TimelineRuntimeAdapter()
        self._timeline_lock = threading.RLock()

        self._tempo = TempoEngine(
            initial_bpm=self._setting('DEFAULT_BPM', tempo_engine.DEFAULT_BPM),
            tap_history_limit=self._setting('TAP_HISTORY_LIMIT', tempo_engine.TAP_HISTORY_LIMIT),
            min_tap_interval_ms=self._setting('MIN_TAP_INTERVAL_MS', tempo_engine.MIN_TAP_INTERVAL_MS),
            max_tap_interval_ms=self._setting('MAX_TAP_INTERVAL_MS', tempo_engine.MAX_TAP_INTERVAL_MS),
            clock=clock
        )
        self._tempo_lock = threading.RLock()

        self._scheduler = QuantizedScheduler(
            grid=QuantizeGrid.parse(self._setting('DEFAULT_QUANTIZE_GRID', quantized_scheduler.DEFAULT_GRID)),
            look_ahead_ms=self._setting('DEFAULT_LOOK_AHEAD_MS', quantized_scheduler.DEFAULT_LOOK_AHEAD_MS),
            jitter_budget_ms=self._setting('DEFAULT_JITTER_BUDGET_MS', quantized_scheduler.DEFAULT_JITTER_BUDGET_MS)
        )
        self._scheduler_lock = threading.RLock()

        self.metrics = MetricsCollector()
        self._commands: Dict[str, Callable[..., Any]] = self._build_command_table()

        logger.info(f"ShowSession initialized with {len(self._commands)} commands")

    def _setting(self, name: str, default: Any) -> Any:
        return getattr(self.app_config, name, default) if self.app_config is not None else default

    def _build_command_table(self) -> Dict[str, Callable[..., Any]]:
        return {
            'validate_bundle': self.validate_bundle,
            'import_bundle': self.import_bundle,
            'activate_section': self.activate_section,
            'list_sections': self.list_sections,
            'list_markers': self.list_markers,
            'get_tempo_state': self.get_tempo_state,
            'set_bpm': self.set_bpm,
            'nudge_bpm': self.nudge_bpm,
            'tap_bpm': self.tap_bpm,
            'resync_downbeat': self.resync_downbeat,
            'set_quantization': self.set_quantization,
            'queue_preview_action': self.queue_preview_action,
            'queue_section_markers': self.queue_section_markers,
            'list_scheduled_actions': self.list_scheduled_actions,
            'pop_due_actions': self.pop_due_actions,
            'get_stats': self.get_stats,
        }

    @property
    def tempo_engine(self) -> TempoEngine:
        """The session's tempo engine, for registering tempo listeners."""
        return self._tempo

    @property
    def commands(self) -> List[str]:
        return sorted(self._commands)

    # --- Timeline commands ---

    @staticmethod
    def _coerce_bundle(bundle: BundleInput) -> TheatreExportBundle:
        if isinstance(bundle, TheatreExportBundle):
            return bundle
        return TheatreExportBundle.from_dict(bundle)

    def validate_bundle(self, bundle: BundleInput) -> bool:
        """
        Check a bundle without importing it.

        Returns:
            True when the bundle would import

        Raises:
            TimelineError: The first problem found
        """
        parsed = self._coerce_bundle(bundle)
        try:
            validate_bundle(parsed)
        except TimelineError as e:
            logger.warning(f"Bundle {parsed.version!r} failed validation: {e}")
            raise
        return True

    def import_bundle(self, bundle: BundleInput) -> int:
        """
        Validate and compile a bundle, replacing the current timeline.

        A bundle that fails validation leaves the current timeline untouched.

        Returns:
            Number of markers imported
        """
        parsed = self._coerce_bundle(bundle)
        self.validate_bundle(parsed)

        with self._timeline_lock:
            return self._timeline.import_bundle(parsed)

    def activate_section(self, section: str) -> int:
        """
        Make a compiled section the active one.

        Returns:
            Number of markers in the section

        Raises:
            UnknownSectionError: The section is not in the current timeline
        """
        with self._timeline_lock:
            if section not in self._timeline.sections():
                logger.warning(f"Cannot activate unknown section {section!r}")
                raise UnknownSectionError(section)
            return self._timeline.activate_section(section)

    def list_sections(self) -> List[str]:
        with self._timeline_lock:
            return self._timeline.sections()

    def list_markers(self, section: Optional[str] = None) -> List[EngineCueMarker]:
        with self._timeline_lock:
            return self._timeline.list_markers(section)

    # --- Tempo commands ---

    def get_tempo_state(self) -> TempoState:
        with self._tempo_lock:
            return self._tempo.state()

    def set_bpm(self, bpm: float) -> TempoState:
        with self._tempo_lock:
            return self._tempo.set_bpm(bpm)

    def nudge_bpm(self, delta: float) -> TempoState:
        with self._tempo_lock:
            return self._tempo.nudge_bpm(delta)

    def tap_bpm(self, timestamp_ms: Optional[int] = None) -> TempoState:
        with self._tempo_lock:
            return self._tempo.tap_bpm(timestamp_ms)

    def resync_downbeat(self, timestamp_ms: Optional[int] = None) -> TempoState:
        with self._tempo_lock:
            return self._tempo.resync_downbeat(timestamp_ms)

    # --- Scheduler commands ---

    def set_quantization(self, grid: Union[QuantizeGrid, str]) -> QuantizeGrid:
        """
        Set the default grid for actions queued without one.

        Args:
            grid: Grid member or wire name such as '1/8n'
        """
        resolved = QuantizeGrid.parse(grid)
        with self._scheduler_lock:
            return self._scheduler.set_grid(resolved)

    def queue_preview_action(self, action: str, section: Optional[str] = None,
                             quantize: Union[QuantizeGrid, str, None] = None) -> ScheduledAction:
        """
        Queue a single action at the next grid boundary.

        Args:
            action: Identifier of the action to perform
            section: Section to tag the action with (not checked against the timeline)
            quantize: Grid for this action, or None for the default grid

        Returns:
            The queued action
        """
        grid = QuantizedScheduler.resolve_grid(quantize)
        tempo = self.get_tempo_state()

        with self._scheduler_lock:
            return self._scheduler.schedule(self._clock(), tempo.bpm, tempo.downbeat_epoch_ms,
                                            action, quantize=grid, section=section)

    def queue_section_markers(self, section: Optional[str] = None) -> int:
        """
        Queue every marker of a section, each on its own grid.

        Markers are taken from the given section, else the active section,
        and queued in timeline order against a single tempo snapshot.

        Returns:
            Number of actions queued
        """
        markers = self.list_markers(section)
        tempo = self.get_tempo_state()
        requested_at = self._clock()

        with self._scheduler_lock:
            for marker in markers:
                self._scheduler.schedule(requested_at, tempo.bpm, tempo.downbeat_epoch_ms,
                                         marker.action.value, quantize=marker.quantize,
                                         section=marker.section)

        logger.info(f"Queued {len(markers)} markers from section {section!r} at {tempo.bpm:.1f} BPM")
        return len(markers)

    def list_scheduled_actions(self) -> List[ScheduledAction]:
        with self._scheduler_lock:
            return self._scheduler.list()

    def pop_due_actions(self, timestamp_ms: Optional[int] = None) -> List[ScheduledAction]:
        """
        Release the actions due at the given time (now by default).

        Returns:
            Released actions in arrival order
        """
        now = self._clock() if timestamp_ms is None else int(timestamp_ms)
        with self._scheduler_lock:
            return self._scheduler.pop_due(now)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics from every component.

        Returns:
            Dictionary with timeline, tempo, scheduler and command metrics
        """
        with self._timeline_lock:
            timeline_stats = self._timeline.get_stats()
        with self._tempo_lock:
            tempo_stats = self._tempo.get_stats()
        with self._scheduler_lock:
            scheduler_stats = self._scheduler.get_stats()

        return {
            'timeline': timeline_stats,
            'tempo': tempo_stats,
            'scheduler': scheduler_stats,
            'metrics': self.metrics.get_metric_summary()
        }

    # --- Command boundary ---

    def dispatch(self, command: str, **kwargs) -> CommandResult:
        """
        Run a named command, reporting caller errors as a failed result.

        Timeline errors, invalid argument values (unknown grid names) and
        arguments that do not fit the command's signature become
        `error_message`. Anything raised from inside a component otherwise
        propagates. Session gauges are refreshed after every known command.

        Args:
            command: Command name, e.g. 'queue_preview_action'
            **kwargs: Command arguments

        Returns:
            CommandResult with the command's return value or error message
        """
        handler = self._commands.get(command)
        if handler is None:
            logger.warning(f"Unknown command: {command}")
            self.metrics.increment_counter('commands.unknown')
            return CommandResult(success=False, command=command,
                                 error_message=f"unknown command '{command}'")

        self.metrics.increment_counter(f"commands.{command}")
        start_time = time.perf_counter()
        try:
            bound = inspect.signature(handler).bind(**kwargs)
        except TypeError as e:
            return self._failed(command, f"invalid arguments for '{command}': {e}", start_time)

        try:
            with PerformanceTimer(self.metrics, f"commands.{command}"):
                value = handler(*bound.args, **bound.kwargs)
        except (TimelineError, ValueError) as e:
            return self._failed(command, str(e), start_time)
        finally:
            self._publish_gauges()

        return CommandResult(success=True, command=command, value=value,
                             execution_time=time.perf_counter() - start_time)

    def _failed(self, command: str, message: str, start_time: float) -> CommandResult:
        self.metrics.increment_counter('commands.errors')
        logger.warning(f"Command '{command}' failed: {message}")
        return CommandResult(success=False, command=command, error_message=message,
                             execution_time=time.perf_counter() - start_time)

    def _publish_gauges(self) -> None:
        with self._timeline_lock:
            self.metrics.set_gauge('timeline.active_markers', len(self._timeline.list_markers()))
        with self._tempo_lock:
            self.metrics.set_gauge('tempo.bpm', self._tempo.get_current_bpm())
        with self._scheduler_lock:
            self.metrics.set_gauge('scheduler.pending', len(self._scheduler.list()))
