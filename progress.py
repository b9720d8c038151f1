"""
Progress narration for one analysis run.

A small state machine: every transition builds a complete AnalysisProgress
snapshot and hands it to each listener, in order, exactly once.

    idle -> discovering-brands -> analyzing-brand1 -> analyzing-brand2
         -> finalizing -> completed

Any non-terminal stage may move to error.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional


class Stage(str, Enum):
    IDLE = "idle"
    DISCOVERING_BRANDS = "discovering-brands"
    ANALYZING_BRAND1 = "analyzing-brand1"
    ANALYZING_BRAND2 = "analyzing-brand2"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    ERROR = "error"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"


TERMINAL_STAGES = {Stage.COMPLETED, Stage.ERROR}

STAGE_ORDER = {
    Stage.IDLE: Stage.DISCOVERING_BRANDS,
    Stage.DISCOVERING_BRANDS: Stage.ANALYZING_BRAND1,
    Stage.ANALYZING_BRAND1: Stage.ANALYZING_BRAND2,
    Stage.ANALYZING_BRAND2: Stage.FINALIZING,
    Stage.FINALIZING: Stage.COMPLETED,
}

STEP_ORDER = {
    StepStatus.PENDING: {StepStatus.IN_PROGRESS},
    StepStatus.IN_PROGRESS: {StepStatus.COMPLETED, StepStatus.ERROR},
    StepStatus.COMPLETED: set(),
    StepStatus.ERROR: set(),
}

_P, _R, _C, _E = StepStatus.PENDING, StepStatus.IN_PROGRESS, StepStatus.COMPLETED, StepStatus.ERROR

# (stage, discovery, brand1, brand2) for every snapshot the reporter can emit
VALID_COMBINATIONS = frozenset({
    (Stage.IDLE, _P, _P, _P),
    (Stage.DISCOVERING_BRANDS, _R, _P, _P),
    (Stage.DISCOVERING_BRANDS, _C, _P, _P),
    (Stage.ANALYZING_BRAND1, _C, _R, _P),
    (Stage.ANALYZING_BRAND1, _C, _C, _P),
    (Stage.ANALYZING_BRAND2, _C, _C, _R),
    (Stage.ANALYZING_BRAND2, _C, _C, _C),
    (Stage.FINALIZING, _C, _C, _C),
    (Stage.COMPLETED, _C, _C, _C),
    (Stage.ERROR, _P, _P, _P),
    (Stage.ERROR, _E, _P, _P),
    (Stage.ERROR, _C, _P, _P),
    (Stage.ERROR, _C, _E, _P),
    (Stage.ERROR, _C, _C, _P),
    (Stage.ERROR, _C, _C, _E),
    (Stage.ERROR, _C, _C, _C),
})


class InvalidTransition(ValueError):
    """Raised when a transition is not allowed from the current snapshot."""


@dataclass(frozen=True)
class StepState:
    status: StepStatus = StepStatus.PENDING
    found: int = 0
    message: str = ""


@dataclass(frozen=True)
class Steps:
    brand_discovery: StepState = field(default_factory=StepState)
    brand1_analysis: StepState = field(default_factory=StepState)
    brand2_analysis: StepState = field(default_factory=StepState)


@dataclass(frozen=True)
class AnalysisProgress:
    """Complete status of a run at one point in time."""

    stage: Stage = Stage.IDLE
    current_step: str = ""
    progress: int = 0
    brand1_progress: int = 0
    brand2_progress: int = 0
    steps: Steps = field(default_factory=Steps)
    brands_found: int = 0
    current_brand: Optional[str] = None
    error: Optional[str] = None

    @property
    def combination(self):
        return (
            self.stage,
            self.steps.brand_discovery.status,
            self.steps.brand1_analysis.status,
            self.steps.brand2_analysis.status,
        )

    @property
    def is_terminal(self) -> bool:
        return self.stage in TERMINAL_STAGES


Listener = Callable[[AnalysisProgress], None]

_BRAND_SLOTS = {
    1: ("brand1_analysis", "brand1_progress", Stage.ANALYZING_BRAND1),
    2: ("brand2_analysis", "brand2_progress", Stage.ANALYZING_BRAND2),
}


class ProgressReporter:
    """Single writer for the progress of one run."""

    def __init__(self, listeners: Optional[List[Listener]] = None):
        self._listeners: List[Listener] = list(listeners or [])
        self._snapshot = AnalysisProgress()

    @property
    def snapshot(self) -> AnalysisProgress:
        return self._snapshot

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # ------------------------------------------------------------
    # transitions
    # ------------------------------------------------------------

    def start_discovery(self, query: str) -> AnalysisProgress:
        self._require_stage(Stage.DISCOVERING_BRANDS, advancing=True)
        steps = self._step(
            "brand_discovery", StepStatus.IN_PROGRESS, message=f"Searching for brands on {query}"
        )
        return self._emit(
            stage=Stage.DISCOVERING_BRANDS,
            current_step=f"Discovering brands on {query}...",
            progress=5,
            steps=steps,
        )

    def finish_discovery(self, brands_found: int) -> AnalysisProgress:
        self._require_stage(Stage.DISCOVERING_BRANDS)
        steps = self._step(
            "brand_discovery", StepStatus.COMPLETED,
            found=brands_found, message=f"Found {brands_found} brands",
        )
        return self._emit(
            current_step=f"Found {brands_found} brands",
            progress=20,
            steps=steps,
            brands_found=brands_found,
        )

    def start_brand(self, slot: int, brand_name: str) -> AnalysisProgress:
        step_name, _, stage = self._slot(slot)
        self._require_stage(stage, advancing=True)
        required = "brand_discovery" if slot == 1 else "brand1_analysis"
        if getattr(self._snapshot.steps, required).status != StepStatus.COMPLETED:
            raise InvalidTransition(f"Cannot start brand {slot} before {required} is completed")

        steps = self._step(step_name, StepStatus.IN_PROGRESS, message=f"Searching {brand_name} products")
        return self._emit(
            stage=stage,
            current_step=f"Analyzing {brand_name} products...",
            progress=25 if slot == 1 else 55,
            steps=steps,
            current_brand=brand_name,
        )

    def finish_brand(self, slot: int, products_found: int) -> AnalysisProgress:
        step_name, progress_field, stage = self._slot(slot)
        self._require_stage(stage)
        brand = self._snapshot.current_brand
        steps = self._step(
            step_name, StepStatus.COMPLETED,
            found=products_found, message=f"Found {products_found} products",
        )
        return self._emit(
            current_step=f"Found {products_found} {brand} products",
            progress=50 if slot == 1 else 80,
            steps=steps,
            **{progress_field: 100},
        )

    def finalize(self) -> AnalysisProgress:
        self._require_stage(Stage.FINALIZING, advancing=True)
        if self._snapshot.steps.brand2_analysis.status != StepStatus.COMPLETED:
            raise InvalidTransition("Cannot finalize before brand 2 analysis is completed")
        return self._emit(
            stage=Stage.FINALIZING,
            current_step="Analyzing product gaps...",
            progress=90,
            current_brand=None,
        )

    def complete(self, result=None) -> AnalysisProgress:
        self._require_stage(Stage.COMPLETED, advancing=True)
        message = "Analysis completed!"
        if result is not None:
            s = result.summary
            message = (
                f"Analysis completed: {s.common_count} common, "
                f"{s.unique_a_count} + {s.unique_b_count} unique"
            )
        return self._emit(stage=Stage.COMPLETED, current_step=message, progress=100)

    def fail(self, message: str) -> AnalysisProgress:
        """Terminal error from any non-terminal stage."""
        if self._snapshot.is_terminal:
            raise InvalidTransition(f"Run already ended in {self._snapshot.stage.value}")

        steps = self._snapshot.steps
        for step_name in ("brand_discovery", "brand1_analysis", "brand2_analysis"):
            state = getattr(steps, step_name)
            if state.status == StepStatus.IN_PROGRESS:
                steps = replace(steps, **{step_name: replace(state, status=StepStatus.ERROR, message=message)})
        return self._emit(
            stage=Stage.ERROR,
            current_step="Analysis failed",
            steps=steps,
            error=message,
        )

    # ------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------

    @staticmethod
    def _slot(slot):
        if slot not in _BRAND_SLOTS:
            raise ValueError(f"Brand slot must be 1 or 2, got {slot!r}")
        return _BRAND_SLOTS[slot]

    def _require_stage(self, stage, advancing=False):
        current = self._snapshot.stage
        if advancing:
            ok = STAGE_ORDER.get(current) == stage
        else:
            ok = current == stage
        if not ok:
            raise InvalidTransition(f"Cannot move to {stage.value} from {current.value}")

    def _step(self, step_name, status, **changes):
        steps = self._snapshot.steps
        state = getattr(steps, step_name)
        if status not in STEP_ORDER[state.status]:
            raise InvalidTransition(
                f"{step_name}: cannot go from {state.status.value} to {status.value}"
            )
        return replace(steps, **{step_name: replace(state, status=status, **changes)})

    def _emit(self, **changes) -> AnalysisProgress:
        snapshot = replace(self._snapshot, **changes)
        if snapshot.combination not in VALID_COMBINATIONS:
            raise InvalidTransition(f"Unreachable progress state: {snapshot.combination}")
        self._snapshot = snapshot
        # every listener sees the snapshot; the first failure is re-raised after
        first_error = None
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error
        return snapshot


def console_listener(snapshot: AnalysisProgress) -> None:
    """Print one status line per snapshot."""
    tag = {
        Stage.COMPLETED: "OK",
        Stage.ERROR: "ERROR",
    }.get(snapshot.stage, "..")
    line = f"  [{tag}] {snapshot.progress:3d}% {snapshot.current_step}"
    if snapshot.error:
        line += f" ({snapshot.error})"
    print(line)
