import dataclasses

import pytest

from progress import (
    VALID_COMBINATIONS,
    AnalysisProgress,
    InvalidTransition,
    ProgressReporter,
    Stage,
    StepStatus,
    console_listener,
)

EVENTS = {
    "start_discovery": lambda r: r.start_discovery("www.autodoc.de"),
    "finish_discovery": lambda r: r.finish_discovery(8),
    "start_brand1": lambda r: r.start_brand(1, "Bosch"),
    "finish_brand1": lambda r: r.finish_brand(1, 10),
    "start_brand2": lambda r: r.start_brand(2, "Valeo"),
    "finish_brand2": lambda r: r.finish_brand(2, 7),
    "finalize": lambda r: r.finalize(),
    "complete": lambda r: r.complete(),
    "fail": lambda r: r.fail("boom"),
}

HAPPY_PATH = [
    "start_discovery", "finish_discovery",
    "start_brand1", "finish_brand1",
    "start_brand2", "finish_brand2",
    "finalize", "complete",
]


def _run(events, listeners=None):
    reporter = ProgressReporter(listeners)
    for name in events:
        EVENTS[name](reporter)
    return reporter


def test_initial_snapshot_is_idle_and_not_emitted() -> None:
    received = []
    reporter = ProgressReporter([received.append])

    assert reporter.snapshot == AnalysisProgress()
    assert reporter.snapshot.stage == Stage.IDLE
    assert received == []


def test_happy_path_emits_one_snapshot_per_transition() -> None:
    received = []
    _run(HAPPY_PATH, [received.append])

    assert [s.stage for s in received] == [
        Stage.DISCOVERING_BRANDS, Stage.DISCOVERING_BRANDS,
        Stage.ANALYZING_BRAND1, Stage.ANALYZING_BRAND1,
        Stage.ANALYZING_BRAND2, Stage.ANALYZING_BRAND2,
        Stage.FINALIZING, Stage.COMPLETED,
    ]
    progress = [s.progress for s in received]
    assert progress == sorted(progress)
    assert progress[-1] == 100
    assert all(s.combination in VALID_COMBINATIONS for s in received)

    final = received[-1]
    assert final.brands_found == 8
    assert final.steps.brand1_analysis.found == 10
    assert final.steps.brand2_analysis.found == 7
    assert final.brand1_progress == final.brand2_progress == 100
    assert final.error is None


def test_brand_progress_and_current_brand() -> None:
    received = []
    _run(HAPPY_PATH[:4], [received.append])

    started, finished = received[2], received[3]
    assert started.current_brand == "Bosch"
    assert started.brand1_progress == 0
    assert finished.brand1_progress == 100
    assert finished.brand2_progress == 0
    assert "Bosch" in finished.current_step


def test_every_listener_gets_every_snapshot_once_in_order() -> None:
    first, second = [], []
    reporter = ProgressReporter([first.append])
    reporter.subscribe(second.append)
    for name in HAPPY_PATH:
        EVENTS[name](reporter)

    assert first == second
    assert len(first) == len(HAPPY_PATH)
    assert all(a is b for a, b in zip(first, second))


def test_snapshots_are_immutable_and_independent() -> None:
    received = []
    _run(HAPPY_PATH[:2], [received.append])

    with pytest.raises(dataclasses.FrozenInstanceError):
        received[0].progress = 99
    assert received[0].steps.brand_discovery.status == StepStatus.IN_PROGRESS
    assert received[1].steps.brand_discovery.status == StepStatus.COMPLETED


@pytest.mark.parametrize("done", range(len(HAPPY_PATH)))
def test_fail_from_any_non_terminal_point(done) -> None:
    reporter = _run(HAPPY_PATH[:done])
    before = reporter.snapshot

    snapshot = reporter.fail("Tavily API error: timeout")

    assert snapshot.stage == Stage.ERROR
    assert snapshot.error == "Tavily API error: timeout"
    assert snapshot.is_terminal
    assert snapshot.combination in VALID_COMBINATIONS
    for step in ("brand_discovery", "brand1_analysis", "brand2_analysis"):
        old = getattr(before.steps, step).status
        new = getattr(snapshot.steps, step).status
        assert new == (StepStatus.ERROR if old == StepStatus.IN_PROGRESS else old)


def test_terminal_states_accept_nothing() -> None:
    completed = _run(HAPPY_PATH)
    failed = _run(["start_discovery", "fail"])

    for reporter in (completed, failed):
        for name, event in EVENTS.items():
            with pytest.raises(InvalidTransition):
                event(reporter)


@pytest.mark.parametrize("events", [
    ["start_brand1"],
    ["finish_discovery"],
    ["start_discovery", "start_brand1"],
    ["start_discovery", "finish_discovery", "start_brand2"],
    ["start_discovery", "finish_discovery", "start_brand1", "start_brand2"],
    ["start_discovery", "finish_discovery", "start_brand1", "finish_brand1", "finish_brand1"],
    ["start_discovery", "finish_discovery", "start_brand1", "finish_brand1", "finalize"],
    ["start_discovery", "start_discovery"],
    ["complete"],
])
def test_out_of_order_transitions_are_rejected(events) -> None:
    *ok, bad = events
    reporter = _run(ok)
    before = reporter.snapshot

    with pytest.raises(InvalidTransition):
        EVENTS[bad](reporter)
    assert reporter.snapshot is before


def test_invalid_transition_is_a_value_error() -> None:
    assert issubclass(InvalidTransition, ValueError)


def test_unknown_brand_slot() -> None:
    reporter = _run(HAPPY_PATH[:2])

    with pytest.raises(ValueError):
        reporter.start_brand(3, "Bosch")


def test_reachable_states_are_exactly_the_valid_combinations() -> None:
    # Breadth-first over every event sequence the reporter accepts.
    reached = {AnalysisProgress().combination}
    frontier = [[]]
    while frontier:
        next_frontier = []
        for events in frontier:
            for name in EVENTS:
                try:
                    reporter = _run(events + [name])
                except InvalidTransition:
                    continue
                reached.add(reporter.snapshot.combination)
                if not reporter.snapshot.is_terminal:
                    next_frontier.append(events + [name])
        frontier = next_frontier

    assert reached == VALID_COMBINATIONS


def test_complete_summarizes_result() -> None:
    from comparator import analyze_gap

    reporter = _run(HAPPY_PATH[:-1])
    snapshot = reporter.complete(analyze_gap([], []))

    assert snapshot.stage == Stage.COMPLETED
    assert "0 common" in snapshot.current_step


def test_listener_errors_reach_the_caller() -> None:
    def broken(snapshot):
        raise RuntimeError("sink down")

    reporter = ProgressReporter([broken])
    with pytest.raises(RuntimeError):
        reporter.start_discovery("www.autodoc.de")


def test_broken_listener_does_not_starve_the_others() -> None:
    def broken(snapshot):
        raise RuntimeError("sink down")

    received = []
    reporter = ProgressReporter([broken, received.append])

    with pytest.raises(RuntimeError, match="sink down"):
        reporter.start_discovery("www.autodoc.de")

    assert [s.stage for s in received] == [Stage.DISCOVERING_BRANDS]
    assert reporter.snapshot.stage == Stage.DISCOVERING_BRANDS


def test_console_listener(capsys) -> None:
    _run(["start_discovery", "fail"], [console_listener])

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "  [..]   5% Discovering brands on www.autodoc.de..."
    assert out[1] == "  [ERROR]   5% Analysis failed (boom)"
