from datetime import datetime, timezone

from api_client import AirGradientClient, ConfigError, DecodeError
from models import Configuration, CurrentReading, HistorySample, TimelinePoint
from state import (
    AppState,
    CurrentUpdated,
    HistoryUpdated,
    PollFailed,
    PollKind,
    RequestTracker,
    plan_tick,
    reduce,
    run_intent,
)

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
READING = CurrentReading(temperature_c=21.0, co2_ppm=600.0, pm25=4.0)
POINTS = (TimelinePoint(NOW, pm25=4.0, co2=600.0),)


class StubClient:
    def __init__(self, reading=None, samples=None, error=None) -> None:
        self.reading = reading
        self.samples = samples or []
        self.error = error
        self.history_calls = []

    def fetch_current(self, token):
        if self.error:
            raise self.error
        return self.reading

    def fetch_history(self, token, location_id, now=None):
        self.history_calls.append((token, location_id, now))
        if self.error:
            raise self.error
        return self.samples


def test_success_replaces_values_and_clears_error() -> None:
    state = AppState(reading=CurrentReading(pm25=99.0), current_error="NetworkError: down")

    state = reduce(state, CurrentUpdated(READING), now=NOW)

    assert state.reading == READING
    assert state.current_error is None
    assert state.error is False
    assert state.updated_at == NOW


def test_failure_keeps_last_known_good() -> None:
    state = reduce(AppState(), CurrentUpdated(READING))
    state = reduce(state, HistoryUpdated(POINTS))

    state = reduce(state, PollFailed(PollKind.CURRENT, "DecodeError: bad body"))

    assert state.reading == READING
    assert state.points == POINTS
    assert state.current_error == "DecodeError: bad body"
    assert state.history_error is None
    assert state.error is True


def test_errors_are_tracked_per_cycle() -> None:
    state = reduce(AppState(), PollFailed(PollKind.HISTORY, "ConfigError: missing"))
    state = reduce(state, CurrentUpdated(READING))

    assert state.error is True
    state = reduce(state, HistoryUpdated(POINTS))
    assert state.error is False


def test_reducer_does_not_mutate_input() -> None:
    before = AppState()
    reduce(before, CurrentUpdated(READING))
    assert before.reading is None


def test_ranges_follow_points() -> None:
    assert AppState().pm25_range.lower < 0 < AppState().pm25_range.upper
    state = reduce(AppState(), HistoryUpdated(POINTS))
    assert state.co2_range.lower < 600.0 < state.co2_range.upper


def test_tracker_only_accepts_latest() -> None:
    tracker = RequestTracker()
    first = tracker.issue(PollKind.CURRENT)
    second = tracker.issue(PollKind.CURRENT)
    history = tracker.issue(PollKind.HISTORY)

    assert not tracker.is_latest(PollKind.CURRENT, first)
    assert tracker.is_latest(PollKind.CURRENT, second)
    assert tracker.is_latest(PollKind.HISTORY, history)
    assert history == 1


def test_plan_tick_issues_both_cycles() -> None:
    tracker = RequestTracker()
    config = Configuration("tok", "42")

    intents = plan_tick(config, tracker, now=NOW)

    assert [i.kind for i in intents] == [PollKind.CURRENT, PollKind.HISTORY]
    assert all(i.config == config and i.issued_at == NOW for i in intents)
    assert [i.generation for i in plan_tick(config, tracker, now=NOW)] == [2, 2]


def test_run_intent_reconciles_history_at_issue_time() -> None:
    client = StubClient(samples=[HistorySample(datetime(2025, 1, 1, 11, 57, tzinfo=timezone.utc), pm25=8.0)])
    intent = plan_tick(Configuration("tok", "42"), RequestTracker(), now=NOW)[1]

    result = run_intent(client, intent)  # type: ignore[arg-type]

    assert isinstance(result, HistoryUpdated)
    assert len(result.points) == 73
    assert result.points[-1].timestamp == NOW
    assert result.points[-2].pm25 == 8.0
    assert client.history_calls == [("tok", "42", NOW)]


def test_run_intent_turns_errors_into_failures() -> None:
    intents = plan_tick(Configuration(), RequestTracker(), now=NOW)
    client = StubClient(error=DecodeError("empty"))

    result = run_intent(client, intents[0])  # type: ignore[arg-type]

    assert result == PollFailed(PollKind.CURRENT, "DecodeError: empty")


def test_run_intent_with_real_client_and_empty_token() -> None:
    from conftest import FakeSession

    session = FakeSession()
    client = AirGradientClient("https://api.example.test", session=session)  # type: ignore[arg-type]
    intents = plan_tick(Configuration("", ""), RequestTracker(), now=NOW)

    results = [run_intent(client, i) for i in intents]

    assert all(isinstance(r, PollFailed) for r in results)
    assert results[0].reason.startswith(ConfigError.__name__)
    assert session.calls == []
