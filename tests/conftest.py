import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
SRC_STR = str(SRC_PATH)
if SRC_STR not in sys.path:
    sys.path.insert(0, SRC_STR)

from whackamole.control import Controller  # noqa: E402
from whackamole.params import Parameters  # noqa: E402


class FakeLink:
    """In-memory apparatus link: queued inbound lines, recorded commands."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.inbound: list[tuple[str, object]] = []
        self.published: list[tuple[str, int]] = []
        self.connected = False

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> bool:
        self.connected = True
        return True

    def disconnect(self):
        self.connected = False

    def poll(self):
        events, self.inbound = self.inbound, []
        return events

    def publish(self, channel: str, value: int) -> bool:
        if not self.accept:
            return False
        self.published.append((channel, value))
        return True


class StubPolicy:
    """Returns queued actions in order, repeating the last one."""

    def __init__(self, *actions):
        self.actions = list(actions) or [0.0]
        self.calls: list = []

    def predict(self, features):
        self.calls.append(list(features))
        if len(self.actions) > 1:
            return self.actions.pop(0)
        return self.actions[0]

    def describe(self) -> str:
        return "stub"


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def link():
    return FakeLink()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def params(tmp_path):
    return Parameters(
        states_csv=str(tmp_path / "missing_states.csv"),
        actions_csv=str(tmp_path / "missing_actions.csv"),
    )


@pytest.fixture
def make_controller(link, clock, params):
    def _make(policy=None, **kwargs):
        return Controller(params=params, link=link, policy=policy, clock=clock, **kwargs)

    return _make


def start_autonomous_game(controller):
    """GameStarted + AutonomousModeSet(1), applied on one tick."""
    controller.submit("game_started")
    controller.submit("autonomous_mode", 1)
    controller.tick()
