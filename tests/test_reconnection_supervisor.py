from __future__ import annotations

from scanstream.core.errors import TransportError
from scanstream.core.events import ConnectionLost, ConnectionOpened, Diagnostic, EventBus
from scanstream.core.stream import ReconnectionSupervisor, ResumeState, SupervisorState


class _FakeConnection:
    def __init__(self, url: str, cursor: str | None) -> None:
        self.url = url
        self.cursor = cursor
        self.live = True
        self.close_calls = 0

    def is_live(self) -> bool:
        return self.live

    def close(self) -> None:
        self.close_calls += 1


class _Connector:
    def __init__(self, failures: int = 0) -> None:
        self.failures = failures
        self.opened: list[_FakeConnection] = []

    def __call__(self, endpoint: str, cursor: str | None) -> _FakeConnection:
        if self.failures > 0:
            self.failures -= 1
            raise TransportError("hub unreachable")
        conn = _FakeConnection(endpoint, cursor)
        self.opened.append(conn)
        return conn


def test_start_opens_without_cursor() -> None:
    connector = _Connector()
    resume = ResumeState(last_cursor="stale")
    sup = ReconnectionSupervisor("http://hub/stream", connector, resume)

    sup.start()

    assert sup.state is SupervisorState.CONNECTED
    assert connector.opened[0].cursor is None


def test_probe_on_live_connection_does_nothing() -> None:
    connector = _Connector()
    sup = ReconnectionSupervisor("http://hub/stream", connector, ResumeState())
    sup.start()

    assert sup.probe() is False
    assert len(connector.opened) == 1
    assert connector.opened[0].close_calls == 0


def test_dead_connection_is_closed_once_and_reopened_with_last_cursor() -> None:
    bus = EventBus()
    lost: list[ConnectionLost] = []
    opened: list[ConnectionOpened] = []
    bus.subscribe(ConnectionLost, lost.append)
    bus.subscribe(ConnectionOpened, opened.append)
    connector = _Connector()
    resume = ResumeState()
    sup = ReconnectionSupervisor("http://hub/stream", connector, resume, bus)
    sup.start()

    resume.advance("urn:uuid:c-17")
    old = connector.opened[0]
    old.live = False

    assert sup.probe() is True

    assert old.close_calls == 1
    assert len(connector.opened) == 2
    assert connector.opened[1].cursor == "urn:uuid:c-17"
    assert sup.connection is connector.opened[1]
    assert sup.state is SupervisorState.CONNECTED
    assert sup.reconnects == 1
    assert len(lost) == 1
    assert [o.resume_cursor for o in opened] == [None, "urn:uuid:c-17"]

    # The replaced connection is not touched again.
    sup.probe()
    assert old.close_calls == 1


def test_initial_failure_starts_disconnected_and_next_probe_retries() -> None:
    bus = EventBus()
    diagnostics: list[Diagnostic] = []
    bus.subscribe(Diagnostic, diagnostics.append)
    connector = _Connector(failures=1)
    sup = ReconnectionSupervisor("http://hub/stream", connector, ResumeState(), bus)

    sup.start()
    assert sup.state is SupervisorState.DISCONNECTED
    assert sup.connection is None
    assert any("hub unreachable" in d.message for d in diagnostics)

    assert sup.probe() is True
    assert sup.state is SupervisorState.CONNECTED
    assert len(connector.opened) == 1


def test_failed_reopen_stays_disconnected_until_a_later_probe() -> None:
    connector = _Connector()
    resume = ResumeState()
    sup = ReconnectionSupervisor("http://hub/stream", connector, resume)
    sup.start()
    resume.advance("c-3")
    connector.opened[0].live = False
    connector.failures = 1

    sup.probe()
    assert sup.state is SupervisorState.DISCONNECTED
    assert connector.opened[0].close_calls == 1

    sup.probe()
    assert sup.state is SupervisorState.CONNECTED
    assert connector.opened[-1].cursor == "c-3"


def test_close_closes_current_connection() -> None:
    connector = _Connector()
    sup = ReconnectionSupervisor("http://hub/stream", connector, ResumeState())
    sup.start()

    sup.close()
    sup.close()

    assert connector.opened[0].close_calls == 1
    assert sup.connection is None
    assert sup.state is SupervisorState.DISCONNECTED
