"""
Pytest Configuration and Fixtures for tasksync Tests.

This module provides fixtures, mock factories, and shared utilities for
testing the sync engine without a real calendar server.

Architecture:
    - MockRemoteClient: In-memory calendar server implementing RemoteCalendarClient
    - Factories: Generate test data (accounts, calendars, tasks, remote tasks)
    - Fixtures: Provide a seeded store, the mock server and wired components
    - Markers: Custom pytest markers for test categorization
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator

import pytest

from tasksync.constants import SyncTopic
from tasksync.models import (
    Account,
    Calendar,
    RemoteCalendar,
    RemoteTask,
    Task,
    TaskRef,
)
from tasksync.remote import CreateResult, UpdateResult
from tasksync.service import SyncService
from tasksync.store import InMemoryStore
from tasksync.sync import (
    AutoSyncScheduler,
    CalendarReconciler,
    ChangeNotifier,
    ConnectivityMonitor,
    DeletionQueueProcessor,
    SyncOrchestrator,
    TagResolver,
    TaskReconciler,
)


# =============================================================================
# Pytest Configuration
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Tests wiring several components")
    config.addinivalue_line("markers", "tasks: Task reconciliation tests")
    config.addinivalue_line("markers", "calendars: Calendar reconciliation tests")
    config.addinivalue_line("markers", "tags: Tag resolution tests")
    config.addinivalue_line("markers", "deletions: Deletion queue tests")
    config.addinivalue_line("markers", "sync: Orchestration and scheduling tests")
    config.addinivalue_line("markers", "store: Local store tests")
    config.addinivalue_line("markers", "errors: Error handling tests")


# =============================================================================
# ID Generators
# =============================================================================


class IDGenerator:
    """Sequential ID generator for test objects."""

    _counter: int = 0

    @classmethod
    def reset(cls) -> None:
        """Reset counter (call in fixtures)."""
        cls._counter = 0

    @classmethod
    def next_id(cls, prefix: str = "") -> str:
        """Generate next unique ID."""
        cls._counter += 1
        return f"{prefix}{cls._counter}"

    @classmethod
    def etag(cls) -> str:
        cls._counter += 1
        return f'"etag-{cls._counter}"'


# =============================================================================
# Test Data Factories
# =============================================================================


class CalendarFactory:
    """Factory for creating Calendar and RemoteCalendar test objects."""

    @staticmethod
    def create(
        id: str | None = None,
        account_id: str = "acct-1",
        display_name: str = "Tasks",
        **kwargs: Any,
    ) -> Calendar:
        calendar_id = id or IDGenerator.next_id("cal-")
        kwargs.setdefault("url", f"/calendars/{calendar_id}/")
        return Calendar(id=calendar_id, account_id=account_id, display_name=display_name, **kwargs)

    @staticmethod
    def remote(
        id: str | None = None,
        display_name: str = "Tasks",
        **kwargs: Any,
    ) -> RemoteCalendar:
        calendar_id = id or IDGenerator.next_id("cal-")
        kwargs.setdefault("url", f"/calendars/{calendar_id}/")
        return RemoteCalendar(id=calendar_id, display_name=display_name, **kwargs)


class AccountFactory:
    """Factory for creating Account test objects."""

    @staticmethod
    def create(
        id: str | None = None,
        name: str = "Test Account",
        calendars: list[Calendar] | None = None,
        **kwargs: Any,
    ) -> Account:
        return Account(
            id=id or IDGenerator.next_id("acct-"),
            name=name,
            server_url=kwargs.pop("server_url", "https://dav.example.com"),
            username=kwargs.pop("username", "user@example.com"),
            calendars=calendars or [],
            **kwargs,
        )


class TaskFactory:
    """Factory for creating local Task test objects."""

    @staticmethod
    def create(
        title: str = "Test Task",
        account_id: str = "acct-1",
        calendar_id: str = "cal-1",
        **kwargs: Any,
    ) -> Task:
        kwargs.setdefault("uid", IDGenerator.next_id("uid-"))
        return Task(title=title, account_id=account_id, calendar_id=calendar_id, **kwargs)

    @staticmethod
    def create_synced(
        title: str = "Synced Task",
        account_id: str = "acct-1",
        calendar_id: str = "cal-1",
        **kwargs: Any,
    ) -> Task:
        """Create a task the server already confirmed."""
        uid = kwargs.pop("uid", None) or IDGenerator.next_id("uid-")
        kwargs.setdefault("href", f"/calendars/{calendar_id}/{uid}.ics")
        kwargs.setdefault("etag", IDGenerator.etag())
        return Task(
            title=title,
            uid=uid,
            account_id=account_id,
            calendar_id=calendar_id,
            synced=True,
            **kwargs,
        )

    @staticmethod
    def create_unsynced(
        title: str = "Local Task",
        account_id: str = "acct-1",
        calendar_id: str = "cal-1",
        **kwargs: Any,
    ) -> Task:
        """Create a task from a local edit that was never pushed."""
        return Task.new(title, account_id, calendar_id, **kwargs)


class RemoteTaskFactory:
    """Factory for creating RemoteTask test objects."""

    @staticmethod
    def create(
        uid: str | None = None,
        title: str = "Remote Task",
        calendar_id: str = "cal-1",
        **kwargs: Any,
    ) -> RemoteTask:
        uid = uid or IDGenerator.next_id("uid-")
        kwargs.setdefault("href", f"/calendars/{calendar_id}/{uid}.ics")
        kwargs.setdefault("etag", IDGenerator.etag())
        return RemoteTask(uid=uid, title=title, **kwargs)

    @staticmethod
    def from_task(task: Task, **changes: Any) -> RemoteTask:
        """Server view of a local task."""
        data = {
            "uid": task.uid,
            "href": task.href,
            "etag": task.etag,
            "title": task.title,
            "description": task.description,
            "completed": task.completed,
            "priority": task.priority,
            "sort_order": task.sort_order,
        }
        data.update(changes)
        return RemoteTask(**data)


# =============================================================================
# Mock Remote Client
# =============================================================================


class MockRemoteClient:
    """
    In-memory calendar server implementing RemoteCalendarClient.

    Calendars are kept per account and tasks per calendar. Failures can be
    injected per method via ``should_fail``, or per account and calendar via
    ``failing_accounts`` and ``failing_calendars``.
    """

    def __init__(self):
        """Initialize mock with empty server state."""
        self.calendars: dict[str, list[RemoteCalendar]] = {}
        self.tasks: dict[str, dict[str, RemoteTask]] = {}
        self.connected: set[str] = set()

        # Track method calls for verification
        self.call_history: list[tuple[str, tuple, dict]] = []

        # Configurable behaviors
        self.should_fail: dict[str, Exception | None] = {}
        self.failing_accounts: set[str] = set()
        self.failing_calendars: set[str] = set()
        self.unconfirmed: set[str] = set()
        self.refused_deletions: set[str] = set()
        self.create_overrides: dict[str, CreateResult] = {}
        self.gate: asyncio.Event | None = None

        self._etag_counter = 0

    def _record_call(self, method: str, args: tuple, kwargs: dict) -> None:
        """Record method call for verification."""
        self.call_history.append((method, args, kwargs))

    def _check_failure(self, method: str) -> None:
        """Check if method should raise an exception."""
        if method in self.should_fail and self.should_fail[method]:
            raise self.should_fail[method]

    def _next_etag(self) -> str:
        self._etag_counter += 1
        return f'"server-{self._etag_counter}"'

    # -------------------------------------------------------------------------
    # Server State Helpers
    # -------------------------------------------------------------------------

    def add_calendar(self, account_id: str, calendar: RemoteCalendar) -> None:
        self.calendars.setdefault(account_id, []).append(calendar)
        self.tasks.setdefault(calendar.id, {})

    def add_task(self, calendar_id: str, task: RemoteTask) -> RemoteTask:
        self.tasks.setdefault(calendar_id, {})[task.uid] = task
        return task

    def edit_task(self, calendar_id: str, uid: str, **changes: Any) -> RemoteTask:
        """Simulate an edit made by another client (the etag changes)."""
        current = self.tasks[calendar_id][uid]
        changes.setdefault("etag", self._next_etag())
        updated = current.model_copy(update=changes)
        self.tasks[calendar_id][uid] = updated
        return updated

    def remove_task(self, calendar_id: str, uid: str) -> None:
        del self.tasks[calendar_id][uid]

    def find_by_href(self, href: str) -> tuple[str, RemoteTask] | None:
        for calendar_id, tasks in self.tasks.items():
            for task in tasks.values():
                if task.href == href:
                    return calendar_id, task
        return None

    # -------------------------------------------------------------------------
    # RemoteCalendarClient
    # -------------------------------------------------------------------------

    def is_connected(self, account_id: str) -> bool:
        return account_id in self.connected

    async def reconnect(self, account: Account) -> None:
        self._record_call("reconnect", (account.id,), {})
        self._check_failure("reconnect")
        if account.id in self.failing_accounts:
            raise ConnectionError(f"Account {account.id} unreachable")
        self.connected.add(account.id)

    async def fetch_calendars(self, account_id: str) -> list[RemoteCalendar]:
        self._record_call("fetch_calendars", (account_id,), {})
        if self.gate is not None:
            await self.gate.wait()
        self._check_failure("fetch_calendars")
        if account_id in self.failing_accounts:
            raise ConnectionError(f"Account {account_id} unreachable")
        return [c.model_copy() for c in self.calendars.get(account_id, [])]

    async def fetch_tasks(self, account_id: str, calendar: Calendar) -> list[RemoteTask]:
        self._record_call("fetch_tasks", (account_id, calendar.id), {})
        self._check_failure("fetch_tasks")
        if calendar.id in self.failing_calendars:
            raise ConnectionError(f"Calendar {calendar.id} unavailable")
        return [t.model_copy() for t in self.tasks.get(calendar.id, {}).values()]

    async def create_task(
        self,
        account_id: str,
        calendar: Calendar,
        task: Task,
    ) -> CreateResult | None:
        self._record_call("create_task", (account_id, calendar.id, task.uid), {})
        self._check_failure("create_task")
        if task.uid in self.unconfirmed:
            return None

        result = self.create_overrides.get(task.uid) or CreateResult(
            href=f"{calendar.url}{task.uid}.ics",
            etag=self._next_etag(),
        )
        self.add_task(
            calendar.id,
            RemoteTaskFactory.from_task(task, href=result.href, etag=result.etag),
        )
        return result

    async def update_task(self, account_id: str, task: Task) -> UpdateResult | None:
        self._record_call("update_task", (account_id, task.uid), {})
        self._check_failure("update_task")
        if task.uid in self.unconfirmed:
            return None

        etag = self._next_etag()
        self.add_task(task.calendar_id, RemoteTaskFactory.from_task(task, etag=etag))
        return UpdateResult(etag=etag)

    async def delete_task(self, account_id: str, ref: TaskRef) -> bool:
        self._record_call("delete_task", (account_id, ref.href), {})
        self._check_failure("delete_task")
        if ref.href in self.refused_deletions:
            return False

        found = self.find_by_href(ref.href)
        if found is not None:
            calendar_id, task = found
            self.remove_task(calendar_id, task.uid)
        return True

    # -------------------------------------------------------------------------
    # Verification Helpers
    # -------------------------------------------------------------------------

    def get_calls(self, method_name: str) -> list[tuple[tuple, dict]]:
        """Get all calls to a specific method."""
        return [(args, kwargs) for name, args, kwargs in self.call_history if name == method_name]

    def assert_called(self, method_name: str, times: int | None = None) -> None:
        """Assert a method was called (optionally a specific number of times)."""
        calls = self.get_calls(method_name)
        if times is not None:
            assert len(calls) == times, f"Expected {method_name} to be called {times} times, got {len(calls)}"
        else:
            assert len(calls) > 0, f"Expected {method_name} to be called at least once"

    def assert_not_called(self, method_name: str) -> None:
        """Assert a method was not called."""
        calls = self.get_calls(method_name)
        assert len(calls) == 0, f"Expected {method_name} not to be called, but was called {len(calls)} times"


class TopicRecorder:
    """Collects the topic sets published by a ChangeNotifier."""

    def __init__(self) -> None:
        self.events: list[frozenset[SyncTopic]] = []

    def __call__(self, topics: frozenset[SyncTopic]) -> None:
        self.events.append(topics)

    @property
    def topics(self) -> set[SyncTopic]:
        return set().union(*self.events) if self.events else set()


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_ids():
    """Reset ID generator before each test."""
    IDGenerator.reset()
    yield


@pytest.fixture
def calendar_factory() -> type[CalendarFactory]:
    """Provide CalendarFactory class."""
    return CalendarFactory


@pytest.fixture
def account_factory() -> type[AccountFactory]:
    """Provide AccountFactory class."""
    return AccountFactory


@pytest.fixture
def task_factory() -> type[TaskFactory]:
    """Provide TaskFactory class."""
    return TaskFactory


@pytest.fixture
def remote_task_factory() -> type[RemoteTaskFactory]:
    """Provide RemoteTaskFactory class."""
    return RemoteTaskFactory


@pytest.fixture
def mock_remote() -> MockRemoteClient:
    """Create a fresh mock server."""
    return MockRemoteClient()


@pytest.fixture
def store() -> InMemoryStore:
    """Create an empty in-memory store."""
    return InMemoryStore()


@pytest.fixture
def account(store: InMemoryStore, mock_remote: MockRemoteClient) -> Account:
    """
    Account ``acct-1`` with calendar ``cal-1``, known to both the store
    and the mock server.
    """
    calendar = CalendarFactory.create(id="cal-1", account_id="acct-1", display_name="Tasks")
    account = AccountFactory.create(id="acct-1", name="Work", calendars=[calendar])
    store.add_account(account)
    mock_remote.add_calendar(
        "acct-1",
        RemoteCalendar(id="cal-1", display_name="Tasks", url=calendar.url),
    )
    return account


@pytest.fixture
def notifier() -> ChangeNotifier:
    return ChangeNotifier()


@pytest.fixture
def published(notifier: ChangeNotifier) -> TopicRecorder:
    """Record everything published on the notifier."""
    recorder = TopicRecorder()
    notifier.subscribe(recorder)
    return recorder


@pytest.fixture
def connectivity() -> ConnectivityMonitor:
    return ConnectivityMonitor(online=True)


@pytest.fixture
def tag_resolver(store: InMemoryStore) -> TagResolver:
    return TagResolver(store)


@pytest.fixture
def deletion_processor(store: InMemoryStore, mock_remote: MockRemoteClient) -> DeletionQueueProcessor:
    return DeletionQueueProcessor(store, mock_remote)


@pytest.fixture
def calendar_reconciler(
    store: InMemoryStore,
    mock_remote: MockRemoteClient,
    notifier: ChangeNotifier,
) -> CalendarReconciler:
    return CalendarReconciler(store, mock_remote, notifier)


@pytest.fixture
def task_reconciler(
    store: InMemoryStore,
    mock_remote: MockRemoteClient,
    notifier: ChangeNotifier,
    tag_resolver: TagResolver,
    deletion_processor: DeletionQueueProcessor,
) -> TaskReconciler:
    return TaskReconciler(
        store,
        mock_remote,
        notifier,
        tags=tag_resolver,
        deletions=deletion_processor,
    )


@pytest.fixture
def orchestrator(
    store: InMemoryStore,
    mock_remote: MockRemoteClient,
    calendar_reconciler: CalendarReconciler,
    task_reconciler: TaskReconciler,
    connectivity: ConnectivityMonitor,
) -> SyncOrchestrator:
    return SyncOrchestrator(store, mock_remote, calendar_reconciler, task_reconciler, connectivity)


@pytest.fixture
async def scheduler(
    orchestrator: SyncOrchestrator,
    store: InMemoryStore,
    connectivity: ConnectivityMonitor,
) -> AsyncIterator[AutoSyncScheduler]:
    """Scheduler that is stopped after the test."""
    scheduler = AutoSyncScheduler(orchestrator, store, connectivity, enabled=True, interval_minutes=5)
    yield scheduler
    await scheduler.stop()


@pytest.fixture
async def service(
    store: InMemoryStore,
    mock_remote: MockRemoteClient,
    connectivity: ConnectivityMonitor,
) -> AsyncIterator[SyncService]:
    """
    Create a SyncService over the mock server.

    The service is not started; tests drive triggers explicitly.
    """
    service = SyncService(
        store,
        mock_remote,
        connectivity=connectivity,
        auto_sync=False,
        sync_interval_minutes=0,
    )
    yield service
    await service.stop()
