"""Unit tests for watch pattern matching and event handling."""

import asyncio

import pytest
from watchdog.events import (
    DirModifiedEvent,
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
)

from cvbuilder.contexts.rendering.coordinator import BuildCoordinator
from cvbuilder.contexts.watching.watcher import (
    SourceWatcher,
    matches_watch_patterns,
    watch_dirs,
)


@pytest.mark.unit
@pytest.mark.parametrize(
    "relative_path, expected",
    [
        ("src/cv.tex", True),
        ("src/section_experience.tex", True),
        ("src/moderncv.cls", True),
        ("src/macros.sty", True),
        ("src/.cv.tex", False),
        ("src/.#cv.tex", False),
        ("src/.cache/cv.tex", False),
        ("src/notes.txt", False),
        ("src/cv.tex~", False),
        ("src/sub/cv.tex", False),
        ("cv.tex", False),
        ("cv.aux", False),
    ],
)
def test_matches_watch_patterns(config, relative_path, expected):
    assert matches_watch_patterns(config.working_dir / relative_path, config) is expected


@pytest.mark.unit
def test_paths_outside_project_never_match(config, tmp_path_factory):
    outside = tmp_path_factory.mktemp("elsewhere") / "src" / "cv.tex"

    assert matches_watch_patterns(outside, config) is False


@pytest.mark.unit
def test_watch_dirs(config):
    assert watch_dirs(config) == [config.working_dir / "src"]


def _run_events(config, runner, events, expect_results: int):
    """Feed watchdog events through the handler from another thread; collect callbacks."""
    coordinator = BuildCoordinator(config, runner=runner)
    results = []

    async def scenario():
        done = asyncio.Event()

        def on_result(result, path):
            results.append((path, result))
            if len(results) >= expect_results:
                done.set()

        watcher = SourceWatcher(coordinator, on_result=on_result)
        # Attach to this loop without starting a real observer
        watcher._loop = asyncio.get_running_loop()
        for event in events:
            await asyncio.to_thread(watcher.handler.dispatch, event)
        if expect_results:
            await asyncio.wait_for(done.wait(), timeout=5)
        else:
            await asyncio.sleep(0.1)
        await coordinator.drain()

    asyncio.run(scenario())
    return results


@pytest.mark.unit
def test_modified_source_triggers_build(config, fake_runner):
    event = FileModifiedEvent(str(config.source_path))

    results = _run_events(config, fake_runner, [event], expect_results=1)

    assert fake_runner.calls == 1
    assert results[0][0] == "src/cv.tex"
    assert results[0][1].success


@pytest.mark.unit
def test_created_and_moved_sources_trigger_builds(config, fake_runner):
    new_section = config.source_dir / "section_projects.tex"
    events = [
        FileCreatedEvent(str(new_section)),
        FileMovedEvent(str(config.source_dir / ".cv.tex.swp"), str(config.source_path)),
    ]

    results = _run_events(config, fake_runner, events, expect_results=2)

    assert sorted(path for path, _ in results) == ["src/cv.tex", "src/section_projects.tex"]


@pytest.mark.unit
def test_ignored_events_do_not_build(config, fake_runner):
    events = [
        FileModifiedEvent(str(config.source_dir / ".cv.tex.swp")),
        FileModifiedEvent(str(config.source_dir / "notes.txt")),
        DirModifiedEvent(str(config.source_dir)),
        FileModifiedEvent(str(config.working_dir / "cv.log")),
    ]

    results = _run_events(config, fake_runner, events, expect_results=0)

    assert results == []
    assert fake_runner.calls == 0


@pytest.mark.unit
def test_burst_of_changes_is_coalesced(config, make_runner):
    """Many change events during one build cost at most two compiler runs."""
    runner = make_runner(delay=0.2)
    events = [FileModifiedEvent(str(config.source_path)) for _ in range(6)]

    results = _run_events(config, runner, events, expect_results=6)

    assert runner.calls == 2
    assert len(results) == 6
    assert {result.stdout for _, result in results} == {"run 1", "run 2"}


@pytest.mark.unit
def test_async_callback_is_awaited(config, fake_runner):
    coordinator = BuildCoordinator(config, runner=fake_runner)
    seen = []

    async def on_result(result, path):
        await asyncio.sleep(0)
        seen.append(path)

    watcher = SourceWatcher(coordinator, on_result=on_result)

    result = asyncio.run(watcher.handle_change(config.source_path, "changed"))

    assert result.success
    assert seen == ["src/cv.tex"]


@pytest.mark.unit
def test_notify_without_loop_is_ignored(config, fake_runner):
    watcher = SourceWatcher(BuildCoordinator(config, runner=fake_runner))

    watcher.notify(config.source_path, "changed")

    assert fake_runner.calls == 0
    assert watcher.is_running is False
