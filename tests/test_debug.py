"""Tests for the debug manager."""

import io
import logging

import pytest

from connect_four.debug import DebugLevel, DebugManager


@pytest.fixture
def manager():
    """A separate manager whose output goes to a buffer."""
    manager = DebugManager(logger_name="connect_four.test")
    buffer = io.StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(logging.Formatter('%(levelname)s %(message)s'))
    manager.logger.addHandler(handler)
    yield manager, buffer
    manager.logger.removeHandler(handler)


class TestDebugManager:
    """Test level and component filtering."""

    def test_level_filtering(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.WARNING)

        debug.info("hidden")
        debug.warning("shown")
        debug.error("also shown")

        output = buffer.getvalue()
        assert "hidden" not in output
        assert "WARNING shown" in output
        assert "ERROR also shown" in output

    def test_component_tag(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.INFO)
        debug.info("saved", "data")
        assert "[data] saved" in buffer.getvalue()

    def test_component_filter(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.INFO, components=["training"])

        debug.info("from data", "data")
        debug.info("from training", "training")

        output = buffer.getvalue()
        assert "from data" not in output
        assert "from training" in output

    def test_none_silences_everything(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.NONE)
        debug.error("nothing")
        assert buffer.getvalue() == ""

    def test_disabled(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.TRACE, enabled=False)
        debug.error("nothing")
        assert buffer.getvalue() == ""

    def test_trace_prefix(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.TRACE)
        debug.trace("details")
        assert "TRACE: details" in buffer.getvalue()

    def test_set_from_string(self, manager):
        debug, _ = manager
        debug.set_from_string("debug")
        assert debug.level == DebugLevel.DEBUG
        debug.set_from_string("nonsense")
        assert debug.level == DebugLevel.DEBUG

    def test_log_file(self, manager, tmp_path):
        debug, _ = manager
        path = tmp_path / "run.log"
        debug.configure(level=DebugLevel.INFO, log_file=str(path))
        debug.info("to file")
        debug.configure(log_file="")

        assert "to file" in path.read_text()


class TestTimers:
    """Test the performance timers."""

    def test_end_timer_returns_elapsed(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.DEBUG)
        debug.start_timer("work")
        elapsed = debug.end_timer("work", "training")

        assert elapsed >= 0.0
        assert "[training] work:" in buffer.getvalue()

    def test_unknown_timer(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.WARNING)
        assert debug.end_timer("never started") is None
        assert "not started" in buffer.getvalue()

    def test_timed_block(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.INFO)
        with debug.timed("One training step", "training"):
            pass
        assert "One training step:" in buffer.getvalue()

    def test_timed_block_logs_on_error(self, manager):
        debug, buffer = manager
        debug.configure(level=DebugLevel.INFO)
        with pytest.raises(RuntimeError):
            with debug.timed("failing step"):
                raise RuntimeError("boom")
        assert "failing step:" in buffer.getvalue()
