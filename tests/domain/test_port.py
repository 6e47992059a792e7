"""
Tests for the class-based task port.

This module tests TaskBase subclass enforcement.
"""

import pytest

from batchflow.domain.port import TaskBase


class TestTaskBase:
    """Test cases for TaskBase."""

    def test_subclass_with_run(self):
        """Test a subclass defining run is accepted."""

        class EchoTask(TaskBase):
            def run(self, done):
                done("echo")

        results = []
        EchoTask().run(results.append)

        assert results == ["echo"]

    def test_subclass_without_run_rejected(self):
        """Test a subclass without run raises TypeError at definition time."""
        with pytest.raises(TypeError, match="must define a 'run' method"):

            class BrokenTask(TaskBase):
                pass

    def test_inherited_run_accepted(self):
        """Test a subclass may inherit run from another task class."""

        class ParentTask(TaskBase):
            def run(self, done):
                done("parent")

        class ChildTask(ParentTask):
            task_name = "child"

        results = []
        ChildTask().run(results.append)

        assert results == ["parent"]
        assert ChildTask.task_name == "child"

    def test_default_name(self):
        """Test task_name defaults to None."""

        class PlainTask(TaskBase):
            def run(self, done):
                done(None)

        assert PlainTask.task_name is None
