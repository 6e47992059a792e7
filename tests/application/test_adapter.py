"""
Tests for application adapters.

This module tests the InlineDispatcher.
"""

import threading
from unittest.mock import Mock

from batchflow.application.adapter import InlineDispatcher
from batchflow.application.port import Dispatcher
from batchflow.domain.entity import Task


class TestInlineDispatcher:
    """Test cases for InlineDispatcher."""

    def setup_method(self):
        """Setup test fixtures."""
        self.dispatcher = InlineDispatcher()

    def test_is_dispatcher(self):
        """Test the inline dispatcher implements the port."""
        assert isinstance(self.dispatcher, Dispatcher)

    def test_runs_in_calling_thread(self):
        """Test work runs synchronously on the caller's thread."""
        seen = []
        done = Mock()

        def work(callback):
            seen.append(threading.current_thread())
            callback("ok")

        self.dispatcher.dispatch(Task(work=work, name="t"), done, Mock())

        assert seen == [threading.current_thread()]
        done.assert_called_once_with("ok")

    def test_failure_reported(self):
        """Test exceptions are handed to the failure callback."""
        failed = Mock()

        def work(callback):
            raise ValueError("bad input")

        self.dispatcher.dispatch(Task(work=work, name="t"), Mock(), failed)

        assert isinstance(failed.call_args.args[0], ValueError)

    def test_shutdown_is_noop(self):
        """Test shutting down the inline dispatcher does nothing."""
        assert self.dispatcher.shutdown() is None
