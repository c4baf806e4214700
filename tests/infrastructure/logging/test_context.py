"""Tests for logging context management."""
import sys
from pathlib import Path

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.infrastructure.logging.context import LoggingContext
from coral_sst.infrastructure.logging.structured_logger import (
    node_context, run_context, stage_context
)


class TestLoggingContext:
    """Test logging context management."""

    def setup_method(self):
        """Reset contexts before each test."""
        run_context.set(None)
        node_context.set(None)
        stage_context.set(None)

    def test_generated_run_id(self):
        assert len(LoggingContext().run_id) == 36

    def test_pipeline_context(self):
        """Test pipeline context management."""
        ctx = LoggingContext("run-123")

        with ctx.pipeline("sst_anomaly"):
            assert run_context.get() == "run-123"
            assert node_context.get() == "pipeline_sst_anomaly"
            assert len(ctx.node_stack) == 1

        assert run_context.get() is None
        assert node_context.get() is None
        assert len(ctx.node_stack) == 0
        assert "pipeline_sst_anomaly" in ctx.timings

    def test_stage_context(self):
        """Test nested stage context."""
        ctx = LoggingContext("run-456")

        with ctx.pipeline("sst_anomaly"):
            with ctx.stage("fetch"):
                assert stage_context.get() == "fetch"
                assert node_context.get() == "pipeline_sst_anomaly/fetch"
                assert ctx.stage_stack == ["fetch"]

            assert stage_context.get() is None
            assert node_context.get() == "pipeline_sst_anomaly"

        assert "pipeline_sst_anomaly/fetch" in ctx.timings

    def test_stage_failure_propagates(self):
        """Test that a failing stage re-raises and restores context."""
        ctx = LoggingContext("run-789")

        with pytest.raises(RuntimeError):
            with ctx.pipeline("sst_anomaly"):
                with ctx.stage("merge"):
                    raise RuntimeError("boom")

        assert stage_context.get() is None
        assert run_context.get() is None
        assert ctx.stage_stack == []
