"""Tests for structured logging functionality."""
import json
import logging
import sys
from pathlib import Path
from unittest.mock import patch

# Add project root to path
project_root = Path(__file__).parent.parent.parent.parent
sys.path.insert(0, str(project_root))

from coral_sst.infrastructure.logging.formatters import HumanFormatter, JsonFormatter
from coral_sst.infrastructure.logging.structured_logger import (
    StructuredLogger, get_logger, node_context, run_context, stage_context
)


class TestStructuredLogger:
    """Test structured logging functionality."""

    def setup_method(self):
        run_context.set(None)
        node_context.set(None)
        stage_context.set(None)

    def test_logger_creation(self):
        """Test that get_logger creates cached StructuredLogger instances."""
        logger = get_logger("test.module")
        assert isinstance(logger, StructuredLogger)
        assert logger.name == "test.module"
        assert get_logger("test.module") is logger

    def test_structured_log_output(self):
        """Test that logs include run context."""
        logger = get_logger("test.structured")
        run_context.set("run-456")
        node_context.set("pipeline_sst/fetch")
        stage_context.set("fetch")

        with patch.object(logging.Logger, '_log') as mock_log:
            logger.info("Test message")

            context = mock_log.call_args.kwargs['extra']['context']
            assert context['run_id'] == "run-456"
            assert context['node_id'] == "pipeline_sst/fetch"
            assert context['stage'] == "fetch"
            assert context['logger_name'] == "test.structured"
            assert 'timestamp' in context

    def test_unset_context_omitted(self):
        logger = get_logger("test.unset")
        with patch.object(logging.Logger, '_log') as mock_log:
            logger.info("No run")
            context = mock_log.call_args.kwargs['extra']['context']
            assert 'run_id' not in context
            assert 'stage' not in context

    def test_traceback_capture(self):
        """Test error traceback capture."""
        logger = get_logger("test.errors")

        try:
            raise ValueError("Test error for traceback")
        except ValueError:
            with patch.object(logging.Logger, '_log') as mock_log:
                logger.error("Caught error", exc_info=True)

                extra = mock_log.call_args.kwargs['extra']
                assert "ValueError: Test error for traceback" in extra['traceback']
                assert "test_traceback_capture" in extra['traceback']

    def test_log_error_with_context(self):
        logger = get_logger("test.error_context")
        error = KeyError('SST')

        with patch.object(logging.Logger, '_log') as mock_log:
            logger.log_error_with_context(error, operation='anomalies', month='2020-08')

            extra = mock_log.call_args.kwargs['extra']
            assert extra['context']['error_type'] == 'KeyError'
            assert extra['context']['operation'] == 'anomalies'
            assert extra['context']['month'] == '2020-08'

    def test_add_and_remove_context(self):
        """Test persistent context fields."""
        logger = get_logger("test.context")
        logger.add_context(source="gcomc_v3")

        with patch.object(logging.Logger, '_log') as mock_log:
            logger.info("With context")
            assert mock_log.call_args.kwargs['extra']['context']['source'] == "gcomc_v3"

            logger.remove_context("source")
            logger.info("Without context")
            assert 'source' not in mock_log.call_args.kwargs['extra']['context']

    def test_log_performance(self):
        """Test performance logging method."""
        logger = get_logger("test.performance")

        with patch.object(logging.Logger, '_log') as mock_log:
            logger.log_performance("monthly_mean", duration=2.0, rasters_processed=365)

            assert "Performance: monthly_mean" in mock_log.call_args.args[1]
            perf = mock_log.call_args.kwargs['extra']['performance']
            assert perf['operation'] == "monthly_mean"
            assert perf['duration_seconds'] == 2.0
            assert perf['rasters_per_second'] == 182.5

    def test_extra_context_merge(self):
        """Test that call-site context merges with run context."""
        logger = get_logger("test.merge")
        run_context.set("run-789")

        with patch.object(logging.Logger, '_log') as mock_log:
            logger.info("Test merge", extra={'context': {'month': '2023-07'}})

            context = mock_log.call_args.kwargs['extra']['context']
            assert context['run_id'] == "run-789"
            assert context['month'] == "2023-07"


class TestFormatters:
    """Test console and JSON formatting of structured records."""

    def _record(self, **extra):
        record = logging.LogRecord('coral_sst.processors.anomaly_engine', logging.INFO,
                                   __file__, 1, 'Computed %d anomalies', (12,), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        record = self._record(context={'run_id': 'abc'}, performance={'duration_seconds': 0.5})
        data = json.loads(JsonFormatter().format(record))
        assert data['message'] == 'Computed 12 anomalies'
        assert data['level'] == 'INFO'
        assert data['context'] == {'run_id': 'abc'}
        assert data['performance'] == {'duration_seconds': 0.5}

    def test_human_formatter(self):
        record = self._record(context={'run_id': 'abcdef123456', 'stage': 'anomalies'},
                              performance={'duration_seconds': 0.5})
        output = HumanFormatter(use_colors=False).format(record)
        assert 'Computed 12 anomalies' in output
        assert 'run:abcdef12' in output
        assert 'stage:anomalies' in output
        assert '0.500s' in output
