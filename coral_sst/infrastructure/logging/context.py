"""Logging context management for pipeline run correlation."""

import time
import uuid
from contextlib import contextmanager
from typing import Dict, List, Optional

from .structured_logger import get_logger, node_context, run_context, stage_context


class LoggingContext:
    """Hierarchical logging context for one pipeline run.

    Context set here is attached to every record logged inside the scope,
    including records from library modules.
    """

    def __init__(self, run_id: Optional[str] = None):
        self.run_id = run_id or str(uuid.uuid4())
        self.node_stack: List[str] = []
        self.stage_stack: List[str] = []
        self.timings: Dict[str, float] = {}
        self.logger = get_logger(self.__class__.__name__)

    @contextmanager
    def pipeline(self, name: str, **metadata):
        """Context for a pipeline run.

        Example:
            with ctx.pipeline('sst_anomaly'):
                ...
        """
        node_id = f"pipeline_{name}"
        start_time = time.time()

        run_token = run_context.set(self.run_id)
        node_token = node_context.set(node_id)
        self.node_stack.append(node_id)

        self.logger.info(
            f"Pipeline started: {name}",
            extra={'context': {'pipeline_name': name, **metadata}}
        )

        try:
            yield self
        finally:
            duration = time.time() - start_time
            self.timings[node_id] = duration
            self.logger.log_performance(f"pipeline_{name}", duration, status='completed')
            self.node_stack.pop()
            node_context.reset(node_token)
            run_context.reset(run_token)

    @contextmanager
    def stage(self, name: str, **metadata):
        """Context for a stage nested in the current pipeline or stage."""
        parent = self.node_stack[-1] if self.node_stack else None
        node_id = f"{parent}/{name}" if parent else name
        start_time = time.time()

        node_token = node_context.set(node_id)
        stage_token = stage_context.set(name)
        self.node_stack.append(node_id)
        self.stage_stack.append(name)

        self.logger.info(f"Stage started: {name}", extra={'context': metadata})

        try:
            yield self
        except Exception:
            self.logger.error(f"Stage failed: {name}", exc_info=True)
            raise
        finally:
            duration = time.time() - start_time
            self.timings[node_id] = duration
            self.logger.log_performance(f"stage_{name}", duration)
            self.stage_stack.pop()
            self.node_stack.pop()
            stage_context.reset(stage_token)
            node_context.reset(node_token)
