"""
Structured logging for the embedding store and query pipeline.
"""

import logging
import os
from typing import Any, Dict


class StructuredLogger:
    """Structured logger for store, embed and query operations."""

    def __init__(self, name: str = "media_tagger"):
        self.logger = logging.getLogger(name)
        debug = os.getenv("DEBUG", "false").lower() == "true"
        self.logger.setLevel(logging.DEBUG if debug else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        if status in ("failed", "error"):
            self.logger.error(message)
        elif status in ("dropped", "warning"):
            self.logger.warning(message)
        else:
            self.logger.info(message)

    def log_vector_operation(self, operation: str, record_id: str, details: Dict[str, Any] = None, status: str = "success"):
        """Log a vector store operation."""
        log_details = {"record_id": record_id}
        if details:
            log_details.update(details)

        self.log_operation(f"vector.{operation}", status, log_details)

    def log_query(self, kind: str, anchors: int, k: int, min_score: float, rows: int, details: Dict[str, Any] = None):
        """Log a completed similarity query."""
        log_details = {
            "anchors": anchors,
            "k": k,
            "min_score": min_score,
            "rows": rows,
        }
        if details:
            log_details.update(details)

        self.log_operation(f"query.{kind}", "success", log_details)

    def log_embed_progress(self, done: int, total: int, status: str = "running"):
        """Log embed step progress."""
        self.log_operation("embed", status, {"done": done, "total": total})

    # Standard logging methods for compatibility
    def info(self, message: str) -> None:
        """Log an info message."""
        self.logger.info(message)

    def warning(self, message: str) -> None:
        """Log a warning message."""
        self.logger.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        self.logger.error(message)

    def debug(self, message: str) -> None:
        """Log a debug message."""
        self.logger.debug(message)


# Global logger instance
logger = StructuredLogger()
