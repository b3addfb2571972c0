"""Batch-level collection of per-file failures."""

from typing import List, NamedTuple

from .logging_config import get_logger


class FileError(NamedTuple):
    item: str
    error: str


class BatchOperationContextManager:
    """
    Collects per-file errors while a batch runs and logs a summary on exit.

    Failures recorded here are expected outcomes of individual files, so the
    block keeps going. Exceptions escaping the block are logged and re-raised.
    """

    def __init__(self, operation_name: str = "Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[FileError] = []
        self.logger = get_logger("images-optimizer.batch")

    def __enter__(self) -> "BatchOperationContextManager":
        self.logger.info(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is not None:
            self.logger.error(
                f"{self.operation_name} aborted: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        elif self.errors:
            self.logger.warning(
                f"{self.operation_name} finished with {len(self.errors)} failed file(s)"
            )
            for index, failure in enumerate(self.errors, start=1):
                self.logger.warning(f"  [{index}/{len(self.errors)}] {failure.item}: {failure.error}")
        else:
            self.logger.info(f"{self.operation_name} finished without errors")
        return False

    def add_error(self, error_message, item_identifier: str = "Unknown item") -> None:
        """Record the failure of ``item_identifier``; exceptions are stored as text."""
        self.errors.append(FileError(item_identifier, str(error_message)))
        self.logger.debug(f"Recorded failure for {item_identifier}: {error_message}")

    def messages(self) -> List[str]:
        """Per-file errors formatted as ``"<item>: <error>"``."""
        return [f"{failure.item}: {failure.error}" for failure in self.errors]
