"""
Checkpoint service for resumable seeding.

Persists a single SeedCheckpoint document to disk after collection and
after every flushed batch. Writes go to a temp file that is then renamed
over the target so a crash never leaves a half-written checkpoint.
"""

import json
import os
from pathlib import Path
from typing import Optional, Union

import structlog

from catalog_seeder.models.checkpoint import SeedCheckpoint
from catalog_seeder.observability.metrics import CHECKPOINT_SAVES

logger = structlog.get_logger()


class CheckpointService:
    """
    Load, save and clear the seeding checkpoint file.
    """

    def __init__(self, path: Union[str, Path]):
        """
        Initialize checkpoint service.

        Args:
            path: Location of the checkpoint JSON document
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[SeedCheckpoint]:
        """
        Load the checkpoint.

        An unreadable or invalid file is treated as absent so a damaged
        checkpoint restarts the run instead of blocking it.

        Returns:
            SeedCheckpoint if a valid one exists, None otherwise
        """
        if not self.path.exists():
            logger.debug("no_checkpoint_found", path=str(self.path))
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)

            checkpoint = SeedCheckpoint.model_validate(data)

        except Exception as e:
            logger.warning(
                "checkpoint_load_error",
                path=str(self.path),
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

        logger.info(
            "checkpoint_loaded",
            stage=checkpoint.stage.value,
            identifiers=len(checkpoint.identifiers),
            last_processed_index=checkpoint.last_processed_index,
            batches_completed=checkpoint.batches_completed,
        )
        return checkpoint

    def save(self, checkpoint: SeedCheckpoint) -> None:
        """
        Save checkpoint atomically.

        Raises:
            OSError: If the file cannot be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.path.with_name(self.path.name + ".tmp")

        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(checkpoint.to_json_dict(), f, indent=2)

        os.replace(temp_file, self.path)

        CHECKPOINT_SAVES.labels(stage=checkpoint.stage.value).inc()
        logger.debug(
            "checkpoint_saved",
            stage=checkpoint.stage.value,
            last_processed_index=checkpoint.last_processed_index,
            batches_completed=checkpoint.batches_completed,
        )

    def clear(self) -> bool:
        """
        Remove the checkpoint file.

        Returns:
            True if a file was removed
        """
        if not self.path.exists():
            return False

        self.path.unlink()
        logger.info("checkpoint_cleared", path=str(self.path))
        return True
