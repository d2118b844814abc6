"""
Directory lifecycle

Moves whole record directories and prunes the empty folders they leave
behind. Failures here never abort the caller: the layout can be repaired by
running the move again, the stored bytes are not at risk.
"""

import logging
import os
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)


class DirectoryMover:
    """
    Record directory mover

    Responsible for:
    - Renaming a record directory when its layout path changes
    - Removing the empty ancestors of the old location
    """

    def __init__(self, data_dir: Union[str, Path]):
        """
        Initialize the mover

        Args:
            data_dir: Data root; never pruned, nothing above it is touched
        """
        self.data_dir = Path(data_dir)

    def rename(self, original_path: Union[str, Path], new_path: Union[str, Path]) -> bool:
        """
        Move a record directory

        When the original directory is missing the new one is simply created.

        Args:
            original_path: Current record directory
            new_path: Target record directory

        Returns:
            Whether the target directory is in place
        """
        original_path = Path(original_path)
        new_path = Path(new_path)

        if not original_path.exists():
            try:
                new_path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Datastore issue. Failed to create folder {new_path}. Error is: {e}")
                return False
            return True

        try:
            new_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(
                f"Datastore issue. Failed to create parent folders of {new_path}. Error is: {e}"
            )

        try:
            os.rename(original_path, new_path)
        except OSError as e:
            logger.error(f"Datastore issue. Failed to rename {original_path} in {new_path}. Error is: {e}")
            return False

        logger.debug(f"Moved {original_path} to {new_path}")
        self.prune_empty_ancestors(original_path, self.data_dir)
        return True

    def prune_empty_ancestors(
        self,
        path: Union[str, Path],
        root_boundary: Union[str, Path]
    ) -> List[Path]:
        """
        Remove empty directories from path upwards

        Stops at the first non-empty directory or at the boundary, which is
        never removed. Missing levels are skipped.

        Args:
            path: Deepest directory to consider
            root_boundary: Directory the walk stops at

        Returns:
            Removed directories, deepest first
        """
        root = Path(root_boundary).resolve()
        directory = Path(path).resolve()
        removed: List[Path] = []

        if directory != root and root not in directory.parents:
            logger.warning(f"Refusing to prune {directory}: outside of {root}")
            return removed

        while directory != root:
            if directory.is_dir():
                try:
                    if any(directory.iterdir()):
                        break
                    directory.rmdir()
                    removed.append(directory)
                except OSError as e:
                    # Repopulated concurrently or not removable
                    logger.error(
                        f"Datastore issue. Failed to empty parent folder {directory}. Error is: {e}"
                    )
                    break
            directory = directory.parent

        return removed


__all__ = [
    "DirectoryMover",
]
