"""
Reorder service - applies client-computed task positions.
This layer contains no HTTP framework dependencies.
"""
import logging
from typing import Iterable, Tuple, List

from taskory.database import TaskoryDatabase
from taskory.exceptions import TaskNotFoundError

logger = logging.getLogger(__name__)


class ReorderService:
    """
    Writes (task id, position) pairs one by one.

    The batch is not atomic and takes no lock on the sibling group: each
    pair is committed as it is applied, and a failing pair stops the batch
    without undoing the pairs before it. Callers send the full 0..n-1
    numbering of a sibling group; positions are stored as given.
    """

    def __init__(self, db: TaskoryDatabase):
        self.db = db

    def reorder(self, pairs: Iterable[Tuple[int, int]]) -> List[int]:
        """
        Set each task's position.

        Args:
            pairs: (task_id, position) tuples, already authorized by the caller

        Returns:
            IDs of the tasks updated, in input order

        Raises:
            TaskNotFoundError: On the first unknown task id
        """
        applied = []
        for task_id, position in pairs:
            if not self.db.tasks.set_position(task_id, position):
                logger.warning(f"Reorder stopped at unknown task {task_id} after {len(applied)} update(s)")
                raise TaskNotFoundError(task_id, context={"applied": applied})
            applied.append(task_id)
        logger.info(f"Reordered {len(applied)} task(s)")
        return applied
