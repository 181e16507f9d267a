"""JSON-lines replay source.

Each non-empty line of a replay file is one event in ``DecodedEvent.to_dict``
form. Files must be in chain order; an event positioned before its
predecessor is rejected.
"""

import json
import logging
from collections.abc import Iterator
from pathlib import Path

from asset_indexer.engine.errors import IndexerError

from .models import DecodedEvent

logger = logging.getLogger(__name__)


class ReplayError(IndexerError):
    """Raised when a replay file is malformed or out of order."""

    def __init__(self, path: Path, line_number: int, reason: str) -> None:
        self.path = path
        self.line_number = line_number
        super().__init__(f"{path}:{line_number}: {reason}")


def read_events(path: str | Path) -> Iterator[DecodedEvent]:
    """Yield the events of a replay file in order.

    Args:
        path: Path of the JSON-lines file.

    Yields:
        DecodedEvent for each line.

    Raises:
        ReplayError: If a line cannot be parsed or goes back in chain order.
    """
    path = Path(path)
    previous: tuple[int, int] | None = None

    with path.open(encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                event = DecodedEvent.from_dict(json.loads(line))
            except (KeyError, ValueError, TypeError) as e:
                raise ReplayError(path, line_number, str(e)) from e

            if previous is not None and event.position < previous:
                raise ReplayError(
                    path,
                    line_number,
                    f"event at {event.position} follows {previous}",
                )
            previous = event.position
            yield event

    logger.debug("Finished reading %s", path)
