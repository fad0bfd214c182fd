"""Project a historian data frame into alert state log entries."""

import logging

from src.historian.errors import SchemaError
from src.historian.frame import CellTypeError, Frame, Timestamp
from src.historian.models import AlertStateEntry, AlertStateQueryResponse

logger = logging.getLogger(__name__)

LINE_FIELD = "Line"
TIME_FIELD = "Time"

MISSING_LINE_MESSAGE = "no Line field found in historian query response"
MISSING_TIME_MESSAGE = "no Time field found in historian query response"
TIME_TYPE_MESSAGE = "log Time field not a time.Time in historian query response"
LINE_TYPE_MESSAGE = "log Line field not a string in historian query response"


def project_frame(frame: Frame) -> AlertStateQueryResponse:
    """Convert ``frame`` into a response with one entry per row, in row order.

    A frame with no rows is the "no history" outcome and yields an empty
    response even if the columns are missing.  Any missing column or
    mistyped cell raises ``SchemaError``; no partial result is returned.
    """
    rows = frame.rows()
    if rows <= 0:
        return AlertStateQueryResponse(entries=[])

    _, line_idx = frame.field_by_name(LINE_FIELD)
    if line_idx < 0:
        raise SchemaError(MISSING_LINE_MESSAGE)
    _, time_idx = frame.field_by_name(TIME_FIELD)
    if time_idx < 0:
        raise SchemaError(MISSING_TIME_MESSAGE)

    entries: list[AlertStateEntry] = []
    for row in range(rows):
        try:
            timestamp = frame.typed_at(time_idx, row, Timestamp)
        except CellTypeError as e:
            logger.debug("Rejecting historian frame: %s", e)
            raise SchemaError(TIME_TYPE_MESSAGE, row=row) from e
        try:
            line = frame.typed_at(line_idx, row, str)
        except CellTypeError as e:
            logger.debug("Rejecting historian frame: %s", e)
            raise SchemaError(LINE_TYPE_MESSAGE, row=row) from e
        entries.append(AlertStateEntry(timestamp=timestamp.ns, line=line))

    return AlertStateQueryResponse(entries=entries)
