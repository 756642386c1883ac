from collections import deque
from datetime import datetime, timezone
import logging


class ReasonerLogEntryFormatter(logging.Formatter):
  """Format records as TRAPI LogEntry dicts."""
  def format(self, record):
    log_entry = {}

    if isinstance(record.msg, dict):
      log_entry |= record.msg
    else:
      log_entry["message"] = record.getMessage()

    # logger.info("...", extra={"code": "..."})
    code = getattr(record, "code", None)
    if code is not None:
      log_entry.setdefault("code", code)

    log_entry["timestamp"] = datetime.fromtimestamp(
      record.created, tz=timezone.utc
    ).isoformat()

    # TRAPI has no CRITICAL level
    log_entry["level"] = "ERROR" if record.levelno > logging.ERROR else record.levelname

    return log_entry


class QueryLogHandler(logging.Handler):
  """Collect formatted entries of one merge."""
  def __init__(self, log_queue):
    logging.Handler.__init__(self)
    self.log_queue = log_queue

  def emit(self, record):
    self.log_queue.append(self.format(record))

  def contents(self):
    """Get stored entries, oldest first."""
    return list(self.log_queue)


class QueryLogger(object):
  """Log capture for one merge_responses call."""
  def __init__(self, maxlen=None):
    self._log_queue = deque(maxlen=maxlen)
    self._log_handler = QueryLogHandler(self._log_queue)
    self._log_handler.setFormatter(ReasonerLogEntryFormatter())

  @property
  def log_handler(self):
    return self._log_handler
