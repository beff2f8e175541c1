import json
import logging
import os
from logging import Formatter

json_logs = bool(os.getenv("JSON_LOGS", False))
log_level = os.getenv("EVE_SSO_LOG", "WARNING").upper()


class JsonFormatter(Formatter):
    def __init__(self):
        super(JsonFormatter, self).__init__()

    def format(self, record):
        json_record = {
            "message": record.getMessage(),
            "level": record.levelname,
            "timestamp": self.formatTime(record, self.datefmt),
        }
        if record.exc_info:
            json_record["stacktrace"] = self.formatException(record.exc_info)
        return json.dumps(json_record)


handler = logging.StreamHandler()
handler.setLevel(logging.DEBUG)

if json_logs:
    handler.setFormatter(JsonFormatter())
else:
    formatter = logging.Formatter(
        "\033[92m%(asctime)s - %(name)s:%(levelname)s\033[0m: %(filename)s:%(lineno)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

verbose_logger = logging.getLogger("EveSSO")
verbose_sso_logger = logging.getLogger("EveSSO SSO")

for _logger in (verbose_logger, verbose_sso_logger):
    _logger.addHandler(handler)
    _logger.setLevel(getattr(logging, log_level, logging.WARNING))
    _logger.propagate = False


def _turn_on_debug():
    verbose_logger.setLevel(level=logging.DEBUG)
    verbose_sso_logger.setLevel(level=logging.DEBUG)

