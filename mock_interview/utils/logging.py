import logging
import sys

from mock_interview.config import settings


# Third-party loggers that flood INFO with per-page / per-request lines
_NOISY_LOGGERS = ("pdfminer", "httpx", "httpcore")


def configure_logging(level: str | None = None) -> None:
	root_logger = logging.getLogger()
	if root_logger.handlers:
		return

	handler = logging.StreamHandler(sys.stdout)
	formatter = logging.Formatter(
		"%(asctime)s | %(levelname)s | %(name)s | %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	handler.setFormatter(formatter)
	root_logger.addHandler(handler)
	root_logger.setLevel((level or settings.log_level).upper())
	for name in _NOISY_LOGGERS:
		logging.getLogger(name).setLevel(logging.WARNING)
