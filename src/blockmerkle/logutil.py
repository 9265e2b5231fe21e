import logging
import re
from typing import Iterable, Optional


_HEX_RUN = re.compile(r"\b[0-9a-fA-F]{40,}\b")


class DigestShorteningFilter(logging.Filter):
    """Shorten long hex digests in log records to a fixed prefix."""

    def __init__(self, keep: int = 16) -> None:
        super().__init__()
        self.keep = keep

    def filter(self, record: logging.LogRecord) -> bool:
        if self.keep <= 0:
            return True
        try:
            msg = record.getMessage()
        except (TypeError, ValueError):
            # malformed format args; leave the record for Handler.handleError
            return True
        short = _HEX_RUN.sub(lambda m: m.group(0)[: self.keep] + "...", msg)
        if short != msg:
            record.msg = short
            record.args = None
        return True


def setup_logging(
    level: int = logging.INFO,
    loggers: Iterable[str] = ("blockmerkle", "blockmerkle_cli"),
    keep: Optional[int] = None,
) -> None:
    from .settings import settings

    logging.basicConfig(level=level)
    f = DigestShorteningFilter(settings.log_digest_chars if keep is None else keep)
    # Logger filters do not apply to records propagated from child loggers
    # (blockmerkle.merkle etc.), so the filter goes on the root handlers.
    for handler in logging.getLogger().handlers:
        for old in [x for x in handler.filters if isinstance(x, DigestShorteningFilter)]:
            handler.removeFilter(old)
        handler.addFilter(f)
    for name in loggers:
        logging.getLogger(name).setLevel(level)
