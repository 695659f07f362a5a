"""Process-wide logger facade.

Import this at call sites:

    from proclog import log
    log.init("/var/log/myapp/app.log", "info")
    log.info("listening on ", port)
    log.warningf("retrying %s in %ds", host, delay)

There is exactly one `ProcessLogger` per process, exposed as `log.log`. The
module-level functions are its bound methods, so every caller shares the same
sink, threshold and once-only initialization.
"""

import os

from proclog.logging_config import ProcessLogger
from proclog.settings import load_settings

log = ProcessLogger("proclog")

init = log.init
set_tag = log.set_tag
set_level = log.set_level
set_output = log.set_output
flush = log.flush

debug = log.debug
debugf = log.debugf
info = log.info
infof = log.infof
warn = log.warn
warnf = log.warnf
warning = log.warning
warningf = log.warningf
error = log.error
errorf = log.errorf
fatal = log.fatal
fatalf = log.fatalf
panic = log.panic
panicf = log.panicf


def init_from_env(env_file: str | os.PathLike | None = None) -> None:
    """Initialize from `LOG_FILE` / `LOG_LEVEL` (a .env file is honored)."""
    settings = load_settings(env_file)
    log.init(settings.log_file, settings.log_level)
