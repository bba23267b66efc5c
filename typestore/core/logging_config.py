import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configureLogging(level: str = "INFO") -> None:
    rootLogger = logging.getLogger("typestore")
    rootLogger.setLevel(level.upper())
    # Installed once per process; startup may run more than once under test clients
    if not any(getattr(h, "_typestoreHandler", False) for h in rootLogger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._typestoreHandler = True
        rootLogger.addHandler(handler)
