import time
from contextlib import contextmanager
from typing import Iterator, Dict, Any
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, **kv: Dict[str, Any]) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "provider.call", provider="GEMINI"):
          ...
    Emits one INFO on exit: "<name>.done ms=<int> key=val ..."; on an
    exception the line is "<name>.failed ms=<int> err=<ExcType> ...".
    """
    t0 = time.perf_counter()
    failed: str | None = None
    try:
        yield
    except BaseException as e:
        failed = type(e).__name__
        raise
    finally:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        if failed:
            logger.info("%s.failed ms=%d err=%s%s", name, dt_ms, failed, suffix)
        else:
            logger.info("%s.done ms=%d%s", name, dt_ms, suffix)
