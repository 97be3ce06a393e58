"""
Natours Backend — Static Asset Stage
======================================

What:  Serves files from the public directory at the document root
       (/css/style.css → public/css/style.css).
How:   For GET and HEAD only. The request path is resolved under the public
       root; if it names a file, or a directory holding index.html, the
       file is returned as a FileResponse and the pipeline stops there.
       Anything else passes through untouched to the routers.

Security:
    The resolved path must stay inside the public root, so /../config.py
    never escapes it; such paths simply fall through to the 404 fallback.
"""

import errno
import logging
import os
import stat
from pathlib import Path
from typing import Optional

from starlette.responses import FileResponse

from natours.exceptions import ServerFault
from natours.middleware.base import Continue, Fail, Outcome, ShortCircuit, Stage
from natours.middleware.context import RequestContext

logger = logging.getLogger(__name__)

INDEX_FILE = "index.html"
SERVED_METHODS = {"GET", "HEAD"}

# Lookup failures that mean "no such file here", not an I/O fault
MISSING_ERRNOS = {errno.ENOENT, errno.ENOTDIR, errno.ENAMETOOLONG}


class StaticFilesStage(Stage):
    def __init__(self, directory: str):
        self.root = Path(directory).resolve()

    def resolve(self, url_path: str) -> Optional[Path]:
        """Map a URL path to a path under the root, or None if it escapes."""
        candidate = (self.root / url_path.lstrip("/")).resolve()
        if candidate != self.root and not str(candidate).startswith(str(self.root) + os.sep):
            return None
        return candidate

    async def process(self, ctx: RequestContext) -> Outcome:
        if ctx.method not in SERVED_METHODS:
            return Continue(ctx)

        candidate = None
        try:
            candidate = self.resolve(ctx.path)
            if candidate is None:
                logger.warning("Blocked static path outside public root: %s", ctx.path)
                return Continue(ctx)

            info = os.stat(candidate)
            if stat.S_ISDIR(info.st_mode):
                candidate = candidate / INDEX_FILE
                info = os.stat(candidate)
        except ValueError:
            # Embedded null byte: cannot name a file
            return Continue(ctx)
        except OSError as exc:
            if exc.errno in MISSING_ERRNOS:
                return Continue(ctx)
            return Fail(
                ServerFault(
                    message=f"Could not read static file {ctx.path}",
                    cause=exc,
                    context={"path": str(candidate)},
                )
            )

        if not stat.S_ISREG(info.st_mode):
            return Continue(ctx)

        return ShortCircuit(FileResponse(path=str(candidate), stat_result=info))
