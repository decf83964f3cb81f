"""FastAPI entrypoint for auto-discovery tools.

Some CLIs/buildpacks look specifically for `app = FastAPI(...)` in a well-known
file (e.g. `app.py`). The real application lives in `rmforecast.api`; this
module re-exports it and can also be run directly with uvicorn.
"""

import os

from fastapi import FastAPI

# Placeholder for tools that statically scan for `FastAPI(...)`.
app = FastAPI()

# Re-export the real application.
from rmforecast.api import app as _real_app  # noqa: E402

app = _real_app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8080")))
