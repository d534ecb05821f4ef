from __future__ import annotations

import json
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .context import RunContext

LIBRARY_RUN_ID = "-"


def _enabled(ctx: RunContext | None, level: str) -> bool:
    if level == "debug":
        return ctx is not None and ctx.verbose
    if level == "info":
        return ctx is not None and not ctx.quiet
    return True


def log_event(ctx: RunContext | None, level: str, component: str, action: str, **fields: object) -> None:
    """Write one structured event line to stderr.

    Without a context only ``warn`` and ``error`` events are written, as
    key=value text; the CLI always passes one.
    """
    if not _enabled(ctx, level):
        return
    run_id = ctx.run_id if ctx is not None else LIBRARY_RUN_ID
    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "run_id": run_id,
        "component": component,
        "action": action,
        **fields,
    }
    if ctx is not None and ctx.log_json:
        sys.stderr.write(json.dumps(payload, sort_keys=True, default=str) + "\n")
        return
    core = f"ts={payload['ts']} level={level} run_id={run_id} component={component} action={action}"
    extras = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
    sys.stderr.write((core if not extras else f"{core} {extras}") + "\n")
