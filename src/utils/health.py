from __future__ import annotations

from contextlib import nullcontext
from typing import Any


def liveness() -> dict[str, Any]:
    return {"ok": True}


def _database_ready(conn: Any) -> str:
    try:
        if hasattr(conn, "execute"):
            conn.execute("SELECT 1").fetchone()
        else:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            cur.fetchone()
        return "ready"
    except Exception as exc:
        return f"error: {exc}"


def readiness(conn: Any | None, engine: Any | None = None) -> dict[str, Any]:
    dependencies: dict[str, str] = {}
    # The engine's store shares this connection.
    with getattr(engine, "lock", None) or nullcontext():
        if conn is None:
            dependencies["database"] = "error: unavailable"
        else:
            dependencies["database"] = _database_ready(conn)

    if engine is None:
        dependencies["roster"] = "degraded: not loaded"
    else:
        try:
            violations = engine.find_violations()
            if violations:
                dependencies["roster"] = f"degraded: {len(violations)} inconsistencies"
            else:
                dependencies["roster"] = "ready"
        except Exception as exc:
            dependencies["roster"] = f"degraded: {exc}"

    ok = dependencies["database"] == "ready"
    return {"ok": ok, "dependencies": dependencies}
