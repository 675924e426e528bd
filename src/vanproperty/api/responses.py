"""
Success envelope helpers.
"""
from typing import Any, Dict


def ok(data: Any = None, **extra) -> Dict[str, Any]:
    """``{success: true, data}``; list payloads also carry ``count``."""
    body: Dict[str, Any] = {"success": True}
    if isinstance(data, list):
        body["count"] = len(data)
    body.update(extra)
    body["data"] = data
    return body


def message(text: str, **extra) -> Dict[str, Any]:
    return {"success": True, "message": text, **extra}


def created(text: str, **ids) -> Dict[str, Any]:
    return {"success": True, "message": text, "data": ids}


def changed(text: str, changes: int) -> Dict[str, Any]:
    return {"success": True, "message": text, "changes": changes}
