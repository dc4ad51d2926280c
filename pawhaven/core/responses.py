# pawhaven/core/responses.py
"""Every response body uses the same envelope: {success, data | message, meta?}."""

from typing import Any, Dict, List, Optional
from flask import jsonify


def success(data: Any = None, status: int = 200, meta: Optional[Dict[str, Any]] = None,
            message: Optional[str] = None):
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    if meta is not None:
        body["meta"] = meta
    return jsonify(body), status


def failure(message: str, status: int, code: Optional[str] = None,
            errors: Optional[List[Dict[str, Any]]] = None):
    body: Dict[str, Any] = {"success": False, "message": message}
    if code:
        body["code"] = code
    if errors:
        body["errors"] = errors
    return jsonify(body), status
