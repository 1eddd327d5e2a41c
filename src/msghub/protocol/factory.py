"""Convenience constructors for protocol envelopes."""

from __future__ import annotations

import traceback
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple, Union

from . import fields
from .message import Progress, Request, Response


def request(
    instance_id: str,
    message_id: int,
    method_name: Union[str, Mapping[str, Any]],
    args: Sequence[Any] = (),
    *,
    to_instance: Optional[str] = None,
    **extra,
) -> Request:
    """Build a :class:`Request`.

    *method_name* may also be a mapping with a ``methodName`` entry; every
    other entry of the mapping is copied onto the envelope as an extra field.
    A ``toInstance`` entry addresses the request to one specific hub.
    """

    if isinstance(method_name, Mapping):
        config = dict(method_name)
        try:
            name = config.pop(fields.METHOD_NAME)
        except KeyError:
            raise ValueError(f"method config is missing {fields.METHOD_NAME!r}: {method_name!r}")
        config.update(extra)
        extra = config
        addressed = extra.pop(fields.TO_INSTANCE, None)
        if to_instance is None:
            to_instance = addressed
    else:
        name = method_name

    return Request(instance_id, message_id, name, args, to_instance, extra=extra)


def response(instance_id: str, req: Request, data: Any, is_success: bool = True) -> Response:
    """Build the terminal response to *req*, addressed back to its sender."""
    return Response(instance_id, req.message_id, req.from_instance, is_success, data)


def progress(instance_id: str, req: Request, data: Any) -> Progress:
    """Build a progress update for *req*, addressed back to its sender."""
    return Progress(instance_id, req.message_id, req.from_instance, data)


def _onprogress(options: Any) -> Optional[Callable]:
    if not isinstance(options, Mapping):
        return None

    candidate = options.get(fields.ONPROGRESS)
    if callable(candidate):
        return candidate
    return None


def strip_progress(target: Any, req: Request) -> Tuple[Request, Optional[Callable]]:
    """Detach a progress callback from the first argument of *req*.

    Functions cannot cross the transport boundary, so the callback is
    removed from a shallow copy of the first argument and the request is
    flagged instead. Broadcast requests never carry progress.

    Returns the request to put on the wire and the detached callback, if any.
    """

    if target == fields.WILDCARD or not req.args:
        return req, None

    options = req.args[0]
    callback = _onprogress(options)
    if callback is None:
        return req, None

    copied = dict(options)
    del copied[fields.ONPROGRESS]

    args = [copied] + list(req.args[1:])
    stripped = Request(
        req.from_instance,
        req.message_id,
        req.method_name,
        args,
        req.to_instance,
        progress=True,
        extra=req.extra,
    )
    return stripped, callback


def error_payload(exc: BaseException) -> dict:
    """Render *exc* as the serializable error payload of a failure response."""
    return {
        "type": type(exc).__name__,
        "text": str(exc),
        "debug": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }
