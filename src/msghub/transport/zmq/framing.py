"""ZMQ multipart framing for envelopes.

Each envelope is one multipart message:
    version, envelope_json
"""

from __future__ import annotations

from typing import Any, Dict, Sequence, Tuple

from ..codec import decode, encode


# This is the version of the on-the-wire framing implemented here, identified
# by a single byte.

version = b"a"


class FramingError(ValueError):
    """A multipart message could not be interpreted as an envelope."""


def to_frames(envelope: Dict[str, Any]) -> Tuple[bytes, ...]:
    """Encode an envelope dictionary as ZMQ multipart frames."""
    return (version, encode(envelope))


def from_frames(parts: Sequence[bytes]) -> Dict[str, Any]:
    """Decode ZMQ multipart frames into an envelope dictionary."""

    if len(parts) != 2:
        raise FramingError(f"expected 2 frames, received {len(parts)}")

    their_version = parts[0]
    if their_version != version:
        raise FramingError(
            f"message is msghub framing {their_version!r}, recipient expects {version!r}"
        )

    try:
        return decode(parts[1])
    except ValueError as exc:
        raise FramingError(str(exc)) from exc
