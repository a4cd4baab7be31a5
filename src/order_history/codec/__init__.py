"""
Codec Package - Shareable Query State.

    - StateCodec: QueryState <-> flat URL parameters / query strings
    - DecodeResult: Decoded state plus degraded parameter names
"""

from order_history.codec.state_codec import (
    DecodeResult,
    StateCodec,
    parse_query_string,
)

__all__ = [
    "DecodeResult",
    "StateCodec",
    "parse_query_string",
]
