"""Segment-wise comparison of endpoint paths and call paths.

Endpoint paths may contain Express-style dynamic segments:

- ``:id`` (also ``:id(\\d+)``) matches one non-empty segment
- ``:id?`` matches zero or one segment
- ``*`` matches one arbitrary segment
- ``**`` and ``(.*)`` match everything that remains
"""

CATCH_ALL_SEGMENTS = ("**", "(.*)")


def split_path(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def is_catch_all(segment: str) -> bool:
    return segment in CATCH_ALL_SEGMENTS


def is_optional(segment: str) -> bool:
    return segment.startswith(":") and segment.endswith("?")


def is_dynamic(segment: str) -> bool:
    return segment.startswith(":") or segment == "*" or is_catch_all(segment)


def specificity(path: str) -> int:
    """Number of dynamic segments; lower is more specific."""
    return sum(1 for segment in split_path(path) if is_dynamic(segment))


def paths_match(endpoint_path: str, call_path: str) -> bool:
    """Whether a call to ``call_path`` is served by ``endpoint_path``."""
    if endpoint_path == call_path:
        return True

    endpoint_segments = split_path(endpoint_path)
    call_segments = split_path(call_path)
    trailing_from = _trailing_optional_start(endpoint_segments)

    j = 0
    for i, segment in enumerate(endpoint_segments):
        if is_catch_all(segment):
            return True

        if i >= trailing_from:
            # optional tail: take a segment when one is left, otherwise skip
            if j < len(call_segments):
                j += 1
            continue

        if j >= len(call_segments):
            return False

        call_segment = call_segments[j]
        # TODO: let a non-trailing ":name?" be skipped too (e.g. "/:lang?/docs");
        # for now it must consume a segment like ":name".
        if segment.startswith(":") or segment == "*":
            if not call_segment:
                return False
        elif segment != call_segment:
            return False
        j += 1

    return j == len(call_segments)


def _trailing_optional_start(segments: list[str]) -> int:
    """Index where the trailing run of optional segments begins.

    A catch-all ends the comparison anyway, so it also counts as part of
    the run.
    """
    start = len(segments)
    while start > 0 and (is_optional(segments[start - 1]) or is_catch_all(segments[start - 1])):
        start -= 1
    return start
