from __future__ import annotations


def extract_json_candidate(text: str) -> str | None:
    """Return the substring from the first ``{`` to the last ``}`` of ``text``.

    The model is told to answer with exactly one JSON object but often wraps it
    in prose or a code fence. The span is greedy, so nested objects and braces
    inside string values stay intact. Stray braces in the surrounding prose
    widen the span; the caller treats an undecodable span as unusable output.
    """
    if not text:
        return None
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end < start:
        return None
    return text[start : end + 1]
