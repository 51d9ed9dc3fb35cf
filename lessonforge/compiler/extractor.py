import re
from typing import Any

# First fenced block; the language label is optional and may be anything
CODE_BLOCK_PATTERN = re.compile(r"```[ \t]*[\w+#.-]*[ \t]*\r?\n(.*?)\r?\n?[ \t]*```", re.DOTALL)


def _as_text(llm_output: Any) -> str:
    if llm_output is None:
        return ""
    if isinstance(llm_output, str):
        return llm_output
    if isinstance(llm_output, bytes):
        return llm_output.decode("utf-8", errors="replace")
    if isinstance(llm_output, (list, tuple)):
        # Content-part lists: [{"type": "text", "text": "..."}, ...]
        parts = []
        for part in llm_output:
            if isinstance(part, dict):
                parts.append(str(part.get("text", "")))
            else:
                parts.append(_as_text(part))
        return "".join(parts)
    return str(llm_output)


def extract_component_code(llm_output: Any) -> str:
    """
    Best-effort source text from a raw model reply.

    Returns the body of the first fenced code block when there is one, the
    text after an unterminated opening fence otherwise, and the stripped reply
    verbatim as a last resort. Never raises.
    """
    text = _as_text(llm_output)
    match = CODE_BLOCK_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    stripped = text.strip()
    if stripped.startswith("```"):
        first_newline = stripped.find("\n")
        return stripped[first_newline + 1:].strip() if first_newline != -1 else ""
    return stripped
