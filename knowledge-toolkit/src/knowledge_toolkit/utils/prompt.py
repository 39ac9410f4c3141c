"""
Prompt assembly for retrieval-augmented generation.

Everything here is pure string formatting: the same inputs always produce the
same prompt, byte for byte. The section layout and the placeholder markers are
read by the model, so they are part of the contract rather than cosmetics; an
empty section is always replaced by an explicit marker so the model can tell
"nothing found" apart from "section missing".
"""

from typing import Sequence

from knowledge_toolkit.llms.base import LLMMessage, Roles
from knowledge_toolkit.vectorstores.base import DocumentMatch

NO_CONTEXT_PLACEHOLDER = "[No context available]"
NO_HISTORY_PLACEHOLDER = "[No previous conversation]"
CLOSING_INSTRUCTION = "Answer clearly and concisely. If you are unsure, say so explicitly."
DEFAULT_HISTORY_WINDOW = 5


def render_context(documents: Sequence[DocumentMatch]) -> str:
    """
    Render ranked documents as the literal context block of the prompt.

    Parameters:
    - documents: Matches in the order they should be presented (best first).

    Returns:
    - One 'Source <rank> (score: <score>):' header plus text per document,
      separated by blank lines. Empty string when there are no documents.
    """
    return "\n\n".join(
        f"Source {rank} (score: {document.score:.3f}):\n{document.metadata.text}"
        for rank, document in enumerate(documents, start=1)
    )


def render_history(history: Sequence[LLMMessage]) -> str:
    return "\n".join(
        f"{'Assistant' if message.role == Roles.ASSISTANT else 'User'}: {message.content}" for message in history
    )


def compose_prompt(
    system_prompt: str,
    context_text: str,
    history: Sequence[LLMMessage],
    query: str,
    history_window: int = DEFAULT_HISTORY_WINDOW,
) -> str:
    """
    Build the single prompt string sent to the generation backend.

    Only the last 'history_window' history entries are rendered (oldest first);
    older turns are invisible to the model.
    """
    recent = list(history)[-history_window:] if history_window > 0 else []
    parts = [
        f"System: {system_prompt}",
        "",
        "Context documents:",
        context_text or NO_CONTEXT_PLACEHOLDER,
        "",
        "Recent conversation:",
        render_history(recent) or NO_HISTORY_PLACEHOLDER,
        "",
        f"User question: {query}",
        "",
        CLOSING_INSTRUCTION,
    ]
    return "\n".join(parts)
