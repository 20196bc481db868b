"""UI-facing copy builders for errors, warnings, and status hints."""

from __future__ import annotations

from spacecoast_reader.errors import ContentError, ListError, ParseError


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_warning(
    message: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable warning message."""
    lines = [_ensure_sentence(message)]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_fetch_error_message(error: ContentError) -> str:
    """Explain a failed fetch cycle on the listing screen."""
    if isinstance(error, ListError):
        return build_actionable_error(
            "load the post list",
            why=str(error),
            next_step="check your network connection, then press Esc and Enter to retry",
        )
    if isinstance(error, ParseError):
        return build_actionable_error(
            "read the posts",
            why=str(error),
            next_step="press Esc and Enter to retry; the source may be mid-update",
        )
    return build_actionable_error(
        "download any posts",
        why=str(error),
        next_step="press Esc and Enter to retry",
    )


def build_skipped_warning(skipped: int) -> str:
    """Status-line note for documents that failed individually."""
    return f"{skipped} post{'s' if skipped != 1 else ''} could not be loaded (see log)"


def build_entry_count_label(shown: int, total: int) -> str:
    """Header label for the listing screen."""
    if shown == total:
        return f"Posts ({total})"
    return f"Posts ({shown} of {total})"


__all__ = [
    "build_actionable_error",
    "build_actionable_warning",
    "build_entry_count_label",
    "build_fetch_error_message",
    "build_next_step_hint",
    "build_skipped_warning",
]
