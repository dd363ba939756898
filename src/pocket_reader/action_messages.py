"""UI-facing copy builders for action confirmations and notifications."""

from __future__ import annotations

from pocket_reader.errors import MalformedEntry, NotFound, ReaderError, SyncTransportFailure
from pocket_reader.models import MergeReport
from pocket_reader.query import truncate_text


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


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


def build_actionable_success(
    message: str,
    *,
    detail: str | None = None,
    next_step: str | None = None,
) -> str:
    """Build a concise success message with optional detail and next step."""
    lines = [_ensure_sentence(message)]
    if detail:
        lines.append(_ensure_sentence(detail))
    if next_step:
        lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_delete_confirmation_prompt(title: str) -> str:
    """Build confirmation prompt text for deleting one entry."""
    return f"Delete “{truncate_text(title, 60)}”?\nIt is removed from Pocket on the next sync."


def build_sync_failure_message(error: SyncTransportFailure) -> str:
    """Describe a failed sync; the local list stays usable."""
    if error.is_auth_error:
        next_step = "Check POCKET_ACCESS_TOKEN or the user.key file, then press Q"
    else:
        next_step = "Press Q to retry, or wait for the next automatic sync"
    return build_actionable_error("sync with Pocket", why=error.message, next_step=next_step)


def build_sync_success_message(report: MergeReport, pushed: int = 0) -> str:
    if report.changed == 0 and pushed == 0:
        return build_actionable_success("Already up to date")
    detail = f"{report.created} new, {report.updated} updated"
    if pushed:
        detail += f", {pushed} local change{'s' if pushed != 1 else ''} sent"
    return build_actionable_success("Synced with Pocket", detail=detail)


def build_condition_message(condition: ReaderError) -> str:
    """Turn a recoverable condition into a user-facing warning."""
    if isinstance(condition, MalformedEntry):
        return build_actionable_warning(
            "This entry is incomplete",
            why=condition.reason,
            next_step="Press r to give it a title",
        )
    if isinstance(condition, NotFound):
        return build_actionable_warning(
            "That entry is no longer in the list",
            next_step="The list was refreshed; try again",
        )
    return build_actionable_warning(str(condition), next_step="Try again")


__all__ = [
    "build_actionable_error",
    "build_actionable_success",
    "build_actionable_warning",
    "build_condition_message",
    "build_delete_confirmation_prompt",
    "build_next_step_hint",
    "build_sync_failure_message",
    "build_sync_success_message",
]
