"""Service layer: Pocket transport, token and persistence collaborators."""

from pocket_reader.services.pocket_api_service import (
    fetch_delta,
    fetch_snapshot,
    mutation_to_action,
    send_actions,
)

__all__ = [
    "fetch_delta",
    "fetch_snapshot",
    "mutation_to_action",
    "send_actions",
]
