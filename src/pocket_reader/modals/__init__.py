"""Modal dialogs for the Pocket Reader TUI.

Import modals from this package: ``from pocket_reader.modals import HelpScreen``
"""

# common.py: help, delete confirmation, reports
from pocket_reader.modals.common import (
    ConfirmDeleteModal,
    HelpScreen,
    ReportScreen,
)

# editing.py: rename, tags, date prompt
from pocket_reader.modals.editing import (
    DatePromptModal,
    RenameModal,
    TagsModal,
)

# browsers.py: tag, type and domain pickers
from pocket_reader.modals.browsers import (
    ALL_TYPES,
    DomainBrowserModal,
    TagBrowserModal,
    TypeBrowserModal,
)

__all__ = [
    "ALL_TYPES",
    "ConfirmDeleteModal",
    "DatePromptModal",
    "DomainBrowserModal",
    "HelpScreen",
    "RenameModal",
    "ReportScreen",
    "TagBrowserModal",
    "TagsModal",
    "TypeBrowserModal",
]
