"""Interactive picker used by the search controller.

The contract types live in ``types``; ``TerminalPicker`` is the tty frontend.
"""

from __future__ import annotations

from .app import TerminalPicker, run_picker_loop
from .state import PickerState, handle_key
from .types import CANCEL, COMMIT, PREVIEW, Picker, PickerRequest, PickerResult, PickerSource

__all__ = [
    "CANCEL",
    "COMMIT",
    "PREVIEW",
    "Picker",
    "PickerRequest",
    "PickerResult",
    "PickerSource",
    "PickerState",
    "TerminalPicker",
    "handle_key",
    "run_picker_loop",
]
