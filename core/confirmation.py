"""Shared-secret confirmation for destructive actions (deleting quotations, etc.)."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from core import config

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "¿Eliminar este elemento?"
DEFAULT_DESCRIPTION = "Esta acción no se puede deshacer. El elemento se eliminará permanentemente."
WRONG_CODE_TITLE = "Código incorrecto"
WRONG_CODE_DESCRIPTION = "Contacte con el administrador para borrar"


class InvalidDeleteCodeError(Exception):
    """Raised when a destructive action is attempted with the wrong code."""

    def __init__(self, message: str = WRONG_CODE_TITLE):
        super().__init__(message)
        self.title = WRONG_CODE_TITLE
        self.description = WRONG_CODE_DESCRIPTION


def verify_delete_code(code: Optional[str], expected: Optional[str] = None) -> bool:
    expected = config.DELETE_CODE if expected is None else expected
    if code is None:
        return False
    return hmac.compare_digest(str(code).encode("utf-8"), expected.encode("utf-8"))


def require_delete_code(code: Optional[str]) -> None:
    if not verify_delete_code(code):
        logger.warning("rejected destructive action: wrong confirmation code")
        raise InvalidDeleteCodeError()


@dataclass(frozen=True)
class ConfirmOutcome:
    ok: bool
    toast_title: Optional[str] = None
    toast_description: Optional[str] = None
    toast_variant: Optional[str] = None


@dataclass
class DeleteConfirmation:
    """State of the confirmation dialog: whether it is open and the code typed so far."""

    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    open: bool = False
    code: str = ""

    def set_code(self, value: str) -> None:
        self.code = value or ""

    def set_open(self, is_open: bool) -> None:
        if not is_open:
            self.code = ""
        self.open = is_open

    def confirm(self, on_confirm: Callable[[], None]) -> ConfirmOutcome:
        """Run ``on_confirm`` when the code matches.

        Errors raised by ``on_confirm`` propagate; the dialog stays open with the code cleared.
        """
        if verify_delete_code(self.code):
            try:
                on_confirm()
            finally:
                self.code = ""
            self.set_open(False)
            return ConfirmOutcome(ok=True)

        logger.warning("delete confirmation rejected for %r", self.title)
        self.code = ""
        return ConfirmOutcome(
            ok=False,
            toast_title=WRONG_CODE_TITLE,
            toast_description=WRONG_CODE_DESCRIPTION,
            toast_variant="destructive",
        )
