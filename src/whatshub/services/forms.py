from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING, Any, Mapping

from pydantic import ValidationError as PydanticValidationError

from whatshub.data import Group, GroupDraft
from whatshub.services.directory import DirectoryService
from whatshub.utils import get_logger

if TYPE_CHECKING:
    from whatshub.auth import AuthorizationGate


logger = get_logger(__name__)

_FIELD_NAMES = {
    (info.alias or name): name for name, info in GroupDraft.model_fields.items()
}


class FormMode(StrEnum):
    CREATE = "create"
    EDIT = "edit"


class AdminLockedError(RuntimeError):
    """Raised when a privileged control is used while admin mode is locked."""


class GroupEditor:
    """State of the add/edit form between opening and a successful save.

    A failed save leaves the form open with the user's input untouched so it
    can be corrected and resubmitted.
    """

    def __init__(
        self,
        service: DirectoryService,
        gate: AuthorizationGate | None = None,
    ) -> None:
        self._service = service
        self._gate = gate
        self._mode: FormMode | None = None
        self._editing_id: str | None = None
        self._values: dict[str, Any] = {}
        self._error: Exception | None = None
        self._field_errors: dict[str, str] = {}

    @property
    def is_open(self) -> bool:
        return self._mode is not None

    @property
    def mode(self) -> FormMode | None:
        return self._mode

    @property
    def editing_id(self) -> str | None:
        return self._editing_id

    @property
    def values(self) -> dict[str, Any]:
        return dict(self._values)

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def field_errors(self) -> dict[str, str]:
        return dict(self._field_errors)

    def open_create(self) -> None:
        self._reset(FormMode.CREATE)

    def open_edit(self, group: Group) -> None:
        self._require_edit_access()
        self._reset(FormMode.EDIT)
        self._editing_id = group.id
        self._values = GroupDraft.from_group(group).model_dump()

    def close(self) -> None:
        self._mode = None
        self._editing_id = None
        self._values = {}
        self._error = None
        self._field_errors = {}

    async def submit(self, values: Mapping[str, Any] | None = None) -> GroupDraft | None:
        """Validate and save; returns the saved draft or ``None`` on field errors."""

        if self._mode is None:
            raise RuntimeError("The group form is not open")
        if self._mode is FormMode.EDIT:
            self._require_edit_access()
        if values is not None:
            self._values.update(values)
        self._error = None
        self._field_errors = {}

        try:
            draft = GroupDraft.model_validate(self._values)
        except PydanticValidationError as exc:
            self._field_errors = _collect_field_errors(exc)
            return None

        try:
            if self._mode is FormMode.EDIT and self._editing_id is not None:
                await self._service.edit_save(self._editing_id, draft)
            else:
                await self._service.create(draft)
        except Exception as exc:
            self._error = exc
            logger.warning("Group form save failed", mode=self._mode.value, error=str(exc))
            raise

        self.close()
        return draft

    def _reset(self, mode: FormMode) -> None:
        self.close()
        self._mode = mode

    def _require_edit_access(self) -> None:
        # editing is an admin action; creating stays open to visitors
        if self._gate is not None and not self._gate.is_unlocked:
            raise AdminLockedError("Admin mode is locked")


def _collect_field_errors(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("__root__",)
        key = _FIELD_NAMES.get(str(loc[0]), str(loc[0]))
        errors.setdefault(key, error.get("msg", "Invalid value"))
    return errors


class AdminControls:
    """Privileged actions, available only while the gate is unlocked."""

    def __init__(
        self,
        service: DirectoryService,
        gate: AuthorizationGate,
        editor: GroupEditor | None = None,
    ) -> None:
        self._service = service
        self._gate = gate
        self._editor = editor or GroupEditor(service, gate)

    @property
    def editor(self) -> GroupEditor:
        return self._editor

    @property
    def available(self) -> bool:
        return self._gate.is_unlocked

    async def delete(self, group_id: str) -> None:
        self._require_unlocked()
        await self._service.remove(group_id)

    async def set_verified(self, group_id: str, value: bool) -> None:
        self._require_unlocked()
        await self._service.set_verified(group_id, value)

    async def toggle_verified(self, group_id: str) -> bool:
        self._require_unlocked()
        group = self._service.get(group_id)
        if group is None:
            raise KeyError(group_id)
        value = not group.is_verified
        await self._service.set_verified(group_id, value)
        return value

    def edit(self, group_id: str) -> GroupEditor:
        self._require_unlocked()
        group = self._service.get(group_id)
        if group is None:
            raise KeyError(group_id)
        self._editor.open_edit(group)
        return self._editor

    def _require_unlocked(self) -> None:
        if not self._gate.is_unlocked:
            raise AdminLockedError("Admin mode is locked")


__all__ = ["AdminControls", "AdminLockedError", "FormMode", "GroupEditor"]
