from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

from .models import MenuAction, OperationResult

logger = logging.getLogger(__name__)

MENU_ACTIONS: tuple[MenuAction, ...] = tuple(MenuAction)
INVALID_SELECTION_MESSAGE = "Opção inválida"


class Ec2Operations(Protocol):
    def list_instances(self) -> OperationResult: ...

    def launch_instance(self, name: str) -> OperationResult: ...

    def start_instance(self, instance_id: str) -> OperationResult: ...

    def stop_instance(self, instance_id: str) -> OperationResult: ...

    def terminate_instance(self, instance_id: str) -> OperationResult: ...

    def update_instance_tags(self, instance_id: str, tags: Mapping[str, str]) -> OperationResult: ...

    def list_instance_tags(self, instance_id: str) -> OperationResult: ...


class MenuController:
    def __init__(self, service: Ec2Operations, tags: Mapping[str, str]) -> None:
        self.service = service
        self.tags = dict(tags)

    @staticmethod
    def resolve(selection: MenuAction | str | int | None) -> MenuAction | None:
        if isinstance(selection, MenuAction):
            return selection
        if isinstance(selection, bool) or selection is None:
            return None
        if isinstance(selection, int):
            if 1 <= selection <= len(MENU_ACTIONS):
                return MENU_ACTIONS[selection - 1]
            return None

        text = selection.strip()
        if text.isdigit():
            return MenuController.resolve(int(text))
        for action in MENU_ACTIONS:
            if action.label == text or action.name == text:
                return action
        return None

    def dispatch(self, action: MenuAction, value: str | None = None) -> OperationResult:
        if action.is_terminal:
            raise ValueError(f"{action.label!r} does not dispatch an operation")
        if action.needs_input and value is None:
            raise ValueError(f"{action.label!r} requires a value")

        logger.debug("Dispatching %s (%r)", action.name, value)
        match action:
            case MenuAction.LIST_INSTANCES:
                return self.service.list_instances()
            case MenuAction.LAUNCH_INSTANCE:
                return self.service.launch_instance(value)
            case MenuAction.START_INSTANCE:
                return self.service.start_instance(value)
            case MenuAction.UPDATE_TAGS:
                return self.service.update_instance_tags(value, self.tags)
            case MenuAction.LIST_TAGS:
                return self.service.list_instance_tags(value)
            case MenuAction.STOP_INSTANCE:
                return self.service.stop_instance(value)
            case MenuAction.TERMINATE_INSTANCE:
                return self.service.terminate_instance(value)
        raise ValueError(f"Unhandled menu action: {action!r}")
