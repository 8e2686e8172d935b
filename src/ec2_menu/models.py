from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass(slots=True, frozen=True)
class InstanceSummary:
    instance_id: str
    state: str
    instance_type: str
    launch_time: datetime | None
    name: str = ""

    @property
    def display_name(self) -> str:
        return self.name or self.instance_id


@dataclass(slots=True, frozen=True)
class InstanceTag:
    key: str
    value: str


@dataclass(slots=True, frozen=True)
class InstanceStateChange:
    instance_id: str
    previous_state: str
    current_state: str


class ErrorKind(str, Enum):
    NOT_FOUND = "not-found"
    PERMISSION = "permission"
    INVALID_REQUEST = "invalid-request"
    NETWORK = "network"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class OperationResult:
    operation: str
    ok: bool
    message: str
    data: Any = None
    error_kind: ErrorKind | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, operation: str, message: str, data: Any = None) -> OperationResult:
        return cls(operation=operation, ok=True, message=message, data=data)

    @classmethod
    def failure(
        cls,
        operation: str,
        message: str,
        error_kind: ErrorKind,
        error_code: str | None = None,
    ) -> OperationResult:
        return cls(
            operation=operation,
            ok=False,
            message=message,
            error_kind=error_kind,
            error_code=error_code,
        )


class MenuAction(Enum):
    LIST_INSTANCES = ("Listar Instâncias", None)
    LAUNCH_INSTANCE = ("Criar Instância", "Digite o nome da nova instância:")
    START_INSTANCE = ("Iniciar Instância", "Digite o ID da instância a ser iniciada:")
    UPDATE_TAGS = ("Atualizar Tags da Instância", "Digite o ID da instância para atualizar as tags:")
    LIST_TAGS = ("Visualizar Tags da Instância", "Digite o ID da instância para visualizar as tags:")
    STOP_INSTANCE = ("Parar Instância", "Digite o ID da instância a ser parada:")
    TERMINATE_INSTANCE = ("Terminar Instância", "Digite o ID da instância a ser terminada:")
    EXIT = ("Sair", None)

    def __init__(self, label: str, prompt: str | None) -> None:
        self.label = label
        self.prompt = prompt

    @property
    def needs_input(self) -> bool:
        return self.prompt is not None

    @property
    def is_terminal(self) -> bool:
        return self is MenuAction.EXIT
