from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    HTTPClientError,
)

from .models import (
    ErrorKind,
    InstanceStateChange,
    InstanceSummary,
    InstanceTag,
    OperationResult,
)
from .settings import AwsCredentials, Ec2MenuSettings

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = frozenset(
    {
        "InvalidInstanceID.NotFound",
        "InvalidInstanceID.Malformed",
        "InvalidAMIID.NotFound",
    }
)
PERMISSION_CODES = frozenset(
    {
        "UnauthorizedOperation",
        "AuthFailure",
        "OptInRequired",
        "Blocked",
        "AccessDenied",
    }
)


class AwsEc2Service:
    def __init__(
        self,
        credentials: AwsCredentials,
        settings: Ec2MenuSettings | None = None,
        client: Any = None,
    ) -> None:
        self.settings = settings or Ec2MenuSettings()
        self.region = self.settings.region
        if client is None:
            session = boto3.Session(
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key,
                aws_session_token=credentials.session_token,
                region_name=self.region,
            )
            client = session.client("ec2")
        self.client = client

    def list_instances(self) -> OperationResult:
        operation = "list_instances"
        summaries: list[InstanceSummary] = []
        try:
            paginator = self.client.get_paginator("describe_instances")
            for page in paginator.paginate():
                for reservation in page.get("Reservations", []):
                    for instance in reservation.get("Instances", []):
                        summaries.append(self._to_summary(instance))
        except (ClientError, BotoCoreError) as error:
            return self._failure(operation, "Erro ao listar as instâncias", error)

        logger.info("Listed %d instance(s) in %s", len(summaries), self.region)
        return OperationResult.success(operation, f"Instâncias: {len(summaries)} encontrada(s).", summaries)

    def launch_instance(self, name: str) -> OperationResult:
        operation = "launch_instance"
        try:
            response = self.client.run_instances(
                ImageId=self.settings.image_id,
                InstanceType=self.settings.instance_type,
                MinCount=1,
                MaxCount=1,
                TagSpecifications=[
                    {
                        "ResourceType": "instance",
                        "Tags": [{"Key": "Name", "Value": name}],
                    }
                ],
            )
        except (ClientError, BotoCoreError) as error:
            return self._failure(operation, "Erro ao lançar a nova instância", error)

        summaries = [self._to_summary(instance) for instance in response.get("Instances", [])]
        ids = ", ".join(summary.instance_id for summary in summaries) or "-"
        logger.info("Launched instance(s) %s named %r", ids, name)
        return OperationResult.success(operation, f"Nova instância iniciada com sucesso: {ids}", summaries)

    def start_instance(self, instance_id: str) -> OperationResult:
        return self._change_state(
            "start_instance",
            self.client.start_instances,
            "StartingInstances",
            instance_id,
            success="Instância iniciada com sucesso",
            failure="Erro ao iniciar a instância",
        )

    def stop_instance(self, instance_id: str) -> OperationResult:
        return self._change_state(
            "stop_instance",
            self.client.stop_instances,
            "StoppingInstances",
            instance_id,
            success="Instância parada com sucesso",
            failure="Erro ao parar a instância",
        )

    def terminate_instance(self, instance_id: str) -> OperationResult:
        return self._change_state(
            "terminate_instance",
            self.client.terminate_instances,
            "TerminatingInstances",
            instance_id,
            success="Instância terminada com sucesso",
            failure="Erro ao terminar a instância",
        )

    def update_instance_tags(self, instance_id: str, tags: Mapping[str, str]) -> OperationResult:
        operation = "update_instance_tags"
        tag_list = [{"Key": key, "Value": value} for key, value in tags.items()]
        try:
            response = self.client.create_tags(Resources=[instance_id], Tags=tag_list)
        except (ClientError, BotoCoreError) as error:
            return self._failure(operation, "Erro ao atualizar tags", error)

        applied = ", ".join(f"{key}={value}" for key, value in tags.items())
        logger.info("Updated tags on %s: %s", instance_id, applied)
        return OperationResult.success(operation, f"Tags atualizadas com sucesso: {applied}", response)

    def list_instance_tags(self, instance_id: str) -> OperationResult:
        operation = "list_instance_tags"
        try:
            response = self.client.describe_instances(InstanceIds=[instance_id])
        except (ClientError, BotoCoreError) as error:
            return self._failure(operation, "Erro ao listar as tags da instância", error)

        instance = _first_instance(response)
        if instance is None:
            message = f"Nenhuma instância encontrada com o ID {instance_id}"
            logger.warning(message)
            return OperationResult.failure(operation, message, ErrorKind.NOT_FOUND)

        tags = [
            InstanceTag(key=tag.get("Key", ""), value=tag.get("Value", ""))
            for tag in instance.get("Tags", [])
        ]
        logger.info("Read %d tag(s) from %s", len(tags), instance_id)
        return OperationResult.success(operation, f"Tags da Instância {instance_id}:", tags)

    def _change_state(
        self,
        operation: str,
        call: Any,
        response_key: str,
        instance_id: str,
        *,
        success: str,
        failure: str,
    ) -> OperationResult:
        try:
            response = call(InstanceIds=[instance_id])
        except (ClientError, BotoCoreError) as error:
            return self._failure(operation, failure, error)

        changes = [_to_state_change(item) for item in response.get(response_key, [])]
        detail = "; ".join(
            f"{change.instance_id} ({change.previous_state} -> {change.current_state})" for change in changes
        )
        logger.info("%s: %s", operation, detail or instance_id)
        return OperationResult.success(operation, f"{success}: {detail or instance_id}", changes)

    @staticmethod
    def _failure(operation: str, context: str, error: Exception) -> OperationResult:
        kind, code = classify_error(error)
        logger.error("%s: %s", context, error)
        return OperationResult.failure(operation, f"{context}: {error}", kind, code)

    @staticmethod
    def _to_summary(instance: dict[str, Any]) -> InstanceSummary:
        return InstanceSummary(
            instance_id=instance["InstanceId"],
            state=instance.get("State", {}).get("Name", "unknown"),
            instance_type=instance.get("InstanceType", "unknown"),
            launch_time=instance.get("LaunchTime"),
            name=_tag_value(instance.get("Tags", []), "Name"),
        )


def classify_error(error: Exception) -> tuple[ErrorKind, str | None]:
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code")
        if code in NOT_FOUND_CODES:
            return ErrorKind.NOT_FOUND, code
        if code in PERMISSION_CODES:
            return ErrorKind.PERMISSION, code
        if code:
            return ErrorKind.INVALID_REQUEST, code
        return ErrorKind.UNKNOWN, None
    if isinstance(error, (BotoConnectionError, HTTPClientError)):
        return ErrorKind.NETWORK, None
    return ErrorKind.UNKNOWN, None


def _first_instance(response: dict[str, Any]) -> dict[str, Any] | None:
    reservations = response.get("Reservations") or []
    if not reservations:
        return None
    instances = reservations[0].get("Instances") or []
    return instances[0] if instances else None


def _to_state_change(item: dict[str, Any]) -> InstanceStateChange:
    return InstanceStateChange(
        instance_id=item.get("InstanceId", ""),
        previous_state=item.get("PreviousState", {}).get("Name", "unknown"),
        current_state=item.get("CurrentState", {}).get("Name", "unknown"),
    )


def _tag_value(tags: Iterable[dict[str, str]], key: str) -> str:
    for tag in tags:
        if tag.get("Key") == key:
            return tag.get("Value", "")
    return ""
