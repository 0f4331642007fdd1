"""Syntactic and semantic validation of lifecycle requests.

Each validator raises ValidationError with a human-readable reason, or
returns None. Batch validators are all-or-nothing: the first bad entry
rejects the whole request.
"""

import uuid

from clusterlcm.errors import ValidationError
from clusterlcm.models import (
    CreateClusterRequest,
    InstallAppGroupsRequest,
    UninstallAppGroupsRequest,
)


def is_valid_id(value: str) -> bool:
    """Identifiers are canonical UUID strings."""
    if not value:
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False


def validate_create_cluster_request(
    req: CreateClusterRequest, require_contract_and_csp: bool = False
) -> None:
    if require_contract_and_csp or req.contract_id:
        if not is_valid_id(req.contract_id):
            raise ValidationError(f"invalid contract ID {req.contract_id}")
        if not is_valid_id(req.csp_id):
            raise ValidationError(f"invalid CSP ID {req.csp_id}")

    if not req.name:
        raise ValidationError("name must have a value")


def validate_cluster_id(cluster_id: str) -> None:
    if not is_valid_id(cluster_id):
        raise ValidationError(f"invalid cluster ID {cluster_id}")


def validate_install_app_groups_request(req: InstallAppGroupsRequest) -> None:
    for index, app_group in enumerate(req.app_groups):
        if not is_valid_id(app_group.cluster_id):
            raise ValidationError(f"appGroups[{index}]: invalid cluster ID {app_group.cluster_id}")
        if not app_group.app_group_name:
            raise ValidationError(f"appGroups[{index}]: name must have a value")
        if not app_group.external_label:
            raise ValidationError(f"appGroups[{index}]: externalLabel must have a value")


def validate_uninstall_app_groups_request(req: UninstallAppGroupsRequest) -> None:
    for app_group_id in req.app_group_ids:
        if not is_valid_id(app_group_id):
            raise ValidationError(f"invalid app group ID {app_group_id}")
