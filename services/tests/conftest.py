"""
Top-level test configuration for clusterlcm.
"""

import os
import uuid
from unittest.mock import AsyncMock

import pytest

# Ensure test-friendly defaults
os.environ.setdefault("CLUSTERLCM_JSON_LOGS", "false")
os.environ.setdefault("CLUSTERLCM_LOG_LEVEL", "DEBUG")
os.environ.setdefault("CLUSTERLCM_GIT__TOKEN", "test-git-token")
os.environ.setdefault("CLUSTERLCM_REGIONS_FILE", "/nonexistent/regions.yaml")

from clusterlcm.clients.protocol import Upstreams  # noqa: E402
from clusterlcm.config import GitConfig, RegionTable, Settings  # noqa: E402
from clusterlcm.models import Contract, CspInfo  # noqa: E402
from clusterlcm.services.lifecycle import LifecycleService  # noqa: E402


def new_id() -> str:
    return str(uuid.uuid4())


@pytest.fixture
def cfg() -> Settings:
    return Settings(
        git=GitConfig(account="tks-management", revision="main", token="test-git-token"),
    )


@pytest.fixture
def regions() -> RegionTable:
    return RegionTable(max_az={"ap-northeast-2": 3, "us-east-1": 6, "us-west-1": 2})


@pytest.fixture
def contract_id() -> str:
    return new_id()


@pytest.fixture
def csp_id() -> str:
    return new_id()


@pytest.fixture
def upstreams(contract_id: str, csp_id: str) -> Upstreams:
    """Upstream substitutes that succeed by default.

    Tests override individual methods (return_value / side_effect) to
    exercise failure paths.
    """
    contract = AsyncMock()
    contract.get_contract.return_value = Contract(contract_id=contract_id)
    contract.get_default_contract.return_value = Contract(contract_id=contract_id)

    info = AsyncMock()
    info.get_csp_info.return_value = CspInfo(csp_id=csp_id, contract_id=contract_id)
    info.get_csp_ids_by_contract.return_value = [csp_id]
    info.add_cluster.return_value = new_id()
    info.get_app_groups_by_cluster.return_value = []
    info.create_app_group.side_effect = lambda cluster_id, spec: new_id()

    workflow = AsyncMock()
    workflow.submit_from_template.side_effect = (
        lambda template, namespace, parameters: f"{template}-{uuid.uuid4().hex[:5]}"
    )
    workflow.is_running_workflow_by_correlation_id.return_value = False

    return Upstreams(contract=contract, info=info, workflow=workflow)


@pytest.fixture
def service(cfg: Settings, regions: RegionTable, upstreams: Upstreams) -> LifecycleService:
    return LifecycleService(cfg, regions, upstreams)
