"""Tests for CreateCluster and ScaleCluster orchestration."""

import uuid

import pytest

from clusterlcm.config import ConflictPolicy, ValidationConfig
from clusterlcm.errors import NotFoundError, UpstreamError
from clusterlcm.models import (
    ClusterConf,
    ClusterRawConf,
    ClusterStatus,
    CreateClusterRequest,
    CspInfo,
    ResultCode,
    ScaleClusterRequest,
)
from clusterlcm.services.lifecycle import LifecycleService


class TestCreateClusterSuccess:
    async def test_with_contract_and_csp(self, service, upstreams, contract_id, csp_id):
        cluster_id = str(uuid.uuid4())
        upstreams.info.add_cluster.return_value = cluster_id

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.OK
        assert result.id == cluster_id
        assert result.error is None
        upstreams.contract.get_contract.assert_awaited_once_with(contract_id)
        upstreams.info.get_csp_info.assert_awaited_once_with(csp_id)

    async def test_submits_create_template_with_parameters(
        self, service, upstreams, contract_id, csp_id
    ):
        cluster_id = str(uuid.uuid4())
        upstreams.info.add_cluster.return_value = cluster_id

        await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        template, namespace, parameters = upstreams.workflow.submit_from_template.await_args.args
        assert template == "create-tks-usercluster"
        assert namespace == "argo"
        assert parameters == [
            f"contract_id={contract_id}",
            f"cluster_id={cluster_id}",
            f"site_name={cluster_id}",
            "template_name=template-std",
            "git_account=tks-management",
            f"manifest_repo_url=https://github.com/tks-management/{cluster_id}-manifests",
            "revision=main",
        ]

    async def test_status_moves_to_installing_with_workflow_id(
        self, service, upstreams, contract_id, csp_id
    ):
        cluster_id = str(uuid.uuid4())
        upstreams.info.add_cluster.return_value = cluster_id
        upstreams.workflow.submit_from_template.side_effect = None
        upstreams.workflow.submit_from_template.return_value = "create-tks-usercluster-abcde"

        await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        upstreams.info.update_cluster_status.assert_awaited_once_with(
            cluster_id, ClusterStatus.INSTALLING, "create-tks-usercluster-abcde"
        )

    async def test_registers_derived_configuration(self, service, upstreams, contract_id, csp_id):
        await service.create_cluster(
            CreateClusterRequest(
                contract_id=contract_id,
                csp_id=csp_id,
                name="demo",
                conf=ClusterRawConf(machine_replicas=6),
            )
        )

        args = upstreams.info.add_cluster.await_args.args
        assert args[:3] == (contract_id, csp_id, "demo")
        conf: ClusterConf = args[3]
        assert conf.region == "ap-northeast-2"
        assert conf.num_of_az == 3
        assert (conf.min_size_per_az, conf.max_size_per_az) == (2, 10)

    async def test_default_contract_and_first_csp(self, service, upstreams, contract_id, csp_id):
        upstreams.info.get_csp_ids_by_contract.return_value = [csp_id, str(uuid.uuid4())]

        result = await service.create_cluster(CreateClusterRequest(name="demo"))

        assert result.code == ResultCode.OK
        upstreams.contract.get_default_contract.assert_awaited_once()
        upstreams.info.get_csp_ids_by_contract.assert_awaited_once_with(contract_id)
        assert upstreams.info.add_cluster.await_args.args[:2] == (contract_id, csp_id)

    async def test_status_update_failure_does_not_fail_request(
        self, service, upstreams, contract_id, csp_id
    ):
        upstreams.info.update_cluster_status.side_effect = UpstreamError("down")

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.OK
        assert result.id


class TestCreateClusterValidation:
    async def test_invalid_contract_id(self, service, upstreams):
        result = await service.create_cluster(
            CreateClusterRequest(contract_id="THIS_IS_NOT_UUID", csp_id="x", name="demo")
        )

        assert result.code == ResultCode.INVALID_ARGUMENT
        assert result.id == ""
        upstreams.contract.get_contract.assert_not_awaited()
        upstreams.workflow.submit_from_template.assert_not_awaited()

    async def test_missing_name(self, service, upstreams, contract_id, csp_id):
        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id)
        )

        assert result.code == ResultCode.INVALID_ARGUMENT
        assert "name" in result.error.msg

    async def test_strict_policy_requires_contract(self, cfg, regions, upstreams):
        cfg.validation = ValidationConfig(require_contract_and_csp=True)
        service = LifecycleService(cfg, regions, upstreams)

        result = await service.create_cluster(CreateClusterRequest(name="demo"))

        assert result.code == ResultCode.INVALID_ARGUMENT
        upstreams.contract.get_default_contract.assert_not_awaited()


class TestCreateClusterTenantScope:
    async def test_unknown_contract(self, service, upstreams, contract_id, csp_id):
        upstreams.contract.get_contract.side_effect = NotFoundError("no such contract")

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.NOT_FOUND
        upstreams.info.add_cluster.assert_not_awaited()

    async def test_unknown_csp(self, service, upstreams, contract_id, csp_id):
        upstreams.info.get_csp_info.side_effect = NotFoundError("no such csp")

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.NOT_FOUND

    async def test_csp_belongs_to_other_contract(self, service, upstreams, contract_id, csp_id):
        other_contract = str(uuid.uuid4())
        upstreams.info.get_csp_info.return_value = CspInfo(
            csp_id=csp_id, contract_id=other_contract
        )

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.NOT_FOUND
        assert "do not match" in result.error.msg
        assert other_contract in result.error.msg
        upstreams.info.add_cluster.assert_not_awaited()

    async def test_no_default_contract(self, service, upstreams):
        upstreams.contract.get_default_contract.side_effect = NotFoundError("none")

        result = await service.create_cluster(CreateClusterRequest(name="demo"))

        assert result.code == ResultCode.NOT_FOUND

    async def test_default_contract_without_csp(self, service, upstreams):
        upstreams.info.get_csp_ids_by_contract.return_value = []

        result = await service.create_cluster(CreateClusterRequest(name="demo"))

        assert result.code == ResultCode.NOT_FOUND
        upstreams.info.add_cluster.assert_not_awaited()

    async def test_csp_lookup_failure_under_default_contract(self, service, upstreams):
        upstreams.info.get_csp_ids_by_contract.side_effect = UpstreamError("down")

        result = await service.create_cluster(CreateClusterRequest(name="demo"))

        assert result.code == ResultCode.NOT_FOUND


class TestCreateClusterDedup:
    async def test_running_workflow_for_contract(self, service, upstreams, contract_id, csp_id):
        upstreams.workflow.is_running_workflow_by_correlation_id.return_value = True

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.ALREADY_EXISTS
        upstreams.workflow.is_running_workflow_by_correlation_id.assert_awaited_once_with(
            "argo", "contract_id", contract_id
        )
        upstreams.info.add_cluster.assert_not_awaited()
        upstreams.workflow.submit_from_template.assert_not_awaited()

    async def test_conflict_code_from_config(self, cfg, regions, upstreams, contract_id, csp_id):
        cfg.dedup.conflict_code = ConflictPolicy.INTERNAL
        service = LifecycleService(cfg, regions, upstreams)
        upstreams.workflow.is_running_workflow_by_correlation_id.return_value = True

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.INTERNAL

    async def test_listing_failure_fails_closed(self, service, upstreams, contract_id, csp_id):
        upstreams.workflow.is_running_workflow_by_correlation_id.side_effect = UpstreamError(
            "argo unreachable"
        )

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.INTERNAL
        upstreams.info.add_cluster.assert_not_awaited()

    async def test_dedup_disabled(self, cfg, regions, upstreams, contract_id, csp_id):
        cfg.dedup.enabled = False
        service = LifecycleService(cfg, regions, upstreams)
        upstreams.workflow.is_running_workflow_by_correlation_id.return_value = True

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.OK
        upstreams.workflow.is_running_workflow_by_correlation_id.assert_not_awaited()


class TestCreateClusterFailures:
    @pytest.mark.parametrize(
        "conf",
        [
            ClusterRawConf(num_of_az=4),
            ClusterRawConf(machine_replicas=4),
            ClusterRawConf(region="us-west-1"),
        ],
    )
    async def test_bad_configuration_is_internal(
        self, service, upstreams, contract_id, csp_id, conf
    ):
        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo", conf=conf)
        )

        assert result.code == ResultCode.INTERNAL
        upstreams.info.add_cluster.assert_not_awaited()
        upstreams.workflow.submit_from_template.assert_not_awaited()

    async def test_registration_failure(self, service, upstreams, contract_id, csp_id):
        upstreams.info.add_cluster.side_effect = UpstreamError("db down")

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.INTERNAL
        assert "Failed to add cluster info" in result.error.msg
        upstreams.workflow.submit_from_template.assert_not_awaited()

    async def test_submission_failure_leaves_record_registered(
        self, service, upstreams, contract_id, csp_id
    ):
        upstreams.workflow.submit_from_template.side_effect = UpstreamError("argo 500")

        result = await service.create_cluster(
            CreateClusterRequest(contract_id=contract_id, csp_id=csp_id, name="demo")
        )

        assert result.code == ResultCode.INTERNAL
        assert "Failed to call workflow engine" in result.error.msg
        upstreams.info.add_cluster.assert_awaited_once()
        upstreams.info.update_cluster_status.assert_not_awaited()


class TestScaleCluster:
    async def test_unimplemented(self, service, upstreams):
        result = await service.scale_cluster(
            ScaleClusterRequest(cluster_id=str(uuid.uuid4()), machine_replicas=6)
        )

        assert result.code == ResultCode.UNIMPLEMENTED
        upstreams.info.get_cluster.assert_not_awaited()
        upstreams.workflow.submit_from_template.assert_not_awaited()
