"""Derive a concrete cluster configuration from a sparse user configuration.

Pure and deterministic: the region table and defaults are passed in, nothing
is read from disk or network here.
"""

from clusterlcm.config import ClusterDefaults, RegionTable
from clusterlcm.errors import DerivationError
from clusterlcm.logging_config import get_logger
from clusterlcm.models import ClusterConf, ClusterRawConf

logger = get_logger(__name__)


def derive_cluster_config(
    raw: ClusterRawConf | None,
    regions: RegionTable,
    defaults: ClusterDefaults | None = None,
) -> ClusterConf:
    """Apply defaults and bounds to a raw cluster configuration.

    Raises DerivationError when the AZ count exceeds the region's maximum or
    when a nonzero replica count is not a multiple of the AZ count.
    """
    if defaults is None:
        defaults = ClusterDefaults()
    if raw is None:
        raw = ClusterRawConf()

    region = raw.region or defaults.region
    num_of_az = raw.num_of_az or defaults.num_of_az
    ssh_key_name = raw.ssh_key_name or defaults.ssh_key_name
    machine_type = raw.machine_type or defaults.machine_type

    max_az = regions.max_az_for(region)
    if max_az == 0:
        logger.warning("Region missing from region table", region=region)
    if num_of_az > max_az:
        raise DerivationError(
            f"Invalid numOfAz: {num_of_az} exceeds the number of AZs ({max_az}) in region {region}"
        )

    replicas = raw.machine_replicas
    min_size_per_az = defaults.min_size_per_az
    max_size_per_az = defaults.max_size_per_az

    if replicas:
        if replicas % num_of_az != 0:
            raise DerivationError(
                f"Invalid machineReplicas: {replicas} is not a multiple of numOfAz {num_of_az}"
            )
        min_size_per_az = replicas // num_of_az
        max_size_per_az = min_size_per_az * defaults.size_multiplier
        if max_size_per_az > defaults.max_size_ceiling:
            logger.info(
                "maxSizePerAz clamped",
                requested=max_size_per_az,
                ceiling=defaults.max_size_ceiling,
            )
            max_size_per_az = defaults.max_size_ceiling

    conf = ClusterConf(
        region=region,
        num_of_az=num_of_az,
        ssh_key_name=ssh_key_name,
        machine_type=machine_type,
        machine_replicas=replicas,
        min_size_per_az=min_size_per_az,
        max_size_per_az=max_size_per_az,
    )
    logger.debug("Derived cluster configuration", conf=conf.model_dump())
    return conf
