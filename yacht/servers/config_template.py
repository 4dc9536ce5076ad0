"""scylla.yaml rendering.

Scylla cannot start without a configuration file, so every setting the
harness controls goes there rather than on the command line.
"""

from pathlib import Path
from string import Template

from ..core.errors import FilesystemError

SCYLLA_CONF_TEMPLATE = Template("""\
cluster_name: $cluster_name
developer_mode: true
data_file_directories:
    - $dir/data
commitlog_directory: $dir/commitlog
hints_directory: $dir/hints
view_hints_directory: $dir/view_hints

listen_address: $address
rpc_address: $address
api_address: $address
prometheus_address: $address

seed_provider:
    - class_name: org.apache.cassandra.locator.SimpleSeedProvider
      parameters:
          - seeds: $seeds

skip_wait_for_gossip_to_settle: $gossip_settle
ring_delay_ms: 3000
""")

CONFIG_FILE_NAME = "scylla.yaml"


def render_scylla_config(
    directory: Path,
    address: str,
    cluster_name: str,
    seeds: str,
    gossip_settle: int = 0,
) -> str:
    return SCYLLA_CONF_TEMPLATE.substitute(
        dir=str(directory),
        address=address,
        cluster_name=cluster_name,
        seeds=seeds,
        gossip_settle=gossip_settle,
    )


def write_scylla_config(directory: Path, **fields) -> Path:
    """Render scylla.yaml into directory and return its path."""
    config_file = Path(directory) / CONFIG_FILE_NAME
    try:
        config_file.write_text(render_scylla_config(directory, **fields), encoding="utf-8")
    except OSError as e:
        raise FilesystemError(f"Error writing {config_file}: {e}") from e
    return config_file
