"""Resolution of the two secrets this service holds: the search API key and
the database password (or a whole DATABASE_URL).

A value written as "aws-secret://name[#json_key]" is read from AWS Secrets
Manager, "gcp-secret://name" from GCP Secret Manager (latest version, project
from GCP_PROJECT_ID). Anything else is a literal.
"""

from __future__ import annotations

import json
import logging
import os

from scripts.astros.errors import ConfigError

logger = logging.getLogger("astros.secrets")


def _from_aws(ref: str) -> str:
    import boto3

    name, _, json_key = ref.partition("#")
    client = boto3.client("secretsmanager", region_name=os.environ.get("AWS_REGION", "us-east-1"))
    value = client.get_secret_value(SecretId=name)["SecretString"]
    return str(json.loads(value)[json_key]) if json_key else value


def _from_gcp(ref: str) -> str:
    from google.cloud import secretmanager

    project = os.environ.get("GCP_PROJECT_ID", "")
    if not project:
        raise ConfigError(f"GCP_PROJECT_ID is required to read secret {ref!r}")
    response = secretmanager.SecretManagerServiceClient().access_secret_version(
        request={"name": f"projects/{project}/secrets/{ref}/versions/latest"}
    )
    return response.payload.data.decode("UTF-8")


_BACKENDS = {
    "aws-secret://": _from_aws,
    "gcp-secret://": _from_gcp,
}


def resolve_secret(value: str, setting: str) -> str:
    """Plaintext for value; setting names the variable in error messages."""
    for prefix, read in _BACKENDS.items():
        if value.startswith(prefix):
            logger.debug("Reading %s from %s", setting, prefix.rstrip(":/"))
            try:
                return read(value[len(prefix):])
            except ConfigError:
                raise
            except Exception as exc:
                raise ConfigError(f"Could not read secret for {setting}: {exc}") from exc
    return value
