import logging

import boto3

logger = logging.getLogger(__name__)


def get_elasticsearch_url(domain_name: str, region_name: str = None) -> str:
    """Fetch the HTTPS endpoint of an Amazon OpenSearch/Elasticsearch domain using boto3."""
    client = boto3.client("opensearch", region_name=region_name)
    domain = client.describe_domain(DomainName=domain_name)["DomainStatus"]
    endpoint = domain.get("Endpoint")
    if not endpoint:
        # VPC domains only expose their endpoint under Endpoints
        endpoint = domain.get("Endpoints", {}).get("vpc")
    if not endpoint:
        raise RuntimeError(
            f"Could not determine the Elasticsearch endpoint for domain {domain_name}."
        )
    url = f"https://{endpoint}"
    logger.debug(f"Resolved domain {domain_name} to {url}")
    return url
