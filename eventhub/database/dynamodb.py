import boto3
from loguru import logger

from eventhub.config import settings


def get_db_connection():
    """Build a DynamoDB resource from the configured endpoint and credentials"""
    endpoint_url = settings.DYNAMODB_ENDPOINT_URL or None
    logger.debug(f"Connecting to DynamoDB at {endpoint_url or 'AWS default endpoint'}")
    return boto3.resource(
        "dynamodb",
        endpoint_url=endpoint_url,
        region_name=settings.AWS_DEFAULT_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY.get_secret_value(),
    )
