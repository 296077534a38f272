#!/usr/bin/env python3
"""
Create the progress-service DynamoDB tables in LocalStack

Usage:
    DYNAMODB_ENDPOINT=http://localhost:4566 python scripts/create_tables_local.py
"""
import os

import boto3
from botocore.exceptions import ClientError

from progress_service.config import get_settings
from progress_service.dynamo import table_definitions


def create_tables():
    """Create every table listed in table_definitions() if missing"""
    settings = get_settings()

    dynamodb = boto3.client(
        'dynamodb',
        endpoint_url=settings.DYNAMODB_ENDPOINT or os.getenv('LOCALSTACK_URL', 'http://localhost:4566'),
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID or 'test',
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or 'test'
    )

    for table_config in table_definitions(settings):
        table_name = table_config['TableName']
        try:
            dynamodb.describe_table(TableName=table_name)
            print(f"Table {table_name} already exists")
        except ClientError as e:
            if e.response['Error']['Code'] == 'ResourceNotFoundException':
                dynamodb.create_table(**table_config)
                print(f"Created table {table_name}")
            else:
                raise

    print("\nAll tables ready")


if __name__ == "__main__":
    create_tables()
