"""
Object store backends for aircraft records.

Production records live in an S3-compatible bucket (Cloudflare R2), one
JSON object per aircraft under 'aircraft/<icao24>.json'. For development and
tests the same key/blob layout is kept in a SQL table.

Both backends expose:
    get(key)     -> bytes, or None when the key does not exist
    list(prefix) -> sorted list of keys

Any other read failure raises StoreLookupError.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from flightalert.config import RecordStoreConfig
from flightalert.errors import ConfigurationError, StoreLookupError
from flightalert.models import StoredObject, make_engine, make_session_factory, init_db

logger = logging.getLogger(__name__)

_MISSING_KEY_CODES = {'NoSuchKey', '404', 'NotFound'}


class ObjectStore(ABC):
    """Read interface shared by all record store backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """Return the object body, or None if the key does not exist."""

    @abstractmethod
    def list(self, prefix: str = '') -> List[str]:
        """Return all keys starting with prefix."""


class S3ObjectStore(ObjectStore):
    """Bucket-backed store using boto3 against any S3-compatible endpoint."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region_name: str = 'auto',
        client=None,
    ):
        self.bucket = bucket

        if client is None:
            client_kwargs = {
                'service_name': 's3',
                'region_name': region_name,
                'config': Config(
                    signature_version='s3v4',
                    retries={'max_attempts': 1, 'mode': 'standard'},
                    connect_timeout=5,
                    read_timeout=10,
                ),
            }
            if access_key_id and secret_access_key:
                client_kwargs['aws_access_key_id'] = access_key_id
                client_kwargs['aws_secret_access_key'] = secret_access_key
            if endpoint_url:
                client_kwargs['endpoint_url'] = endpoint_url
            client = boto3.client(**client_kwargs)
            logger.info(f'S3 record store initialized: bucket={bucket}')

        self._client = client

    def get(self, key: str) -> Optional[bytes]:
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=key)
            return response['Body'].read()
        except ClientError as e:
            code = str(e.response.get('Error', {}).get('Code', ''))
            if code in _MISSING_KEY_CODES:
                return None
            raise StoreLookupError(f'S3 get_object failed ({code})', key=key) from e
        except BotoCoreError as e:
            raise StoreLookupError(f'S3 request failed: {e}', key=key) from e

    def list(self, prefix: str = '') -> List[str]:
        keys = []
        try:
            paginator = self._client.get_paginator('list_objects_v2')
            for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
                keys.extend(obj['Key'] for obj in page.get('Contents', []))
        except (ClientError, BotoCoreError) as e:
            raise StoreLookupError(f'S3 list failed: {e}', key=prefix) from e
        return sorted(keys)


class DatabaseObjectStore(ObjectStore):
    """
    SQL table standing in for the bucket.

    Accepts any SQLAlchemy URL; the default is a local SQLite file.
    """

    def __init__(self, url: str = 'sqlite:///flightalert.db', echo: bool = False):
        self.engine = make_engine(url, echo=echo)
        init_db(self.engine)
        self._sessions = make_session_factory(self.engine)

    def get(self, key: str) -> Optional[bytes]:
        try:
            with self._sessions() as session:
                obj = session.get(StoredObject, key)
                return obj.body if obj is not None else None
        except SQLAlchemyError as e:
            raise StoreLookupError(f'Database read failed: {e}', key=key) from e

    def list(self, prefix: str = '') -> List[str]:
        try:
            with self._sessions() as session:
                stmt = select(StoredObject.key).order_by(StoredObject.key)
                if prefix:
                    stmt = stmt.where(StoredObject.key.startswith(prefix, autoescape=True))
                return list(session.scalars(stmt))
        except SQLAlchemyError as e:
            raise StoreLookupError(f'Database list failed: {e}', key=prefix) from e

    def put(self, key: str, body: bytes, content_type: str = 'application/json') -> None:
        """Insert or replace one object. Used to seed local stores."""
        with self._sessions() as session:
            obj = session.get(StoredObject, key)
            if obj is None:
                session.add(StoredObject(key=key, body=body, content_type=content_type))
            else:
                obj.body = body
                obj.content_type = content_type
            session.commit()


def create_object_store(store_config: RecordStoreConfig) -> ObjectStore:
    """Build the backend named by RECORD_STORE_BACKEND."""
    if store_config.backend == 's3':
        if not store_config.bucket:
            raise ConfigurationError('R2_BUCKET_NAME must be set for the s3 record store')
        return S3ObjectStore(
            bucket=store_config.bucket,
            endpoint_url=store_config.resolved_endpoint_url,
            access_key_id=store_config.access_key_id,
            secret_access_key=store_config.secret_access_key,
            region_name=store_config.region_name,
        )
    if store_config.backend == 'database':
        return DatabaseObjectStore(store_config.database_url)
    raise ConfigurationError(f'Unknown record store backend: {store_config.backend!r}')
