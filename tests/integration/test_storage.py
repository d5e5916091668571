"""
Tests for the dataset storage backends.

The S3 client runs against a mocked boto3 client.
"""

import io
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from backend.boundary.aws.s3_client import S3DatasetClient
from backend.boundary.storage import LocalDatasetStorage
from backend.core.exceptions import StorageError


def client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "HeadObject")


class TestLocalDatasetStorage:
    """Test suite for the filesystem backend."""

    def test_write_then_read(self, tmp_path):
        storage = LocalDatasetStorage(tmp_path)

        written = storage.write_bytes("org/project/datasets/out.jsonl", b'{"a": 1}\n')

        assert written == 9
        assert storage.exists("org/project/datasets/out.jsonl")
        assert storage.read_bytes("org/project/datasets/out.jsonl") == b'{"a": 1}\n'

    def test_missing_key_raises_storage_error(self, tmp_path):
        with pytest.raises(StorageError) as exc_info:
            LocalDatasetStorage(tmp_path).read_bytes("nope.json")

        assert exc_info.value.details == {"key": "nope.json"}

    def test_key_outside_root_is_rejected(self, tmp_path):
        with pytest.raises(StorageError, match="escapes the storage root"):
            LocalDatasetStorage(tmp_path / "root").read_bytes("../secrets.txt")

    def test_delete_missing_file_is_not_an_error(self, tmp_path):
        storage = LocalDatasetStorage(tmp_path)

        storage.delete("gone.csv")

        assert not storage.exists("gone.csv")

    def test_download_url_is_file_uri_without_expiry(self, tmp_path):
        storage = LocalDatasetStorage(tmp_path)
        storage.write_bytes("a.csv", b"x\n")

        url, expires_at = storage.download_url("a.csv", filename="a.csv")

        assert url.startswith("file://")
        assert expires_at is None


class TestS3DatasetClient:
    """Test suite for the S3 backend."""

    @pytest.fixture
    def s3(self):
        with patch("backend.boundary.aws.s3_client.boto3.client") as factory:
            factory.return_value = MagicMock()
            yield factory.return_value

    def test_read_bytes(self, s3):
        s3.get_object.return_value = {"Body": io.BytesIO(b"[]")}

        data = S3DatasetClient(bucket="datasets").read_bytes("org/sources/a.json")

        assert data == b"[]"
        s3.get_object.assert_called_once_with(Bucket="datasets", Key="org/sources/a.json")

    def test_write_bytes_sets_content_type(self, s3):
        written = S3DatasetClient(bucket="datasets").write_bytes("k.csv", b"a,b\n", "text/csv")

        assert written == 4
        s3.put_object.assert_called_once_with(
            Bucket="datasets", Key="k.csv", Body=b"a,b\n", ContentType="text/csv"
        )

    def test_read_failure_raises_storage_error(self, s3):
        s3.get_object.side_effect = client_error("NoSuchKey")

        with pytest.raises(StorageError, match="s3://datasets/missing.json"):
            S3DatasetClient(bucket="datasets").read_bytes("missing.json")

    def test_exists(self, s3):
        client = S3DatasetClient(bucket="datasets")
        assert client.exists("k.csv")

        s3.head_object.side_effect = client_error("404")
        assert not client.exists("k.csv")

    def test_exists_with_access_denied_raises(self, s3):
        s3.head_object.side_effect = client_error("403")

        with pytest.raises(StorageError):
            S3DatasetClient(bucket="datasets").exists("k.csv")

    def test_download_url_is_presigned_with_filename(self, s3):
        s3.generate_presigned_url.return_value = "https://signed"

        url, expires_at = S3DatasetClient(
            bucket="datasets", download_url_expiry_seconds=900
        ).download_url("k.csv", filename="march.csv")

        assert url == "https://signed"
        assert expires_at is not None
        kwargs = s3.generate_presigned_url.call_args.kwargs
        assert kwargs["ExpiresIn"] == 900
        assert kwargs["Params"]["ResponseContentDisposition"] == 'attachment; filename="march.csv"'
