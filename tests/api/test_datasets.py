"""
API tests for dataset endpoints.
"""

import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from backend.api.deps import get_dataset_service
from backend.core.exceptions import ForbiddenError, InternalServerError
from backend.main import create_app
from backend.models.common import Pagination
from backend.models.dataset import DatasetDownload, DatasetPreview, DatasetResponse
from tests.factories import make_token

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_dataset_response(**overrides) -> DatasetResponse:
    values = dict(
        id=uuid.uuid4(),
        project_id=uuid.uuid4(),
        job_id=uuid.uuid4(),
        data_source_id=uuid.uuid4(),
        name="messages-output",
        format="jsonl",
        record_count=4,
        file_size=512,
        dataset_metadata={"piiDetectedCount": 4},
        created_at=NOW,
        updated_at=NOW,
    )
    values.update(overrides)
    return DatasetResponse.model_validate(values)


@pytest.fixture
def mock_dataset_service():
    """Create mock DatasetService."""
    return AsyncMock()


@pytest.fixture
def client(mock_dataset_service):
    """Create test client with the dataset service overridden."""
    app = create_app()
    app.dependency_overrides[get_dataset_service] = lambda: mock_dataset_service
    return TestClient(app)


def bearer(organisation_id, role="editor") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(organisation_id, role=role)}"}


class TestDatasetReads:
    """Test suite for dataset read endpoints."""

    def test_list_datasets(self, client, mock_dataset_service, auth_headers):
        dataset = make_dataset_response()
        mock_dataset_service.list_datasets.return_value = ([dataset], Pagination.from_counts(1, 20, 1))

        response = client.get(f"/api/v1/projects/{dataset.project_id}/datasets", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["data"][0]["jobId"] == str(dataset.job_id)
        assert body["data"][0]["recordCount"] == 4
        assert body["data"][0]["metadata"] == {"piiDetectedCount": 4}
        assert body["pagination"]["totalCount"] == 1

    def test_viewer_can_read_dataset(self, client, mock_dataset_service, organisation_id):
        dataset = make_dataset_response()
        mock_dataset_service.get_dataset.return_value = dataset

        response = client.get(f"/api/v1/datasets/{dataset.id}", headers=bearer(organisation_id, "viewer"))

        assert response.status_code == 200
        assert response.json()["data"]["dataset"]["id"] == str(dataset.id)

    def test_other_organisation_is_forbidden(self, client, mock_dataset_service, auth_headers):
        mock_dataset_service.get_dataset.side_effect = ForbiddenError("Access denied to this dataset")

        response = client.get(f"/api/v1/datasets/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "FORBIDDEN"

    def test_preview(self, client, mock_dataset_service, auth_headers):
        mock_dataset_service.preview_dataset.return_value = DatasetPreview(
            columns=["message_id", "role"],
            rows=[{"message_id": "m-1", "role": "customer"}],
            total_rows=4,
        )

        response = client.get(f"/api/v1/datasets/{uuid.uuid4()}/preview", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["preview"] == {
            "columns": ["message_id", "role"],
            "rows": [{"message_id": "m-1", "role": "customer"}],
            "totalRows": 4,
        }

    def test_unreadable_file_returns_500_envelope(self, client, mock_dataset_service, auth_headers):
        mock_dataset_service.preview_dataset.side_effect = InternalServerError(
            "Dataset file could not be read"
        )

        response = client.get(f"/api/v1/datasets/{uuid.uuid4()}/preview", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "error": {"code": "INTERNAL_ERROR", "message": "Dataset file could not be read"}
        }


class TestDatasetWrites:
    """Test suite for download links and deletion."""

    def test_editor_gets_download_link(self, client, mock_dataset_service, auth_headers):
        dataset_id = uuid.uuid4()
        mock_dataset_service.get_download.return_value = DatasetDownload(
            dataset_id=dataset_id,
            name="messages-output",
            format="csv",
            file_size=512,
            download_url="https://bucket.example.com/signed",
            expires_at=NOW,
        )

        response = client.get(f"/api/v1/datasets/{dataset_id}/download", headers=auth_headers)

        assert response.status_code == 200
        download = response.json()["data"]["download"]
        assert download["downloadUrl"] == "https://bucket.example.com/signed"
        assert download["datasetId"] == str(dataset_id)

    def test_viewer_cannot_download(self, client, mock_dataset_service, organisation_id):
        response = client.get(
            f"/api/v1/datasets/{uuid.uuid4()}/download", headers=bearer(organisation_id, "viewer")
        )

        assert response.status_code == 403
        mock_dataset_service.get_download.assert_not_awaited()

    def test_admin_deletes_dataset(self, client, mock_dataset_service, organisation_id):
        dataset_id = uuid.uuid4()

        response = client.delete(f"/api/v1/datasets/{dataset_id}", headers=bearer(organisation_id, "admin"))

        assert response.status_code == 204
        assert mock_dataset_service.delete_dataset.await_args.args[0] == dataset_id

    def test_editor_cannot_delete(self, client, mock_dataset_service, auth_headers):
        response = client.delete(f"/api/v1/datasets/{uuid.uuid4()}", headers=auth_headers)

        assert response.status_code == 403
        mock_dataset_service.delete_dataset.assert_not_awaited()
