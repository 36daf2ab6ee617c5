"""Tests for problem-details mapping of service exceptions"""

import json

import pytest
from unittest.mock import Mock

from modelvault.api.errors import create_error_response, handle_service_error, problem_type_for
from modelvault.services.blob_store import MissingAssetError
from modelvault.services.upload_session import UploadValidationError
from modelvault.store.record_store import DuplicateRecordError, RecordNotFoundError, StoreError


def fake_request(path="/api/v1/things"):
    request = Mock()
    request.url.path = path
    return request


class TestProblemTypes:
    """Test exception to status resolution"""

    def test_subclass_takes_its_own_status(self):
        assert problem_type_for(RecordNotFoundError("gone")).status_code == 404
        assert problem_type_for(DuplicateRecordError("twice")).status_code == 409
        assert problem_type_for(StoreError("down")).status_code == 502

    def test_blob_subclass_maps_to_bad_gateway(self):
        assert problem_type_for(MissingAssetError("no gltf")).slug == "blob_store_unavailable"

    def test_unmapped_exception(self):
        with pytest.raises(TypeError):
            problem_type_for(RuntimeError("boom"))


class TestResponses:
    """Test response bodies"""

    def test_none_fields_omitted(self):
        response = create_error_response(problem_type_for(StoreError("x")), "down")
        body = json.loads(response.body)

        assert response.status_code == 502
        assert body == {"type": "/errors/store_unavailable", "title": "Bad Gateway", "status": 502, "detail": "down"}

    @pytest.mark.asyncio
    async def test_validation_errors_listed_per_field(self):
        exc = UploadValidationError({"name": "Model name is required", "cover": "Select a cover image"})

        response = await handle_service_error(fake_request("/edit"), exc)
        body = json.loads(response.body)

        assert response.status_code == 400
        assert body["instance"] == "/edit"
        assert {e["field"] for e in body["errors"]} == {"name", "cover"}
