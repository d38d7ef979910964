from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Query

from hercules_bridge.api.dependencies import get_client, get_request_id
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.schemas.response_schemas import error_payload, response_envelope
from hercules_bridge.schemas.tool_specs import RESOURCE_MIME_TYPE, parse_resource_uri, resource_descriptor

router = APIRouter()


@router.get("/resources")
async def list_resources(request_id: str = Depends(get_request_id), client: HerculesClient = Depends(get_client)):
    test_cases = await client.list_test_cases()
    resources = [resource_descriptor(tc.id, tc.name) for tc in test_cases]
    return response_envelope(True, data={"resources": resources}, request_id=request_id)


@router.get("/resources/read")
async def read_resource(
    uri: str = Query(default=""),
    request_id: str = Depends(get_request_id),
    client: HerculesClient = Depends(get_client),
):
    if not uri:
        raise HTTPException(status_code=400, detail=error_payload("VALIDATION_ERROR", "Missing or invalid uri parameter"))
    test_case_id = parse_resource_uri(uri)
    if test_case_id is None:
        raise HTTPException(status_code=400, detail=error_payload("UNKNOWN_RESOURCE", f"Unknown resource URI: {uri}"))
    test_case = await client.get_test_case(test_case_id)
    if test_case is None:
        raise HTTPException(status_code=404, detail=error_payload("TEST_CASE_NOT_FOUND", f"Test case not found: {test_case_id}"))
    contents = [
        {
            "uri": uri,
            "mimeType": RESOURCE_MIME_TYPE,
            "text": json.dumps(test_case.public_dict(), indent=2),
        }
    ]
    return response_envelope(True, data={"contents": contents}, request_id=request_id)
