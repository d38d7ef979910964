from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from hercules_bridge.api.dependencies import get_client
from hercules_bridge.core.client import HerculesClient
from hercules_bridge.core.security import ensure_child_path
from hercules_bridge.schemas.response_schemas import error_payload

router = APIRouter()


@router.get("/artifacts/{test_case_id}/{artifact_path:path}", name="get_artifact")
async def get_artifact(test_case_id: str, artifact_path: str, client: HerculesClient = Depends(get_client)):
    not_found = HTTPException(
        status_code=404,
        detail=error_payload("ARTIFACT_NOT_FOUND", f"Artifact {artifact_path} not found for test case {test_case_id}"),
    )
    if await client.get_test_case(test_case_id) is None:
        raise not_found
    output = client.store.output_dir(test_case_id)
    try:
        target = ensure_child_path(output / artifact_path, output)
    except PermissionError:
        raise HTTPException(status_code=400, detail=error_payload("PATH_TRAVERSAL_BLOCKED", "Artifact path escapes the output directory"))
    if not target.is_file():
        raise not_found
    return FileResponse(target, filename=target.name)
