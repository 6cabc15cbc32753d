"""
Preset endpoints.

HTTP adapter over PresetService. The service is constructed once at
startup and read from app.state; handlers hold no state of their own.

Error mapping:
- PresetNotFound -> 404
- DuplicateContent, DuplicateName -> 409
- EmptyName, InvalidName, InvalidGeneratorType, MalformedImportPayload -> 400
- StorageQuotaExceeded -> 507
- other persistence failures -> 500

422 stays reserved for request bodies FastAPI itself rejects.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..persistence.errors import PersistenceError, StorageQuotaExceeded
from ..presets.codec import export_filename
from ..presets.errors import (
    DuplicateContent,
    DuplicateName,
    EmptyName,
    InvalidGeneratorType,
    InvalidName,
    MalformedImportPayload,
    PresetError,
    PresetNotFound,
)
from ..presets.models import ParameterControl, ParamValue
from ..presets.service import PresetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/presets", tags=["presets"])


class SavePresetRequest(BaseModel):
    """Request body for saving the current parameters as a preset."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    name: str
    generator_type: str
    parameters: Dict[str, ParamValue]
    description: Optional[str] = None


class UpdatePresetRequest(BaseModel):
    """Request body for renaming or editing a preset."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = None
    description: Optional[str] = None
    parameters: Optional[Dict[str, ParamValue]] = None


class LoadPresetRequest(BaseModel):
    """Current generator controls, for compatibility checks on load."""

    model_config = ConfigDict(extra="forbid")

    controls: Optional[List[ParameterControl]] = None


class ExportRequest(BaseModel):
    """Request body for export. No ids means every user preset."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    ids: Optional[List[str]] = None
    generator_type: Optional[str] = None


def _service(request: Request) -> PresetService:
    return request.app.state.preset_service


def _to_http(e: Exception) -> HTTPException:
    if isinstance(e, PresetNotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (DuplicateContent, DuplicateName)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (EmptyName, InvalidName, InvalidGeneratorType, MalformedImportPayload)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StorageQuotaExceeded):
        return HTTPException(status_code=507, detail=str(e))
    logger.error(f"Preset operation failed: {e}")
    return HTTPException(status_code=500, detail=f"Preset operation failed: {e}")


# ============================================================================
# LIST / SAVE
# ============================================================================

@router.get("/{generator_type}")
async def list_presets_endpoint(generator_type: str, request: Request):
    """
    All presets for a generator type.

    Returns:
        Factory presets first, then user presets in insertion order
    """
    presets = await _service(request).list_for_generator_type(generator_type)
    return {"generatorType": generator_type, "presets": [p.to_dict() for p in presets]}


@router.post("", status_code=201)
async def save_preset_endpoint(body: SavePresetRequest, request: Request):
    """Save the submitted parameters as a new user preset."""
    try:
        preset = _service(request).save(
            body.name, body.generator_type, body.parameters, body.description
        )
    except (PresetError, PersistenceError) as e:
        raise _to_http(e)
    return preset.to_dict()


# ============================================================================
# SINGLE PRESET
# ============================================================================

@router.get("/item/{preset_id}")
async def get_preset_endpoint(preset_id: str, request: Request):
    """Get a user or factory preset by id."""
    preset = await _service(request).find(preset_id)
    if preset is None:
        raise _to_http(PresetNotFound(preset_id))
    return preset.to_dict()


@router.post("/item/{preset_id}/load")
async def load_preset_endpoint(preset_id: str, request: Request, body: Optional[LoadPresetRequest] = None):
    """
    Prepare a preset for application and record it as last active.

    With controls, parameters without a control are dropped and
    compatibility warnings are returned alongside.
    """
    controls = body.controls if body else None
    try:
        loaded = await _service(request).load(preset_id, controls)
    except (PresetError, PersistenceError) as e:
        raise _to_http(e)
    return {
        "preset": loaded.preset.to_dict(),
        "parameters": loaded.parameters,
        "warnings": loaded.warnings,
    }


@router.patch("/item/{preset_id}")
async def update_preset_endpoint(preset_id: str, body: UpdatePresetRequest, request: Request):
    """Rename or edit a user preset. Only fields present in the body change."""
    patch = body.model_dump(exclude_unset=True)
    try:
        preset = _service(request).update(preset_id, patch)
    except (PresetError, PersistenceError) as e:
        raise _to_http(e)
    return preset.to_dict()


@router.delete("/item/{preset_id}")
async def delete_preset_endpoint(preset_id: str, request: Request):
    try:
        deleted = _service(request).delete(preset_id)
    except PersistenceError as e:
        raise _to_http(e)
    if not deleted:
        raise _to_http(PresetNotFound(preset_id))
    return {"success": True, "message": f"Deleted preset {preset_id}"}


# ============================================================================
# IMPORT / EXPORT
# ============================================================================

@router.post("/export")
async def export_presets_endpoint(request: Request, body: Optional[ExportRequest] = None):
    """Export user presets as a downloadable envelope."""
    body = body or ExportRequest()
    envelope = _service(request).export_selection(body.ids)
    filename = export_filename(body.generator_type)
    return JSONResponse(
        content=envelope.to_dict(),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import")
async def import_presets_endpoint(request: Request, envelope: Any = Body(...)):
    """
    Import an exported envelope.

    Partial success is normal: skipped duplicates and per-item errors are
    reported in the body, not as an error status.
    """
    try:
        result = _service(request).import_envelope(envelope)
    except (PresetError, PersistenceError) as e:
        raise _to_http(e)
    return {
        "importedIds": result.imported_ids,
        "skippedDuplicates": result.skipped_duplicates,
        "errors": result.errors,
        "summary": result.summary(),
    }


# ============================================================================
# DEFAULTS / CATALOG
# ============================================================================

@router.put("/defaults/{preset_id}")
async def set_default_endpoint(preset_id: str, request: Request):
    """Make a user preset the default for its generator type."""
    try:
        preset = _service(request).set_user_default(preset_id)
    except (PresetError, PersistenceError) as e:
        raise _to_http(e)
    return preset.to_dict()


@router.delete("/defaults/{generator_type}")
async def clear_default_endpoint(generator_type: str, request: Request):
    try:
        cleared = _service(request).clear_user_default(generator_type)
    except PersistenceError as e:
        raise _to_http(e)
    return {"success": True, "cleared": cleared}


@router.get("/defaults/{generator_type}")
async def effective_default_endpoint(generator_type: str, request: Request):
    """
    Effective default for a generator type.

    Returns:
        The user default, else the factory default, else null
    """
    preset = await _service(request).get_effective_default(generator_type)
    return preset.to_dict() if preset is not None else None


@router.get("/factory/categories")
async def factory_categories_endpoint(request: Request) -> Dict[str, List[str]]:
    categories = await _service(request).catalog.categories()
    return {"categories": categories}
