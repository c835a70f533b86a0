"""Block palette and block data validation for the editor."""

from fastapi import APIRouter, HTTPException

from apps.api.schemas.requests import BlockValidateRequest
from apps.api.schemas.responses import BlockDefinitionOut, BlockInstanceOut, BlockValidationOut
from apps.api.services.registry import RegistryDep, toolbar_label, validate_block_data
from apps.api.services.tenant_context import TenantId

router = APIRouter()


def _missing_component(block_type: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Missing component: no block registered for type '{block_type}'")


@router.get("", response_model=list[BlockDefinitionOut])
async def list_blocks(registry: RegistryDep, tenant_id: TenantId) -> list[BlockDefinitionOut]:
    """All registered block types in palette order."""
    return [BlockDefinitionOut(**d.describe()) for d in registry.list_all()]


@router.get("/{block_type}", response_model=BlockDefinitionOut)
async def get_block(block_type: str, registry: RegistryDep, tenant_id: TenantId) -> BlockDefinitionOut:
    definition = registry.resolve(block_type)
    if definition is None:
        raise _missing_component(block_type)
    return BlockDefinitionOut(**definition.describe())


@router.post("/{block_type}/new", response_model=BlockInstanceOut, status_code=201)
async def new_block(block_type: str, registry: RegistryDep, tenant_id: TenantId) -> BlockInstanceOut:
    """Fresh block instance with default data, ready to insert into a draft."""
    block = registry.new_block(block_type)
    if block is None:
        raise _missing_component(block_type)
    return BlockInstanceOut(**block)


@router.post("/validate", response_model=BlockValidationOut)
async def validate_block(body: BlockValidateRequest, registry: RegistryDep, tenant_id: TenantId) -> BlockValidationOut:
    """Validate block data against its schema. Unknown types are reported, not rejected."""
    definition = registry.resolve(body.type)
    if definition is None:
        return BlockValidationOut(
            type=body.type,
            valid=False,
            missing_component=True,
            toolbar_label=toolbar_label(body.type, registry),
            data=body.data,
        )
    result = validate_block_data(definition, body.data)
    return BlockValidationOut(
        type=body.type,
        valid=result.ok,
        toolbar_label=definition.toolbar_label,
        data=result.data,
        errors=result.errors,
    )
