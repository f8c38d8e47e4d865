"""
clubhouse.api.routes.registry — Registry info & administration
===============================================================
"""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter
from pydantic import BaseModel

from clubhouse.api.deps import Caller, EngineDep
from clubhouse.services import registry_service

router = APIRouter(prefix="/registry", tags=["registry"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class AdminAdd(BaseModel):
    address: str


class FeeReceiverUpdate(BaseModel):
    receiver: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("")
def registry_info(engine: EngineDep):
    info = registry_service.get_registry(engine)
    result = asdict(info)
    result["administrators"] = list(info.administrators)
    return result


@router.post("/admins", status_code=201)
def add_registry_admin(body: AdminAdd, caller: Caller, engine: EngineDep):
    registry_service.add_registry_admin(engine, address=body.address, caller=caller)
    return {"address": body.address}


@router.delete("/admins/{address}", status_code=204)
def remove_registry_admin(address: str, caller: Caller, engine: EngineDep):
    registry_service.remove_registry_admin(engine, address=address, caller=caller)
    return None


@router.put("/fee-receiver")
def set_fee_receiver(body: FeeReceiverUpdate, caller: Caller, engine: EngineDep):
    registry_service.set_fee_receiver(engine, receiver=body.receiver, caller=caller)
    return {"fee_receiver": body.receiver}
