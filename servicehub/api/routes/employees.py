"""
Employee roster routes. Reserved to the business owner and admins.

- GET /businesses/{business_id}/employees
- POST /businesses/{business_id}/employees
- PUT /businesses/{business_id}/employees/{employee_id}
- DELETE /businesses/{business_id}/employees/{employee_id}
"""
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import AfterValidator, BaseModel, Field
from sqlalchemy.orm import Session

from servicehub.api.dependencies import get_db, require_business_owner
from servicehub.models.businesses import Capability, EmployeeRole
from servicehub.services.authorization_service import AccessDecision
from servicehub.services.employee_service import EmployeeService


router = APIRouter(prefix="/businesses/{business_id}/employees", tags=["employees"])


def _check_permission_names(value: Dict[str, bool]) -> Dict[str, bool]:
    known = {c.value for c in Capability}
    unknown = sorted(set(value) - known)
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")
    return value


PermissionFlags = Annotated[Dict[str, bool], AfterValidator(_check_permission_names)]


# Schemas
class EmployeeCreateRequest(BaseModel):
    email: str = Field(..., min_length=3, description="Email of an existing user")
    role: Optional[EmployeeRole] = None
    permissions: Optional[PermissionFlags] = Field(
        None,
        description="Capability flags; omitted flags use the defaults",
    )


class EmployeeUpdateRequest(BaseModel):
    role: Optional[EmployeeRole] = None
    permissions: Optional[PermissionFlags] = Field(
        None,
        description="Capability flags to change; omitted flags keep their values",
    )


class EmployeeResponse(BaseModel):
    id: UUID
    user_id: UUID
    role: EmployeeRole
    permissions: Dict[str, bool]

    model_config = {"from_attributes": True}


class EmployeeListResponse(BaseModel):
    owner_id: UUID
    employees: List[EmployeeResponse]


class EmployeeChangeResponse(BaseModel):
    message: str
    employees: List[EmployeeResponse]


def get_employee_service(db: Session = Depends(get_db)) -> EmployeeService:
    return EmployeeService(db)


def roster(decision: AccessDecision, service: EmployeeService) -> List[EmployeeResponse]:
    return [EmployeeResponse.model_validate(e) for e in service.list_employees(decision.business)]


# Routes
@router.get("", response_model=EmployeeListResponse)
def list_employees(
    decision: AccessDecision = Depends(require_business_owner()),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeListResponse:
    return EmployeeListResponse(
        owner_id=decision.business.owner_id,
        employees=roster(decision, service),
    )


@router.post("", response_model=EmployeeChangeResponse, status_code=status.HTTP_201_CREATED)
def add_employee(
    request: EmployeeCreateRequest,
    decision: AccessDecision = Depends(require_business_owner()),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeChangeResponse:
    service.add_employee(
        decision.business,
        email=request.email,
        role=request.role,
        permissions=request.permissions,
    )
    return EmployeeChangeResponse(
        message="Employee added successfully",
        employees=roster(decision, service),
    )


@router.put("/{employee_id}", response_model=EmployeeChangeResponse)
def update_employee(
    employee_id: UUID,
    request: EmployeeUpdateRequest,
    decision: AccessDecision = Depends(require_business_owner()),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeChangeResponse:
    service.update_employee(
        decision.business,
        employee_id,
        role=request.role,
        permissions=request.permissions,
    )
    return EmployeeChangeResponse(
        message="Employee updated successfully",
        employees=roster(decision, service),
    )


@router.delete("/{employee_id}", response_model=EmployeeChangeResponse)
def remove_employee(
    employee_id: UUID,
    decision: AccessDecision = Depends(require_business_owner()),
    service: EmployeeService = Depends(get_employee_service),
) -> EmployeeChangeResponse:
    service.remove_employee(decision.business, employee_id)
    return EmployeeChangeResponse(
        message="Employee removed successfully",
        employees=roster(decision, service),
    )
