"""
api/routes/v1/employees.py -- Employee roster routes.

Routes:
  GET    /employees          -- list all employees
  POST   /employees          -- create employee (RBAC: caller rank >= new role)
  GET    /employees/{id}     -- employee detail
  PUT    /employees/{id}     -- edit (RBAC: caller rank >= current role, or self)
  DELETE /employees/{id}     -- hard delete (RBAC: caller rank >= current role)

The handlers are thin: they convert the body into a service command, pass the
Caller recovered from the bearer token, and project the result. Every RBAC
and domain decision lives in directory/service.py; its errors are translated
into HTTP responses by the handlers registered in api/main.py.

Handlers are plain `def` so FastAPI runs the blocking store calls in its
thread pool.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import limiter
from api.models import EmployeeCreate, EmployeeResponse, EmployeeUpdate
from auth.dependencies import get_current_caller
from auth.models import Caller
from directory.service import EmployeeService

# Every roster route requires authentication. The dependency is repeated on
# the handlers that need the Caller value itself.
router = APIRouter(dependencies=[Depends(get_current_caller)])


def _service(request: Request) -> EmployeeService:
    return request.app.state.employees


@limiter.limit("60/minute")
@router.get("/employees", response_model=list[EmployeeResponse])
def list_employees(request: Request) -> list[EmployeeResponse]:
    """Return every employee's public projection."""
    return [EmployeeResponse.from_employee(e) for e in _service(request).list_all()]


@limiter.limit("30/minute")
@router.post("/employees", response_model=EmployeeResponse, status_code=201)
def create_employee(
    request: Request,
    body: EmployeeCreate,
    caller: Caller = Depends(get_current_caller),
) -> EmployeeResponse:
    """Create an employee on behalf of the caller."""
    employee = _service(request).create(body.to_command(), caller)
    return EmployeeResponse.from_employee(employee)


@router.get("/employees/{employee_id}", response_model=EmployeeResponse)
def get_employee(request: Request, employee_id: UUID) -> EmployeeResponse:
    return EmployeeResponse.from_employee(_service(request).get(employee_id))


@limiter.limit("30/minute")
@router.put("/employees/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    request: Request,
    employee_id: UUID,
    body: EmployeeUpdate,
    caller: Caller = Depends(get_current_caller),
) -> EmployeeResponse:
    """Edit an employee. A role the caller may not assign is skipped, not refused."""
    employee = _service(request).update(employee_id, body.to_command(), caller)
    return EmployeeResponse.from_employee(employee)


@limiter.limit("30/minute")
@router.delete("/employees/{employee_id}", status_code=204)
def delete_employee(
    request: Request,
    employee_id: UUID,
    caller: Caller = Depends(get_current_caller),
) -> Response:
    _service(request).delete(employee_id, caller)
    return Response(status_code=204)
