"""Department aggregate and the id-based hierarchy it lives in.

Departments reference each other by id only.  A ``DepartmentTree`` is the
arena that resolves those ids, so hierarchy checks are explicit walks over
ids and nothing ever holds a reference cycle.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

from payroll_core.core.clock import IClock
from payroll_core.core.errors import PreconditionError
from payroll_core.core.ids import new_id
from payroll_core.core.result import Result

from .aggregate import AggregateRoot
from .events import (
    DepartmentActivated,
    DepartmentCreated,
    DepartmentDeactivated,
    DepartmentRenamed,
    EmployeeAssigned,
    EmployeeUnassigned,
    SubDepartmentAdded,
    SubDepartmentRemoved,
)
from .values import DepartmentName

if TYPE_CHECKING:
    from .employee import Employee


class Department(AggregateRoot):
    """A node in the organisation tree holding a set of employee ids."""

    SOURCE = "department"

    def __init__(
        self,
        id: str,
        name: DepartmentName,
        *,
        is_active: bool = True,
        parent_id: str | None = None,
        employee_ids: set[str] | frozenset[str] = frozenset(),
        sub_department_ids: set[str] | frozenset[str] = frozenset(),
        version: int = 0,
        clock: IClock | None = None,
    ) -> None:
        super().__init__(id, version=version, clock=clock)
        self._name = name
        self._is_active = is_active
        self._parent_id = parent_id
        self._employee_ids: set[str] = set(employee_ids)
        self._sub_department_ids: set[str] = set(sub_department_ids)

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        name: str,
        parent: Department | None = None,
        *,
        clock: IClock | None = None,
    ) -> Result[Department]:
        """Create a department, optionally directly under *parent*.

        A brand-new department has no descendants, so attaching it can
        never close a cycle.
        """
        name_result = DepartmentName.create(name)
        if not name_result.ok:
            return Result.failure(name_result.error)
        if parent is not None and not isinstance(parent, Department):
            raise PreconditionError(f"parent must be a Department, got {type(parent).__name__}")
        if parent is not None and not parent.is_active:
            return Result.failure("Cannot create a department under an inactive parent")

        dept = cls(
            new_id(),
            name_result.unwrap(),
            parent_id=parent.id if parent is not None else None,
            clock=clock,
        )
        dept._record(DepartmentCreated(
            **dept._event_kwargs(),
            name=dept._name.value,
            parent_id=dept._parent_id,
        ))
        if parent is not None:
            parent._attach(dept.id, previous_parent_id=None)
        return Result.success(dept)

    @classmethod
    def rehydrate(cls, **state) -> Department:
        """Rebuild from stored state.  No validation, no events."""
        return cls(**state)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def name(self) -> DepartmentName:
        return self._name

    @property
    def is_active(self) -> bool:
        return self._is_active

    @property
    def parent_id(self) -> str | None:
        return self._parent_id

    @property
    def employee_ids(self) -> frozenset[str]:
        return frozenset(self._employee_ids)

    @property
    def sub_department_ids(self) -> frozenset[str]:
        return frozenset(self._sub_department_ids)

    def has_employee(self, employee: Employee | str) -> bool:
        employee_id = employee if isinstance(employee, str) else employee.id
        return employee_id in self._employee_ids

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_employee(self, employee: Employee) -> Result[None]:
        if employee is None:
            return Result.failure("Employee is required")
        if not self._is_active:
            return Result.failure(f"Department {self._name} is inactive")
        if employee.id in self._employee_ids:
            return Result.failure("Employee is already in this department")
        if employee.department_id != self.id:
            return Result.failure(
                "Employee is assigned to another department; reassign them first"
            )
        if employee.member_of is not None and employee.member_of != self.id:
            return Result.failure(
                "Employee is still a member of another department; remove them first"
            )
        self._employee_ids.add(employee.id)
        employee._member_of = self.id
        self._record(EmployeeAssigned(**self._event_kwargs(), employee_id=employee.id))
        return Result.success()

    def remove_employee(self, employee: Employee) -> Result[None]:
        if employee is None:
            return Result.failure("Employee is required")
        if employee.id not in self._employee_ids:
            return Result.failure("Employee is not in this department")
        self._employee_ids.discard(employee.id)
        if employee.member_of == self.id:
            employee._member_of = None
        self._record(EmployeeUnassigned(**self._event_kwargs(), employee_id=employee.id))
        return Result.success()

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    def add_sub_department(
        self,
        child: Department,
        tree: Mapping[str, Department],
    ) -> Result[None]:
        """Attach *child* directly below this department.

        *tree* resolves parent ids.  The cycle check walks this
        department's ancestor chain (O(depth)) looking for *child*; siblings
        are never visited.  Every ancestor, and the child's current parent,
        must be in *tree*.  A child that already has another parent is moved.
        """
        if child is None:
            return Result.failure("Sub-department is required")
        if child.id == self.id:
            return Result.failure("A department cannot be its own sub-department")
        if child.id in self._sub_department_ids:
            return Result.failure(f"{child.name} is already a sub-department")

        for ancestor_id in _ancestor_ids(self, tree):
            if ancestor_id == child.id:
                return Result.failure(
                    f"Adding {child.name} under {self._name} would create a cycle"
                )
            if ancestor_id != self.id and ancestor_id not in tree:
                return Result.failure(f"Unknown ancestor department {ancestor_id}")

        previous_parent_id = child.parent_id
        if previous_parent_id is not None:
            previous = tree.get(previous_parent_id)
            if previous is None:
                return Result.failure(
                    f"Unknown parent department {previous_parent_id} of {child.name}"
                )
            previous._detach(child.id)
        child._parent_id = self.id
        self._attach(child.id, previous_parent_id=previous_parent_id)
        return Result.success()

    def remove_sub_department(self, child: Department) -> Result[None]:
        if child is None or child.id not in self._sub_department_ids:
            return Result.failure("Department is not a direct sub-department")
        self._detach(child.id)
        child._parent_id = None
        return Result.success()

    def _attach(self, child_id: str, previous_parent_id: str | None) -> None:
        self._sub_department_ids.add(child_id)
        self._record(SubDepartmentAdded(
            **self._event_kwargs(),
            sub_department_id=child_id,
            previous_parent_id=previous_parent_id,
        ))

    def _detach(self, child_id: str) -> None:
        self._sub_department_ids.discard(child_id)
        self._record(SubDepartmentRemoved(
            **self._event_kwargs(),
            sub_department_id=child_id,
        ))

    # ------------------------------------------------------------------
    # Naming and lifecycle
    # ------------------------------------------------------------------

    def update_name(self, new_name: str) -> Result[None]:
        name_result = DepartmentName.create(new_name)
        if not name_result.ok:
            return Result.failure(name_result.error)
        old = self._name
        self._name = name_result.unwrap()
        self._record(DepartmentRenamed(
            **self._event_kwargs(),
            old_name=old.value,
            new_name=self._name.value,
        ))
        return Result.success()

    def deactivate(self) -> Result[None]:
        if not self._is_active:
            return Result.failure("Department is already inactive")
        if self._employee_ids:
            return Result.failure(
                "Cannot deactivate a department that still has employees"
            )
        self._is_active = False
        self._record(DepartmentDeactivated(**self._event_kwargs()))
        return Result.success()

    def activate(self) -> Result[None]:
        if self._is_active:
            return Result.failure("Department is already active")
        self._is_active = True
        self._record(DepartmentActivated(**self._event_kwargs()))
        return Result.success()


def _ancestor_ids(dept: Department, tree: Mapping[str, Department]) -> Iterator[str]:
    """Yield *dept*'s own id, then each ancestor id up to the root.

    Parent ids are yielded as read, before lookup in *tree*.  An id that
    *tree* cannot resolve is the last one yielded.
    """
    seen = {dept.id}
    yield dept.id
    parent_id = dept.parent_id
    while parent_id is not None and parent_id not in seen:
        seen.add(parent_id)
        yield parent_id
        parent = tree.get(parent_id)
        parent_id = parent.parent_id if parent is not None else None


# ---------------------------------------------------------------------------
# Arena
# ---------------------------------------------------------------------------

class DepartmentTree(Mapping[str, Department]):
    """Id-indexed arena of departments.

    Read access is the ``Mapping`` protocol; ``register`` adds nodes.
    """

    def __init__(self, departments: list[Department] | None = None) -> None:
        self._by_id: dict[str, Department] = {}
        for dept in departments or []:
            self.register(dept)

    def register(self, dept: Department) -> Department:
        if not isinstance(dept, Department):
            raise PreconditionError(f"Expected Department, got {type(dept).__name__}")
        self._by_id[dept.id] = dept
        return dept

    def __getitem__(self, dept_id: str) -> Department:
        return self._by_id[dept_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_id)

    def __len__(self) -> int:
        return len(self._by_id)

    def attach(self, parent_id: str, child_id: str) -> Result[None]:
        """``add_sub_department`` by id."""
        parent = self._by_id.get(parent_id)
        child = self._by_id.get(child_id)
        if parent is None or child is None:
            return Result.failure("Unknown department id")
        return parent.add_sub_department(child, self)

    def ancestors(self, dept_id: str) -> list[Department]:
        """Parents of *dept_id*, nearest first."""
        dept = self._by_id[dept_id]
        return [
            self._by_id[i] for i in list(_ancestor_ids(dept, self))[1:] if i in self._by_id
        ]

    def descendants(self, dept_id: str) -> list[Department]:
        """All departments below *dept_id*, breadth first."""
        out: list[Department] = []
        queue = sorted(self._by_id[dept_id].sub_department_ids)
        seen: set[str] = {dept_id}
        while queue:
            child_id = queue.pop(0)
            if child_id in seen or child_id not in self._by_id:
                continue
            seen.add(child_id)
            child = self._by_id[child_id]
            out.append(child)
            queue.extend(sorted(child.sub_department_ids))
        return out

    def roots(self) -> list[Department]:
        return [d for d in self._by_id.values() if d.parent_id is None]
