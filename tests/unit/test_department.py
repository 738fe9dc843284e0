"""Test the Department aggregate and the DepartmentTree arena.

Covers:
- Creation with and without parent, inactive parent
- Employee membership rules
- Sub-department attach: self reference, duplicates, cycles, re-parenting
- Lifecycle: deactivate/activate, renaming
- Tree queries: ancestors, descendants, roots
"""

import pytest

from payroll_core.core.errors import PreconditionError
from payroll_core.domain.department import Department, DepartmentTree
from payroll_core.domain.events import (
    DepartmentCreated,
    DepartmentDeactivated,
    DepartmentRenamed,
    EmployeeAssigned,
    EmployeeUnassigned,
    SubDepartmentAdded,
    SubDepartmentRemoved,
)


@pytest.fixture
def chain(clock):
    """A -> B -> C, registered in a tree."""
    a = Department.create("A", clock=clock).unwrap()
    b = Department.create("B", a, clock=clock).unwrap()
    c = Department.create("C", b, clock=clock).unwrap()
    for dept in (a, b, c):
        dept.drain_events()
    return a, b, c, DepartmentTree([a, b, c])


class TestCreate:
    def test_root_department(self, clock):
        dept = Department.create("  Engineering ", clock=clock).unwrap()
        assert dept.name.value == "Engineering"
        assert dept.is_active
        assert dept.parent_id is None
        assert dept.employee_ids == frozenset()
        [event] = dept.pending_events
        assert isinstance(event, DepartmentCreated)
        assert event.parent_id is None
        assert event.source == "department"

    def test_with_parent(self, dept_it, clock):
        child = Department.create("Platform", dept_it, clock=clock).unwrap()
        assert child.parent_id == dept_it.id
        assert dept_it.sub_department_ids == {child.id}
        [event] = dept_it.pending_events
        assert isinstance(event, SubDepartmentAdded)
        assert event.sub_department_id == child.id

    def test_blank_name_fails(self, clock):
        assert not Department.create("", clock=clock).ok

    def test_inactive_parent_fails(self, dept_hr, clock):
        dept_hr.deactivate().unwrap()
        result = Department.create("Payroll", dept_hr, clock=clock)
        assert not result.ok
        assert dept_hr.sub_department_ids == frozenset()

    def test_wrong_parent_type_raises(self, clock):
        with pytest.raises(PreconditionError):
            Department.create("X", parent="not-a-department", clock=clock)


class TestMembership:
    def test_add_employee(self, dept_it, alice):
        assert dept_it.add_employee(alice).ok
        assert dept_it.has_employee(alice)
        assert dept_it.has_employee(alice.id)
        [event] = dept_it.pending_events
        assert isinstance(event, EmployeeAssigned)
        assert event.employee_id == alice.id

    def test_add_twice_fails(self, dept_it, alice):
        dept_it.add_employee(alice).unwrap()
        assert not dept_it.add_employee(alice).ok
        assert len(dept_it.employee_ids) == 1

    def test_add_employee_of_other_department_fails(self, dept_hr, alice):
        result = dept_hr.add_employee(alice)
        assert not result.ok
        assert "another department" in result.error

    def test_add_none_fails(self, dept_it):
        assert dept_it.add_employee(None).error == "Employee is required"

    def test_add_to_inactive_fails(self, dept_it, alice):
        dept_it.deactivate().unwrap()
        assert not dept_it.add_employee(alice).ok

    def test_remove_employee(self, dept_it, alice):
        dept_it.add_employee(alice).unwrap()
        assert dept_it.remove_employee(alice).ok
        assert not dept_it.has_employee(alice)
        assert isinstance(dept_it.pending_events[-1], EmployeeUnassigned)

    def test_remove_absent_fails(self, dept_it, alice):
        assert not dept_it.remove_employee(alice).ok

    def test_add_records_membership_on_employee(self, dept_it, alice):
        dept_it.add_employee(alice).unwrap()
        assert alice.member_of == dept_it.id
        dept_it.remove_employee(alice).unwrap()
        assert alice.member_of is None

    def test_reassigned_employee_must_leave_old_department_first(self, dept_it, dept_hr, alice):
        dept_it.add_employee(alice).unwrap()
        alice.update_department(dept_hr).unwrap()

        result = dept_hr.add_employee(alice)

        assert not result.ok
        assert "still a member" in result.error
        assert dept_it.has_employee(alice)
        assert not dept_hr.has_employee(alice)

        dept_it.remove_employee(alice).unwrap()
        assert dept_hr.add_employee(alice).ok
        assert alice.member_of == dept_hr.id
        assert not dept_it.has_employee(alice)


class TestSubDepartments:
    def test_attach(self, tree, dept_it, dept_hr):
        assert dept_it.add_sub_department(dept_hr, tree).ok
        assert dept_hr.parent_id == dept_it.id
        assert dept_it.sub_department_ids == {dept_hr.id}

    def test_self_reference_fails(self, tree, dept_it):
        result = dept_it.add_sub_department(dept_it, tree)
        assert result.error == "A department cannot be its own sub-department"

    def test_duplicate_fails(self, tree, dept_it, dept_hr):
        dept_it.add_sub_department(dept_hr, tree).unwrap()
        assert not dept_it.add_sub_department(dept_hr, tree).ok

    def test_none_fails(self, tree, dept_it):
        assert not dept_it.add_sub_department(None, tree).ok

    def test_two_node_cycle_rejected(self, clock):
        a = Department.create("A", clock=clock).unwrap()
        b = Department.create("B", clock=clock).unwrap()
        tree = DepartmentTree([a, b])
        a.add_sub_department(b, tree).unwrap()

        result = b.add_sub_department(a, tree)

        assert not result.ok
        assert "cycle" in result.error
        assert a.sub_department_ids == {b.id}
        assert b.sub_department_ids == frozenset()
        assert a.parent_id is None

    def test_deep_cycle_rejected(self, chain):
        a, b, c, tree = chain
        result = c.add_sub_department(a, tree)
        assert "cycle" in result.error
        assert c.sub_department_ids == frozenset()
        assert c.pending_events == ()

    def test_cycle_rejected_when_tree_lacks_the_parent(self, clock):
        a = Department.create("A", clock=clock).unwrap()
        b = Department.create("B", a, clock=clock).unwrap()

        result = b.add_sub_department(a, DepartmentTree([b]))

        assert not result.ok
        assert "cycle" in result.error
        assert a.parent_id is None
        assert b.sub_department_ids == frozenset()

    def test_unknown_ancestor_fails(self, chain, clock):
        a, b, c, _ = chain
        x = Department.create("X", clock=clock).unwrap()

        result = c.add_sub_department(x, DepartmentTree([c, x]))

        assert not result.ok
        assert "Unknown ancestor" in result.error
        assert x.parent_id is None
        assert c.sub_department_ids == frozenset()

    def test_unknown_current_parent_fails(self, chain, clock):
        a, b, c, _ = chain
        d = Department.create("D", clock=clock).unwrap()

        result = d.add_sub_department(c, DepartmentTree([c, d]))

        assert not result.ok
        assert c.parent_id == b.id
        assert b.sub_department_ids == {c.id}
        assert d.sub_department_ids == frozenset()

    def test_reparent_moves_child(self, chain, clock):
        a, b, c, tree = chain
        d = tree.register(Department.create("D", clock=clock).unwrap())

        assert d.add_sub_department(c, tree).ok

        assert c.parent_id == d.id
        assert c.id not in b.sub_department_ids
        assert d.sub_department_ids == {c.id}
        assert isinstance(b.pending_events[-1], SubDepartmentRemoved)
        added = d.pending_events[-1]
        assert isinstance(added, SubDepartmentAdded)
        assert added.previous_parent_id == b.id

    def test_moving_ancestor_under_sibling_branch_is_allowed(self, chain, clock):
        a, b, c, tree = chain
        d = tree.register(Department.create("D", a, clock=clock).unwrap())
        assert d.add_sub_department(b, tree).ok
        assert [x.name.value for x in tree.ancestors(c.id)] == ["B", "D", "A"]

    def test_remove_sub_department(self, chain):
        a, b, c, tree = chain
        assert b.remove_sub_department(c).ok
        assert c.parent_id is None
        assert b.sub_department_ids == frozenset()
        assert not b.remove_sub_department(c).ok


class TestLifecycle:
    def test_rename(self, dept_it):
        assert dept_it.update_name("Information Technology").ok
        assert str(dept_it.name) == "Information Technology"
        assert isinstance(dept_it.pending_events[-1], DepartmentRenamed)

    def test_rename_blank_fails(self, dept_it):
        assert not dept_it.update_name(" ").ok
        assert str(dept_it.name) == "IT"

    def test_deactivate_then_activate(self, dept_hr):
        assert dept_hr.deactivate().ok
        assert not dept_hr.is_active
        assert isinstance(dept_hr.pending_events[-1], DepartmentDeactivated)
        assert not dept_hr.deactivate().ok
        assert dept_hr.activate().ok
        assert dept_hr.is_active
        assert not dept_hr.activate().ok

    def test_deactivate_with_members_fails(self, dept_it, alice):
        dept_it.add_employee(alice).unwrap()
        result = dept_it.deactivate()
        assert not result.ok
        assert dept_it.is_active


class TestDepartmentTree:
    def test_mapping_protocol(self, chain):
        a, b, c, tree = chain
        assert len(tree) == 3
        assert tree[a.id] is a
        assert set(tree) == {a.id, b.id, c.id}
        assert tree.get("missing") is None

    def test_register_rejects_non_department(self):
        with pytest.raises(PreconditionError):
            DepartmentTree().register("nope")

    def test_ancestors_nearest_first(self, chain):
        a, b, c, tree = chain
        assert tree.ancestors(c.id) == [b, a]
        assert tree.ancestors(a.id) == []

    def test_descendants(self, chain):
        a, b, c, tree = chain
        assert tree.descendants(a.id) == [b, c]
        assert tree.descendants(c.id) == []

    def test_roots(self, chain, dept_it):
        a, b, c, tree = chain
        tree.register(dept_it)
        assert set(d.id for d in tree.roots()) == {a.id, dept_it.id}

    def test_attach_by_id(self, chain):
        a, b, c, tree = chain
        assert not tree.attach(c.id, a.id).ok
        assert not tree.attach("missing", a.id).ok
        assert tree.attach(a.id, c.id).ok
        assert c.parent_id == a.id
