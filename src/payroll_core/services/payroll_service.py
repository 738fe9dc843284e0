"""Payroll service: the in-process caller of the domain aggregates.

Owns the things the domain deliberately does not: talking to the bank,
logging, and handing drained events to the event store.  Every public
operation runs under one correlation id so its events and log lines can be
tied together.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from decimal import Decimal

from payroll_core.banking.gateway import BankResult, IBankPayment, PaymentInstruction
from payroll_core.core.clock import WALL_CLOCK, IClock
from payroll_core.core.config import Settings
from payroll_core.core.enums import PaymentStatus
from payroll_core.core.errors import BankGatewayError
from payroll_core.core.result import Result
from payroll_core.domain.aggregate import AggregateRoot
from payroll_core.domain.bank_details import BankDetails
from payroll_core.domain.department import Department, DepartmentTree
from payroll_core.domain.employee import Employee
from payroll_core.domain.payment import PaymentHistory
from payroll_core.domain.policy import DEFAULT_POLICY, PayrollPolicy
from payroll_core.domain.values import DateRange, Money
from payroll_core.infrastructure.event_store import (
    IEventStore,
    InMemoryEventStore,
    JsonFileEventStore,
)
from payroll_core.observability.logger import (
    current_correlation_id,
    get_logger,
    new_correlation_id,
    setup_logging,
)

logger = get_logger(__name__)


class PayrollService:
    """Hires, transfers and pays employees.

    Parameters
    ----------
    gateway:
        Bank payment collaborator.
    event_store:
        Sink for drained domain events.
    policy:
        Business constants handed to every new employee.
    clock:
        Time source handed to every new aggregate.
    """

    def __init__(
        self,
        gateway: IBankPayment,
        event_store: IEventStore,
        *,
        policy: PayrollPolicy = DEFAULT_POLICY,
        clock: IClock | None = None,
    ) -> None:
        self._gateway = gateway
        self._store = event_store
        self._policy = policy
        self._clock = clock or WALL_CLOCK
        self.departments = DepartmentTree()

    @classmethod
    def from_settings(cls, settings: Settings, gateway: IBankPayment) -> PayrollService:
        obs = settings.observability
        store: IEventStore
        if obs.event_log_path:
            store = JsonFileEventStore(obs.event_log_path)
        else:
            store = InMemoryEventStore()
        return cls(gateway, store, policy=settings.policy())

    # ------------------------------------------------------------------
    # Persistence boundary
    # ------------------------------------------------------------------

    async def commit(
        self,
        *aggregates: AggregateRoot,
        correlation_id: str | None = None,
    ) -> int:
        """Drain every aggregate's queue into the event store.

        Events without a correlation id are stamped with *correlation_id*,
        or with the current operation's id when none is given.
        Returns the number of events handed over.
        """
        correlation_id = correlation_id or current_correlation_id()
        count = 0
        for aggregate in aggregates:
            for event in aggregate.drain_events():
                if correlation_id and not event.correlation_id:
                    event = dataclasses.replace(event, correlation_id=correlation_id)
                await self._store.append(event)
                count += 1
        logger.debug("events_committed", count=count)
        return count

    # ------------------------------------------------------------------
    # Departments
    # ------------------------------------------------------------------

    async def create_department(
        self, name: str, parent: Department | None = None,
    ) -> Result[Department]:
        cid = new_correlation_id()
        created = Department.create(name, parent, clock=self._clock)
        if not created.ok:
            logger.info("department_rejected", reason=created.error)
            return created
        dept = self.departments.register(created.unwrap())
        touched: list[AggregateRoot] = [dept]
        if parent is not None:
            touched.append(parent)
        await self.commit(*touched, correlation_id=cid)
        logger.info("department_created", department_id=dept.id, name=str(dept.name))
        return created

    async def attach_department(self, parent: Department, child: Department) -> Result[None]:
        cid = new_correlation_id()
        previous = self.departments.get(child.parent_id) if child.parent_id else None
        attached = parent.add_sub_department(child, self.departments)
        if not attached.ok:
            logger.info("attach_rejected", parent_id=parent.id, child_id=child.id,
                        reason=attached.error)
            return attached
        touched = [parent, child] + ([previous] if previous is not None else [])
        await self.commit(*touched, correlation_id=cid)
        return attached

    # ------------------------------------------------------------------
    # Hiring and transfers
    # ------------------------------------------------------------------

    async def _hire(self, created: Result[Employee], department: Department) -> Result[Employee]:
        cid = new_correlation_id()
        if not created.ok:
            logger.info("hire_rejected", reason=created.error)
            return created
        employee = created.unwrap()
        assigned = department.add_employee(employee)
        if not assigned.ok:
            logger.info("hire_rejected", reason=assigned.error)
            employee.drain_events()
            return Result.failure(assigned.error)
        await self.commit(employee, department, correlation_id=cid)
        logger.info(
            "employee_hired",
            employee_id=employee.id,
            department_id=department.id,
            contract_type=employee.contract_type.value,
        )
        return created

    async def hire_full_time(
        self, name: str, annual_pay: Money, department: Department,
    ) -> Result[Employee]:
        return await self._hire(
            Employee.create_full_time(
                name, annual_pay, department, policy=self._policy, clock=self._clock,
            ),
            department,
        )

    async def hire_part_time(
        self,
        name: str,
        annual_pay: Money,
        department: Department,
        working_hours_percentage: Decimal | float | str,
    ) -> Result[Employee]:
        return await self._hire(
            Employee.create_part_time(
                name, annual_pay, department, working_hours_percentage,
                policy=self._policy, clock=self._clock,
            ),
            department,
        )

    async def hire_contractor(
        self,
        name: str,
        daily_rate: Money,
        contract_period: DateRange,
        department: Department,
    ) -> Result[Employee]:
        return await self._hire(
            Employee.create_contractor(
                name, daily_rate, contract_period, department,
                policy=self._policy, clock=self._clock,
            ),
            department,
        )

    async def transfer_employee(
        self,
        employee: Employee,
        source: Department,
        target: Department | None,
    ) -> Result[None]:
        """Move *employee* from *source* to *target*, all or nothing."""
        cid = new_correlation_id()
        if target is None:
            return Result.failure("Target department is required")
        if employee.member_of not in (None, source.id):
            return Result.failure("Employee is a member of another department")
        if not source.has_employee(employee) or employee.department_id != source.id:
            return Result.failure("Employee is not in the source department")
        if target.id == source.id:
            return Result.failure("Source and target departments are the same")
        if not target.is_active:
            return Result.failure(f"Department {target.name} is inactive")
        if target.has_employee(employee):
            return Result.failure("Employee is already in the target department")

        # Preconditions above cover every failure path of the three steps.
        employee.update_department(target).unwrap()
        source.remove_employee(employee).unwrap()
        target.add_employee(employee).unwrap()

        await self.commit(employee, source, target, correlation_id=cid)
        logger.info(
            "employee_transferred",
            employee_id=employee.id,
            source_id=source.id,
            target_id=target.id,
        )
        return Result.success()

    # ------------------------------------------------------------------
    # Paying
    # ------------------------------------------------------------------

    async def pay_employee(
        self,
        employee: Employee,
        bank_details: BankDetails,
        period: DateRange,
        reference: str | None = None,
    ) -> Result[PaymentHistory]:
        """Calculate, record and send one payment.

        A business rejection (unverified bank details, overlapping period,
        contractor period outside the contract) returns a failure and
        records nothing.  Once the payment is recorded, a declined or
        unreachable bank marks it FAILED and the result is still a success
        carrying that record.
        """
        cid = new_correlation_id()
        log = logger.bind(employee_id=employee.id, period=str(period), correlation_id=cid)

        if bank_details is None or bank_details.employee_id != employee.id:
            return Result.failure("Bank details do not belong to this employee")
        if not bank_details.is_verified:
            return Result.failure("Bank details are not verified")

        pay = employee.calculate_pay_for_period(period)
        if not pay.ok:
            log.info("payment_rejected", reason=pay.error)
            return Result.failure(pay.error)

        added = employee.add_payment(period, pay.unwrap(), reference)
        if not added.ok:
            log.info("payment_rejected", reason=added.error)
            return added
        payment = added.unwrap()

        instruction = PaymentInstruction(
            reference=payment.reference,
            account_holder=bank_details.account_holder,
            iban=bank_details.iban,
            bic=bank_details.bic,
            amount=payment.amount.amount,
            currency=payment.amount.currency,
        )
        try:
            result: BankResult = await self._gateway.make_payment(instruction)
        except BankGatewayError as exc:
            log.warning("bank_unavailable", reference=payment.reference, error=str(exc))
            payment.mark_as_failed(f"Bank gateway error: {exc}").unwrap()
        else:
            if result.is_success:
                payment.mark_as_successful().unwrap()
                log.info(
                    "payment_sent",
                    reference=payment.reference,
                    amount=str(payment.amount),
                    transaction_id=result.transaction_id,
                )
            else:
                payment.mark_as_failed(result.error or "Declined by bank").unwrap()
                log.info("payment_declined", reference=payment.reference, error=result.error)

        await self.commit(employee, payment, correlation_id=cid)
        return Result.success(payment)

    async def run_pay_period(
        self,
        payees: Sequence[tuple[Employee, BankDetails]],
        period: DateRange,
    ) -> dict[str, Result[PaymentHistory]]:
        """Pay every (employee, bank details) pair for *period*, in order.

        One employee's failure never stops the run.
        """
        results: dict[str, Result[PaymentHistory]] = {}
        for employee, details in payees:
            results[employee.id] = await self.pay_employee(employee, details, period)
        paid = sum(
            1 for r in results.values()
            if r.ok and r.unwrap().status is PaymentStatus.SUCCESSFUL
        )
        logger.info("pay_period_complete", period=str(period),
                    payees=len(results), paid=paid)
        return results


def build_service(settings: Settings, gateway: IBankPayment) -> PayrollService:
    """Configure logging from *settings* and return a ready service."""
    setup_logging(
        level=settings.observability.log_level,
        format=settings.observability.log_format,
    )
    return PayrollService.from_settings(settings, gateway)
